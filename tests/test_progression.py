"""
Tests for result entry, winner advancement and round completion.
"""
import itertools
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from conftest import make_competitors
from draws.elimination import generate_bracket
from draws.errors import InvalidStatusTransition, InvalidWinner, MatchNotFound
from draws.models import BYE, COMPLETED, DELAYED, DRAW, LIVE, UPCOMING, Competitor, Match, Win
from draws.progression import BracketResolver, apply_result
from draws.season import generate_round_robin
from draws.seeding import seed_event


def write_bracket(store, count, third_place_match=False, event_id="open"):
    """Store an unshuffled bracket; returns {(round, number): id} and the third place id."""
    counter = itertools.count(1)
    matches = generate_bracket(seed_event(make_competitors(count)), event_id=event_id,
                               third_place_match=third_place_match,
                               id_factory=lambda: f"m{next(counter)}")
    for round_number in sorted({m.round for m in matches}):
        store.replace_round_matches(event_id, round_number, [m for m in matches if m.round == round_number])
    ids = {(m.round, m.match_number): m.id for m in matches if not m.third_place}
    third = next((m.id for m in matches if m.third_place), None)
    return ids, third


@pytest.fixture
def resolver(store):
    return BracketResolver(store)


class TestApplyResult:
    """Tests for validating a result against a match."""

    def test_win_completes_match(self):
        match = Match(id="m1", round=1, match_number=1, competitor1_id="a", competitor2_id="b")
        apply_result(match, 21, 17, "a")
        assert match.status == COMPLETED
        assert match.result == Win("a")
        assert (match.score1, match.score2) == ("21", "17")

    def test_winner_must_be_in_match(self):
        match = Match(id="m1", round=1, match_number=1, competitor1_id="a", competitor2_id="b")
        with pytest.raises(InvalidWinner):
            apply_result(match, 1, 0, "c")

    def test_winner_required(self):
        match = Match(id="m1", round=1, match_number=1, competitor1_id="a", competitor2_id="b")
        with pytest.raises(InvalidWinner):
            apply_result(match, 1, 0, None)

    def test_draw_only_in_regular_season(self):
        elimination = Match(id="m1", round=1, match_number=1, competitor1_id="a", competitor2_id="b")
        with pytest.raises(InvalidWinner):
            apply_result(elimination, 1, 1, DRAW)
        season = Match(id="m2", round=0, match_number=1, competitor1_id="a", competitor2_id="b")
        apply_result(season, 1, 1, DRAW)
        assert season.result == DRAW

    def test_needs_both_competitors(self):
        match = Match(id="m1", round=2, match_number=1, competitor1_id="a")
        with pytest.raises(InvalidWinner):
            apply_result(match, 1, 0, "a")

    def test_bye_cannot_be_scored(self):
        match = Match(id="m1", round=1, match_number=1, competitor1_id="a", status=BYE, result=Win("a"))
        with pytest.raises(InvalidStatusTransition):
            apply_result(match, 1, 0, "a")


class TestStatusUpdates:
    """Tests for organizer status changes."""

    def test_upcoming_to_live(self, store, resolver):
        ids, _ = write_bracket(store, 4)
        assert resolver.update_status("open", ids[(1, 1)], LIVE).status == LIVE
        assert store.get_match("open", ids[(1, 1)]).status == LIVE

    def test_delayed_back_to_upcoming(self, store, resolver):
        ids, _ = write_bracket(store, 4)
        resolver.update_status("open", ids[(1, 1)], DELAYED)
        assert resolver.update_status("open", ids[(1, 1)], UPCOMING).status == UPCOMING

    def test_same_status_is_a_no_op(self, store, resolver):
        ids, _ = write_bracket(store, 4)
        assert resolver.update_status("open", ids[(1, 1)], UPCOMING).status == UPCOMING

    def test_live_cannot_go_back_to_upcoming(self, store, resolver):
        ids, _ = write_bracket(store, 4)
        resolver.update_status("open", ids[(1, 1)], LIVE)
        with pytest.raises(InvalidStatusTransition):
            resolver.update_status("open", ids[(1, 1)], UPCOMING)

    def test_completed_is_final(self, store, resolver):
        ids, _ = write_bracket(store, 4)
        resolver.record_result("open", ids[(1, 1)], 2, 0, "c1")
        with pytest.raises(InvalidStatusTransition):
            resolver.update_status("open", ids[(1, 1)], LIVE)

    def test_completed_not_settable_directly(self, store, resolver):
        ids, _ = write_bracket(store, 4)
        with pytest.raises(InvalidStatusTransition):
            resolver.update_status("open", ids[(1, 1)], COMPLETED)

    def test_unknown_match(self, store, resolver):
        write_bracket(store, 4)
        with pytest.raises(MatchNotFound):
            resolver.update_status("open", "missing", LIVE)


class TestAdvanceWinner:
    """Tests for winner advancement against the store."""

    def test_winner_fills_next_match(self, store, resolver):
        ids, _ = write_bracket(store, 8)
        resolver.record_result("open", ids[(1, 3)], 3, 1, "c5")
        changed = resolver.advance_winner("open", ids[(1, 3)])
        assert [m.id for m in changed] == [ids[(2, 2)]]
        assert store.get_match("open", ids[(2, 2)]).competitor1_id == "c5"

    def test_repeat_changes_nothing(self, store, resolver):
        ids, _ = write_bracket(store, 8)
        resolver.record_result("open", ids[(1, 1)], 3, 1, "c2")
        resolver.advance_winner("open", ids[(1, 1)])
        before = [m.to_dict() for m in store.list_matches("open")]
        assert resolver.advance_winner("open", ids[(1, 1)]) == []
        assert [m.to_dict() for m in store.list_matches("open")] == before

    def test_undecided_match_not_advanced(self, store, resolver):
        ids, _ = write_bracket(store, 8)
        assert resolver.advance_winner("open", ids[(1, 1)]) == []

    def test_live_match_not_overwritten(self, store, resolver):
        ids, _ = write_bracket(store, 4)
        resolver.submit_result("open", ids[(1, 1)], 2, 0, "c1")
        resolver.submit_result("open", ids[(1, 2)], 2, 0, "c3")
        resolver.update_status("open", ids[(2, 1)], LIVE)
        resolver.record_result("open", ids[(1, 1)], 0, 2, "c2")
        assert resolver.advance_winner("open", ids[(1, 1)]) == []
        assert store.get_match("open", ids[(2, 1)]).competitor1_id == "c1"

    def test_correction_before_next_match_starts(self, store, resolver):
        ids, _ = write_bracket(store, 4)
        resolver.submit_result("open", ids[(1, 1)], 2, 0, "c1")
        resolver.record_result("open", ids[(1, 1)], 0, 2, "c2")
        resolver.advance_winner("open", ids[(1, 1)])
        assert store.get_match("open", ids[(2, 1)]).competitor1_id == "c2"

    def test_third_place_match_not_advanced(self, store, resolver):
        ids, third = write_bracket(store, 4, third_place_match=True)
        resolver.submit_result("open", ids[(1, 1)], 2, 0, "c1")
        resolver.submit_result("open", ids[(1, 2)], 2, 0, "c3")
        resolver.record_result("open", third, 2, 1, "c2")
        assert resolver.advance_winner("open", third) == []

    def test_unknown_match(self, store, resolver):
        write_bracket(store, 4)
        with pytest.raises(MatchNotFound):
            resolver.advance_winner("open", "missing")


class TestRoundCompletion:
    """Tests for round completion and announcements."""

    def test_byes_and_dead_matches_ignored(self, store, resolver):
        ids, _ = write_bracket(store, 5)
        resolver.record_result("open", ids[(1, 1)], 1, 0, "c1")
        assert not resolver.check_round_completion("open", 1)
        resolver.record_result("open", ids[(1, 2)], 1, 0, "c3")
        assert resolver.check_round_completion("open", 1)

    def test_round_without_matches(self, store, resolver):
        write_bracket(store, 4)
        assert not resolver.check_round_completion("open", 5)

    def test_regular_season_draws_count(self, store, resolver):
        matches = generate_round_robin(make_competitors(3), event_id="open")
        store.replace_round_matches("open", 0, matches)
        for match in matches:
            resolver.record_result("open", match.id, 1, 1, DRAW)
        assert resolver.check_round_completion("open", 0)

    def test_announced_once(self, store, resolver):
        ids, _ = write_bracket(store, 4)
        resolver.submit_result("open", ids[(1, 1)], 2, 0, "c1")
        outcome = resolver.submit_result("open", ids[(1, 2)], 2, 0, "c4")
        assert outcome['round_name'] == "Semifinals"
        assert outcome['announcement']['title'] == "Semifinals completed!"
        again = resolver.submit_result("open", ids[(1, 2)], 2, 1, "c4")
        assert again['announcement'] is None
        assert len(store.list_announcements("open")) == 1

    def test_not_announced_while_running(self, store, resolver):
        ids, _ = write_bracket(store, 4)
        outcome = resolver.submit_result("open", ids[(1, 1)], 2, 0, "c1")
        assert outcome['announcement'] is None
        assert resolver.announce_round_completion("open", 1) is None

    def test_announcement_mentions_event(self, store, resolver):
        ids, _ = write_bracket(store, 2)
        outcome = resolver.submit_result("open", ids[(1, 1)], 2, 0, "c2", event_name="Spring Open")
        announcement = outcome['announcement']
        assert announcement['title'] == "Final completed!"
        assert "Spring Open - Final: 1 matches completed." in announcement['content']
        assert "advanced" not in announcement['content']


class TestSubmitResult:
    """End-to-end result flow through a small bracket."""

    def test_four_competitors_with_third_place(self, store, resolver):
        ids, third = write_bracket(store, 4, third_place_match=True)
        first = resolver.submit_result("open", ids[(1, 1)], 21, 15, "c1")
        assert {m.id for m in first['advanced']} == {ids[(2, 1)], third}
        resolver.submit_result("open", ids[(1, 2)], 18, 21, "c4")

        final = store.get_match("open", ids[(2, 1)])
        bronze = store.get_match("open", third)
        assert (final.competitor1_id, final.competitor2_id) == ("c1", "c4")
        assert (bronze.competitor1_id, bronze.competitor2_id) == ("c2", "c3")

        outcome = resolver.submit_result("open", ids[(2, 1)], 2, 1, "c1")
        assert outcome['round_name'] == "Final"
        assert outcome['advanced'] == []
        assert outcome['announcement'] is None

        outcome = resolver.submit_result("open", third, 2, 0, "c3")
        assert outcome['round_name'] == "Third Place"
        assert outcome['announcement']['title'] == "Final completed!"

    def test_bye_cascade_then_final(self, store, resolver):
        ids, _ = write_bracket(store, 3)
        assert store.get_match("open", ids[(2, 1)]).competitor2_id == "c3"
        resolver.submit_result("open", ids[(1, 1)], 1, 0, "c2")
        final = store.get_match("open", ids[(2, 1)])
        assert (final.competitor1_id, final.competitor2_id) == ("c2", "c3")
        assert final.status == UPCOMING

    def test_competitor_named_draw_wins_elimination_match(self, store, resolver):
        competitors = [Competitor("draw", "Draw United", seed=1), Competitor("b", "B"),
                       Competitor("c", "C"), Competitor("d", "D")]
        matches = generate_bracket(seed_event(competitors), event_id="open")
        for round_number in (1, 2):
            store.replace_round_matches("open", round_number, [m for m in matches if m.round == round_number])
        first = next(m for m in store.list_matches("open", round=1) if "draw" in m.competitors)

        outcome = resolver.submit_result("open", first.id, 2, 0, "draw")
        assert outcome['match'].result == Win("draw")
        assert store.get_match("open", first.id).result == Win("draw")
        final = store.list_matches("open", round=2)[0]
        assert "draw" in final.competitors
