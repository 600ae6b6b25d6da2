"""
Unit tests for regular season standings.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from draws.models import COMPLETED, DRAW, LIVE, Match, Win
from draws.standings import calculate_group_standings, calculate_standings, parse_score


def result(number, home, away, score1, score2, winner=None, group=None, round=0, status=COMPLETED):
    if winner is None and score1 is not None and score2 is not None:
        s1, s2 = parse_score(score1), parse_score(score2)
        if s1 is not None and s2 is not None:
            winner = DRAW if s1 == s2 else Win(home if s1 > s2 else away)
    elif isinstance(winner, str):
        winner = Win(winner)
    return Match(id=f"m{number}", round=round, match_number=number,
                 competitor1_id=home, competitor2_id=away, status=status,
                 result=winner, score1=score1, score2=score2, group_number=group)


@pytest.fixture
def three_way():
    return [
        result(1, "A", "B", "3", "1"),
        result(2, "B", "C", "2", "2"),
        result(3, "C", "A", "0", "2"),
    ]


class TestParseScore:
    """Tests for score parsing."""

    def test_numeric(self):
        assert parse_score("21") == 21
        assert parse_score(" 3 ") == 3
        assert parse_score(4) == 4

    def test_not_numeric(self):
        assert parse_score("21-15") is None
        assert parse_score("W/O") is None
        assert parse_score(None) is None
        assert parse_score(True) is None


class TestCalculateStandings:
    """Tests for the league table."""

    def test_points_and_goal_differential(self, three_way):
        table = calculate_standings(three_way)
        points = {s.competitor_id: s.points for s in table}
        assert points == {"A": 6, "B": 1, "C": 1}
        assert table[0].competitor_id == "A"
        assert table[0].goal_differential == 4
        assert (table[0].wins, table[0].draws, table[0].losses) == (2, 0, 0)

    def test_goals_for_breaks_tie(self, three_way):
        """B and C are level on points and differential; B scored more."""
        table = calculate_standings(three_way)
        assert [s.competitor_id for s in table] == ["A", "B", "C"]
        assert table[1].goal_differential == table[2].goal_differential == -2
        assert table[1].goals_for == 3
        assert table[2].goals_for == 2

    def test_deterministic(self, three_way):
        first = [s.to_dict() for s in calculate_standings(three_way)]
        second = [s.to_dict() for s in calculate_standings(three_way)]
        assert first == second

    def test_custom_points(self, three_way):
        table = calculate_standings(three_way, points_for_win=2, points_for_draw=1, points_for_loss=0)
        assert {s.competitor_id: s.points for s in table} == {"A": 4, "B": 1, "C": 1}

    def test_only_completed_round_zero_matches(self):
        matches = [
            result(1, "A", "B", "1", "0"),
            result(2, "A", "C", None, None, status=LIVE),
            result(3, "B", "C", "2", "0", round=1),
        ]
        table = calculate_standings(matches)
        assert [s.competitor_id for s in table] == ["A", "B"]
        assert all(s.played == 1 for s in table)

    def test_competitors_without_matches_excluded(self):
        table = calculate_standings([result(1, "A", "B", "1", "0")])
        assert "C" not in {s.competitor_id for s in table}

    def test_unparsable_scores_use_winner(self):
        matches = [result(1, "A", "B", "21-15, 21-18", "15-21, 18-21", winner="A")]
        table = calculate_standings(matches)
        assert table[0].competitor_id == "A"
        assert table[0].points == 3
        assert table[0].goals_for == 0
        assert table[1].losses == 1

    def test_scores_decide_without_stored_winner(self):
        matches = [Match(id="m1", round=0, match_number=1, competitor1_id="A", competitor2_id="B",
                         status=COMPLETED, score1="1", score2="4")]
        table = calculate_standings(matches)
        assert table[0].competitor_id == "B"
        assert table[0].wins == 1

    def test_scores_override_conflicting_winner(self):
        """A stored win for A with a 1-3 score line counts as a win for B."""
        matches = [result(1, "A", "B", "1", "3", winner="A")]
        table = calculate_standings(matches)
        points = {s.competitor_id: s.points for s in table}
        assert points == {"A": 0, "B": 3}
        assert table[0].competitor_id == "B"
        assert table[0].goal_differential == 2

    def test_level_scores_override_stored_winner(self):
        matches = [result(1, "A", "B", "2", "2", winner="A")]
        table = calculate_standings(matches)
        assert [(s.draws, s.points) for s in table] == [(1, 1), (1, 1)]

    def test_competitor_named_draw_wins(self):
        matches = [result(1, "draw", "B", None, None, winner="draw")]
        table = calculate_standings(matches)
        assert table[0].competitor_id == "draw"
        assert (table[0].wins, table[0].draws) == (1, 0)
        assert table[1].losses == 1

    def test_explicit_draw_without_scores(self):
        matches = [result(1, "A", "B", None, None, winner=DRAW)]
        table = calculate_standings(matches)
        assert [s.points for s in table] == [1, 1]

    def test_match_without_outcome_skipped(self):
        matches = [Match(id="m1", round=0, match_number=1, competitor1_id="A", competitor2_id="B",
                         status=COMPLETED)]
        assert calculate_standings(matches) == []

    def test_no_matches(self):
        assert calculate_standings([]) == []


class TestGroupStandings:
    """Tests for per-group tables."""

    def test_groups_ranked_separately(self):
        matches = [
            result(1, "A", "B", "2", "0", group=1),
            result(2, "C", "D", "0", "1", group=2),
            result(3, "E", "F", "1", "1"),
        ]
        groups = calculate_group_standings(matches)
        assert list(groups) == [1, 2]
        # Ungrouped matches count as group 1; E and F are level and keep first-seen order.
        assert [s.competitor_id for s in groups[1]] == ["A", "E", "F", "B"]
        assert [s.competitor_id for s in groups[2]] == ["D", "C"]
