"""
Result entry, winner advancement and round completion for an event.

BracketResolver is created per request around a store; it keeps no state of
its own and re-reads matches from the store on every call, so every operation
can be re-run safely after a partial failure.
"""
import logging
from typing import Dict, List, Optional

from .elimination import (
    THIRD_PLACE_NAME,
    find_third_place,
    get_round_name,
    index_bracket,
    is_dead,
    propagate_winner,
    third_place_is_dead,
    total_rounds_of,
)
from .errors import InvalidStatusTransition, InvalidWinner, MatchNotFound
from .models import (
    BYE,
    COMPLETED,
    DELAYED,
    LIVE,
    REGULAR_SEASON_ROUND,
    UPCOMING,
    Draw,
    Match,
    Pending,
    Win,
    parse_result,
)

logger = logging.getLogger(__name__)

# Status changes an organizer can make directly; completion goes through
# record_result and byes are only ever created by the bracket generator.
ALLOWED_TRANSITIONS = {
    UPCOMING: {LIVE, DELAYED},
    LIVE: {DELAYED},
    DELAYED: {UPCOMING, LIVE},
    COMPLETED: set(),
    BYE: set(),
}


def apply_result(match: Match, score1, score2, winner) -> Match:
    """
    Validate a result against a match and apply it in memory.

    winner is a competitor id of the match, or Draw (regular season only).
    """
    if match.status == BYE:
        raise InvalidStatusTransition(BYE, COMPLETED)
    result = parse_result(winner)
    if isinstance(result, Pending):
        raise InvalidWinner("A winner (or a draw) is required to complete a match")
    if isinstance(result, Draw):
        if match.round != REGULAR_SEASON_ROUND:
            raise InvalidWinner("Elimination matches cannot end in a draw")
    elif result.competitor_id not in match.competitors or len(match.competitors) < 2:
        raise InvalidWinner(
            f"Winner {result.competitor_id} is not one of the competitors of match {match.id}"
        )
    match.result = result
    match.score1 = None if score1 is None else str(score1)
    match.score2 = None if score2 is None else str(score2)
    match.status = COMPLETED
    return match


class BracketResolver:
    def __init__(self, store):
        self.store = store

    def _find(self, matches: List[Match], match_id: str) -> Match:
        for match in matches:
            if match.id == match_id:
                return match
        raise MatchNotFound(match_id)

    def update_status(self, event_id: str, match_id: str, status: str) -> Match:
        match = self.store.get_match(event_id, match_id)
        if status == match.status:
            return match
        if status not in ALLOWED_TRANSITIONS.get(match.status, set()):
            raise InvalidStatusTransition(match.status, status)
        return self.store.update_match(event_id, match_id, {'status': status})

    def record_result(self, event_id: str, match_id: str, score1, score2, winner) -> Match:
        """Validate and persist a final result. Does not advance the winner."""
        match = apply_result(self.store.get_match(event_id, match_id), score1, score2, winner)
        data = match.to_dict()
        stored = self.store.update_match(event_id, match_id, {
            'status': data['status'],
            'result': data['result'],
            'score1': data['score1'],
            'score2': data['score2'],
        })
        logger.info("Recorded result for match %s (round %s #%s): %r",
                    match_id, match.round, match.match_number, match.result)
        return stored

    def advance_winner(self, event_id: str, match_id: str) -> List[Match]:
        """
        Move the winner of a decided elimination match forward.

        A match that is not completed (or a bye) yet is left alone. Returns
        the matches that changed.
        """
        matches = self.store.list_matches(event_id, min_round=1)
        match = self._find(matches, match_id)
        if match.status not in (COMPLETED, BYE) or not isinstance(match.result, Win):
            logger.debug("Match %s has no winner yet; nothing to advance", match_id)
            return []
        if match.third_place:
            return []

        bracket = index_bracket(matches)
        changed = propagate_winner(bracket, match, find_third_place(matches))
        for updated in changed:
            data = updated.to_dict()
            self.store.update_match(event_id, updated.id, {
                'competitor1_id': data['competitor1_id'],
                'competitor2_id': data['competitor2_id'],
                'status': data['status'],
                'result': data['result'],
            })
        if changed:
            logger.info("Advanced %s from match %s into %d match(es)",
                        match.winner_id, match_id, len(changed))
        return changed

    def _playable(self, event_id: str, round_number: int) -> List[Match]:
        """Matches of a round that are (or will be) actually played."""
        if round_number == REGULAR_SEASON_ROUND:
            return [m for m in self.store.list_matches(event_id, round=round_number) if m.status != BYE]
        elimination = self.store.list_matches(event_id, min_round=1)
        bracket = index_bracket(elimination)
        playable = []
        for match in elimination:
            if match.round != round_number or match.status == BYE:
                continue
            if match.third_place:
                if third_place_is_dead(bracket):
                    continue
            elif is_dead(bracket, match.round, match.match_number):
                continue
            playable.append(match)
        return playable

    def check_round_completion(self, event_id: str, round_number: int) -> bool:
        """
        True when every non-bye match of the round has a final result.

        Empty branches that can never be played are ignored; a round with no
        playable match is not considered complete.
        """
        playable = self._playable(event_id, round_number)
        if not playable:
            return False
        return all(m.status == COMPLETED and m.is_decided for m in playable)

    def round_name(self, event_id: str, round_number: int) -> str:
        total_rounds = total_rounds_of(self.store.list_matches(event_id, min_round=1))
        return get_round_name(round_number, total_rounds)

    def announce_round_completion(self, event_id: str, round_number: int,
                                  event_name: Optional[str] = None) -> Optional[Dict]:
        """
        Post a one-time announcement once a round is complete.

        Returns the announcement, or None when the round is still running or
        was already announced.
        """
        if not self.check_round_completion(event_id, round_number):
            return None
        if self.store.has_announcement_been_sent(event_id, round_number):
            logger.debug("Round %s of %s already announced", round_number, event_id)
            return None

        name = self.round_name(event_id, round_number)
        played = len(self._playable(event_id, round_number))
        title = f"{name} completed!"
        lines = [f"All {name} matches are finished."]
        if event_name:
            lines.append(f"{event_name} - {name}: {played} matches completed.")
        if round_number >= 1 and name != "Final":
            lines.append("Winners have advanced to the next round. Check the draw for the next matchups!")
        announcement = self.store.create_announcement(event_id, title, "\n".join(lines))
        self.store.mark_announcement_sent(event_id, round_number)
        return announcement

    def submit_result(self, event_id: str, match_id: str, score1, score2, winner,
                      event_name: Optional[str] = None) -> Dict:
        """
        Record a result, advance the winner and announce round completion.
        """
        match = self.record_result(event_id, match_id, score1, score2, winner)
        advanced = []
        if match.round >= 1:
            advanced = self.advance_winner(event_id, match_id)
        announcement = self.announce_round_completion(event_id, match.round, event_name)
        return {
            'match': match,
            'advanced': advanced,
            'announcement': announcement,
            'round_name': THIRD_PLACE_NAME if match.third_place else self.round_name(event_id, match.round),
        }
