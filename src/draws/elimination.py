"""
Single elimination bracket generation and winner propagation.

Rounds are numbered 1..N (N = log2(bracket_size)); match m of round r is fed
by matches 2m-1 and 2m of round r-1 and covers the round-1 slot range
[(m-1) * 2^r, m * 2^r - 1].
"""
import logging
import math
import uuid
from typing import Callable, Dict, List, Optional, Tuple

from .errors import EmptyBracket
from .models import BYE, COMPLETED, LIVE, UPCOMING, Competitor, Match, Win
from .seeding import validate_bracket_size

logger = logging.getLogger(__name__)

THIRD_PLACE_NAME = "Third Place"
REGULAR_SEASON_NAME = "Regular Season"


def get_round_name(round_number: int, total_rounds: int) -> str:
    """Get the name of a round based on its distance from the final."""
    if round_number == 0:
        return REGULAR_SEASON_NAME
    if round_number == total_rounds:
        return "Final"
    elif round_number == total_rounds - 1:
        return "Semifinals"
    elif round_number == total_rounds - 2:
        return "Quarterfinals"
    else:
        return f"Round of {2 ** (total_rounds - round_number + 1)}"


def slot_range(round_number: int, match_number: int) -> Tuple[int, int]:
    """First and last round-1 slot covered by a match."""
    size = 2 ** round_number
    return (match_number - 1) * size, match_number * size - 1


def next_match_position(round_number: int, match_number: int) -> Tuple[int, int, str]:
    """Round, match number and competitor field the winner moves into."""
    field = 'competitor1_id' if match_number % 2 == 1 else 'competitor2_id'
    return round_number + 1, math.ceil(match_number / 2), field


def _new_id() -> str:
    return uuid.uuid4().hex


def index_bracket(matches: List[Match]) -> Dict[Tuple[int, int], Match]:
    """Map (round, match_number) -> match for the elimination tree."""
    return {
        (m.round, m.match_number): m
        for m in matches
        if m.round >= 1 and not m.third_place
    }


def find_third_place(matches: List[Match]) -> Optional[Match]:
    for match in matches:
        if match.third_place:
            return match
    return None


def total_rounds_of(matches: List[Match]) -> int:
    rounds = [m.round for m in matches if m.round >= 1 and not m.third_place]
    return max(rounds) if rounds else 0


def is_dead(bracket: Dict[Tuple[int, int], Match], round_number: int, match_number: int) -> bool:
    """
    True when no competitor can ever reach this match.

    A round-1 match is dead when both slots are empty; a later match is dead
    when nobody has arrived and both of its feeder matches are dead.
    """
    match = bracket.get((round_number, match_number))
    if match is None:
        return True
    if match.competitors:
        return False
    if round_number <= 1:
        return True
    return (is_dead(bracket, round_number - 1, 2 * match_number - 1)
            and is_dead(bracket, round_number - 1, 2 * match_number))


def will_be_played(bracket: Dict[Tuple[int, int], Match], round_number: int, match_number: int) -> bool:
    """True when the match will have two competitors (and so a loser)."""
    match = bracket.get((round_number, match_number))
    if match is None or match.status == BYE:
        return False
    if round_number <= 1:
        return match.competitor1_id is not None and match.competitor2_id is not None
    return (not is_dead(bracket, round_number - 1, 2 * match_number - 1)
            and not is_dead(bracket, round_number - 1, 2 * match_number))


def third_place_is_dead(bracket: Dict[Tuple[int, int], Match]) -> bool:
    total_rounds = max(r for r, _ in bracket) if bracket else 0
    if total_rounds < 2:
        return True
    return not any(will_be_played(bracket, total_rounds - 1, n) for n in (1, 2))


def _locked(match: Match) -> bool:
    # A match being played or already decided keeps its line-up.
    return match.status in (LIVE, COMPLETED) or (match.status == BYE and match.winner_id is not None)


def _send_loser_to_third_place(bracket, semifinal: Match, third_place: Match) -> List[Match]:
    loser = semifinal.loser_id
    if loser is None:
        return []
    field = 'competitor1_id' if semifinal.match_number % 2 == 1 else 'competitor2_id'
    if getattr(third_place, field) == loser:
        return []
    if _locked(third_place):
        logger.warning("Third place match %s already has a result; not moving %s in",
                       third_place.id, loser)
        return []
    setattr(third_place, field, loser)
    other_number = 2 if semifinal.match_number == 1 else 1
    if not will_be_played(bracket, semifinal.round, other_number):
        third_place.status = BYE
        third_place.result = Win(loser)
    return [third_place]


def propagate_winner(bracket: Dict[Tuple[int, int], Match], match: Match,
                     third_place: Optional[Match] = None) -> List[Match]:
    """
    Move the winner of a decided match into the next round.

    When the other side of the next match is a dead branch, that match
    resolves to a bye and the winner keeps moving up. Re-running on the same
    match changes nothing, and a later match that is live or decided is never
    overwritten. Returns the matches that changed.
    """
    changed: List[Match] = []
    total_rounds = max(r for r, _ in bracket) if bracket else 0
    current = match

    while current.is_decided and current.winner_id is not None:
        if current.round >= total_rounds:
            break
        if third_place is not None and current.round == total_rounds - 1 and current.status == COMPLETED:
            changed.extend(_send_loser_to_third_place(bracket, current, third_place))

        next_round, next_number, field = next_match_position(current.round, current.match_number)
        nxt = bracket.get((next_round, next_number))
        if nxt is None:
            break
        winner = current.winner_id

        if getattr(nxt, field) != winner:
            if _locked(nxt):
                logger.warning("Match %s (round %s #%s) already under way or decided; not advancing %s",
                               nxt.id, next_round, next_number, winner)
                break
            setattr(nxt, field, winner)
            if nxt not in changed:
                changed.append(nxt)

        other_number = current.match_number + 1 if current.match_number % 2 == 1 else current.match_number - 1
        if nxt.status == UPCOMING and is_dead(bracket, current.round, other_number):
            nxt.status = BYE
            nxt.result = Win(winner)
            if nxt not in changed:
                changed.append(nxt)

        if nxt.status != BYE:
            break
        current = nxt

    return changed


def generate_bracket(slots: List[Optional[Competitor]], event_id: Optional[str] = None,
                     third_place_match: bool = False,
                     id_factory: Callable[[], str] = _new_id) -> List[Match]:
    """
    Create every elimination match for a slot assignment.

    Round 1 pairs slot 2i with slot 2i+1 as match i+1: a lone competitor gets
    a bye, two empty slots make an empty placeholder. Later rounds start
    empty; byes are pushed forward immediately.
    """
    bracket_size = len(slots)
    validate_bracket_size(bracket_size)
    if all(slot is None for slot in slots):
        raise EmptyBracket()

    total_rounds = int(math.log2(bracket_size))
    matches: List[Match] = []

    for i in range(bracket_size // 2):
        first = slots[2 * i]
        second = slots[2 * i + 1]
        match = Match(
            id=id_factory(),
            event_id=event_id,
            round=1,
            match_number=i + 1,
            competitor1_id=first.id if first else None,
            competitor2_id=second.id if second else None,
        )
        if (first is None) != (second is None):
            match.status = BYE
            match.result = Win((first or second).id)
        matches.append(match)

    matches_in_round = bracket_size // 4
    for round_number in range(2, total_rounds + 1):
        for i in range(matches_in_round):
            matches.append(Match(id=id_factory(), event_id=event_id,
                                 round=round_number, match_number=i + 1))
        matches_in_round //= 2

    third_place = None
    if third_place_match and total_rounds >= 2:
        third_place = Match(id=id_factory(), event_id=event_id, round=total_rounds,
                            match_number=2, third_place=True)
        matches.append(third_place)

    bracket = index_bracket(matches)
    for match in matches:
        if match.round == 1 and match.status == BYE:
            propagate_winner(bracket, match, third_place)

    byes = sum(1 for m in matches if m.status == BYE)
    logger.info("Generated %d-slot bracket: %d matches over %d rounds, %d byes",
                bracket_size, len(matches), total_rounds, byes)
    return matches


def bracket_summary(matches: List[Match]) -> Dict:
    """
    Get bracket data formatted for display.
    """
    total_rounds = total_rounds_of(matches)
    bracket = index_bracket(matches)

    rounds = {}
    matches_per_round = {}
    for round_number in range(1, total_rounds + 1):
        round_matches = sorted(
            (m for (r, _), m in bracket.items() if r == round_number),
            key=lambda m: m.match_number
        )
        name = get_round_name(round_number, total_rounds)
        rounds[name] = round_matches
        matches_per_round[name] = sum(
            1 for m in round_matches
            if m.status != BYE and not is_dead(bracket, m.round, m.match_number)
        )

    first_round = rounds.get(get_round_name(1, total_rounds), []) if total_rounds else []
    final = bracket.get((total_rounds, 1))
    third_place = find_third_place(matches)

    return {
        'bracket_size': 2 ** total_rounds if total_rounds else 0,
        'total_rounds': total_rounds,
        'rounds': rounds,
        'third_place': third_place,
        'byes': sum(1 for m in first_round if m.status == BYE),
        'matches_per_round': matches_per_round,
        'champion': final.winner_id if final is not None and final.is_decided else None,
    }
