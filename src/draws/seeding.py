"""
Placement of seeded and unseeded competitors into bracket slots.
"""
import math
import random
from typing import List, Optional, Tuple

from .errors import DuplicateSeed, InvalidBracketSize, TooManySeeds
from .models import Competitor


# At most this many seeds can be placed; more raise TooManySeeds.
MAX_SEEDS = 8


def is_power_of_two(n: int) -> bool:
    return isinstance(n, int) and n > 0 and (n & (n - 1)) == 0


def calculate_bracket_size(num_competitors: int) -> int:
    """Calculate the bracket size (next power of 2, minimum 2)."""
    if num_competitors <= 2:
        return 2
    return 2 ** math.ceil(math.log2(num_competitors))


def calculate_byes(num_competitors: int) -> int:
    """Calculate number of byes needed."""
    return calculate_bracket_size(num_competitors) - num_competitors


def validate_bracket_size(bracket_size: int):
    if not is_power_of_two(bracket_size) or bracket_size < 2:
        raise InvalidBracketSize(bracket_size)


def canonical_seed_positions(bracket_size: int) -> List[int]:
    """
    Slot positions for seeds 1..8, strongest first.

    For 64 slots: [0, 63, 32, 31, 16, 47, 48, 15]
    Seeds 1 and 2 sit in opposite halves, seeds 1-4 in different quarters and
    seeds 1-8 in different eighths, so they cannot meet before the final,
    semifinals and quarterfinals respectively.
    """
    validate_bracket_size(bracket_size)
    half = bracket_size // 2
    quarter = bracket_size // 4
    positions = [
        0,
        bracket_size - 1,
        half,
        half - 1,
        quarter,
        bracket_size - 1 - quarter,
        half + quarter,
        quarter - 1,
    ]
    return positions[:min(MAX_SEEDS, bracket_size)]


def split_by_seed(competitors: List[Competitor]) -> Tuple[List[Competitor], List[Competitor]]:
    """
    Split competitors into (seeded sorted by seed, unseeded in given order).
    """
    seeded = sorted((c for c in competitors if c.is_seeded), key=lambda c: c.seed)
    unseeded = [c for c in competitors if not c.is_seeded]
    return seeded, unseeded


def _check_seeds(seeded: List[Competitor], bracket_size: int):
    limit = min(MAX_SEEDS, bracket_size)
    if len(seeded) > limit:
        raise TooManySeeds(len(seeded), limit)
    seen = set()
    for competitor in seeded:
        if competitor.seed in seen:
            raise DuplicateSeed(competitor.seed)
        seen.add(competitor.seed)


def _opponent_slot(slot: int) -> int:
    return slot + 1 if slot % 2 == 0 else slot - 1


def seed_competitors(seeded: List[Competitor], unseeded: List[Competitor], bracket_size: int,
                     byes_to_seeds: bool = False) -> List[Optional[Competitor]]:
    """
    Assign competitors to bracket slots.

    Seeded competitors (ascending seed) take the canonical seed positions in
    order; unseeded competitors fill the remaining slots left to right.
    Callers shuffle `unseeded` beforehand for a random draw.

    With byes_to_seeds, the first-round opponent slot of the strongest seeds
    is left empty so that the available byes go to seeds first.

    Returns a list of length bracket_size (slot -> competitor or None).
    """
    validate_bracket_size(bracket_size)
    seeded = sorted(seeded, key=lambda c: c.seed)
    _check_seeds(seeded, bracket_size)

    total = len(seeded) + len(unseeded)
    if total > bracket_size:
        raise InvalidBracketSize(bracket_size, total)

    slots: List[Optional[Competitor]] = [None] * bracket_size
    positions = canonical_seed_positions(bracket_size)
    for competitor, position in zip(seeded, positions):
        slots[position] = competitor

    reserved = set()
    if byes_to_seeds:
        byes = bracket_size - total
        for position in positions[:min(len(seeded), byes)]:
            opponent = _opponent_slot(position)
            if slots[opponent] is None:
                reserved.add(opponent)

    remaining = iter(unseeded)
    for slot in range(bracket_size):
        if slots[slot] is not None or slot in reserved:
            continue
        competitor = next(remaining, None)
        if competitor is None:
            break
        slots[slot] = competitor

    return slots


def randomize_slots(competitors: List[Competitor], bracket_size: int,
                    rng: Optional[random.Random] = None) -> List[Optional[Competitor]]:
    """
    Assign every competitor, seeded or not, to a uniformly random slot.
    """
    validate_bracket_size(bracket_size)
    if len(competitors) > bracket_size:
        raise InvalidBracketSize(bracket_size, len(competitors))
    rng = rng or random.Random()
    slots: List[Optional[Competitor]] = [None] * bracket_size
    for competitor, slot in zip(competitors, rng.sample(range(bracket_size), len(competitors))):
        slots[slot] = competitor
    return slots


def seed_event(competitors: List[Competitor], bracket_size: Optional[int] = None,
               mode: str = 'seeded', byes_to_seeds: bool = False,
               rng: Optional[random.Random] = None) -> List[Optional[Competitor]]:
    """
    Slot assignment for a full competitor list.

    mode 'seeded' places seeds canonically and shuffles the unseeded
    competitors (when rng is given); mode 'random' ignores seeds entirely.
    """
    if bracket_size is None:
        bracket_size = calculate_bracket_size(len(competitors))
    if mode == 'random':
        return randomize_slots(competitors, bracket_size, rng)
    if mode != 'seeded':
        raise ValueError(f"Unknown draw mode: {mode}")
    seeded, unseeded = split_by_seed(competitors)
    if rng is not None:
        unseeded = list(unseeded)
        rng.shuffle(unseeded)
    return seed_competitors(seeded, unseeded, bracket_size, byes_to_seeds=byes_to_seeds)
