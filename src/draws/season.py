"""
Season play: round-robin groups (round 0) and playoff qualification.
"""
import random
import uuid
from itertools import combinations
from typing import Callable, List, Optional

from .errors import InvalidSeasonSetup
from .models import REGULAR_SEASON_ROUND, Competitor, Match, Standing
from .seeding import MAX_SEEDS

MIN_SEASON_COMPETITORS = 3


def split_into_groups(competitors: List[Competitor], num_groups: int) -> List[List[Competitor]]:
    """
    Split competitors into groups of near-equal size.

    The first len(competitors) % num_groups groups get one extra member.
    """
    per_group, remainder = divmod(len(competitors), num_groups)
    groups = []
    start = 0
    for g in range(num_groups):
        size = per_group + (1 if g < remainder else 0)
        groups.append(competitors[start:start + size])
        start += size
    return groups


def generate_round_robin(competitors: List[Competitor], num_groups: int = 1,
                         event_id: Optional[str] = None, rng: Optional[random.Random] = None,
                         id_factory: Callable[[], str] = lambda: uuid.uuid4().hex) -> List[Match]:
    """
    Generate regular season matches: every pair within a group meets once.

    Competitors are shuffled with rng (when given) before grouping. Match
    numbers run globally from 1 and groups are numbered from 1.
    """
    if len(competitors) < MIN_SEASON_COMPETITORS:
        raise InvalidSeasonSetup(
            f"Season play requires at least {MIN_SEASON_COMPETITORS} competitors "
            f"(got {len(competitors)})"
        )
    if num_groups < 1 or num_groups > len(competitors):
        raise InvalidSeasonSetup(f"Number of groups must be between 1 and {len(competitors)}")

    pool = list(competitors)
    if rng is not None:
        rng.shuffle(pool)

    matches = []
    match_number = 1
    for group_number, group in enumerate(split_into_groups(pool, num_groups), start=1):
        for first, second in combinations(group, 2):
            matches.append(Match(
                id=id_factory(),
                event_id=event_id,
                round=REGULAR_SEASON_ROUND,
                match_number=match_number,
                competitor1_id=first.id,
                competitor2_id=second.id,
                group_number=group_number,
            ))
            match_number += 1
    return matches


def select_playoff_competitors(standings: List[Standing], competitors: List[Competitor],
                               playoff_teams: int) -> List[Competitor]:
    """
    Turn the top of the table into playoff entrants.

    The first min(playoff_teams, 8) ranked competitors are seeded by rank;
    the rest enter unseeded in rank order so that they fill the bracket
    left to right behind the seeds.
    """
    if playoff_teams < 2:
        raise InvalidSeasonSetup("At least 2 competitors must qualify for the playoffs")
    if playoff_teams >= len(competitors):
        raise InvalidSeasonSetup(
            f"Playoff teams ({playoff_teams}) must be less than total competitors ({len(competitors)})"
        )

    by_id = {c.id: c for c in competitors}
    ranked = [by_id[s.competitor_id] for s in standings if s.competitor_id in by_id]
    if len(ranked) < playoff_teams:
        raise InvalidSeasonSetup(
            f"Not enough ranked competitors for the playoffs: need {playoff_teams}, have {len(ranked)}"
        )

    entrants = []
    for rank, competitor in enumerate(ranked[:playoff_teams], start=1):
        seed = rank if rank <= MAX_SEEDS else None
        entrants.append(Competitor(id=competitor.id, name=competitor.name, seed=seed,
                                   affiliation=competitor.affiliation))
    return entrants
