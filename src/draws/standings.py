"""
League table computation for regular season (round 0) matches.
"""
from typing import Dict, List, Optional

from .models import COMPLETED, DRAW, REGULAR_SEASON_ROUND, Draw, Match, Standing, Win

POINTS_FOR_WIN = 3
POINTS_FOR_DRAW = 1
POINTS_FOR_LOSS = 0


def parse_score(score) -> Optional[int]:
    """Numeric value of a score string, or None when it is not a plain number."""
    if score is None or isinstance(score, bool):
        return None
    if isinstance(score, int):
        return score
    try:
        return int(str(score).strip())
    except ValueError:
        return None


def _outcome(match: Match, goals1: Optional[int], goals2: Optional[int]):
    """DRAW, or the id of the winner, or None when the match is undecided.

    Numeric scores decide over the stored result.
    """
    if goals1 is not None and goals2 is not None:
        if goals1 == goals2:
            return DRAW
        return match.competitor1_id if goals1 > goals2 else match.competitor2_id
    if isinstance(match.result, Draw):
        return DRAW
    if isinstance(match.result, Win) and match.result.competitor_id in (match.competitor1_id, match.competitor2_id):
        return match.result.competitor_id
    return None


def calculate_standings(matches: List[Match], points_for_win: int = POINTS_FOR_WIN,
                        points_for_draw: int = POINTS_FOR_DRAW,
                        points_for_loss: int = POINTS_FOR_LOSS) -> List[Standing]:
    """
    Calculate standings from regular season results.

    Only completed round-0 matches between two competitors count. When both
    scores are numbers the higher one wins, whatever result was stored;
    otherwise the scores are ignored and the stored result decides.
    Competitors without a counted match are left out.

    Ranking: points -> goal differential -> goals for; remaining ties keep
    the order in which competitors first appear.
    """
    table: Dict[str, Standing] = {}

    for match in matches:
        if match.round != REGULAR_SEASON_ROUND or match.status != COMPLETED:
            continue
        home, away = match.competitor1_id, match.competitor2_id
        if home is None or away is None:
            continue

        goals1 = parse_score(match.score1)
        goals2 = parse_score(match.score2)
        if goals1 is None or goals2 is None:
            goals1 = goals2 = None

        outcome = _outcome(match, goals1, goals2)
        if outcome is None:
            continue

        for competitor_id in (home, away):
            if competitor_id not in table:
                table[competitor_id] = Standing(competitor_id)
        home_row, away_row = table[home], table[away]
        home_row.played += 1
        away_row.played += 1

        if goals1 is not None:
            home_row.goals_for += goals1
            home_row.goals_against += goals2
            away_row.goals_for += goals2
            away_row.goals_against += goals1

        if outcome is DRAW:
            for row in (home_row, away_row):
                row.draws += 1
                row.points += points_for_draw
        else:
            winner_row, loser_row = (home_row, away_row) if outcome == home else (away_row, home_row)
            winner_row.wins += 1
            winner_row.points += points_for_win
            loser_row.losses += 1
            loser_row.points += points_for_loss

    return sorted(
        table.values(),
        key=lambda s: (-s.points, -s.goal_differential, -s.goals_for)
    )


def calculate_group_standings(matches: List[Match], **points) -> Dict[int, List[Standing]]:
    """
    Standings per regular season group, keyed by group number.

    Matches without a group number are treated as group 1.
    """
    groups: Dict[int, List[Match]] = {}
    for match in matches:
        if match.round != REGULAR_SEASON_ROUND:
            continue
        groups.setdefault(match.group_number or 1, []).append(match)
    return {
        group: calculate_standings(group_matches, **points)
        for group, group_matches in sorted(groups.items())
    }
