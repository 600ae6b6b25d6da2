"""
Event-level operations: bracket seeding, season play, playoffs, standings.

DrawService is a stateless wrapper around a store, created per request.
Everything is validated and generated in memory before the store is touched,
so a rejected action leaves the previous draw in place.
"""
import logging
import random
from typing import Dict, List, Optional

from .elimination import bracket_summary, generate_bracket
from .errors import EmptyBracket, InvalidSeasonSetup
from .models import REGULAR_SEASON_ROUND, Competitor, Match, Standing
from .progression import BracketResolver
from .season import generate_round_robin, select_playoff_competitors
from .seeding import calculate_bracket_size, seed_event
from .standings import calculate_group_standings, calculate_standings

logger = logging.getLogger(__name__)


class DrawService:
    def __init__(self, store, rng: Optional[random.Random] = None):
        self.store = store
        self.rng = rng
        self.resolver = BracketResolver(store)

    def _rng(self, shuffle: bool) -> Optional[random.Random]:
        if not shuffle:
            return None
        return self.rng or random.Random()

    def _points(self, settings: Dict) -> Dict:
        return {
            'points_for_win': int(settings.get('points_for_win', 3)),
            'points_for_draw': int(settings.get('points_for_draw', 1)),
            'points_for_loss': int(settings.get('points_for_loss', 0)),
        }

    def _write_bracket(self, event_id: str, matches: List[Match]):
        # Old playoff rounds of a different size must not survive a re-seed.
        removed = self.store.delete_matches(event_id, min_round=1)
        by_round: Dict[int, List[Match]] = {}
        for match in matches:
            by_round.setdefault(match.round, []).append(match)
        for round_number in sorted(by_round):
            self.store.replace_round_matches(event_id, round_number, by_round[round_number])
        logger.info("Event %s: replaced %d elimination matches with %d",
                    event_id, removed, len(matches))

    def seed_bracket(self, event_id: str, competitors: Optional[List[Competitor]] = None,
                     mode: Optional[str] = None, bracket_size: Optional[int] = None,
                     third_place_match: Optional[bool] = None) -> List[Match]:
        """
        Generate (or regenerate) the elimination bracket for an event.
        """
        settings = self.store.load_settings(event_id)
        if competitors is None:
            competitors = self.store.list_competitors(event_id)
        if not competitors:
            raise EmptyBracket()
        mode = mode or settings.get('draw_mode', 'seeded')
        if third_place_match is None:
            third_place_match = bool(settings.get('third_place_match', False))
        if bracket_size is None:
            bracket_size = calculate_bracket_size(len(competitors))

        slots = seed_event(
            competitors,
            bracket_size=bracket_size,
            mode=mode,
            byes_to_seeds=bool(settings.get('byes_to_seeds', False)),
            rng=self._rng(mode == 'random' or settings.get('shuffle_unseeded', True)),
        )
        matches = generate_bracket(slots, event_id=event_id, third_place_match=third_place_match)
        self._write_bracket(event_id, matches)
        return matches

    def get_bracket(self, event_id: str) -> Dict:
        return bracket_summary(self.store.list_matches(event_id, min_round=1))

    def generate_season(self, event_id: str, num_groups: Optional[int] = None) -> List[Match]:
        """
        Replace all matches of an event with a fresh regular season.
        """
        settings = self.store.load_settings(event_id)
        if num_groups is None:
            num_groups = int(settings.get('num_groups', 1))
        competitors = self.store.list_competitors(event_id)
        matches = generate_round_robin(competitors, num_groups=num_groups,
                                       event_id=event_id, rng=self._rng(True))
        self.store.delete_matches(event_id, min_round=0)
        self.store.replace_round_matches(event_id, REGULAR_SEASON_ROUND, matches)
        logger.info("Event %s: generated %d regular season matches in %d group(s)",
                    event_id, len(matches), num_groups)
        return matches

    def standings(self, event_id: str) -> List[Standing]:
        settings = self.store.load_settings(event_id)
        matches = self.store.list_matches(event_id, round=REGULAR_SEASON_ROUND)
        return calculate_standings(matches, **self._points(settings))

    def group_standings(self, event_id: str) -> Dict[int, List[Standing]]:
        settings = self.store.load_settings(event_id)
        matches = self.store.list_matches(event_id, round=REGULAR_SEASON_ROUND)
        return calculate_group_standings(matches, **self._points(settings))

    def generate_playoffs(self, event_id: str, playoff_teams: Optional[int] = None,
                          third_place_match: Optional[bool] = None) -> List[Match]:
        """
        Seed the playoff bracket from regular season standings.

        Regular season matches are kept; every playoff round is replaced.
        """
        settings = self.store.load_settings(event_id)
        if playoff_teams is None:
            playoff_teams = int(settings.get('playoff_teams', 4))
        table = self.standings(event_id)
        if not table:
            raise InvalidSeasonSetup("No completed regular season matches found")
        entrants = select_playoff_competitors(table, self.store.list_competitors(event_id), playoff_teams)

        if third_place_match is None:
            third_place_match = bool(settings.get('third_place_match', False))
        slots = seed_event(entrants, mode='seeded', byes_to_seeds=bool(settings.get('byes_to_seeds', False)))
        matches = generate_bracket(slots, event_id=event_id, third_place_match=third_place_match)
        self._write_bracket(event_id, matches)
        return matches
