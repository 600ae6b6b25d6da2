"""
YAML file storage for events, competitors, matches and announcements.

Layout under data_dir:

    events/<event_id>/competitors.yaml
    events/<event_id>/matches.yaml
    events/<event_id>/announcements.yaml
    events/<event_id>/settings.yaml

Every read-modify-write runs under a single FileLock in data_dir.
"""
import logging
import os
import re
import uuid
from datetime import datetime
from typing import Dict, List, Optional

import yaml
from filelock import FileLock, Timeout

from .errors import InvalidSettings, MatchNotFound, StorageFailure
from .models import Competitor, Match

logger = logging.getLogger(__name__)

EVENT_ID_PATTERN = re.compile(r'^[a-z0-9][a-z0-9-]*$')
LOCK_TIMEOUT = 10


def get_default_settings() -> Dict:
    """Return default event settings."""
    return {
        'event_name': 'Tournament',
        'draw_mode': 'seeded',
        'shuffle_unseeded': True,
        'byes_to_seeds': False,
        'third_place_match': False,
        'points_for_win': 3,
        'points_for_draw': 1,
        'points_for_loss': 0,
        'num_groups': 1,
        'playoff_teams': 4,
    }


DRAW_MODES = ('seeded', 'random')
INTEGER_SETTINGS = ('points_for_win', 'points_for_draw', 'points_for_loss', 'num_groups', 'playoff_teams')
BOOLEAN_SETTINGS = ('shuffle_unseeded', 'byes_to_seeds', 'third_place_match')


def to_int(value, name: str) -> int:
    """Integer value of a setting or request field; strings of digits are accepted."""
    if isinstance(value, bool):
        raise InvalidSettings(f"{name} must be a whole number")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise InvalidSettings(f"{name} must be a whole number (got {value!r})") from None


def validate_settings(data: Dict) -> Dict:
    """
    Check submitted settings against the defaults and normalise their types.

    Raises InvalidSettings before anything is saved.
    """
    defaults = get_default_settings()
    unknown = sorted(k for k in data if k not in defaults)
    if unknown:
        raise InvalidSettings(f"Unknown settings: {', '.join(unknown)}")

    settings = {}
    for key, value in data.items():
        if key in INTEGER_SETTINGS:
            value = to_int(value, key)
            if key == 'num_groups' and value < 1:
                raise InvalidSettings("num_groups must be at least 1")
            if key == 'playoff_teams' and value < 2:
                raise InvalidSettings("playoff_teams must be at least 2")
        elif key in BOOLEAN_SETTINGS:
            if not isinstance(value, bool):
                raise InvalidSettings(f"{key} must be true or false")
        elif key == 'draw_mode':
            if value not in DRAW_MODES:
                raise InvalidSettings("draw_mode must be 'seeded' or 'random'")
        elif key == 'event_name':
            if not isinstance(value, str) or not value.strip():
                raise InvalidSettings("event_name must be a non-empty string")
            value = value.strip()
        settings[key] = value
    return settings


def slugify(name: str) -> str:
    """Convert an event name to an event id."""
    slug = re.sub(r'[^a-z0-9]+', '-', name.lower()).strip('-')
    return slug or 'event'


class YamlEventStore:
    def __init__(self, data_dir: str, lock_timeout: float = LOCK_TIMEOUT):
        self.data_dir = data_dir
        self._lock = FileLock(os.path.join(data_dir, '.lock'), timeout=lock_timeout)

    # -- files ---------------------------------------------------------------

    def _event_dir(self, event_id: str) -> str:
        if not isinstance(event_id, str) or not EVENT_ID_PATTERN.match(event_id):
            raise ValueError(f"Invalid event id: {event_id!r}")
        return os.path.join(self.data_dir, 'events', event_id)

    def _path(self, event_id: str, filename: str) -> str:
        return os.path.join(self._event_dir(event_id), filename)

    def _read(self, event_id: str, filename: str) -> Dict:
        path = self._path(event_id, filename)
        if not os.path.exists(path):
            return {}
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to read %s: %s", path, e)
            raise StorageFailure(f"Could not read {filename} for event {event_id}") from e
        return data if isinstance(data, dict) else {}

    def _write(self, event_id: str, filename: str, data: Dict):
        path = self._path(event_id, filename)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                yaml.dump(data, f, default_flow_style=False, allow_unicode=True)
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to write %s: %s", path, e)
            raise StorageFailure(f"Could not write {filename} for event {event_id}") from e

    def _locked(self):
        try:
            os.makedirs(self.data_dir, exist_ok=True)
            return self._lock.acquire()
        except Timeout as e:
            raise StorageFailure("Event data is busy, please retry") from e
        except OSError as e:
            raise StorageFailure(f"Could not lock data directory {self.data_dir}") from e

    # -- events --------------------------------------------------------------

    def list_events(self) -> List[str]:
        events_dir = os.path.join(self.data_dir, 'events')
        if not os.path.isdir(events_dir):
            return []
        return sorted(
            name for name in os.listdir(events_dir)
            if os.path.isdir(os.path.join(events_dir, name))
        )

    def event_exists(self, event_id: str) -> bool:
        return os.path.isdir(self._event_dir(event_id))

    # -- competitors ---------------------------------------------------------

    def list_competitors(self, event_id: str) -> List[Competitor]:
        data = self._read(event_id, 'competitors.yaml')
        return [Competitor.from_dict(c) for c in data.get('competitors', [])]

    def save_competitors(self, event_id: str, competitors: List[Competitor]):
        with self._locked():
            self._write(event_id, 'competitors.yaml',
                        {'competitors': [c.to_dict() for c in competitors]})

    # -- matches -------------------------------------------------------------

    def _load_matches(self, event_id: str) -> List[Dict]:
        return self._read(event_id, 'matches.yaml').get('matches', [])

    def _save_matches(self, event_id: str, matches: List[Dict]):
        matches = sorted(matches, key=lambda m: (m['round'], m['match_number'], bool(m.get('third_place'))))
        self._write(event_id, 'matches.yaml', {'matches': matches})

    def _to_match(self, event_id: str, data: Dict) -> Match:
        try:
            return Match.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Malformed match in event %s: %s", event_id, e)
            raise StorageFailure(f"Malformed match data for event {event_id}") from e

    def list_matches(self, event_id: str, round: Optional[int] = None,
                     min_round: Optional[int] = None) -> List[Match]:
        matches = [self._to_match(event_id, m) for m in self._load_matches(event_id)]
        if round is not None:
            matches = [m for m in matches if m.round == round]
        if min_round is not None:
            matches = [m for m in matches if m.round >= min_round]
        return matches

    def get_match(self, event_id: str, match_id: str) -> Match:
        for data in self._load_matches(event_id):
            if data['id'] == match_id:
                return self._to_match(event_id, data)
        raise MatchNotFound(match_id)

    def replace_round_matches(self, event_id: str, round: int, matches: List[Match]):
        """Delete every match of a round, then insert the given ones."""
        with self._locked():
            kept = [m for m in self._load_matches(event_id) if m['round'] != round]
            for match in matches:
                match.event_id = event_id
                kept.append(match.to_dict())
            self._save_matches(event_id, kept)

    def delete_matches(self, event_id: str, min_round: int = 0) -> int:
        """Delete all matches in rounds >= min_round. Returns how many went."""
        with self._locked():
            existing = self._load_matches(event_id)
            kept = [m for m in existing if m['round'] < min_round]
            self._save_matches(event_id, kept)
        return len(existing) - len(kept)

    def update_match(self, event_id: str, match_id: str, fields: Dict) -> Match:
        """Apply a partial update (Match.to_dict keys) to one match."""
        with self._locked():
            matches = self._load_matches(event_id)
            for data in matches:
                if data['id'] == match_id:
                    data.update({k: v for k, v in fields.items() if k != 'id'})
                    self._save_matches(event_id, matches)
                    return self._to_match(event_id, data)
        raise MatchNotFound(match_id)

    # -- announcements -------------------------------------------------------

    def list_announcements(self, event_id: str) -> List[Dict]:
        return self._read(event_id, 'announcements.yaml').get('announcements', [])

    def create_announcement(self, event_id: str, title: str, content: str) -> Dict:
        announcement = {
            'id': uuid.uuid4().hex,
            'title': title,
            'content': content,
            'created': datetime.now().isoformat(),
        }
        with self._locked():
            data = self._read(event_id, 'announcements.yaml')
            data.setdefault('announcements', []).append(announcement)
            self._write(event_id, 'announcements.yaml', data)
        logger.info("Announcement created for event %s: %s", event_id, title)
        return announcement

    def has_announcement_been_sent(self, event_id: str, round: int) -> bool:
        return round in self._read(event_id, 'announcements.yaml').get('sent_rounds', [])

    def mark_announcement_sent(self, event_id: str, round: int):
        with self._locked():
            data = self._read(event_id, 'announcements.yaml')
            sent = data.setdefault('sent_rounds', [])
            if round not in sent:
                sent.append(round)
                self._write(event_id, 'announcements.yaml', data)

    # -- settings ------------------------------------------------------------

    def load_settings(self, event_id: str) -> Dict:
        settings = get_default_settings()
        settings.update(self._read(event_id, 'settings.yaml'))
        return settings

    def save_settings(self, event_id: str, settings: Dict):
        with self._locked():
            self._write(event_id, 'settings.yaml', settings)
