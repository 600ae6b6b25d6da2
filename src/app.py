"""
Flask web application for the multi-sport draw engine.

JSON endpoints for organizers (competitors, bracket, results, season play)
and the public (draw, standings, announcements).
"""
import os
import logging
from flask import Flask, request, jsonify, abort
from draws.elimination import get_round_name, total_rounds_of, THIRD_PLACE_NAME
from draws.errors import DrawError, InvalidSettings, MatchNotFound, StorageFailure
from draws.models import DRAW, Competitor
from draws.service import DrawService
from draws.storage import YamlEventStore, EVENT_ID_PATTERN, to_int, validate_settings

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('DRAWS_DATA_DIR', os.path.join(BASE_DIR, 'data'))

LOG_LEVEL = os.environ.get('DRAWS_LOG_LEVEL', 'INFO')
logging.getLogger('draws').setLevel(LOG_LEVEL)


def get_store() -> YamlEventStore:
    """Store for the current data directory."""
    return YamlEventStore(DATA_DIR)


def get_service() -> DrawService:
    return DrawService(get_store())


@app.url_value_preprocessor
def check_event_id(endpoint, values):
    """Reject event ids that cannot be used as directory names."""
    if values and 'event_id' in values and not EVENT_ID_PATTERN.match(values['event_id']):
        abort(404)


@app.errorhandler(MatchNotFound)
def handle_match_not_found(e):
    return jsonify({'error': str(e)}), 404


@app.errorhandler(StorageFailure)
def handle_storage_failure(e):
    app.logger.error(f'Storage failure: {e}')
    return jsonify({'error': 'Could not save tournament data. Please try again.'}), 503


@app.errorhandler(DrawError)
def handle_draw_error(e):
    app.logger.info(f'Rejected action: {e}')
    return jsonify({'error': str(e)}), 400


def _match_json(match, total_rounds=None):
    data = match.to_dict()
    if total_rounds is not None and match.round >= 1:
        data['round_name'] = THIRD_PLACE_NAME if match.third_place else get_round_name(match.round, total_rounds)
    return data


def _bracket_json(summary):
    return {
        'bracket_size': summary['bracket_size'],
        'total_rounds': summary['total_rounds'],
        'byes': summary['byes'],
        'champion': summary['champion'],
        'matches_per_round': summary['matches_per_round'],
        'rounds': [
            {'name': name, 'matches': [m.to_dict() for m in matches]}
            for name, matches in summary['rounds'].items()
        ],
        'third_place': summary['third_place'].to_dict() if summary['third_place'] else None,
    }


def _payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _int_option(data, key):
    """Optional whole-number field of a request body; None when absent."""
    value = data.get(key)
    return None if value is None else to_int(value, key)


def _bool_option(data, key):
    value = data.get(key)
    if value is not None and not isinstance(value, bool):
        raise InvalidSettings(f'{key} must be true or false')
    return value


# -- events & settings -------------------------------------------------------

@app.route('/api/events', methods=['GET'])
def api_list_events():
    return jsonify({'events': get_store().list_events()})


@app.route('/api/events/<event_id>/settings', methods=['GET', 'POST'])
def api_settings(event_id):
    store = get_store()
    if request.method == 'POST':
        try:
            changes = validate_settings(_payload())
        except InvalidSettings as e:
            return jsonify({'error': str(e)}), 400
        settings = store.load_settings(event_id)
        settings.update(changes)
        store.save_settings(event_id, settings)
        app.logger.info(f'Settings updated for {event_id}')
    return jsonify({'settings': store.load_settings(event_id)})


# -- competitors -------------------------------------------------------------

@app.route('/api/events/<event_id>/competitors', methods=['GET', 'POST'])
def api_competitors(event_id):
    store = get_store()
    if request.method == 'POST':
        entries = _payload().get('competitors')
        if not isinstance(entries, list):
            return jsonify({'error': 'Missing competitors list'}), 400
        competitors = []
        seen = set()
        for entry in entries:
            if not isinstance(entry, dict) or not entry.get('id'):
                return jsonify({'error': 'Every competitor needs an id'}), 400
            try:
                competitor = Competitor.from_dict(entry)
            except (TypeError, ValueError):
                return jsonify({'error': f"Invalid seed for competitor {entry.get('id')}"}), 400
            if competitor.id in seen:
                return jsonify({'error': f'Duplicate competitor id {competitor.id}'}), 400
            seen.add(competitor.id)
            competitors.append(competitor)
        store.save_competitors(event_id, competitors)
        app.logger.info(f'Saved {len(competitors)} competitors for {event_id}')
    return jsonify({'competitors': [c.to_dict() for c in store.list_competitors(event_id)]})


# -- elimination bracket -----------------------------------------------------

@app.route('/api/events/<event_id>/bracket', methods=['GET'])
def api_get_bracket(event_id):
    return jsonify(_bracket_json(get_service().get_bracket(event_id)))


@app.route('/api/events/<event_id>/bracket', methods=['POST'])
def api_generate_bracket(event_id):
    """Seed the bracket from the event's competitors, replacing rounds >= 1."""
    data = _payload()
    mode = data.get('mode')
    if mode is not None and mode not in ('seeded', 'random'):
        return jsonify({'error': "mode must be 'seeded' or 'random'"}), 400
    service = get_service()
    service.seed_bracket(
        event_id,
        mode=mode,
        bracket_size=_int_option(data, 'bracket_size'),
        third_place_match=_bool_option(data, 'third_place_match'),
    )
    return jsonify(_bracket_json(service.get_bracket(event_id))), 201


# -- matches & results -------------------------------------------------------

@app.route('/api/events/<event_id>/matches', methods=['GET'])
def api_matches(event_id):
    store = get_store()
    round_arg = request.args.get('round', type=int)
    matches = store.list_matches(event_id, round=round_arg)
    total_rounds = total_rounds_of(store.list_matches(event_id, min_round=1))
    return jsonify({'matches': [_match_json(m, total_rounds) for m in matches]})


@app.route('/api/events/<event_id>/matches/<match_id>', methods=['GET'])
def api_match(event_id, match_id):
    return jsonify({'match': get_store().get_match(event_id, match_id).to_dict()})


@app.route('/api/events/<event_id>/matches/<match_id>/result', methods=['POST'])
def api_submit_result(event_id, match_id):
    """Record a result; the winner advances and finished rounds are announced.

    Body: {'winner': <competitor id>} or {'draw': true}, plus optional scores.
    """
    data = _payload()
    draw = data.get('draw', False)
    if not isinstance(draw, bool):
        return jsonify({'error': 'draw must be true or false'}), 400
    if draw and data.get('winner') is not None:
        return jsonify({'error': 'Give either a winner or draw, not both'}), 400
    if not draw and data.get('winner') in (None, ''):
        return jsonify({'error': 'Missing winner'}), 400
    winner = DRAW if draw else data['winner']
    store = get_store()
    settings = store.load_settings(event_id)
    outcome = get_service().resolver.submit_result(
        event_id, match_id,
        data.get('score1'), data.get('score2'), winner,
        event_name=settings.get('event_name'),
    )
    return jsonify({
        'success': True,
        'match': outcome['match'].to_dict(),
        'round_name': outcome['round_name'],
        'advanced': [m.to_dict() for m in outcome['advanced']],
        'announcement': outcome['announcement'],
    })


@app.route('/api/events/<event_id>/matches/<match_id>/status', methods=['POST'])
def api_update_status(event_id, match_id):
    status = _payload().get('status')
    if not status:
        return jsonify({'error': 'Missing status'}), 400
    match = get_service().resolver.update_status(event_id, match_id, status)
    return jsonify({'success': True, 'match': match.to_dict()})


@app.route('/api/events/<event_id>/matches/<match_id>/advance', methods=['POST'])
def api_advance(event_id, match_id):
    """Re-run winner advancement for a match (safe to repeat)."""
    advanced = get_service().resolver.advance_winner(event_id, match_id)
    return jsonify({'success': True, 'advanced': [m.to_dict() for m in advanced]})


@app.route('/api/events/<event_id>/rounds/<int:round_number>', methods=['GET'])
def api_round_status(event_id, round_number):
    resolver = get_service().resolver
    return jsonify({
        'round': round_number,
        'name': resolver.round_name(event_id, round_number),
        'completed': resolver.check_round_completion(event_id, round_number),
    })


# -- season play -------------------------------------------------------------

@app.route('/api/events/<event_id>/season', methods=['POST'])
def api_generate_season(event_id):
    num_groups = _int_option(_payload(), 'num_groups')
    matches = get_service().generate_season(event_id, num_groups=num_groups)
    return jsonify({'success': True, 'matches': [m.to_dict() for m in matches]}), 201


@app.route('/api/events/<event_id>/playoffs', methods=['POST'])
def api_generate_playoffs(event_id):
    data = _payload()
    service = get_service()
    service.generate_playoffs(
        event_id,
        playoff_teams=_int_option(data, 'playoff_teams'),
        third_place_match=_bool_option(data, 'third_place_match'),
    )
    return jsonify(_bracket_json(service.get_bracket(event_id))), 201


@app.route('/api/events/<event_id>/standings', methods=['GET'])
def api_standings(event_id):
    service = get_service()
    names = {c.id: c.name for c in service.store.list_competitors(event_id)}

    def rows(table):
        result = []
        for position, standing in enumerate(table, start=1):
            row = standing.to_dict()
            row['position'] = position
            row['name'] = names.get(standing.competitor_id, standing.competitor_id)
            result.append(row)
        return result

    if request.args.get('by_group'):
        groups = service.group_standings(event_id)
        return jsonify({'groups': {str(g): rows(t) for g, t in groups.items()}})
    return jsonify({'standings': rows(service.standings(event_id))})


# -- announcements -----------------------------------------------------------

@app.route('/api/events/<event_id>/announcements', methods=['GET'])
def api_announcements(event_id):
    announcements = get_store().list_announcements(event_id)
    return jsonify({'announcements': sorted(announcements, key=lambda a: a['created'], reverse=True)})


if __name__ == '__main__':
    app.run(debug=True, port=5000)
