from flask import Blueprint, jsonify, request, current_app
from memory_match.services.game.ledger import best_of, ledger_to_list
from memory_match.services.game.registry import create_session, get_session
from memory_match.services.game.state import Mode


sessions = Blueprint('sessions', __name__)


def _load_or_404(session_code):
    session = get_session(current_app._get_current_object(), session_code)
    if session is None:
        return None, (jsonify({'error': 'Session not found'}), 404)
    return session, None


def _parse_mode(raw):
    try:
        return Mode.parse(raw), None
    except ValueError:
        return None, (jsonify({'error': f'Unknown mode: {raw}'}), 400)


@sessions.route('/create', methods=['POST'])
def create():
    session = create_session(current_app._get_current_object())
    return jsonify(session.snapshot()), 201


@sessions.route('/<string:session_code>/state', methods=['GET'])
def get_state(session_code):
    session, error = _load_or_404(session_code)
    if error:
        return error
    return jsonify(session.snapshot())


@sessions.route('/<string:session_code>/flip', methods=['POST'])
def flip_card(session_code):
    data = request.get_json(silent=True) or {}
    card_id = data.get('card_id')
    # bool is an int subclass; True must not flip card 1
    if isinstance(card_id, bool) or not isinstance(card_id, int):
        return jsonify({'error': 'card_id must be an integer'}), 400

    session, error = _load_or_404(session_code)
    if error:
        return error
    # Invalid cards (matched, face up, unknown, board busy) are silently ignored
    return jsonify(session.flip_card(card_id))


@sessions.route('/<string:session_code>/new', methods=['POST'])
def new_game(session_code):
    data = request.get_json(silent=True) or {}
    mode = None
    if data.get('mode') is not None:
        mode, error = _parse_mode(data.get('mode'))
        if error:
            return error

    session, error = _load_or_404(session_code)
    if error:
        return error
    return jsonify(session.start_new_game(mode))


@sessions.route('/<string:session_code>/mode', methods=['POST'])
def switch_mode(session_code):
    data = request.get_json(silent=True) or {}
    if not data.get('mode'):
        return jsonify({'error': 'mode is required'}), 400
    mode, error = _parse_mode(data.get('mode'))
    if error:
        return error

    session, error = _load_or_404(session_code)
    if error:
        return error
    return jsonify(session.switch_mode(mode))


@sessions.route('/<string:session_code>/highscores', methods=['GET'])
def highscores(session_code):
    session, error = _load_or_404(session_code)
    if error:
        return error
    mode = session.mode
    if request.args.get('mode'):
        mode, error = _parse_mode(request.args.get('mode'))
        if error:
            return error

    ledger = session.ledgers[mode]
    best = best_of(ledger)
    return jsonify({
        'mode': mode.value,
        'highscores': ledger_to_list(ledger, highlight=session.last_scores[mode]),
        'best': best.to_dict() if best else None,
    })


@sessions.route('/<string:session_code>/share', methods=['POST'])
def share(session_code):
    session, error = _load_or_404(session_code)
    if error:
        return error
    # No clipboard on the server: the client receives the raw text to copy
    outcome = session.request_share()
    if outcome is None:
        return jsonify({'error': 'No completed game to share yet'}), 404
    current_app.logger.info(f"[share] session={session.code} mode={session.mode.value}")
    return jsonify(outcome.to_dict())
