from flask_socketio import join_room, leave_room, emit
from flask import current_app, request
from memory_match import socketio
from memory_match.services.game.registry import get_session
from memory_match.services.game.renderers import room_for


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _session_or_error(data):
    session_code = (data or {}).get('session_code')
    if not session_code:
        emit('error', {'message': 'session_code is required'})
        return None
    session = get_session(current_app._get_current_object(), session_code)
    if session is None:
        emit('error', {'message': 'Session not found'})
        return None
    return session


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    current_app.logger.info(f"[disconnect] sid={_get_sid()} reason={reason}")


def handle_join_session(data):
    session = _session_or_error(data)
    if session is None:
        return
    room = room_for(session.code)
    join_room(room)
    emit('joined', {'room': room})
    emit('state_update', session.snapshot())


def handle_leave_session(data):
    session_code = (data or {}).get('session_code')
    if not session_code:
        emit('error', {'message': 'session_code is required'})
        return
    room = room_for(session_code.upper())
    leave_room(room)
    emit('left', {'room': room})


def handle_flip_card(data):
    session = _session_or_error(data)
    if session is None:
        return
    # Renderer pushes state_update to the room when the flip is accepted
    session.apply_intent({'type': 'flip_card', 'card_id': (data or {}).get('card_id')})


def handle_start_new_game(data):
    session = _session_or_error(data)
    if session is None:
        return
    session.apply_intent({'type': 'start_new_game', 'mode': (data or {}).get('mode')})


def handle_switch_mode(data):
    session = _session_or_error(data)
    if session is None:
        return
    session.apply_intent({'type': 'switch_mode', 'mode': (data or {}).get('mode')})


def handle_request_share(data):
    session = _session_or_error(data)
    if session is None:
        return
    room = room_for(session.code)

    def _to_caller(text):
        emit('clipboard', {'text': text})

    def _to_room(text):
        socketio.emit('clipboard', {'text': text}, to=room, namespace='/ws')

    outcome = session.apply_intent({'type': 'request_share', 'primary': _to_caller, 'fallback': _to_room})
    if outcome is None:
        emit('error', {'message': 'No completed game to share yet'})
        return
    emit('share', outcome.to_dict())


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'join_session': handle_join_session,
        'leave_session': handle_leave_session,
        'flip_card': handle_flip_card,
        'start_new_game': handle_start_new_game,
        'switch_mode': handle_switch_mode,
        'request_share': handle_request_share,
        'ping': handle_ping,
    }
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace=namespace)
