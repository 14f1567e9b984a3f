"""Live sessions for an app, keyed by session code.

Sessions are created on demand and loaded back from the key-value store
when a code is seen again (e.g. after a restart).
"""
import random
import string
from typing import Optional

from .renderers import SocketIORenderer
from .session import DEFAULT_SYMBOLS, GameSession
from .storage import mode_key

CODE_LENGTH = 6


def _ext(app) -> dict:
    return app.extensions['memory_match']


def generate_session_code(app, length: int = CODE_LENGTH) -> str:
    """Generate a unique, short session code."""
    ext = _ext(app)
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in ext['sessions'] and ext['store'].get(mode_key(code)) is None:
            return code


def _build(app, code: str) -> GameSession:
    from memory_match import socketio

    cfg = app.config
    ext = _ext(app)
    return GameSession(
        code,
        store=ext['store'],
        scheduler=ext['scheduler'],
        renderer=SocketIORenderer(socketio, code),
        symbols=cfg.get('CARD_SYMBOLS') or DEFAULT_SYMBOLS,
        resolve_delay=int(cfg.get('RESOLVE_DELAY_MS', 600)) / 1000.0,
        tick_interval=float(cfg.get('TICK_INTERVAL_SEC', 1)),
        ledger_size=int(cfg.get('LEDGER_SIZE', 10)),
    )


def create_session(app) -> GameSession:
    ext = _ext(app)
    with ext['lock']:
        code = generate_session_code(app)
        session = _build(app, code)
        session.save_all()
        ext['sessions'][code] = session
    app.logger.info(f"[session-create] session={code}")
    return session


def get_session(app, code: Optional[str]) -> Optional[GameSession]:
    if not code:
        return None
    code = code.strip().upper()
    ext = _ext(app)
    with ext['lock']:
        session = ext['sessions'].get(code)
        if session is not None:
            return session
        if ext['store'].get(mode_key(code)) is None:
            return None
        session = _build(app, code)
        session.load()
        ext['sessions'][code] = session
    app.logger.info(f"[session-load] session={code}")
    return session


def drop_session(app, code: str) -> bool:
    ext = _ext(app)
    with ext['lock']:
        session = ext['sessions'].pop(code.strip().upper(), None)
    if session is None:
        return False
    session.close()
    return True
