import os
import random
import sys
import pytest

# Ensure the backend root (containing the `memory_match` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import DEFAULT_SYMBOLS
from memory_match import create_app, db, socketio
from memory_match.services.game.scheduler import ManualScheduler
from memory_match.services.game.session import GameSession
from memory_match.services.game.storage import MemoryKeyValueStore


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['http://localhost:5173']
    RESOLVE_DELAY_MS = 500
    TICK_INTERVAL_SEC = 1
    LEDGER_SIZE = 10
    CARD_SYMBOLS = DEFAULT_SYMBOLS.split(',')
    SCHEDULER = 'manual'


class RecordingRenderer:
    """Collects (event, payload) pairs instead of pushing them anywhere."""

    def __init__(self):
        self.events = []

    def render(self, event, payload):
        self.events.append((event, payload))

    def named(self, event):
        return [payload for name, payload in self.events if name == event]


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import memory_match.models  # noqa: F401
        db.create_all()
        yield application
        for session in application.extensions['memory_match']['sessions'].values():
            session.close()
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def scheduler(flask_app):
    return flask_app.extensions['memory_match']['scheduler']


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def store():
    return MemoryKeyValueStore()


@pytest.fixture()
def manual_scheduler():
    return ManualScheduler(start=0.0)


@pytest.fixture()
def renderer():
    return RecordingRenderer()


@pytest.fixture()
def make_session(store, manual_scheduler, renderer):
    def _make(code='TEST01', **kwargs):
        kwargs.setdefault('resolve_delay', 0.5)
        kwargs.setdefault('tick_interval', 1.0)
        kwargs.setdefault('rng', random.Random(1234))
        session = GameSession(code, store=store, scheduler=manual_scheduler, renderer=renderer, **kwargs)
        session.load()
        return session
    return _make
