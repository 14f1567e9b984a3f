from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import threading
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Session plumbing shared by routes, socket handlers and timer callbacks
    from memory_match.services.game.scheduler import ManualScheduler, SocketIOScheduler
    from memory_match.services.game.storage import SqlKeyValueStore
    if flask_app.config.get('SCHEDULER') == 'manual':
        scheduler = ManualScheduler()
    else:
        scheduler = SocketIOScheduler(socketio)
    flask_app.extensions['memory_match'] = {
        'store': SqlKeyValueStore(flask_app),
        'scheduler': scheduler,
        'sessions': {},
        'lock': threading.RLock(),
    }

    # Import and register blueprints here
    from memory_match.main import main
    flask_app.register_blueprint(main)

    from memory_match.api.sessions import sessions
    # Mount session routes under /api to match frontend API client
    flask_app.register_blueprint(sessions, url_prefix='/api/sessions')

    # Register Socket.IO event handlers
    from memory_match.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database (clears all sessions and highscores)."""
        from memory_match import models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            flask_app.extensions['memory_match']['sessions'].clear()
            print('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
