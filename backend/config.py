import os

DEFAULT_SYMBOLS = '🎮,🎯,🎨,🎪,🎭,🎬,🎸,🎺'

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///memory_match.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Dev frontends allowed to talk to the API / socket
    CORS_ORIGINS = (os.environ.get('CORS_ORIGINS') or 'http://localhost:5173,http://127.0.0.1:5173').split(',')
    # How long both faces stay visible before a pair is resolved (ms)
    RESOLVE_DELAY_MS = int(os.environ.get('RESOLVE_DELAY_MS', '600'))
    # Elapsed-time display ticker (sec)
    TICK_INTERVAL_SEC = float(os.environ.get('TICK_INTERVAL_SEC', '1'))
    # Highscores kept per mode
    LEDGER_SIZE = int(os.environ.get('LEDGER_SIZE', '10'))
    CARD_SYMBOLS = (os.environ.get('CARD_SYMBOLS') or DEFAULT_SYMBOLS).split(',')
    # 'socketio' runs timers as background tasks; 'manual' waits for scheduler.advance()
    SCHEDULER = os.environ.get('SCHEDULER', 'socketio')
