import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///quizbuzz.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Browser origins allowed for HTTP and Socket.IO (comma-separated)
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS', 'http://localhost:5173,http://127.0.0.1:5173'
        ).split(',') if o.strip()
    ]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    # Room codes are drawn uniformly from this inclusive range
    ROOM_CODE_MIN = int(os.environ.get('ROOM_CODE_MIN', '1000'))
    ROOM_CODE_MAX = int(os.environ.get('ROOM_CODE_MAX', '9999'))
    DEFAULT_PLAYER_NAMES = ('A', 'B')
    # Host login throttling
    MAX_LOGIN_ATTEMPTS = int(os.environ.get('MAX_LOGIN_ATTEMPTS', '5'))
    LOGIN_ATTEMPT_WINDOW_SEC = int(os.environ.get('LOGIN_ATTEMPT_WINDOW_SEC', '900'))
    LOGIN_LOCKOUT_SEC = int(os.environ.get('LOGIN_LOCKOUT_SEC', '300'))
    # Persistence writes run as Socket.IO background tasks; tests turn this off
    PERSIST_IN_BACKGROUND = True
