import os
import sys
import pytest

# Ensure the project root (containing the `quizbuzz` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from quizbuzz import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['http://localhost:5173']
    SOCKETIO_NAMESPACE = '/ws'
    ROOM_CODE_MIN = 1000
    ROOM_CODE_MAX = 9999
    DEFAULT_PLAYER_NAMES = ('A', 'B')
    MAX_LOGIN_ATTEMPTS = 3
    LOGIN_ATTEMPT_WINDOW_SEC = 900
    LOGIN_LOCKOUT_SEC = 300
    # Run saves inline so tests can assert on the database directly
    PERSIST_IN_BACKGROUND = False


class RecordingBroadcaster:
    """Stands in for Socket.IO; remembers every event sent."""

    def __init__(self):
        self.events = []

    def broadcast(self, event, payload=None):
        self.events.append(('all', None, event, payload))

    def to_role(self, role, event, payload=None):
        self.events.append(('role', role, event, payload))

    def to_connection(self, sid, event, payload=None):
        self.events.append(('sid', sid, event, payload))

    def named(self, event):
        return [e for e in self.events if e[2] == event]

    def clear(self):
        self.events = []


class RecordingPersister:
    def __init__(self):
        self.room_codes = []
        self.batches = []
        self.revisions = []

    def save_room_code(self, code, revision):
        self.room_codes.append(code)
        self.revisions.append(revision)

    def save_host_batches(self, username, records, revision):
        self.batches.append((username, records))
        self.revisions.append(revision)


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def persister():
    return RecordingPersister()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import quizbuzz.models  # noqa: F401
        db.create_all()
        import quizbuzz.main
        quizbuzz.main._login_attempts.clear()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def coordinator(flask_app):
    return flask_app.extensions['quizbuzz']


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
def make_sio_client(flask_app):
    """Factory for extra socket clients, all disconnected at teardown."""
    clients = []

    def _make():
        c = socketio.test_client(flask_app, namespace='/ws')
        clients.append(c)
        return c

    yield _make
    for c in clients:
        try:
            if c.is_connected('/ws'):
                c.disconnect(namespace='/ws')
        except Exception:
            pass
