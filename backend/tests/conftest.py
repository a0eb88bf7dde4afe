import os
import sys
import fakeredis
import pytest

# Ensure the backend root (containing the `dinder` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from dinder import create_app, socketio
from dinder.socketio_events import NAMESPACE


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    FRONTEND_URL = 'http://localhost:3000'
    EXPIRY_NOTIFIER_ENABLED = False
    SESSION_TTL_SEC = 1800
    MAX_PARTICIPANTS = 4


@pytest.fixture()
def redis_client():
    # A private server per test so no state leaks between them
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture()
def flask_app(redis_client):
    class _Config(TestConfig):
        REDIS_CLIENT = redis_client

    application = create_app(_Config)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect(flask_app):
    """Factory for Socket.IO clients connected to the session namespace."""
    clients = []

    def _connect():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace=NAMESPACE
        )
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        if test_client.is_connected(NAMESPACE):
            test_client.disconnect(namespace=NAMESPACE)


@pytest.fixture()
def sio_client(connect):
    return connect()


@pytest.fixture()
def session_code(client):
    res = client.post('/api/sessions', json={'hostName': 'Alice'})
    assert res.status_code == 201
    return res.get_json()['sessionCode']
