import os
import sys
import pytest

# Ensure the backend root (containing the `pairs` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from pairs import create_app, db, socketio
from pairs.services.games.scheduler import VirtualScheduler


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    BCRYPT_LOG_ROUNDS = 4
    USE_VIRTUAL_CLOCK = True
    DECK_SYMBOLS = ('A', 'B', 'C', 'D')
    LEDGER_OWNER = 'admin'
    LEDGER_CAPACITY = 10


class ArrangedRng:
    """Stand-in for random.Random whose shuffle lays out a fixed order."""

    def __init__(self, order):
        self.order = list(order)

    def shuffle(self, seq):
        assert sorted(seq) == sorted(self.order)
        seq[:] = list(self.order)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import pairs.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def scheduler(flask_app):
    return flask_app.extensions['pairs_scheduler']


@pytest.fixture()
def clock():
    return VirtualScheduler()


@pytest.fixture()
def arranged_rng():
    return ArrangedRng(['A', 'B', 'A', 'B', 'C', 'C', 'D', 'D'])


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


def register_and_login(client, username, password='password'):
    res = client.post('/users/add', json={'username': username, 'password': password})
    assert res.status_code == 201
    res = client.post('/login', json={'username': username, 'password': password})
    assert res.status_code == 200
    return res
