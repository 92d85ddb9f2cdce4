import os
import sys
import pytest

# Ensure the backend root (containing the `sudoku_dash` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from sudoku_dash import create_app, db, socketio
from sudoku_dash.services.broadcaster import LEADERBOARD_NAMESPACE, get_broadcaster
from sudoku_dash.services.catalog import seed_puzzles


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    AUTO_INIT_DB = False
    TIMING_ANOMALY_THRESHOLD_MS = 5000
    LEADERBOARD_DEFAULT_LIMIT = 1000
    REJECT_RUN_RESUBMISSION = False
    SSE_KEEPALIVE_SEC = 1
    SSE_QUEUE_SIZE = 4
    LOGIN_DISABLED = False
    LOG_LEVEL = 'DEBUG'
    CORS_ORIGINS = ['http://localhost:5173']
    BCRYPT_LOG_ROUNDS = 4


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import sudoku_dash.models  # noqa: F401
        db.create_all()
        seed_puzzles()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def broadcaster(flask_app):
    return get_broadcaster(flask_app)


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace=LEADERBOARD_NAMESPACE,
    )
    yield test_client
    if test_client.is_connected(LEADERBOARD_NAMESPACE):
        test_client.disconnect(namespace=LEADERBOARD_NAMESPACE)


@pytest.fixture()
def admin_client(flask_app, client):
    from sudoku_dash.models import AdminUser
    user = AdminUser(username='admin')
    user.set_password('hunter22')
    db.session.add(user)
    db.session.commit()
    res = client.post('/api/admin/login', json={'username': 'admin', 'password': 'hunter22'})
    assert res.status_code == 200
    return client


@pytest.fixture()
def start_run(client):
    def _start(name='Ann', device_id='device-1', consent=True):
        res = client.post('/api/runs/start', json={'deviceId': device_id, 'name': name, 'consent': consent})
        assert res.status_code == 200, res.get_json()
        return res.get_json()
    return _start


@pytest.fixture()
def fixed_puzzle(monkeypatch):
    """Make every new run land on the given puzzle id."""
    from sudoku_dash.services import runs as run_service

    def _fix(puzzle_id='E01'):
        monkeypatch.setattr(run_service, '_pick_puzzle_id', lambda ids: puzzle_id)
    return _fix
