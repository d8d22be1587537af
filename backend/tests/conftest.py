import os
import sys
import pytest

# Ensure the backend root (containing the `ringgame` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from ringgame import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    DECK_SPEC = '1-10:1,11-20:2,21-30:1'
    BOARD_SIZE = 20
    MAX_ROUNDS = 20
    MAX_TEAMS = 30
    MAX_TEAM_MEMBERS = 10
    GAME_AUTO_END_HOURS = 24
    GAME_RETENTION_HOURS = 168
    HOST_DEBOUNCE_MS = 0


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import ringgame.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


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
def hosted_game(client):
    """A two-team game with one member on each team, still in the lobby."""
    created = client.post('/api/games/create', json={'title': 'Acme AI Team', 'team_count': 2}).get_json()
    code = created['game_code']
    members = {}
    for team_number, name in ((1, 'Alice'), (2, 'Bob')):
        res = client.post('/api/games/join', json={'game_code': code, 'team_number': team_number, 'name': name})
        members[team_number] = res.get_json()['member_id']
    return {'code': code, 'host_token': created['host_token'], 'members': members}
