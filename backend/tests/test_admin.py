from sudoku_dash import db
from sudoku_dash.models import AdminUser, LeaderboardEntry, Puzzle, Run


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_admin_routes_require_login(client):
    assert client.get('/api/admin/stats').status_code == 401
    res = client.post('/api/admin/reset')
    assert res.status_code == 401
    assert res.get_json() == {'message': 'Admin login required'}


def test_login_rejects_bad_credentials(flask_app, client):
    user = AdminUser(username='admin')
    user.set_password('hunter22')
    db.session.add(user)
    db.session.commit()
    res = client.post('/api/admin/login', json={'username': 'admin', 'password': 'nope'})
    assert res.status_code == 401
    assert res.get_json()['success'] is False
    res = client.post('/api/admin/login', json={'username': 'ghost', 'password': 'hunter22'})
    assert res.status_code == 401


def test_password_is_hashed(flask_app):
    user = AdminUser(username='admin')
    user.set_password('hunter22')
    assert user.password_hash != 'hunter22'
    assert user.check_password('hunter22')
    assert not user.check_password('hunter23')


def test_login_me_logout(admin_client):
    me = admin_client.get('/api/admin/me').get_json()
    assert me['user']['username'] == 'admin'
    assert admin_client.post('/api/admin/logout').get_json() == {'success': True}
    assert admin_client.get('/api/admin/stats').status_code == 401


def test_reset_clears_runs_and_leaderboard_but_keeps_puzzles(admin_client, start_run):
    run_id = start_run(name='Ann')['runId']
    admin_client.post('/api/runs/submit', json={'runId': run_id, 'elapsedMs': 60000})
    start_run(name='Bo')
    assert Run.query.count() == 2
    assert LeaderboardEntry.query.count() == 1

    res = admin_client.post('/api/admin/reset')
    assert res.status_code == 200
    assert res.get_json() == {'success': True}
    assert Run.query.count() == 0
    assert LeaderboardEntry.query.count() == 0
    assert Puzzle.query.count() == 3
    assert admin_client.get('/api/leaderboard').get_json() == []
    assert admin_client.get('/api/admin/stats').get_json() == {
        'completedRuns': 0, 'distinctPlayers': 0, 'avgFinalMs': 0,
    }


def test_login_disabled_opens_admin_routes(flask_app, client):
    flask_app.config['LOGIN_DISABLED'] = True
    assert client.get('/api/admin/stats').status_code == 200
    assert client.get('/api/admin/me').get_json() == {'success': True, 'user': None}


def test_cli_create_admin_and_seed(flask_app):
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['create-admin', 'ops', '--password', 'secret123'])
    assert result.exit_code == 0, result.output
    assert AdminUser.query.filter_by(username='ops').first().check_password('secret123')

    result = runner.invoke(args=['seed-puzzles'])
    assert result.exit_code == 0
    assert 'Seeded 0 new puzzles.' in result.output
