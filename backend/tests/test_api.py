from datetime import timedelta

from rocketmath import db
from rocketmath.models import Score, utcnow


def _save(client, **body):
    return client.post('/api/save-score', json=body)


def test_health_reports_count(client):
    _save(client, userId='u1', username='Ann', score=10, streak=1, multiplier=1)
    res = client.get('/api/health')
    assert res.status_code == 200
    data = res.get_json()
    assert data['status'] == 'ok'
    assert data['scoresCount'] == 1
    assert 'timestamp' in data


def test_save_score_creates_record(client):
    res = _save(client, userId='u1', username='Ann', score=40, streak=3, multiplier=4, sessionScore=40)
    assert res.status_code == 200
    data = res.get_json()
    assert data['success'] is True
    assert data['totalScores'] == 1
    record = Score.query.filter_by(user_id='u1').one()
    assert (record.score, record.streak, record.multiplier, record.session_score) == (40, 3, 4, 40)


def test_save_score_replaces_total_and_keeps_best_streak(client):
    _save(client, userId='u1', username='Ann', score=40, streak=5, multiplier=16)
    _save(client, userId='u1', username='Ann', score=55, streak=2, multiplier=2, sessionScore=15)
    record = Score.query.filter_by(user_id='u1').one()
    assert record.score == 55
    assert record.streak == 5
    assert record.multiplier == 16
    assert record.session_score == 15
    assert Score.query.count() == 1


def test_save_score_defaults_username(client):
    _save(client, userId='u9', score=5)
    assert Score.query.filter_by(user_id='u9').one().username == 'Anonymous'


def test_missing_user_id_is_rejected(client):
    res = _save(client, username='Ann', score=10, streak=1, multiplier=1)
    assert res.status_code == 400
    assert 'error' in res.get_json()
    assert Score.query.count() == 0


def test_missing_score_is_rejected(client):
    _save(client, userId='u1', username='Ann', score=10)
    res = _save(client, userId='u1', username='Ann', streak=9)
    assert res.status_code == 400
    record = Score.query.filter_by(user_id='u1').one()
    assert (record.score, record.streak) == (10, 0)


def test_non_numeric_score_is_rejected(client):
    res = _save(client, userId='u1', score='lots')
    assert res.status_code == 400
    assert Score.query.count() == 0


def test_zero_score_is_accepted(client):
    res = _save(client, userId='u1', score=0)
    assert res.status_code == 200


def test_leaderboards_sorted_by_score(client):
    _save(client, userId='a', username='A', score=10)
    _save(client, userId='b', username='B', score=30)
    _save(client, userId='c', username='C', score=20)
    daily = client.get('/api/leaderboard/daily').get_json()
    weekly = client.get('/api/leaderboard/weekly').get_json()
    assert [r['username'] for r in daily] == ['B', 'C', 'A']
    assert [r['username'] for r in weekly] == ['B', 'C', 'A']
    assert set(daily[0]) >= {'username', 'score', 'streak', 'multiplier'}


def test_daily_only_includes_today_but_weekly_is_all_time(client):
    _save(client, userId='old', username='Old', score=99)
    _save(client, userId='new', username='New', score=5)
    old = Score.query.filter_by(user_id='old').one()
    old.timestamp = utcnow() - timedelta(days=10)
    db.session.commit()

    daily = client.get('/api/leaderboard/daily').get_json()
    weekly = client.get('/api/leaderboard/weekly').get_json()
    assert [r['username'] for r in daily] == ['New']
    assert [r['username'] for r in weekly] == ['Old', 'New']


def test_leaderboard_limit(flask_app, client):
    flask_app.config['LEADERBOARD_LIMIT'] = 2
    for i in range(4):
        _save(client, userId=f'u{i}', score=i)
    weekly = client.get('/api/leaderboard/weekly').get_json()
    assert [r['score'] for r in weekly] == [3, 2]


def test_user_position(client):
    _save(client, userId='a', score=10)
    _save(client, userId='b', score=30)
    old = Score.query.filter_by(user_id='b').one()
    old.timestamp = utcnow() - timedelta(days=2)
    db.session.commit()

    assert client.get('/api/user-position/a').get_json() == {'daily': 1, 'weekly': 2}
    assert client.get('/api/user-position/b').get_json() == {'daily': 0, 'weekly': 1}


def test_user_position_for_unknown_user(client):
    res = client.get('/api/user-position/nobody')
    assert res.status_code == 200
    assert res.get_json() == {'daily': 0, 'weekly': 0}


def test_store_is_trimmed_to_newest(flask_app, client):
    flask_app.config['SCORE_STORE_CAP'] = 3
    flask_app.config['SCORE_STORE_TRIM_TO'] = 2
    base = utcnow() - timedelta(hours=1)
    for i in range(3):
        _save(client, userId=f'u{i}', score=i)
        rec = Score.query.filter_by(user_id=f'u{i}').one()
        rec.timestamp = base + timedelta(minutes=i)
        db.session.commit()
    assert Score.query.count() == 3

    res = _save(client, userId='latest', score=1)
    assert res.get_json()['totalScores'] == 2
    assert {s.user_id for s in Score.query.all()} == {'u2', 'latest'}
