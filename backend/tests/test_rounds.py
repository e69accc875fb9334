import random

from rocketmath.services.game import GameSession, GameSettings, RoundResult, share_text
from rocketmath.services.game.rounds import RoundPhase
from rocketmath.services.game.scoring import MatchOutcome

from rocketmath.services.leaderboard.client import LocalLeaderboardClient

from conftest import RecordingLeaderboard


def _names(events):
    return [name for name, _ in events]


def _recording(session):
    events = []
    session.subscribe(lambda name, payload: events.append((name, payload)))
    return events


def test_start_spawns_rockets_before_planets(session):
    session.start()
    assert session.phase is RoundPhase.RUNNING
    assert session.time_remaining == 60
    session.advance(0)
    assert len(session.pool.rockets) == 1
    assert len(session.pool.planets) == 0
    session.advance(1.4)
    assert len(session.pool.planets) == 0
    session.advance(0.2)
    assert len(session.pool.planets) >= 1


def test_capacity_holds_for_whole_round():
    session = GameSession(GameSettings(), rng=random.Random(99))
    session.start()
    cap = session.settings.capacity
    saw_full = False
    for _ in range(610):
        session.advance(0.1)
        assert len(session.pool.rockets) <= cap
        assert len(session.pool.planets) <= cap
        saw_full = saw_full or len(session.pool.rockets) == cap
    assert saw_full
    assert session.phase is RoundPhase.ENDED


def test_countdown_ends_round_and_cleans_up(session):
    events = _recording(session)
    session.start()
    session.advance(59)
    assert session.time_remaining == 1
    assert session.phase is RoundPhase.RUNNING
    session.advance(1)
    assert session.phase is RoundPhase.ENDED
    assert session.time_remaining == 0
    assert _names(events).count('tick') == 60
    assert not session.pool.rockets and not session.pool.planets
    assert session.allocator.claimed_count == 0
    assert session.scheduler.pending() == 0
    assert _names(events)[-1] == 'round_ended'


def test_nothing_fires_after_round_end(session):
    events = _recording(session)
    session.start()
    session.advance(10)
    session.end()
    count = len(events)
    session.advance(120)
    assert len(events) == count


def test_round_end_submits_cumulative_score(leaderboard):
    results = []
    session = GameSession(GameSettings(bomb_probability=0.0), rng=random.Random(3),
                          user_id='u1', username='Yuri', leaderboard=leaderboard,
                          on_round_end=results.append)
    session.start()
    session.score_state.score = 30
    session.score_state.streak = 2
    session.score_state.multiplier = 2
    result = session.end()

    assert result == RoundResult(score=30, streak=2, multiplier=2, session_score=30,
                                 share_action='fallback')
    assert results == [result]
    assert leaderboard.submitted == [{
        'userId': 'u1', 'username': 'Yuri', 'score': 30, 'streak': 2,
        'multiplier': 2, 'sessionScore': 30,
    }]

    session.start()
    assert session.score_state.score == 0
    session.score_state.score = 20
    second = session.end()
    assert (second.score, second.session_score) == (50, 20)
    assert leaderboard.submitted[-1]['score'] == 50



def test_seeded_total_carries_into_first_submission(leaderboard):
    session = GameSession(GameSettings(bomb_probability=0.0), rng=random.Random(3),
                          user_id='u1', leaderboard=leaderboard, total_score=50)
    session.start()
    session.score_state.score = 10
    result = session.end()
    assert (result.score, result.session_score) == (60, 10)
    assert leaderboard.submitted[-1]['score'] == 60


def test_returning_player_keeps_stored_total(flask_app):
    local = LocalLeaderboardClient(flask_app)
    assert local.get_user_total('u1') == 0
    for points in (50, 10):
        session = GameSession(GameSettings(bomb_probability=0.0), rng=random.Random(5),
                              user_id='u1', username='Ann', leaderboard=local,
                              total_score=local.get_user_total('u1'))
        session.start()
        session.score_state.score = points
        session.end()
    assert local.get_user_total('u1') == 60


def test_unsubscribed_listener_hears_nothing(session):
    events = []
    listener = lambda name, payload: events.append(name)  # noqa: E731
    session.subscribe(listener)
    session.start()
    assert events
    seen = len(events)
    session.unsubscribe(listener)
    session.unsubscribe(listener)
    session.advance(5)
    session.end()
    assert len(events) == seen

def test_failed_submission_does_not_break_round_end():
    lb = RecordingLeaderboard(fail=True)
    session = GameSession(GameSettings(), rng=random.Random(3), user_id='u1', leaderboard=lb)
    session.start()
    session.advance(60)
    assert session.phase is RoundPhase.ENDED
    assert session.last_submission == {'success': False}
    assert len(lb.submitted) == 1


def test_no_submission_without_user(leaderboard):
    session = GameSession(GameSettings(), leaderboard=leaderboard)
    session.start()
    session.end()
    assert leaderboard.submitted == []


def test_end_is_terminal_until_started_again(session):
    assert session.end() is None
    session.start()
    assert session.end() is not None
    assert session.end() is None
    assert session.select_rocket(0) is False
    assert session.choose_planet(0) is MatchOutcome.IGNORED


def test_restart_discards_previous_round_without_submitting(leaderboard):
    session = GameSession(GameSettings(), rng=random.Random(8), user_id='u1', leaderboard=leaderboard)
    session.start()
    session.advance(5)
    session.score_state.score = 40
    session.restart()

    assert leaderboard.submitted == []
    assert session.phase is RoundPhase.RUNNING
    assert session.time_remaining == 60
    assert session.score_state.score == 0
    assert not session.pool.rockets
    session.advance(0)
    assert list(session.pool.rockets) == [0]


def test_spawn_failures_do_not_halt_timer(session):
    def broken():
        raise RuntimeError('no problems today')

    session.generator.generate_problem = broken
    session.start()
    session.advance(60)
    assert session.phase is RoundPhase.ENDED


def test_embedded_share_action_and_text():
    session = GameSession(GameSettings(), is_embedded=True)
    events = _recording(session)
    session.start()
    session.score_state.score = 120
    result = session.end()
    assert result.share_action == 'native'
    assert share_text(result) == 'I scored 120 points in Space Math Battle! Streak: 0, Multiplier: x1'
    ended = dict(events)['round_ended']
    assert ended['share_text'] == share_text(result)


def test_snapshot_reports_live_state(session):
    session.start()
    session.advance(2)
    snap = session.snapshot()
    assert snap['phase'] == 'running'
    assert snap['time_remaining'] == 58
    assert len(snap['rockets']) == len(session.pool.rockets)
    assert all('text' in r and 'answer' in r for r in snap['rockets'])
