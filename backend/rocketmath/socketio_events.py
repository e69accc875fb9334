from flask_socketio import emit
from flask import current_app, request
from rocketmath import socketio
from rocketmath.services.game import GameSession, GameSettings
from rocketmath.services.game.rounds import RoundPhase
from rocketmath.services.leaderboard.client import LeaderboardClient, LocalLeaderboardClient
from typing import Dict, Any, Optional
import threading
import time


# ---- Per-socket game sessions ----

_sid_to_ctx: Dict[str, Dict[str, Any]] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _int_arg(data, key) -> Optional[int]:
    try:
        return int((data or {}).get(key))
    except (TypeError, ValueError):
        return None


def _leaderboard_client(app):
    url = app.config.get('LEADERBOARD_URL')
    if url:
        return LeaderboardClient(url, timeout=float(app.config.get('LEADERBOARD_TIMEOUT_SEC', 2.0)))
    return LocalLeaderboardClient(app)


def _forwarder(sid: str, namespace: str):
    def _forward(name: str, payload: Dict[str, Any]) -> None:
        # socketio.emit works from background tasks as well as handlers
        socketio.emit(name, payload, to=sid, namespace=namespace)
    return _forward


def _starting_total(client, data: Dict[str, Any]) -> int:
    """Lifetime score a new session builds on.

    A shared database is authoritative; a remote service only sees totals,
    so the game client reports its own.
    """
    user_id = data.get('user_id')
    if isinstance(client, LocalLeaderboardClient):
        return client.get_user_total(user_id) if user_id else 0
    return max(0, _int_arg(data, 'total_score') or 0)


def _new_session(app, sid: str, namespace: str, data: Dict[str, Any]) -> Dict[str, Any]:
    settings = GameSettings.from_config(app.config, mobile=bool(data.get('mobile')))
    client = _leaderboard_client(app)
    session = GameSession(
        settings,
        user_id=data.get('user_id'),
        username=data.get('username'),
        leaderboard=client,
        is_embedded=bool(data.get('embedded')),
        total_score=_starting_total(client, data),
    )
    forward = _forwarder(sid, namespace)
    session.subscribe(forward)
    ctx = {'session': session, 'lock': threading.Lock(), 'namespace': namespace,
           'driving': False, 'forward': forward}
    _sid_to_ctx[sid] = ctx
    return ctx


def _drive(app, sid: str, ctx: Dict[str, Any]) -> None:
    """Advance the session clock in real time until its round ends."""
    tick = float(app.config.get('GAME_TICK_SEC', 0.1))
    session = ctx['session']
    last = time.monotonic()
    while True:
        socketio.sleep(tick)
        with ctx['lock']:
            if _sid_to_ctx.get(sid) is not ctx or not session.round.active:
                ctx['driving'] = False
                app.logger.info(f"[driver-stop] sid={sid} phase={session.phase.value}")
                return
            now = time.monotonic()
            with app.app_context():
                session.advance(now - last)
            last = now


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if not ctx:
        return
    with ctx['lock']:
        # The socket is gone; tear down quietly
        ctx['session'].unsubscribe(ctx['forward'])
        ctx['session'].cancel()


def handle_start_round(data):
    data = data or {}
    sid = _get_sid()
    app = current_app._get_current_object()
    ctx = _sid_to_ctx.get(sid) or _new_session(app, sid, request.namespace, data)
    session = ctx['session']
    with ctx['lock']:
        if session.phase is RoundPhase.RUNNING:
            session.restart()
        else:
            session.start()
        # Fire the spawns due at t=0
        session.advance(0)
        start_driver = not app.config.get('TESTING') and not ctx['driving']
        if start_driver:
            ctx['driving'] = True
    app.logger.info(f"[round-start] sid={sid} user={session.user_id} embedded={session.is_embedded}")
    if start_driver:
        socketio.start_background_task(_drive, app, sid, ctx)
    emit('state', session.snapshot())


def _with_session(fn):
    ctx = _sid_to_ctx.get(_get_sid())
    if not ctx:
        emit('error', {'message': 'No round in progress; send start_round first'})
        return None
    with ctx['lock']:
        return fn(ctx['session'])


def handle_select_rocket(data):
    rocket_id = _int_arg(data, 'rocket_id')
    if rocket_id is None:
        emit('error', {'message': 'rocket_id is required'})
        return None
    return _with_session(lambda s: {'selected': s.select_rocket(rocket_id)})


def handle_choose_planet(data):
    planet_id = _int_arg(data, 'planet_id')
    if planet_id is None:
        emit('error', {'message': 'planet_id is required'})
        return None
    return _with_session(lambda s: {'outcome': s.choose_planet(planet_id).value})


def handle_restart_round(data=None):
    if _get_sid() not in _sid_to_ctx:
        emit('error', {'message': 'No round in progress; send start_round first'})
        return
    # start_round already restarts a running round and re-arms the driver
    handle_start_round(data)


def handle_end_round(data=None):
    def _end(s):
        result = s.end()
        return result.to_dict() if result else None
    return _with_session(_end)


def handle_get_state(data=None):
    def _state(s):
        emit('state', s.snapshot())
    return _with_session(_state)


def handle_advance_clock(data):
    # Test-only: stands in for the background driver
    seconds = float((data or {}).get('seconds', 0))
    return _with_session(lambda s: s.advance(seconds))


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' and expose a manual clock.
    """
    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'start_round': handle_start_round,
        'select_rocket': handle_select_rocket,
        'choose_planet': handle_choose_planet,
        'restart_round': handle_restart_round,
        'end_round': handle_end_round,
        'get_state': handle_get_state,
        'ping': handle_ping,
    }
    if testing:
        handlers['advance_clock'] = handle_advance_clock

    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace=namespace)
