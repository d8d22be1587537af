from flask_socketio import join_room, leave_room, emit
from flask import current_app, request
from ringgame import socketio
from ringgame.services.games import GameNotFound
from typing import Dict


# sid -> game code, so a dropped socket can be logged against its game
_sid_to_game: Dict[str, str] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    game_code = _sid_to_game.pop(_get_sid(), None)
    if game_code:
        current_app.logger.info(f"[ws-disconnect] game={game_code}")


def handle_join_game(data):
    game_code = (data or {}).get('game_code')
    if not game_code:
        emit('error', {'message': 'game_code is required'})
        return
    game_code = game_code.upper()
    room = f"game:{game_code}"
    join_room(room)
    _sid_to_game[_get_sid()] = game_code
    emit('joined', {'room': room})
    # Hand the newcomer the current snapshot so it does not wait for the next change
    try:
        emit('state', current_app.extensions['game_registry'].snapshot(game_code))
    except GameNotFound:
        pass


def handle_leave_game(data):
    game_code = (data or {}).get('game_code')
    if not game_code:
        emit('error', {'message': 'game_code is required'})
        return
    room = f"game:{game_code.upper()}"
    leave_room(room)
    _sid_to_game.pop(_get_sid(), None)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('join_game', handle_join_game, namespace=namespace)
        socketio.on_event('leave_game', handle_leave_game, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
