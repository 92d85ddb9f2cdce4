from flask import current_app, request
from flask_socketio import emit

from sudoku_dash import socketio
from sudoku_dash.services.broadcaster import (
    LEADERBOARD_NAMESPACE,
    SocketIOChannel,
    get_broadcaster,
)


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect(auth=None):
    get_broadcaster().register(SocketIOChannel(socketio, _get_sid(), LEADERBOARD_NAMESPACE))
    emit('connected', {'message': f'Connected to {LEADERBOARD_NAMESPACE}'})


def handle_disconnect(*args):
    removed = get_broadcaster().unregister_sid(_get_sid())
    current_app.logger.debug(f"[listener-disconnect] sid={_get_sid()} removed={removed}")


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register the leaderboard viewer handlers on the '/leaderboard' namespace."""
    socketio.on_event('connect', handle_connect, namespace=LEADERBOARD_NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=LEADERBOARD_NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=LEADERBOARD_NAMESPACE)
