from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from flippin import socketio
from flippin.errors import GameError, IgnoredAction
from flippin.services.games.broadcast import SocketIOBroadcaster


def _registry():
    return current_app.extensions['room_registry']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _payload(data) -> dict:
    return data if isinstance(data, dict) else {}


def _seat(join):
    """Run a registry join and hand the session its room identity and state."""
    sid = _get_sid()
    try:
        room, player = join(sid)
    except GameError as exc:
        current_app.logger.debug(f"[join-rejected] sid={sid} reason={exc}")
        return {'error': str(exc)}
    join_room(SocketIOBroadcaster.channel(room.room_id))
    with room.lock:
        state = room.snapshot()
    emit('room', {'room_id': room.room_id})
    emit('state', state)
    return {'ok': True, 'room_id': room.room_id, 'name': player.name}


def _dispatch(action_name, action):
    """Apply ``action(room, sid)`` to the sender's room under its lock.

    Rule violations are acknowledged to the sender only; actions from a
    session without a room are dropped.
    """
    sid = _get_sid()
    room = _registry().room_for_session(sid)
    if room is None:
        current_app.logger.debug(f"[ignored] {action_name} sid={sid} has no room")
        return None
    try:
        with room.lock:
            if room.closed:
                raise IgnoredAction(f"room {room.room_id} is closed")
            result = action(room, sid)
    except IgnoredAction as exc:
        current_app.logger.debug(f"[ignored] {action_name} sid={sid}: {exc}")
        return None
    except GameError as exc:
        current_app.logger.debug(f"[rejected] {action_name} room={room.room_id} sid={sid}: {exc}")
        return {'error': str(exc)}
    ack = {'ok': True}
    ack.update(result or {})
    return ack


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws'})
    if not current_app.config.get('AUTO_JOIN_ON_CONNECT', True):
        return
    data = _payload(auth)
    result = _seat(lambda sid: _registry().join(sid, data.get('room_id'), data.get('name')))
    if 'error' in result:
        emit('error', {'message': result['error']})


def handle_disconnect(reason=None):
    sid = _get_sid()
    room = _registry().leave(sid)
    if room is not None:
        current_app.logger.info(f"[disconnect] room={room.room_id} sid={sid} reason={reason}")


def handle_join_game(data=None):
    data = _payload(data)
    return _seat(lambda sid: _registry().join(sid, data.get('room_id'), data.get('name')))


def handle_create_room(data=None):
    data = _payload(data)
    return _seat(lambda sid: _registry().create_and_join(sid, data.get('name')))


def handle_leave_game(data=None):
    sid = _get_sid()
    room = _registry().leave(sid)
    if room is None:
        return None
    leave_room(SocketIOBroadcaster.channel(room.room_id))
    emit('left', {'room_id': room.room_id})
    return {'ok': True}


def handle_flip(data=None):
    index = _payload(data).get('index')
    return _dispatch('flip', lambda room, sid: room.flip(sid, index))


def handle_ask_question(data=None):
    text = _payload(data).get('text')
    return _dispatch('ask_question', lambda room, sid: {'remaining': room.ask_question(sid, text)})


def handle_answer_question(data=None):
    text = _payload(data).get('text')
    return _dispatch('answer_question', lambda room, sid: room.answer_question(sid, text))


def handle_rematch(data=None):
    return _dispatch('rematch', lambda room, sid: room.rematch(sid))


def handle_ping(data=None):
    emit('pong', data or {})


def handle_error(exc):
    current_app.logger.error(f"[socket-error] event handler failed: {exc}", exc_info=exc)
    return {'error': 'Internal error'}


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('join_game', handle_join_game, namespace=namespace)
    socketio.on_event('create_room', handle_create_room, namespace=namespace)
    socketio.on_event('leave_game', handle_leave_game, namespace=namespace)
    socketio.on_event('flip', handle_flip, namespace=namespace)
    socketio.on_event('ask_question', handle_ask_question, namespace=namespace)
    socketio.on_event('answer_question', handle_answer_question, namespace=namespace)
    socketio.on_event('rematch', handle_rematch, namespace=namespace)
    socketio.on_event('ping', handle_ping, namespace=namespace)
    socketio.on_error(namespace)(handle_error)
