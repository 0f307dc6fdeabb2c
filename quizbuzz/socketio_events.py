import re

from flask_socketio import join_room, emit
from flask import current_app, request
from quizbuzz.services.game.broadcast import ROLES, role_room
from quizbuzz.services.game.errors import GameError, InvalidPayload
from typing import Any, Dict


def get_coordinator():
    return current_app.extensions['quizbuzz']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _reject(exc: GameError) -> None:
    # Rejections only go back to the connection that asked
    emit('error', exc.to_dict())


_INT_TEXT = re.compile(r'-?[0-9]+')


def _int_field(data: Dict[str, Any], key: str) -> int:
    # Integers or integer strings only; floats are never truncated
    value = (data or {}).get(key)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and _INT_TEXT.fullmatch(value.strip()):
        return int(value.strip())
    raise InvalidPayload(f"{key} must be an integer")


def handle_connect(auth=None):
    emit('connected', {'sid': _get_sid()})
    get_coordinator().connect(_get_sid())


def handle_disconnect(*args):
    get_coordinator().disconnect(_get_sid())


def handle_register_role(data=None):
    role = (data or {}).get('role')
    if role not in ROLES:
        _reject(InvalidPayload(f"role must be one of {', '.join(ROLES)}"))
        return
    join_room(role_room(role))
    emit('role_registered', {'role': role})
    # Buzzer clients never learn the code from the server
    if role in ('display', 'controller'):
        get_coordinator().send_room_code(_get_sid())


def handle_join_room(data=None):
    data = data or {}
    try:
        slot, name = get_coordinator().join(_get_sid(), data.get('code'), data.get('name'))
    except GameError as exc:
        _reject(exc)
        return
    join_room(role_room('buzzer'))
    emit('buzzer_registered', {'slot': slot, 'name': name})


def handle_signal(data=None):
    coordinator = get_coordinator()
    # A bound buzzer always signals for its own slot
    slot = coordinator.slot_of(_get_sid())
    try:
        if slot is None:
            slot = _int_field(data, 'slot')
        coordinator.signal(slot)
    except GameError as exc:
        _reject(exc)


def handle_draw_next(*args):
    get_coordinator().draw_next()


def handle_toggle_answer(*args):
    get_coordinator().toggle_answer()


def handle_adjust_score(data=None):
    try:
        get_coordinator().adjust_score(_int_field(data, 'slot'), _int_field(data, 'delta'))
    except GameError as exc:
        _reject(exc)


def handle_rename_player(data=None):
    try:
        get_coordinator().rename_player(_int_field(data, 'slot'), (data or {}).get('name'))
    except GameError as exc:
        _reject(exc)


def handle_open_room(*args):
    coordinator = get_coordinator()
    code = coordinator.open_room()
    emit('room_opened', {'code': code})
    # The opener clears its name inputs back to the defaults
    emit('reset_inputs', {'names': list(coordinator.state.default_names)})


def handle_reset(*args):
    get_coordinator().reset()


def handle_full_reset(*args):
    get_coordinator().full_reset()


def handle_delete_batch(data=None):
    try:
        get_coordinator().delete_batch(_int_field(data, 'batch_id'))
    except GameError as exc:
        _reject(exc)


def handle_clear_buzzer_winner(*args):
    get_coordinator().clear_buzzer_winner()


def handle_start_countdown(data=None):
    try:
        get_coordinator().start_countdown(_int_field(data, 'seconds'))
    except GameError as exc:
        _reject(exc)


def handle_ping(data=None):
    emit('pong', data or {})


_HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'register_role': handle_register_role,
    'join_room': handle_join_room,
    'signal': handle_signal,
    'draw_next': handle_draw_next,
    'toggle_answer': handle_toggle_answer,
    'adjust_score': handle_adjust_score,
    'rename_player': handle_rename_player,
    'open_room': handle_open_room,
    'reset': handle_reset,
    'full_reset': handle_full_reset,
    'delete_batch': handle_delete_batch,
    'clear_buzzer_winner': handle_clear_buzzer_winner,
    'start_countdown': handle_start_countdown,
    'ping': handle_ping,
}


def register_socketio_handlers(socketio, namespace: str = '/ws') -> None:
    """Register every game event handler on ``namespace``."""
    for event, handler in _HANDLERS.items():
        socketio.on_event(event, handler, namespace=namespace)
