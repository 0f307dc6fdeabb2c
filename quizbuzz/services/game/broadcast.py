from typing import Any, Dict, Optional


ROLES = ('controller', 'display', 'buzzer')


def role_room(role: str) -> str:
    return f"role:{role}"


class SocketIOBroadcaster:
    """Fan-out of game events over one Socket.IO namespace.

    Uses ``socketio.emit`` rather than the request-bound ``emit`` so it
    works from handlers and background tasks alike.
    """

    def __init__(self, socketio, namespace: str = '/ws'):
        self.socketio = socketio
        self.namespace = namespace

    def broadcast(self, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        self.socketio.emit(event, payload or {}, namespace=self.namespace)

    def to_role(self, role: str, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        self.socketio.emit(event, payload or {}, to=role_room(role), namespace=self.namespace)

    def to_connection(self, sid: str, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        self.socketio.emit(event, payload or {}, to=sid, namespace=self.namespace)
