"""Outbound side of the presentation adapter: ``render(event, payload)``."""


def room_for(code: str) -> str:
    return f"session:{code}"


class NullRenderer:
    def render(self, event: str, payload: dict) -> None:
        return None


class SocketIORenderer:
    """Pushes snapshots to every socket that joined the session's room."""

    def __init__(self, socketio, code: str, namespace: str = '/ws'):
        self.socketio = socketio
        self.room = room_for(code)
        self.namespace = namespace

    def render(self, event: str, payload: dict) -> None:
        self.socketio.emit(event, payload, to=self.room, namespace=self.namespace)
