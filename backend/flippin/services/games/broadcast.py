class SocketIOBroadcaster:
    """Delivers room events over Socket.IO.

    Uses ``socketio.emit`` rather than the request-bound ``emit`` since
    rooms also emit from background tasks (timer ticks, flip-back).
    """

    def __init__(self, socketio, namespace: str = '/ws'):
        self._socketio = socketio
        self.namespace = namespace

    @staticmethod
    def channel(room_id: str) -> str:
        return f"game:{room_id}"

    def to_room(self, room_id, event, payload) -> None:
        self._socketio.emit(event, payload, to=self.channel(room_id), namespace=self.namespace)

    def to_session(self, session_id, event, payload) -> None:
        self._socketio.emit(event, payload, to=session_id, namespace=self.namespace)
