import logging
import random
import string
import threading
from typing import Dict, Optional, Tuple

from flippin.errors import AlreadyInRoom, GameError, IgnoredAction, RoomNotFound
from flippin.models import Player
from .room import GameRules, Room

logger = logging.getLogger(__name__)


def generate_room_code(length=6):
    return ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))


def normalize_room_id(room_id) -> Optional[str]:
    if not isinstance(room_id, (str, int)) or isinstance(room_id, bool):
        return None
    room_id = str(room_id).strip().upper()
    return room_id or None


class RoomRegistry:
    """Owns every live room and which session sits in which room.

    Lock order is registry first, then room. Room callbacks only ever take
    the room lock, so they cannot deadlock against the registry.
    """

    def __init__(self, rules: GameRules, scheduler, broadcaster, default_room_id='main',
                 code_length=6, deck_factory=None):
        self.rules = rules
        self.default_room_id = normalize_room_id(default_room_id) or 'MAIN'
        self.code_length = code_length
        self._scheduler = scheduler
        self._broadcaster = broadcaster
        self._deck_factory = deck_factory
        self._rooms: Dict[str, Room] = {}
        self._sessions: Dict[str, str] = {}
        self._lock = threading.RLock()

    def __len__(self):
        return len(self._rooms)

    def __contains__(self, room_id):
        return normalize_room_id(room_id) in self._rooms

    def get(self, room_id) -> Optional[Room]:
        return self._rooms.get(normalize_room_id(room_id))

    def require(self, room_id) -> Room:
        room = self.get(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

    def room_for_session(self, session_id) -> Optional[Room]:
        with self._lock:
            room_id = self._sessions.get(session_id)
            return self._rooms.get(room_id) if room_id else None

    def summaries(self):
        with self._lock:
            rooms = list(self._rooms.values())
        return [
            {'room_id': r.room_id, 'players': len(r.players), 'game_over': r.game_over}
            for r in rooms
        ]

    def join(self, session_id, room_id=None, name=None) -> Tuple[Room, Player]:
        """Seat a session in a room.

        Only the default room is created on first use; any other room id
        must name a room opened by ``create_and_join``.
        """
        room_id = normalize_room_id(room_id) or self.default_room_id
        with self._lock:
            bound = self._sessions.get(session_id)
            if bound and bound != room_id:
                raise AlreadyInRoom()
            if room_id != self.default_room_id:
                self.require(room_id)
            return self._join_locked(session_id, room_id, name)

    def create_and_join(self, session_id, name=None) -> Tuple[Room, Player]:
        """Open a room under a fresh code and seat the session as its first player."""
        with self._lock:
            if session_id in self._sessions:
                raise AlreadyInRoom()
            code = generate_room_code(self.code_length)
            while code in self._rooms:
                logger.warning(f"Room code collision detected, regenerating: {code}")
                code = generate_room_code(self.code_length)
            return self._join_locked(session_id, code, name)

    def _join_locked(self, session_id, room_id, name) -> Tuple[Room, Player]:
        room = self._rooms.get(room_id)
        created = room is None
        if created:
            room = Room(room_id, self.rules, self._scheduler, self._broadcaster,
                        deck_factory=self._deck_factory)
            self._rooms[room_id] = room
            logger.info(f"[room-create] room={room_id}")
        with room.lock:
            try:
                player = room.join(session_id, name)
            except GameError:
                if created:
                    self._discard_locked(room)
                raise
        self._sessions[session_id] = room_id
        return room, player

    def leave(self, session_id) -> Optional[Room]:
        """Detach a session from its room. Returns the room it left, if any."""
        with self._lock:
            room_id = self._sessions.pop(session_id, None)
            room = self._rooms.get(room_id) if room_id else None
            if room is None:
                return None
            with room.lock:
                try:
                    remaining = room.leave(session_id)
                except IgnoredAction:
                    logger.debug(f"[leave-ignored] room={room_id} sid={session_id}")
                    return room
                if remaining == 0:
                    self._discard_locked(room)
            return room

    def close_all(self) -> None:
        with self._lock:
            for room in list(self._rooms.values()):
                self._discard_locked(room)
            self._sessions.clear()

    def _discard_locked(self, room: Room) -> None:
        with room.lock:
            room.close()
        if self._rooms.get(room.room_id) is room:
            del self._rooms[room.room_id]
            logger.info(f"[room-destroy] room={room.room_id}")
