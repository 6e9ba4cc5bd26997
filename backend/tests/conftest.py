import heapq
import itertools
import os
import sys

import pytest

# Ensure the backend root (containing the `flippin` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from flippin import create_app, socketio
from flippin.services.games.deck import build_deck
from flippin.services.games.room import GameRules, Room
from flippin.services.games.scheduler import ScheduledTask

NAMESPACE = '/ws'


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    LOG_LEVEL = 'DEBUG'
    DEFAULT_ROOM_ID = 'main'
    AUTO_JOIN_ON_CONNECT = True


class FakeScheduler:
    """Manual clock: callbacks only run inside ``advance``."""

    def __init__(self):
        self.now = 0.0
        self._queue = []
        self._seq = itertools.count()

    def call_later(self, delay, callback, name='call_later'):
        task = ScheduledTask(name)
        self._push(self.now + delay, task, callback, None)
        return task

    def call_every(self, interval, callback, name='call_every'):
        task = ScheduledTask(name)
        self._push(self.now + interval, task, callback, interval)
        return task

    def _push(self, due, task, callback, interval):
        heapq.heappush(self._queue, (due, next(self._seq), task, callback, interval))

    def advance(self, seconds):
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target + 1e-9:
            due, _, task, callback, interval = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self.now = due
            if interval is not None:
                self._push(due + interval, task, callback, interval)
            callback()
        self.now = target

    def pending(self):
        return sum(1 for entry in self._queue if not entry[2].cancelled)


class RecordingBroadcaster:

    def __init__(self):
        self.events = []

    def to_room(self, room_id, event, payload):
        self.events.append((f"room:{room_id}", event, payload))

    def to_session(self, session_id, event, payload):
        self.events.append((session_id, event, payload))

    def named(self, event, target=None):
        return [p for t, e, p in self.events if e == event and (target is None or t == target)]

    def clear(self):
        self.events.clear()


def scenario_deck():
    """Unshuffled deck with lion at 0 and 3, elephant at 1 and 2.

    Every later pair sits side by side: (4, 5), (6, 7) ... (18, 19).
    """
    cards = build_deck(shuffled=False)
    cards[1], cards[3] = cards[3], cards[1]
    return cards


@pytest.fixture()
def scheduler():
    return FakeScheduler()


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def make_room(scheduler, broadcaster):
    def _make(rules=None, deck_factory=scenario_deck, room_id='TEST'):
        return Room(room_id, rules or GameRules(), scheduler, broadcaster, deck_factory=deck_factory)
    return _make


@pytest.fixture()
def room(make_room):
    return make_room()


@pytest.fixture()
def seated_room(room):
    room.join('sid-a', 'Alice')
    room.join('sid-b', 'Bob')
    return room


@pytest.fixture()
def flask_app(scheduler):
    application = create_app(TestConfig, scheduler=scheduler)
    yield application
    application.extensions['room_registry'].close_all()


@pytest.fixture()
def registry(flask_app):
    return flask_app.extensions['room_registry']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect(flask_app):
    clients = []

    def _connect(**auth):
        test_client = socketio.test_client(flask_app, namespace=NAMESPACE, auth=auth or None)
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected(NAMESPACE):
                test_client.disconnect(namespace=NAMESPACE)
        except RuntimeError:
            pass
