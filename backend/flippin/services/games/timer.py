import logging
from functools import partial

logger = logging.getLogger(__name__)

TICK_INTERVAL_SEC = 1


def _noop(*args):
    pass


def _unguarded(fn):
    return fn


class GameTimer:
    """Countdown clock with pause/resume.

    While running, a recurring task decrements ``remaining`` once per
    second and reports it through ``on_tick``. At zero the task is
    cancelled, ``running`` drops to False and ``on_expire`` fires.

    ``guard`` wraps the tick callback before it is scheduled; the room
    uses it to take its lock and skip ticks once torn down. Each start
    bumps a generation number, so a tick that was already waiting on the
    lock when the timer paused does nothing.
    """

    def __init__(self, scheduler, duration: int, name: str = 'timer',
                 on_tick=_noop, on_pause=_noop, on_expire=_noop, guard=_unguarded):
        self.duration = int(duration)
        self.remaining = int(duration)
        self.running = False
        self.name = name
        self._scheduler = scheduler
        self._on_tick = on_tick
        self._on_pause = on_pause
        self._on_expire = on_expire
        self._guard = guard
        self._task = None
        self._generation = 0

    def start(self) -> bool:
        if self.running or self.remaining <= 0:
            return False
        self.running = True
        self._generation += 1
        tick = self._guard(partial(self._tick, self._generation))
        self._task = self._scheduler.call_every(TICK_INTERVAL_SEC, tick, name=f"{self.name}:tick")
        logger.info(f"[timer-start] {self.name} remaining={self.remaining}s")
        return True

    def resume(self) -> bool:
        return self.start()

    def pause(self) -> bool:
        if not self.running:
            return False
        self._stop()
        logger.info(f"[timer-pause] {self.name} remaining={self.remaining}s")
        self._on_pause()
        return True

    def cancel(self) -> None:
        """Stop without signalling. Safe to call repeatedly."""
        self._stop()

    def reset(self) -> None:
        self._stop()
        self.remaining = self.duration

    def _stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._generation += 1
        self.running = False

    def _tick(self, generation: int) -> None:
        if generation != self._generation or not self.running:
            return
        self.remaining = max(0, self.remaining - 1)
        self._on_tick(self.remaining)
        if self.remaining <= 0:
            self._stop()
            logger.info(f"[timer-expire] {self.name}")
            self._on_expire()

    def to_dict(self):
        return {'remaining': self.remaining, 'running': self.running}
