import logging
import threading

logger = logging.getLogger(__name__)


class ScheduledTask:
    """Handle for a deferred or recurring callback.

    ``cancel()`` may be called any number of times; the callback will not
    start after the first call.
    """

    def __init__(self, name: str = 'task'):
        self.name = name
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        if not self._cancelled.is_set():
            logger.debug(f"[task-cancel] {self.name}")
        self._cancelled.set()


def _run_callback(task: ScheduledTask, callback) -> bool:
    try:
        callback()
    except Exception:
        logger.exception(f"[task-error] {task.name} failed; stopping")
        task.cancel()
        return False
    return True


class BackgroundScheduler:
    """Runs callbacks on Socket.IO background tasks.

    Uses ``socketio.sleep`` so it cooperates with whichever async mode the
    server runs in (threading, eventlet, gevent).
    """

    def __init__(self, socketio):
        self._socketio = socketio

    def call_later(self, delay: float, callback, name: str = 'call_later') -> ScheduledTask:
        task = ScheduledTask(name)

        def _worker():
            self._socketio.sleep(delay)
            if task.cancelled:
                return
            _run_callback(task, callback)

        self._socketio.start_background_task(_worker)
        return task

    def call_every(self, interval: float, callback, name: str = 'call_every') -> ScheduledTask:
        task = ScheduledTask(name)

        def _worker():
            while True:
                self._socketio.sleep(interval)
                if task.cancelled:
                    return
                if not _run_callback(task, callback):
                    return

        self._socketio.start_background_task(_worker)
        return task
