import heapq
import itertools
import logging
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class TimerHandle:
    """Cancellable reference to a one-shot or repeating timer."""

    def __init__(self, callback: Callable[[], None], interval: Optional[float] = None):
        self.callback = callback
        self.interval = interval
        self.cancelled = False

    @property
    def repeating(self) -> bool:
        return self.interval is not None

    def cancel(self) -> None:
        self.cancelled = True


class VirtualScheduler:
    """Logical-time scheduler; nothing fires until ``advance`` is called."""

    def __init__(self, start: float = 0.0):
        self.now = float(start)
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()

    def _push(self, due: float, handle: TimerHandle) -> None:
        heapq.heappush(self._queue, (due, next(self._seq), handle))

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback)
        self._push(self.now + float(delay), handle)
        return handle

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        if interval <= 0:
            raise ValueError('interval must be positive')
        handle = TimerHandle(callback, interval=float(interval))
        self._push(self.now + float(interval), handle)
        return handle

    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def advance(self, seconds: float) -> None:
        """Move logical time forward, firing due callbacks in order.

        Callbacks scheduled while advancing fire in the same call if they
        fall due before the target time.
        """
        if seconds < 0:
            raise ValueError('cannot move time backwards')
        target = self.now + float(seconds)
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = due
            if handle.repeating:
                self._push(due + handle.interval, handle)
            handle.callback()
        self.now = target


class SocketIOScheduler:
    """Wall-clock scheduler backed by Socket.IO background tasks."""

    def __init__(self, socketio, heartbeat_sec: int = 0):
        self.socketio = socketio
        self.heartbeat_sec = heartbeat_sec

    def _sleep(self, delay: float, handle: TimerHandle) -> None:
        hb = self.heartbeat_sec
        if hb and hb > 0:
            slept = 0.0
            while slept < delay and not handle.cancelled:
                step = min(hb, delay - slept)
                self.socketio.sleep(step)
                slept += step
                logger.debug(f"[timer-heartbeat] handle={id(handle)} remaining={max(0, delay - slept)}s")
        else:
            self.socketio.sleep(delay)

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback)

        def _worker():
            self._sleep(delay, handle)
            if handle.cancelled:
                return
            try:
                callback()
            except Exception:
                logger.exception(f"[timer-error] handle={id(handle)}")

        self.socketio.start_background_task(_worker)
        return handle

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        if interval <= 0:
            raise ValueError('interval must be positive')
        handle = TimerHandle(callback, interval=float(interval))

        def _worker():
            while not handle.cancelled:
                self._sleep(interval, handle)
                if handle.cancelled:
                    return
                try:
                    callback()
                except Exception:
                    logger.exception(f"[timer-error] handle={id(handle)}")

        self.socketio.start_background_task(_worker)
        return handle
