"""
Deterministic timer queue for deferred game effects (counter-attacks,
resource regeneration, construction completion, autosave).
"""
import heapq
import itertools
import logging
import time
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)


class ManualClock:
    """Clock that only moves when told to. Used by tests and replays."""

    def __init__(self, start: float = 0.0):
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class EventQueue:
    def __init__(self, clock: Callable[[], float] = None):
        self.clock = clock or time.monotonic
        self._heap: List[Tuple[float, int, str, Callable[[], None]]] = []
        self._seq = itertools.count()

    def __len__(self):
        return len(self._heap)

    def schedule(self, delay_s: float, callback: Callable[[], None], label: str = '') -> float:
        """Queue callback to fire once, delay_s seconds from now. Returns the fire time."""
        fire_at = self.clock() + max(0.0, float(delay_s))
        heapq.heappush(self._heap, (fire_at, next(self._seq), label, callback))
        return fire_at

    def due(self) -> int:
        now = self.clock()
        return sum(1 for entry in self._heap if entry[0] <= now)

    def run_due(self) -> int:
        """Fire every entry whose time has come, in (fire time, insertion) order."""
        fired = 0
        now = self.clock()
        while self._heap and self._heap[0][0] <= now:
            _, _, label, callback = heapq.heappop(self._heap)
            logger.debug(f"Firing timer {label or callback!r}")
            callback()
            fired += 1
        return fired

    def clear(self):
        self._heap.clear()
