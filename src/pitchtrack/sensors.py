"""
Position source collaborators.

A position source offers a one-shot query (used by calibration) and a
continuous subscription (used by live tracking). Both report failures as
SignalLost. ReplayPositionSource plays back recorded fixes and delivers them
synchronously, one at a time, which is how the CLI and the tests drive the
tracker.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Deque, Iterable, List, Optional, Protocol

from pitchtrack.domain.types import GeodeticCoordinate
from pitchtrack.errors import SignalLost
from pitchtrack.models import WatchOptions

logger = logging.getLogger(__name__)

FixCallback = Callable[[GeodeticCoordinate], None]
ErrorCallback = Callable[[SignalLost], None]


class Watch(Protocol):
    def cancel(self) -> None: ...


class PositionSource(Protocol):
    def current_position(self) -> GeodeticCoordinate:
        """Return one fix or raise SignalLost."""
        ...

    def watch(self, on_fix: FixCallback, on_error: ErrorCallback, options: WatchOptions) -> Watch:
        ...


class _ReplayWatch:
    def __init__(self, source: "ReplayPositionSource", on_fix: FixCallback, on_error: ErrorCallback):
        self._source = source
        self.on_fix = on_fix
        self.on_error = on_error
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self._source._watches.remove(self)


class ReplayPositionSource:
    """
    Plays back a queue of recorded fixes. A None entry stands for a failed
    query (no signal); an exhausted queue behaves the same way.
    """

    def __init__(self, fixes: Iterable[Optional[GeodeticCoordinate]] = ()):
        self._queue: Deque[Optional[GeodeticCoordinate]] = deque(fixes)
        self._watches: List[_ReplayWatch] = []
        self.options: Optional[WatchOptions] = None

    def push(self, fix: Optional[GeodeticCoordinate]) -> None:
        self._queue.append(fix)

    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def watching(self) -> bool:
        return bool(self._watches)

    def current_position(self) -> GeodeticCoordinate:
        fix = self._queue.popleft() if self._queue else None
        if fix is None:
            raise SignalLost()
        return fix

    def watch(self, on_fix: FixCallback, on_error: ErrorCallback, options: WatchOptions) -> _ReplayWatch:
        self.options = options
        handle = _ReplayWatch(self, on_fix, on_error)
        self._watches.append(handle)
        return handle

    def pump(self) -> bool:
        """
        Deliver the next queued fix to every active subscriber.

        Returns False when nothing was queued or nobody is subscribed (the fix
        then stays queued). Each delivery runs to completion before pump
        returns.
        """
        if not self._queue or not self._watches:
            return False
        fix = self._queue.popleft()
        for handle in list(self._watches):
            if fix is None:
                handle.on_error(SignalLost())
            else:
                handle.on_fix(fix)
        return True

    def drain(self) -> int:
        """Pump until the queue is empty or every subscription is cancelled."""
        delivered = 0
        while self.pump():
            delivered += 1
        logger.debug("Replayed %d fix(es), %d pending", delivered, len(self._queue))
        return delivered
