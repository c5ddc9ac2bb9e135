# -*- coding: utf-8 -*-

import sched
import time
from typing import Callable, Optional


class EventLoop:
    """
    Single-threaded stand-in for Tk's after()/after_cancel() when running
    without a window. run() returns once nothing is scheduled.

    after() called from inside a job counts from that job's due time, not
    from when it actually ran, so a repeating one-second job stays on
    one-second boundaries.
    """

    def __init__(self, timefunc=time.monotonic, delayfunc=time.sleep):
        self._sched = sched.scheduler(timefunc, delayfunc)
        self._timefunc = timefunc
        self._due: Optional[float] = None

    def after(self, ms: int, fn: Callable[[], None]):
        base = self._due if self._due is not None else self._timefunc()
        due = base + ms / 1000.0
        return self._sched.enterabs(due, 0, self._fire, argument=(due, fn))

    def _fire(self, due: float, fn: Callable[[], None]) -> None:
        self._due = due
        try:
            fn()
        finally:
            self._due = None

    def after_cancel(self, job) -> None:
        try:
            self._sched.cancel(job)
        except ValueError:
            # already fired
            pass

    def pending(self) -> int:
        return len(self._sched.queue)

    def run(self) -> None:
        self._sched.run()
