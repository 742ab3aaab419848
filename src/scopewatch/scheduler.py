"""Deferred-task scheduling — where eval_async's "digest soon" goes.

A Scope never runs a deferred digest itself. It hands a callback to a
scheduler: any callable accepting a zero-argument callback and running it
later, on the same thread, after the current call stack has unwound.

Resolution order for a Scope without its own scheduler:
1. the process-wide scheduler installed with set_scheduler(),
2. loop.call_soon of the asyncio loop running in this thread,
3. the module's next-tick queue, drained by flush_deferred().
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Callable

Callback = Callable[[], object]
Scheduler = Callable[[Callback], object]

_scheduler: Scheduler | None = None

# Next-tick queue for hosts without an event loop.
_ticks: deque[Callback] = deque()


def set_scheduler(scheduler: Scheduler | None) -> None:
    """Install the process-wide deferred-task submitter.

    Call once at startup, e.g. with a Textual app:
        scopewatch.set_scheduler(app.call_later)

    Pass None to go back to the asyncio / next-tick fallback.
    """
    global _scheduler
    _scheduler = scheduler


def get_scheduler() -> Scheduler | None:
    return _scheduler


def defer(callback: Callback) -> None:
    """Queue callback on the next-tick queue."""
    _ticks.append(callback)


def flush_deferred() -> int:
    """Run queued callbacks in FIFO order. Returns how many ran.

    Callbacks queued while flushing run in the same flush. An exception
    from a callback propagates; the callbacks behind it stay queued.
    """
    ran = 0
    while _ticks:
        callback = _ticks.popleft()
        ran += 1
        callback()
    return ran


def get_pending_count() -> int:
    """Number of callbacks waiting on the next-tick queue. Useful for testing."""
    return len(_ticks)


def resolve_scheduler(explicit: Scheduler | None = None) -> Scheduler:
    """Pick the scheduler a Scope should submit to right now."""
    if explicit is not None:
        return explicit
    if _scheduler is not None:
        return _scheduler
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return defer
    return loop.call_soon
