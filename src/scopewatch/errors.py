"""Errors raised by a Scope.

Only structural failures surface here. Faults inside watch functions,
listeners, async expressions and post-digest callbacks are logged by the
Scope and never reach the caller.
"""

from __future__ import annotations


class ScopeError(Exception):
    """Base class for scopewatch errors."""


class WatchFnRequiredError(ScopeError, TypeError):
    """watch() was called without a callable watch function."""

    def __init__(self, message: str = "First parameter 'watch_fn' is mandatory") -> None:
        super().__init__(message)


class PhaseConflictError(ScopeError):
    """A digest or apply was started while another one is running."""

    def __init__(self, phase: str) -> None:
        self.phase = phase
        super().__init__(f"{phase} already in progress.")


class DigestIterationError(ScopeError):
    """Watchers kept changing after ttl passes of a digest."""

    def __init__(self, ttl: int) -> None:
        self.ttl = ttl
        super().__init__(f"{ttl} digest iterations reached")
