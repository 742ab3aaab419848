"""Watcher records — one per registered watch function.

A Watcher is owned by the Scope that created it. ``last`` holds the value
seen on the previous pass, or the private INITIAL marker until the first
evaluation.
"""

from __future__ import annotations

from typing import Any, Callable

# Never equal to a real value; never handed to a listener.
INITIAL = object()


def _noop(new_value, old_value, scope) -> None:
    pass


class Watcher:
    """A watch function, its listener, its equality mode and its last value."""

    __slots__ = ("watch_fn", "listener_fn", "value_eq", "last", "active")

    def __init__(
        self,
        watch_fn: Callable[[Any], Any],
        listener_fn: Callable[[Any, Any, Any], None] | None = None,
        value_eq: bool = False,
    ) -> None:
        self.watch_fn = watch_fn
        self.listener_fn = listener_fn or _noop
        self.value_eq = bool(value_eq)
        self.last: Any = INITIAL
        self.active = True

    def __repr__(self) -> str:
        name = getattr(self.watch_fn, "__name__", repr(self.watch_fn))
        mode = "value" if self.value_eq else "reference"
        state = "active" if self.active else "removed"
        return f"Watcher({name}, {mode}, {state})"
