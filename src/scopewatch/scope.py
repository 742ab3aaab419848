"""Scope — a mutable context plus a dirty-checking digest loop.

Application state lives as plain attributes on the Scope. Watch functions
read that state; digest() re-evaluates every watch until a full pass sees
no change, calling listeners for each change it finds.

    scope = Scope()
    scope.name = "Alice"
    scope.watch(lambda s: s.name, lambda new, old, s: print(old, "->", new))
    scope.digest()          # Alice -> Alice (first evaluation)
    scope.apply(lambda s: setattr(s, "name", "Bob"))
                            # Alice -> Bob

Faults inside watch functions, listeners, async expressions and post-digest
callbacks are logged and isolated. Only a missing watch function, a
reentrant digest/apply and a digest that never settles raise.
"""

from __future__ import annotations

import copy
import logging
from collections import deque
from typing import Any, Callable, NamedTuple, Sequence

from scopewatch.equality import are_equal
from scopewatch.errors import DigestIterationError, PhaseConflictError, WatchFnRequiredError
from scopewatch.scheduler import Scheduler, resolve_scheduler
from scopewatch.watcher import INITIAL, Watcher

DIGEST_TTL = 10

WatchFn = Callable[["Scope"], Any]
Listener = Callable[[Any, Any, "Scope"], None]
Deregister = Callable[[], None]


class AsyncTask(NamedTuple):
    scope: "Scope"
    expression: Callable[["Scope"], Any]


class Scope:
    """Observed state, its watchers, and the queues that feed a digest.

    Any public attribute that was never assigned reads as None, like an
    undefined field. That includes misspelt method names: ``scope.digset()``
    fails with "NoneType object is not callable", not AttributeError.

    logger is the diagnostic sink: a logging.Logger, a LoggerAdapter, or any
    object with debug() and exception(). Defaults to the "scopewatch.scope"
    logger.
    """

    def __init__(
        self,
        *,
        scheduler: Scheduler | None = None,
        logger: Any = None,
        ttl: int = DIGEST_TTL,
    ) -> None:
        self._watchers: list[Watcher] = []
        self._async_queue: deque[AsyncTask] = deque()
        self._post_digest_queue: deque[Callable[[], Any]] = deque()
        self._phase: str | None = None
        self._scheduler = scheduler
        self._logger = logger if logger is not None else logging.getLogger("scopewatch.scope")
        self._ttl = ttl

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes that were never set.
        if name.startswith("_"):
            raise AttributeError(name)
        return None

    # ─── Phase ───────────────────────────────────────────────────────────────

    @property
    def phase(self) -> str | None:
        """"digest" or "apply" while one is running, else None."""
        return self._phase

    @property
    def scheduler(self) -> Scheduler | None:
        return self._scheduler

    @scheduler.setter
    def scheduler(self, value: Scheduler | None) -> None:
        self._scheduler = value

    def _begin_phase(self, phase: str) -> None:
        if self._phase:
            raise PhaseConflictError(self._phase)
        self._phase = phase

    def _clear_phase(self) -> None:
        self._phase = None

    # ─── Watchers ────────────────────────────────────────────────────────────

    def watch(
        self,
        watch_fn: WatchFn,
        listener_fn: Listener | None = None,
        value_eq: bool = False,
    ) -> Deregister:
        """Register watch_fn. Returns a function that removes this watcher.

        listener_fn(new_value, old_value, scope) runs whenever the watched
        value changes. On the first evaluation old_value is new_value.
        value_eq=True compares by structure and keeps a deep copy of the
        last value; otherwise containers compare by identity.
        """
        if watch_fn is None or not callable(watch_fn):
            raise WatchFnRequiredError()
        watcher = Watcher(watch_fn, listener_fn, value_eq)
        self._watchers.append(watcher)

        def _deregister() -> None:
            for index, registered in enumerate(self._watchers):
                if registered is watcher:
                    del self._watchers[index]
                    watcher.active = False
                    return

        return _deregister

    def watch_group(
        self,
        watch_fns: Sequence[WatchFn],
        listener_fn: Callable[[list, list, "Scope"], None],
    ) -> Deregister:
        """Watch several functions with one listener.

        Every member change calls listener_fn(new_values, old_values, scope)
        with the whole group's latest values, index-aligned with watch_fns.
        The returned function removes every member watcher.
        """
        if not watch_fns:
            return lambda: None

        new_values: list = [None] * len(watch_fns)
        old_values: list = [None] * len(watch_fns)

        def _member_listener(index: int) -> Listener:
            def _record(new_value, old_value, scope) -> None:
                new_values[index] = new_value
                old_values[index] = old_value
                listener_fn(new_values, old_values, self)

            return _record

        deregisters = [
            self.watch(watch_fn, _member_listener(i))
            for i, watch_fn in enumerate(watch_fns)
        ]

        def _deregister_group() -> None:
            for deregister in deregisters:
                deregister()

        return _deregister_group

    def watcher_count(self) -> int:
        return len(self._watchers)

    @staticmethod
    def are_equal(new_value: Any, old_value: Any, value_eq: bool) -> bool:
        return are_equal(new_value, old_value, value_eq)

    # ─── Digest ──────────────────────────────────────────────────────────────

    def digest_once(self) -> bool:
        """Evaluate every watcher once. Returns True if any value changed."""
        dirty = False
        # Snapshot: listeners may register or deregister watchers mid-pass.
        for watcher in list(self._watchers):
            if not watcher.active:
                continue
            try:
                new_value = watcher.watch_fn(self)
            except Exception:
                self._logger.exception("Watch function failed: %r", watcher)
                continue
            old_value = watcher.last
            try:
                changed = not self.are_equal(new_value, old_value, watcher.value_eq)
            except Exception:
                self._logger.exception("Comparison failed: %r", watcher)
                continue
            if changed:
                dirty = True
                try:
                    watcher.listener_fn(
                        new_value,
                        new_value if old_value is INITIAL else old_value,
                        self,
                    )
                except Exception:
                    self._logger.exception("Listener failed: %r", watcher)
            watcher.last = self._snapshot(watcher, new_value)
        return dirty

    def _snapshot(self, watcher: Watcher, value: Any) -> Any:
        if not watcher.value_eq:
            return value
        try:
            return copy.deepcopy(value)
        except Exception:
            # Uncopyable values are kept as-is; later in-place edits go unseen.
            self._logger.exception("Could not copy watched value: %r", watcher)
            return value

    def digest(self) -> None:
        """Run passes until nothing changes, then fire post-digest callbacks.

        Raises PhaseConflictError if a digest or apply is already running,
        and DigestIterationError if watchers are still changing after ttl
        extra passes. The phase is cleared either way.
        """
        ttl = self._ttl
        self._begin_phase("digest")
        self._logger.debug("Digest started: %d watchers", len(self._watchers))
        try:
            while True:
                self._drain_async_queue()
                dirty = self.digest_once()
                if not dirty:
                    break
                if ttl <= 0:
                    raise DigestIterationError(self._ttl)
                ttl -= 1
        finally:
            self._clear_phase()
        self._logger.debug("Digest settled after %d passes", self._ttl - ttl + 1)
        self._drain_post_digest_queue()

    def _drain_async_queue(self) -> None:
        while self._async_queue:
            task = self._async_queue.popleft()
            try:
                task.scope.eval(task.expression)
            except Exception:
                self._logger.exception("Async expression failed: %r", task.expression)

    def _drain_post_digest_queue(self) -> None:
        while self._post_digest_queue:
            fn = self._post_digest_queue.popleft()
            try:
                fn()
            except Exception:
                self._logger.exception("Post-digest callback failed: %r", fn)

    # ─── Evaluation ──────────────────────────────────────────────────────────

    def eval(self, expr: Callable[..., Any], locals: Any = None) -> Any:
        """Call expr(scope), or expr(scope, locals) when locals is given."""
        if locals is None:
            return expr(self)
        return expr(self, locals)

    def apply(self, expr: Callable[["Scope"], Any] | None = None) -> Any:
        """Evaluate expr, then digest, even if expr raised.

        A non-callable expr is ignored and apply returns None.
        """
        self._begin_phase("apply")
        try:
            if callable(expr):
                return self.eval(expr)
            return None
        finally:
            self._clear_phase()
            self.digest()

    def eval_async(self, expr: Callable[["Scope"], Any]) -> None:
        """Evaluate expr at the start of the next digest pass.

        If nothing is running and nothing was queued yet, a digest is
        scheduled on the deferred-task scheduler so expr runs even if no
        one calls digest().
        """
        was_idle = not self._phase and not self._async_queue
        self._async_queue.append(AsyncTask(self, expr))
        if was_idle:
            self._logger.debug("Deferred digest scheduled")
            resolve_scheduler(self._scheduler)(self._deferred_digest)

    def _deferred_digest(self) -> None:
        # The queue may have been drained by a digest that ran in between.
        if self._async_queue:
            self.digest()

    def post_digest(self, fn: Callable[[], Any]) -> None:
        """Run fn once, after the next digest settles."""
        self._post_digest_queue.append(fn)

    def __repr__(self) -> str:
        fields = {k: v for k, v in vars(self).items() if not k.startswith("_")}
        return f"Scope({fields!r}, watchers={len(self._watchers)}, phase={self._phase!r})"
