"""Textual integration for scopewatch. Opt-in — requires textual.

Deferred digests go through the app's message loop, and listeners that
touch widgets are guarded: skipped while the app is not running or while
widgets are being replaced, with NoMatches from widget queries swallowed.
"""

import logging
from contextlib import contextmanager

from textual.css.query import NoMatches

logger = logging.getLogger("scopewatch.textual")

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


def bind(app, scope):
    """Schedule the scope's deferred digests on the app's message loop."""
    scope.scheduler = app.call_later
    return scope


@contextmanager
def pause(app):
    """Suspend guarded listeners during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def watch(app, scope, watch_fn, listener_fn, value_eq=False):
    """scope.watch() with a listener that safely touches Textual widgets.

    Returns the deregistration function.
    """

    def _guarded(new_value, old_value, scope):
        if not is_safe(app):
            return
        try:
            listener_fn(new_value, old_value, scope)
        except NoMatches:
            logger.debug("Widget query missed during listener %r", listener_fn)

    return scope.watch(watch_fn, _guarded, value_eq)
