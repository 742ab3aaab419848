"""scopewatch: dirty-checking change detection for Python."""

from importlib.metadata import version as _version

__version__ = _version("scopewatch")

from scopewatch.errors import (
    ScopeError,
    WatchFnRequiredError,
    PhaseConflictError,
    DigestIterationError,
)
from scopewatch.equality import are_equal
from scopewatch.scheduler import set_scheduler, flush_deferred, get_pending_count
from scopewatch.scope import Scope, DIGEST_TTL
# textual NOT auto-imported — opt-in only

__all__ = [
    "Scope",
    "DIGEST_TTL",
    "are_equal",
    "set_scheduler",
    "flush_deferred",
    "get_pending_count",
    "ScopeError",
    "WatchFnRequiredError",
    "PhaseConflictError",
    "DigestIterationError",
]
