"""Exception types raised across the report pipeline."""

from __future__ import annotations


class TodoReportError(Exception):
    """Base class for errors raised by this package."""


class RenderError(TodoReportError):
    """A render job failed inside its worker slot."""


class PoolSetupError(TodoReportError):
    """The worker pool cannot be built or started."""


class DependencyError(PoolSetupError):
    """Raised when a required runtime dependency is missing."""


class PoolClosedError(TodoReportError):
    """Raised when submitting to a pool that is draining or shut down."""


class PersistenceError(TodoReportError):
    """Writing the stored copy of a report failed."""
