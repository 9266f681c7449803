"""Errors raised by the readiness backfill engine.

Only setup-level problems surface as exceptions; per-bottle problems are
recorded on the job instead.
"""


class BackfillError(Exception):
    """Base exception for backfill engine errors."""
    pass


class InvalidBackfillRequest(BackfillError):
    """Raised when a run request has an unknown mode or out-of-range sizes."""
    pass


class AdminRequired(BackfillError):
    """Raised when the caller is not an administrator."""
    pass


class BackfillJobNotFound(BackfillError):
    """Raised when a job id does not exist."""
    pass


class BackfillJobLocked(BackfillError):
    """Raised when another invocation is already driving the same job."""
    pass


class BackfillJobConflict(BackfillError):
    """Raised when the job row changed under us between batches."""
    pass
