class SchedulingError(RuntimeError):
    """Base class for scheduling errors surfaced to the host."""
    pass


class PreconditionViolation(SchedulingError):
    """Raised when a selection transition is invoked out of order."""
    pass


class StaleSelection(SchedulingError):
    """Raised when a fetched result no longer matches the current selection."""
    pass


class FetchFailure(SchedulingError):
    """Raised when the clinic API fails (timeouts, network errors, bad payloads)."""
    pass


class BookingConflict(SchedulingError):
    """Raised when the clinic API rejects a booking because the slot is taken."""
    pass


class BookingFailure(SchedulingError):
    """Raised when a booking submission fails for any other reason."""
    pass
