"""Exceptions raised by the scheduling core."""


class SchedulingError(Exception):
    """Base class for scheduling errors."""


class InvalidSchedulingInput(SchedulingError, ValueError):
    """Raised for malformed durations, granularities, clock values or schedules."""


class ProfessionalNotFoundError(SchedulingError, LookupError):
    """Raised when a professional does not exist in the store."""


class StoreError(SchedulingError):
    """Raised when the store cannot complete a read or write."""


class AppointmentConflictError(SchedulingError):
    """Raised when a write would overlap an existing appointment of the same professional and day."""
