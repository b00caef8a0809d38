"""Exception types raised by the scheduling engine and its collaborators."""


class WakefulError(Exception):
    """Base class for all engine errors."""
    pass


class MalformedRequest(WakefulError, ValueError):
    """Raised when persisted or host-supplied notification data cannot be parsed."""
    pass


class WakePrimitiveFailure(WakefulError):
    """Raised when the platform refuses to arm (or cancel) a wake.

    The request stays persisted so a later restore pass can retry.
    """
    pass


class DisplayFailure(WakefulError):
    """Raised when rendering or displaying a notification fails.

    The fired record is written before display, so a failed occurrence
    is not re-delivered on the next restore.
    """
    pass
