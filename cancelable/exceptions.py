class Error(Exception):
    """Base class for all promise-related exceptions."""
    pass


class CancelledError(Error):
    """The promise was canceled.

    The reason passed to ``cancel()`` is kept in ``reason``.
    """

    def __init__(self, reason=None):
        Error.__init__(self, reason)
        self.reason = reason


class RejectedError(Error):
    """The promise was rejected with a reason that is not an exception."""

    def __init__(self, reason=None):
        Error.__init__(self, reason)
        self.reason = reason


class InvalidStateError(Error):
    """The operation is not allowed in this state."""
    pass
