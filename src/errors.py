class EntropyError(Exception):
    """
    Base class for all errors raised by the entropy analysis core.
    """


class InvalidConfiguration(EntropyError, ValueError):
    """
    Raised when the window size, stride or canvas dimensions are unusable.
    Always raised before any byte is read.
    """


class IllegalState(EntropyError, RuntimeError):
    """
    Raised when a sliding window is advanced after it reached end-of-stream.
    """


class IoFailure(EntropyError, IOError):
    """
    Raised when the underlying byte source fails. The original OSError is
    available as __cause__.
    """


class Cancelled(EntropyError):
    """
    Raised by a byte source that observed a cancellation request.
    """


class InvalidInput(EntropyError, ValueError):
    """
    Raised for an empty window or a NaN entropy sample.
    """
