class StreamformError(Exception):
    """Base error for streamform."""


class BoundaryError(StreamformError, ValueError):
    """Raised when a boundary token is not valid for multipart framing."""


class StreamerSealedError(StreamformError, RuntimeError):
    """Raised when a streamer is modified or read again after get_stream()."""


class PayloadLengthError(StreamformError, ValueError):
    """Raised when a declared payload length is unusable or does not match the source."""
