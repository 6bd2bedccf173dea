from streamform.streamer import MultipartStreamer
from streamform.streams import ComposedStream, Payload, Segment
from streamform.models import Request
from streamform.boundary import generate_boundary, validate_boundary, escape_quotes
from streamform.errors import (
    StreamformError,
    BoundaryError,
    StreamerSealedError,
    PayloadLengthError,
)

__all__ = [
    "MultipartStreamer",
    "ComposedStream",
    "Payload",
    "Segment",
    "Request",
    "generate_boundary",
    "validate_boundary",
    "escape_quotes",
    "StreamformError",
    "BoundaryError",
    "StreamerSealedError",
    "PayloadLengthError",
]
