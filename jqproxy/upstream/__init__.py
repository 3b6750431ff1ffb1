from .fetcher import (
    FETCH_MODE,
    FORWARD_MODE,
    HOP_BY_HOP_HEADERS,
    InboundRequest,
    UpstreamResult,
    fetch,
    fetch_source,
    forward_request,
)

__all__ = [
    "FETCH_MODE",
    "FORWARD_MODE",
    "HOP_BY_HOP_HEADERS",
    "InboundRequest",
    "UpstreamResult",
    "fetch",
    "fetch_source",
    "forward_request",
]
