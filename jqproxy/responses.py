from typing import Iterable, Optional, Tuple

from fastapi.responses import JSONResponse, Response

from jqproxy.models import ErrorResponse
from jqproxy.upstream.fetcher import HOP_BY_HOP_HEADERS, connection_tokens

JSON_MEDIA_TYPE = "application/json"

# The body was re-serialized by jq and already decoded by httpx
_BODY_HEADERS = {"content-type", "content-length", "content-encoding"}

# Written by the ASGI server on every response
_SERVER_HEADERS = {"date", "server"}


def response_headers(headers: Iterable[Tuple[str, str]]) -> list[Tuple[str, str]]:
    """Upstream headers to copy onto the response, in order, duplicates kept."""
    headers = list(headers)
    excluded = (
        HOP_BY_HOP_HEADERS | _BODY_HEADERS | _SERVER_HEADERS | connection_tokens(headers)
    )
    return [(name, value) for name, value in headers if name.lower() not in excluded]


def build_success(
    output: str,
    upstream_headers: Optional[Iterable[Tuple[str, str]]] = None,
    status_code: int = 200,
) -> Response:
    response = Response(
        content=output, status_code=status_code, media_type=JSON_MEDIA_TYPE
    )
    if upstream_headers:
        for name, value in response_headers(upstream_headers):
            response.headers.append(name, value)
    return response


def build_error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump(),
    )
