import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import httpx
from opentelemetry import trace

from jqproxy.errors import FetchError
from jqproxy.models import PathSpec
from jqproxy.utils import redact_url
from jqproxy.utils.exception_logging import format_exception_message

logger = logging.getLogger("uvicorn.error")
tracer = trace.get_tracer(__name__)

Header = Tuple[str, str]

FETCH_MODE = "fetch"
FORWARD_MODE = "forward"

# Hop-by-hop headers that should NOT be forwarded (RFC 7230 section 6.1)
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}

# Set by the outbound client itself
REQUEST_MANAGED_HEADERS = {"host", "content-length", "accept-encoding"}


@dataclass(frozen=True)
class InboundRequest:
    """The parts of the caller's request that forward mode mirrors upstream."""

    method: str = "GET"
    headers: Sequence[Header] = field(default_factory=tuple)
    body: bytes = b""
    query: str = ""


@dataclass(frozen=True)
class UpstreamResult:
    status: int
    headers: List[Header]
    body: bytes


def connection_tokens(headers: Sequence[Header]) -> set[str]:
    """Header names listed in Connection are hop-by-hop for this message too."""
    tokens = set()
    for name, value in headers:
        if name.lower() == "connection":
            tokens.update(t.strip().lower() for t in value.split(",") if t.strip())
    return tokens


def prepare_headers(headers: Sequence[Header]) -> List[Header]:
    """
    Prepare inbound headers for forwarding to the upstream.
    Keeps order and duplicates; drops hop-by-hop and client-managed headers.
    """
    excluded = HOP_BY_HOP_HEADERS | REQUEST_MANAGED_HEADERS | connection_tokens(headers)
    return [(name, value) for name, value in headers if name.lower() not in excluded]


def get_target_url(source_url: str, query: str) -> str:
    """Append the inbound query string to the configured source URL."""
    if not query:
        return source_url
    base, _, fragment = source_url.partition("#")
    separator = "&" if "?" in base else "?"
    if base.endswith("?") or base.endswith("&"):
        separator = ""
    target = f"{base}{separator}{query}"
    return f"{target}#{fragment}" if fragment else target


def _status_error(response: httpx.Response, url: str) -> FetchError:
    reason = response.reason_phrase or ""
    return FetchError(
        f"Upstream {redact_url(url)} responded with status "
        f"{response.status_code} {reason}".rstrip(),
        kind="status",
        upstream_status=response.status_code,
    )


async def _send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    headers: Optional[List[Header]] = None,
    content: Optional[bytes] = None,
    follow_redirects: bool = False,
) -> httpx.Response:
    """Issue exactly one outbound request, translating httpx failures into FetchError."""
    safe_url = redact_url(url)
    try:
        return await client.request(
            method,
            url,
            headers=headers,
            content=content,
            follow_redirects=follow_redirects,
        )
    except httpx.TimeoutException as e:
        logger.warning(f"[Fetch] Timeout calling {safe_url}: {format_exception_message(e)}")
        raise FetchError(f"Timed out calling upstream {safe_url}", kind="timeout") from e
    except (httpx.LocalProtocolError, UnicodeEncodeError) as e:
        logger.warning(
            f"[Fetch] Request could not be sent to {safe_url}: {format_exception_message(e)}"
        )
        raise FetchError(
            f"Request could not be forwarded to upstream {safe_url}: "
            f"{format_exception_message(e)}",
            kind="request",
        ) from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(f"[Fetch] Failed to call {safe_url}: {format_exception_message(e)}")
        raise FetchError(
            f"Failed to fetch upstream {safe_url}: {format_exception_message(e)}",
            kind="transport",
        ) from e


def _result(response: httpx.Response) -> UpstreamResult:
    return UpstreamResult(
        status=response.status_code,
        headers=list(response.headers.multi_items()),
        body=response.content,
    )


async def fetch_source(client: httpx.AsyncClient, spec: PathSpec) -> UpstreamResult:
    """
    Fetch mode: GET the configured source URL, ignoring the inbound request.

    Any non-2xx final status and any body that is not valid UTF-8 is a hard failure.
    """
    with tracer.start_as_current_span("upstream_fetch") as span:
        span.set_attribute("proxy.mode", FETCH_MODE)
        span.set_attribute("proxy.target_url", redact_url(spec.source_url))

        response = await _send(client, "GET", spec.source_url, follow_redirects=True)
        span.set_attribute("proxy.status_code", response.status_code)

        if not response.is_success:
            raise _status_error(response, spec.source_url)

        try:
            response.content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FetchError(
                f"Upstream {redact_url(spec.source_url)} returned a body that is not valid UTF-8",
                kind="decode",
            ) from e

        return _result(response)


async def forward_request(
    client: httpx.AsyncClient,
    spec: PathSpec,
    inbound: InboundRequest,
    fail_fast: bool = True,
) -> UpstreamResult:
    """
    Forward mode: mirror the inbound method, headers and body onto the source URL.

    Redirects are returned as-is. With fail_fast a non-2xx upstream status is a FetchError;
    otherwise the upstream status is handed back for the caller to keep.
    """
    target_url = get_target_url(spec.source_url, inbound.query)
    with tracer.start_as_current_span("upstream_forward") as span:
        span.set_attribute("proxy.mode", FORWARD_MODE)
        span.set_attribute("proxy.method", inbound.method)
        span.set_attribute("proxy.target_url", redact_url(target_url))

        logger.debug(f"[Fetch] Forwarding {inbound.method} -> {redact_url(target_url)}")

        response = await _send(
            client,
            inbound.method,
            target_url,
            headers=prepare_headers(inbound.headers),
            content=inbound.body or None,
        )
        span.set_attribute("proxy.status_code", response.status_code)

        if fail_fast and not response.is_success:
            raise _status_error(response, target_url)

        return _result(response)


async def fetch(
    client: httpx.AsyncClient,
    spec: PathSpec,
    inbound: Optional[InboundRequest] = None,
    mode: str = FETCH_MODE,
    fail_fast: bool = True,
) -> UpstreamResult:
    if mode == FORWARD_MODE:
        return await forward_request(client, spec, inbound or InboundRequest(), fail_fast)
    return await fetch_source(client, spec)
