"""
Per-request pipeline: route lookup, upstream call, jq transform, response.

Received -> RouteResolved -> Fetched -> Transformed -> Responded, with any
stage able to short-circuit to an error response. Every request ends in
exactly one response; nothing propagates to the server except cancellation.
"""

import logging
from typing import Optional

import httpx
from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response
from opentelemetry import trace

from jqproxy import transform
from jqproxy.errors import FetchError, ProxyError, RouteNotFound, TransformError
from jqproxy.models import PathSpec
from jqproxy.responses import build_error, build_success
from jqproxy.routing import RouteTable
from jqproxy.upstream import FETCH_MODE, FORWARD_MODE, InboundRequest, fetch
from jqproxy.utils import redact_text, redact_url
from jqproxy.utils.exception_logging import log_exception_with_details
from jqproxy.utils.traced_requests import traced_request

logger = logging.getLogger("uvicorn.error")
tracer = trace.get_tracer(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"

_FETCH_STATUS = {
    "transport": 502,
    "timeout": 504,
    "decode": 502,
    "request": 400,
}


def status_for_error(error: ProxyError) -> int:
    """Map a pipeline error onto the HTTP status returned to the caller."""
    if isinstance(error, RouteNotFound):
        return 404
    if isinstance(error, FetchError):
        if error.kind == "status":
            status = error.upstream_status
            if status is not None and 400 <= status < 600:
                return status
            return 502
        return _FETCH_STATUS.get(error.kind, 502)
    if isinstance(error, TransformError):
        return 500
    return 500


async def inbound_from_request(request: Request) -> InboundRequest:
    return InboundRequest(
        method=request.method,
        headers=tuple(request.headers.items()),
        body=await request.body(),
        query=request.url.query,
    )


class Dispatcher:
    def __init__(
        self,
        route_table: RouteTable,
        client: httpx.AsyncClient,
        mode: str = FETCH_MODE,
        fail_fast: bool = True,
    ):
        self.route_table = route_table
        self.client = client
        self.mode = mode
        self.fail_fast = fail_fast

    def resolve(self, path: str) -> PathSpec:
        spec = self.route_table.lookup(path)
        if spec is None:
            raise RouteNotFound(path)
        return spec

    async def dispatch(self, request: Request) -> Response:
        path = request.url.path
        spec: Optional[PathSpec] = None
        with tracer.start_as_current_span("dispatch") as span:
            span.set_attribute("proxy.path", path)
            span.set_attribute("proxy.mode", self.mode)
            try:
                spec = self.resolve(path)
                response = await self._run(request, path, spec)
                span.set_attribute("proxy.response_status", response.status_code)
                return response
            except ProxyError as e:
                status_code = status_for_error(e)
                message = redact_text(e.message, spec.source_url) if spec else e.message
                span.set_attribute("proxy.error", e.stage)
                span.set_attribute("proxy.response_status", status_code)
                logger.warning(f"[Dispatch] {request.method} {path} -> {status_code}: {message}")
                return build_error(status_code, message)
            except Exception as e:
                log_exception_with_details(logger, f"[Dispatch] {request.method} {path}", e)
                span.set_attribute("proxy.error", "internal")
                span.set_attribute("proxy.response_status", 500)
                return build_error(500, INTERNAL_ERROR_MESSAGE)

    async def _run(self, request: Request, path: str, spec: PathSpec) -> Response:
        with traced_request(
            tracer,
            operation="fetch",
            path=path,
            source_url=spec.source_url,
            start_message=f"[Dispatch] {request.method} {path} -> {redact_url(spec.source_url)}",
        ):
            inbound = (
                await inbound_from_request(request) if self.mode == FORWARD_MODE else None
            )
            upstream = await fetch(self.client, spec, inbound, self.mode, self.fail_fast)

        with traced_request(
            tracer,
            operation="transform",
            path=path,
            source_url=None,
            start_message=f"[Dispatch] Applying filter for {path}",
            extra_attrs={"proxy.body_bytes": len(upstream.body)},
        ):
            output = await run_in_threadpool(transform.apply, spec.filter, upstream.body)

        if self.mode == FORWARD_MODE:
            status_code = upstream.status if not 200 <= upstream.status < 300 else 200
            return build_success(output, upstream.headers, status_code=status_code)
        return build_success(output)
