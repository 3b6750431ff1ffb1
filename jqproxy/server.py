import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import Info
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from jqproxy.config import load_config
from jqproxy.dispatcher import Dispatcher
from jqproxy.errors import RouteNotFound
from jqproxy.models import Configuration
from jqproxy.responses import build_error
from jqproxy.routing import RouteTable
from jqproxy.upstream import FETCH_MODE
from jqproxy.vars import (
    CONFIG_FILE,
    FORWARD_FAIL_FAST,
    METRICS_ENABLED,
    METRICS_PATH,
    OTLP_ENDPOINT,
    OTLP_HEADERS,
    SERVICE_NAME,
    UPSTREAM_TIMEOUT,
)

logger = logging.getLogger("uvicorn.error")

FORWARD_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

app_info = Info("jq_proxy_app_info", "Application Info")
_tracing_configured = False


def configure_tracing() -> None:
    """Install the tracer provider once per process; export via OTLP when configured."""
    global _tracing_configured
    if _tracing_configured:
        return
    tracer_provider = TracerProvider(
        resource=Resource.create({"service.name": SERVICE_NAME})
    )
    if OTLP_ENDPOINT:
        otlp_exporter = OTLPSpanExporter(
            endpoint=OTLP_ENDPOINT,
            headers=((OTLP_HEADERS).split(",") if OTLP_HEADERS else None),
        )
        tracer_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
    trace.set_tracer_provider(tracer_provider)
    _tracing_configured = True


def build_client() -> httpx.AsyncClient:
    """Shared upstream client; without UPSTREAM_TIMEOUT the httpx default timeout applies."""
    if UPSTREAM_TIMEOUT is None:
        return httpx.AsyncClient()
    return httpx.AsyncClient(timeout=httpx.Timeout(UPSTREAM_TIMEOUT))


def create_app(
    config: Configuration,
    *,
    client: Optional[httpx.AsyncClient] = None,
    enable_metrics: bool = METRICS_ENABLED,
    fail_fast: bool = FORWARD_FAIL_FAST,
) -> FastAPI:
    """
    Build the FastAPI app for a configuration.

    One route is registered per configured path. The route table and the
    upstream client are created here and shared by every request.
    """
    route_table = RouteTable.build(config)
    http_client = client or build_client()
    dispatcher = Dispatcher(route_table, http_client, config.mode, fail_fast)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await http_client.aclose()

    app = FastAPI(
        title=SERVICE_NAME,
        lifespan=lifespan,
        redirect_slashes=False,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = config
    app.state.route_table = route_table
    app.state.dispatcher = dispatcher

    methods = ["GET"] if config.mode == FETCH_MODE else FORWARD_METHODS
    for path in route_table:
        app.add_api_route(
            path,
            dispatcher.dispatch,
            methods=methods,
            name=path,
            include_in_schema=False,
        )
        logger.debug(f"Registered {','.join(methods)} {path}")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            message = RouteNotFound(request.url.path).message
        else:
            message = str(exc.detail)
        response = build_error(exc.status_code, message)
        if exc.headers:
            for name, value in exc.headers.items():
                response.headers[name] = value
        return response

    configure_tracing()
    FastAPIInstrumentor.instrument_app(app)

    if enable_metrics:
        if METRICS_PATH in route_table:
            logger.warning(
                f"Metrics endpoint disabled: {METRICS_PATH} is a configured proxy path"
            )
        else:
            Instrumentator().instrument(app).expose(
                app, endpoint=METRICS_PATH, include_in_schema=False
            )
    app_info.info({"app_name": SERVICE_NAME, "mode": config.mode})

    return app


def create_app_from_env() -> FastAPI:
    """Factory for `uvicorn --factory jqproxy.server:create_app_from_env`."""
    return create_app(load_config(CONFIG_FILE))
