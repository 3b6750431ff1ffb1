from typing import Optional


class ProxyError(Exception):
    """Base class for all errors raised by the proxy pipeline."""

    stage = "proxy"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(ProxyError):
    """Configuration could not be read, parsed or validated. Fatal at startup."""

    stage = "config"


class RouteNotFound(ProxyError):
    stage = "route"

    def __init__(self, path: str):
        super().__init__(f"No route configured for path '{path}'")
        self.path = path


class FetchError(ProxyError):
    """
    The upstream call failed.

    kind is one of "transport", "timeout", "status", "decode" or "request".
    For kind "status" the upstream status code is kept in upstream_status.
    """

    stage = "fetch"

    def __init__(
        self, message: str, kind: str = "transport", upstream_status: Optional[int] = None
    ):
        super().__init__(message)
        self.kind = kind
        self.upstream_status = upstream_status


class TransformError(ProxyError):
    """The jq filter could not be applied. kind is "input" or "filter"."""

    stage = "transform"

    def __init__(self, message: str, kind: str = "filter"):
        super().__init__(message)
        self.kind = kind
