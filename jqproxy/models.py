from typing import Dict, Literal, Tuple
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_LISTEN = "0.0.0.0:8080"


class PathSpec(BaseModel):
    """Upstream source and jq filter for one configured path."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source_url: str
    filter: str = Field(alias="jq_filter")

    @field_validator("source_url")
    @classmethod
    def _absolute_http_url(cls, value: str) -> str:
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError("source_url must be an absolute http(s) URL")
        return value

    @field_validator("filter")
    @classmethod
    def _non_empty_filter(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("jq_filter must not be empty")
        return value


class Configuration(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    listen: str = DEFAULT_LISTEN
    mode: Literal["fetch", "forward"] = "fetch"
    routes: Dict[str, PathSpec] = Field(default_factory=dict, alias="paths")

    @field_validator("listen")
    @classmethod
    def _valid_listen(cls, value: str) -> str:
        split_listen(value)
        return value

    @field_validator("routes")
    @classmethod
    def _literal_paths(cls, value: Dict[str, PathSpec]) -> Dict[str, PathSpec]:
        for path in value:
            if not path.startswith("/"):
                raise ValueError(f"path '{path}' must start with '/'")
            if "{" in path or "}" in path:
                raise ValueError(f"path '{path}' must not contain '{{' or '}}'")
        return value

    @property
    def host(self) -> str:
        return split_listen(self.listen)[0]

    @property
    def port(self) -> int:
        return split_listen(self.listen)[1]


def split_listen(listen: str) -> Tuple[str, int]:
    """Split "host:port" (or "[v6]:port") into its parts."""
    host, sep, port = listen.rpartition(":")
    if not sep or not host:
        raise ValueError(f"listen address '{listen}' must be host:port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"listen address '{listen}' has an invalid port")
    if not 0 < port_number < 65536:
        raise ValueError(f"listen address '{listen}' has an invalid port")
    return host, port_number


class ErrorResponse(BaseModel):
    is_error: bool = True
    message: str
