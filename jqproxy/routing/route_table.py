from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Union

from jqproxy.errors import ConfigurationError
from jqproxy.models import Configuration, PathSpec


class RouteTable:
    """
    Exact-match lookup from request path to PathSpec.

    Built once at startup and never mutated afterwards, so it is shared by
    every request without locking.
    """

    __slots__ = ("_routes",)

    def __init__(self, routes: Mapping[str, PathSpec]):
        if not routes:
            raise ConfigurationError("No paths configured in config file.")
        self._routes = MappingProxyType(dict(routes))

    @classmethod
    def build(cls, source: Union[Configuration, Mapping[str, PathSpec]]) -> "RouteTable":
        routes = source.routes if isinstance(source, Configuration) else source
        return cls(routes)

    def lookup(self, path: str) -> Optional[PathSpec]:
        return self._routes.get(path)

    def paths(self) -> list[str]:
        return list(self._routes)

    def __contains__(self, path: object) -> bool:
        return path in self._routes

    def __iter__(self) -> Iterator[str]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)
