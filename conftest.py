# Ensure tests import modules from this service directory first, so
# `import jqproxy.*` resolves to the working tree rather than an installed copy.
import os
import sys

import httpx
import pytest

SERVICE_ROOT = os.path.dirname(__file__)

if SERVICE_ROOT not in sys.path:
    sys.path.insert(0, SERVICE_ROOT)

from jqproxy.models import Configuration  # noqa: E402


@pytest.fixture
def make_config():
    """Build a Configuration from plain data, the way the YAML loader would."""

    def _make(paths=None, mode="fetch", listen="127.0.0.1:8080"):
        if paths is None:
            paths = {
                "/foo": {
                    "source_url": "http://upstream.test/foo.json",
                    "jq_filter": ".foo",
                }
            }
        return Configuration.model_validate(
            {"listen": listen, "mode": mode, "paths": paths}
        )

    return _make


@pytest.fixture
def upstream_response():
    """Create a real httpx Response as an upstream would send it."""

    def _create(
        status_code=200, json=None, content=None, headers=None, url="http://upstream.test/"
    ):
        kwargs = {"headers": headers, "request": httpx.Request("GET", url)}
        if json is not None:
            kwargs["json"] = json
        else:
            kwargs["content"] = content if content is not None else b""
        return httpx.Response(status_code, **kwargs)

    return _create
