import os

SERVICE_NAME = os.getenv("SERVICE_NAME", "jq-proxy")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def _parse_timeout(raw: str):
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


# Seconds; None keeps the httpx transport default
UPSTREAM_TIMEOUT = _parse_timeout(os.getenv("UPSTREAM_TIMEOUT", ""))
FORWARD_FAIL_FAST = os.getenv("FORWARD_FAIL_FAST", "true").lower() == "true"

METRICS_ENABLED = os.getenv("METRICS_ENABLED", "true").lower() == "true"
METRICS_PATH = os.getenv("METRICS_PATH", "/metrics")

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")

# Used by the uvicorn factory entry point
CONFIG_FILE = os.getenv("CONFIG_FILE", "config.yaml")
