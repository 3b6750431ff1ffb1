"""
Runs a jq program over an upstream body.

The body is fed to jq as its native input, a stream of JSON texts, so both a
single document and JSON-lines work. Each result is serialized the way jq
prints it (compact JSON) and multiple results are joined by newlines.
"""

import logging
from typing import Union

import jq

from jqproxy.errors import TransformError

logger = logging.getLogger("uvicorn.error")

EMPTY_OUTPUT = "null"

# jq reports malformed input through the same exception type as filter errors
_INPUT_ERROR_MARKERS = ("parse error", "while parsing", "cannot be parsed")


def _decode(body: Union[bytes, str]) -> str:
    if isinstance(body, str):
        return body
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise TransformError(f"Upstream body is not valid UTF-8: {e}", kind="input")


def compile_filter(filter_expr: str):
    try:
        return jq.compile(filter_expr)
    except ValueError as e:
        raise TransformError(f"Failed to compile jq filter: {e}", kind="filter")


def apply(filter_expr: str, body: Union[bytes, str]) -> str:
    """Apply filter_expr to body and return the serialized JSON output."""
    text = _decode(body)
    if not text.strip():
        raise TransformError(
            "Failed to run jq: upstream body is empty or whitespace-only", kind="input"
        )

    program = compile_filter(filter_expr)
    try:
        output = program.input_text(text).text()
    except ValueError as e:
        message = str(e)
        kind = (
            "input"
            if any(marker in message.lower() for marker in _INPUT_ERROR_MARKERS)
            else "filter"
        )
        raise TransformError(f"Failed to run jq: {message}", kind=kind)

    if not output:
        logger.debug("[Transform] Filter produced no results, returning null")
        return EMPTY_OUTPUT
    return output
