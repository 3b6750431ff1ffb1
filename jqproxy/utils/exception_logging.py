"""
Utility functions for exception logging, particularly for chained transport errors.

httpx wraps httpcore failures (which in turn wrap OS errors), so the useful
part of a failure is often a few levels down the cause chain.
"""

import logging
from typing import Iterator, Optional

_MAX_CHAIN_DEPTH = 10


def _safe_str(obj) -> str:
    """
    Safely convert an object to string, handling cases where __str__ or __repr__ might fail.
    """
    try:
        return str(obj)
    except Exception:
        try:
            return repr(obj)
        except Exception:
            return f"<{type(obj).__name__} object (string conversion failed)>"


def iter_exception_chain(exception: Optional[BaseException]) -> Iterator[BaseException]:
    """Yield the exception followed by its causes, most recent first."""
    seen = set()
    current = exception
    while current is not None and id(current) not in seen and len(seen) < _MAX_CHAIN_DEPTH:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def format_exception_message(exception: Optional[BaseException]) -> str:
    """
    Format an exception message, falling back to the exception type when the
    message is empty (httpx timeouts and some connect errors carry no text).
    This function never raises.
    """
    if exception is None:
        return "None"
    try:
        for exc in iter_exception_chain(exception):
            text = _safe_str(exc).strip()
            if text:
                return text
        return type(exception).__name__
    except Exception:
        return f"<{type(exception).__name__} (formatting failed)>"


def log_exception_with_details(
    logger: logging.Logger,
    prefix: str,
    exception: BaseException,
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception including each link of its cause chain.

    Args:
        logger: The logger instance to use
        prefix: Prefix for the log message (e.g., "[Fetch]", "[Dispatch]")
        exception: The exception to log
        level: The logging level to use (default: ERROR)
    """
    try:
        chain = list(iter_exception_chain(exception))
        logger.log(
            level,
            f"{prefix} Exception: {type(exception).__name__}: {_safe_str(exception)}",
            exc_info=exception,
        )
        for i, cause in enumerate(chain[1:], start=1):
            logger.log(
                level, f"{prefix} Cause {i}: {type(cause).__name__}: {_safe_str(cause)}"
            )
    except Exception:
        try:
            logger.log(level, f"{prefix} Exception (logging details failed)")
        except Exception:
            pass
