import logging
from unittest.mock import Mock

import httpx

from jqproxy.utils.exception_logging import (
    format_exception_message,
    iter_exception_chain,
    log_exception_with_details,
)


class BrokenStrException(Exception):
    """An exception that breaks when __str__ is called."""

    def __str__(self):
        raise RuntimeError("Cannot convert to string!")

    def __repr__(self):
        return "BrokenStrException(cannot convert to string)"


def _chained() -> Exception:
    try:
        try:
            raise ConnectionRefusedError(111, "Connection refused")
        except OSError as inner:
            raise httpx.ConnectError("") from inner
    except httpx.ConnectError as e:
        return e


def test_iter_exception_chain_follows_causes():
    exc = _chained()
    chain = list(iter_exception_chain(exc))
    assert [type(e) for e in chain] == [httpx.ConnectError, ConnectionRefusedError]


def test_iter_exception_chain_handles_cycles():
    a = ValueError("a")
    b = ValueError("b")
    a.__cause__ = b
    b.__cause__ = a
    assert list(iter_exception_chain(a)) == [a, b]


def test_format_uses_first_non_empty_message():
    assert "Connection refused" in format_exception_message(_chained())


def test_format_falls_back_to_type_name():
    assert format_exception_message(httpx.ReadTimeout("")) == "ReadTimeout"


def test_format_none():
    assert format_exception_message(None) == "None"


def test_format_broken_str():
    assert (
        format_exception_message(BrokenStrException())
        == "BrokenStrException(cannot convert to string)"
    )


def test_log_exception_with_details_logs_causes():
    logger = Mock(spec=logging.Logger)
    log_exception_with_details(logger, "[Fetch]", _chained())

    messages = [call.args[1] for call in logger.log.call_args_list]
    assert messages[0].startswith("[Fetch] Exception: ConnectError")
    assert messages[1].startswith("[Fetch] Cause 1: ConnectionRefusedError")


def test_log_exception_with_details_never_raises():
    logger = Mock(spec=logging.Logger)
    logger.log.side_effect = RuntimeError("logging is broken")

    log_exception_with_details(logger, "[Fetch]", ValueError("x"))
