import importlib


def _reload():
    import jqproxy.vars as vars_module

    return importlib.reload(vars_module)


def test_defaults(monkeypatch):
    for name in ("UPSTREAM_TIMEOUT", "FORWARD_FAIL_FAST", "METRICS_PATH", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    vars_module = _reload()

    assert vars_module.UPSTREAM_TIMEOUT is None
    assert vars_module.FORWARD_FAIL_FAST is True
    assert vars_module.METRICS_PATH == "/metrics"
    assert vars_module.LOG_LEVEL == "INFO"


def test_upstream_timeout_parsing(monkeypatch):
    monkeypatch.setenv("UPSTREAM_TIMEOUT", "2.5")
    assert _reload().UPSTREAM_TIMEOUT == 2.5

    monkeypatch.setenv("UPSTREAM_TIMEOUT", "soon")
    assert _reload().UPSTREAM_TIMEOUT is None

    monkeypatch.setenv("UPSTREAM_TIMEOUT", "0")
    assert _reload().UPSTREAM_TIMEOUT is None


def test_forward_fail_fast_disabled(monkeypatch):
    monkeypatch.setenv("FORWARD_FAIL_FAST", "False")
    assert _reload().FORWARD_FAIL_FAST is False
    monkeypatch.delenv("FORWARD_FAIL_FAST")
    _reload()
