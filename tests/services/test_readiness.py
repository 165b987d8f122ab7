import pytest
import requests

import dumbrouter_ops.services.readiness as readiness_module
from dumbrouter_ops.errors import OpsError
from dumbrouter_ops.services.readiness import ReadinessProbe


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None


class FakeResponse:
    status_code = 404

    def close(self):
        return None


class FakeRequests:
    RequestException = requests.RequestException

    def __init__(self, failures):
        self.failures = failures
        self.calls = 0

    def get(self, url, timeout):
        self.calls += 1
        if self.calls <= self.failures:
            raise requests.ConnectionError("connection refused")
        return FakeResponse()


def test_probe_returns_on_any_http_response(monkeypatch):
    monkeypatch.setattr(readiness_module.time, "sleep", lambda *_args: None)
    fake = FakeRequests(failures=2)
    probe = ReadinessProbe(logger=DummyLogger(), requests_module=fake)

    probe.wait("http://127.0.0.1:8093/", timeout=30)

    assert fake.calls == 3


def test_probe_gives_up_after_timeout(monkeypatch):
    clock = {"now": 0.0}

    def fake_sleep(seconds):
        clock["now"] += seconds

    monkeypatch.setattr(readiness_module.time, "sleep", fake_sleep)
    monkeypatch.setattr(readiness_module.time, "monotonic", lambda: clock["now"])
    probe = ReadinessProbe(logger=DummyLogger(), requests_module=FakeRequests(failures=10 ** 6))

    with pytest.raises(OpsError, match="did not answer within 1.0s"):
        probe.wait("http://127.0.0.1:8093/", timeout=1.0)
