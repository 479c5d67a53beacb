import pytest
import structlog

from fundplanner.logging_setup import SERVICE_NAME, configure_logging
from fundplanner.observability import init_observability, xray_segment


def test_xray_disabled_by_default():
    assert init_observability() is None
    with xray_segment("capacity") as seg:
        seg.annotate("stage", "capacity")
    assert seg.sub is None


def test_segment_never_swallows_errors():
    with pytest.raises(ValueError):
        with xray_segment("allocation"):
            raise ValueError("bad weights")


def test_xray_enabled_opens_subsegment(monkeypatch):
    monkeypatch.setenv("USE_XRAY", "1")
    calls = []

    class FakeSub:
        def put_annotation(self, k, v):
            calls.append(("annotate", k, v))

        def add_exception(self, exc, stack):
            calls.append(("exception", type(exc).__name__))

    class FakeRecorder:
        def begin_subsegment(self, name):
            calls.append(("begin", name))
            return FakeSub()

        def end_subsegment(self):
            calls.append(("end",))

    monkeypatch.setattr("aws_xray_sdk.core.xray_recorder", FakeRecorder())
    with pytest.raises(RuntimeError):
        with xray_segment("schemes") as seg:
            seg.annotate("generator", "stub")
            raise RuntimeError("late")
    assert calls == [("begin", "schemes"), ("annotate", "generator", "stub"),
                     ("exception", "RuntimeError"), ("end",)]


def test_configure_logging_binds_service(monkeypatch):
    monkeypatch.setenv("ENV", "test")
    ctx = structlog.get_context(configure_logging("INFO"))
    assert ctx == {"service": SERVICE_NAME, "env": "test"}
