import pytest

from gemini_insights.telemetry import (
    InMemoryReporter,
    TelemetryContext,
    telemetry_enabled,
)


class ExplodingReporter:
    def record_timing(self, scope, duration, **metadata):
        raise RuntimeError("reporter down")

    def record_metric(self, scope, value, **metadata):
        raise RuntimeError("reporter down")


@pytest.mark.unit
def test_disabled_context_records_nothing():
    reporter = InMemoryReporter()
    tele = TelemetryContext(reporter)

    assert telemetry_enabled() is False
    with tele("outer"):
        tele.count("events")

    assert not reporter.timings
    assert not reporter.metrics


@pytest.mark.unit
@pytest.mark.parametrize("variable", ["GEMINI_INSIGHTS_TELEMETRY", "DEBUG"])
def test_enabled_context_builds_nested_scope_paths(monkeypatch, variable):
    monkeypatch.setenv(variable, "1")
    reporter = InMemoryReporter()
    tele = TelemetryContext(reporter)

    with tele("outer"):
        with tele("inner", task="riskAnalysis"):
            tele.count("events", 2)
        tele.gauge("size", 7)

    assert set(reporter.timings) == {"outer", "outer.inner"}
    assert reporter.total("outer.inner.events") == 2
    assert reporter.total("outer.size") == 7
    assert "outer.inner" in reporter.get_report()


@pytest.mark.unit
def test_enabled_context_without_reporters_is_a_no_op(monkeypatch):
    monkeypatch.setenv("GEMINI_INSIGHTS_TELEMETRY", "1")
    tele = TelemetryContext()

    with tele("scope"):
        tele.count("events")


@pytest.mark.unit
def test_reporter_failures_do_not_escape(monkeypatch):
    monkeypatch.setenv("GEMINI_INSIGHTS_TELEMETRY", "1")
    reporter = InMemoryReporter()
    tele = TelemetryContext(ExplodingReporter(), reporter)

    with tele("scope"):
        tele.count("events")

    assert reporter.total("scope.events") == 1
