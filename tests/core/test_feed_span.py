"""Tests for ical_filter.core.telemetry: initialization, feed spans and propagation."""

import httpx
import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

import ical_filter.core.telemetry as _telemetry_mod
from ical_filter.core.telemetry import feed_span, init_telemetry, inject_trace_context
from ical_filter.upstream import FeedClient

pytestmark = pytest.mark.unit


def _reset_otel_global_state():
    """Reset the OTel global tracer provider and the module-level install guard."""
    trace._TRACER_PROVIDER_SET_ONCE = trace.Once()
    trace._TRACER_PROVIDER = None
    _telemetry_mod._tracer_provider_installed = False


@pytest.fixture(autouse=True)
def _clean_tracer_provider():
    _reset_otel_global_state()
    yield
    _reset_otel_global_state()


@pytest.fixture
def exporter() -> InMemorySpanExporter:
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    return exporter


class TestInitTelemetry:
    def test_noop_without_endpoint(self, monkeypatch):
        monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)
        tracer = init_telemetry("ical-filter")
        with tracer.start_as_current_span("test-span") as span:
            assert span is not None
        assert not isinstance(trace.get_tracer_provider(), TracerProvider)
        assert _telemetry_mod._tracer_provider_installed is False


class TestFeedSpan:
    def test_context_manager_records_span(self, exporter):
        with feed_span("fetch", url="https://example.com/a.ics"):
            pass

        (span,) = exporter.get_finished_spans()
        assert span.name == "ical_filter.fetch"
        assert span.attributes["ical_filter.url"] == "https://example.com/a.ics"
        assert span.status.status_code == trace.StatusCode.UNSET

    def test_exception_sets_error_status(self, exporter):
        with pytest.raises(RuntimeError), feed_span("pipeline", filters=2):
            raise RuntimeError("boom")

        (span,) = exporter.get_finished_spans()
        assert span.status.status_code == trace.StatusCode.ERROR
        assert span.attributes["ical_filter.filters"] == 2
        assert any(event.name == "exception" for event in span.events)

    def test_span_is_current_inside_block(self, exporter):
        with feed_span("fetch") as span:
            assert trace.get_current_span() is span
        assert trace.get_current_span() is not span

    async def test_feed_client_fetch_runs_inside_fetch_span(self, exporter):
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers["traceparent"])
            return httpx.Response(200, text="BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            await FeedClient(http_client).fetch("https://example.com/a.ics")

        (span,) = exporter.get_finished_spans()
        assert span.name == "ical_filter.fetch"
        assert span.attributes["ical_filter.url"] == "https://example.com/a.ics"
        assert format(span.context.trace_id, "032x") in seen[0]


class TestInjectTraceContext:
    def test_empty_without_active_span(self):
        assert inject_trace_context() == {}

    def test_traceparent_inside_span(self, exporter):
        with feed_span("fetch") as span:
            headers = inject_trace_context()
        trace_id = format(span.get_span_context().trace_id, "032x")
        assert trace_id in headers["traceparent"]
