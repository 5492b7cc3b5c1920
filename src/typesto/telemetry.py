"""OpenTelemetry wiring for the typing engine."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock
from typing import cast

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.metrics import Counter, Histogram
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.trace import Span, Status, StatusCode, Tracer

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TelemetryConfig:
    """Normalized telemetry configuration used by runtime bootstrap."""

    enabled: bool = False
    service_name: str = "typesto"
    environment: str = "dev"
    otlp_endpoint: str | None = None
    sample_ratio: float = 1.0
    metrics_export_interval_ms: int = 60_000
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class _NoopCounter:
    """No-op metric instrument implementation."""

    def add(
        self, amount: int | float, attributes: Mapping[str, str] | None = None
    ) -> None:
        """Accept metric updates without side effects."""


@dataclass(slots=True)
class _NoopHistogram:
    """No-op metric instrument implementation."""

    def record(
        self, amount: int | float, attributes: Mapping[str, str] | None = None
    ) -> None:
        """Accept metric updates without side effects."""


class TraceContextFilter(logging.Filter):
    """Attach trace/span identifiers to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        span_context = trace.get_current_span().get_span_context()
        if not span_context.is_valid:
            record.trace_id = ""
            record.span_id = ""
            return True

        record.trace_id = f"{span_context.trace_id:032x}"
        record.span_id = f"{span_context.span_id:016x}"
        return True


@dataclass(slots=True)
class TelemetrySpan:
    """Thin wrapper so callers never touch a missing span."""

    _span: Span | None

    def set_attribute(self, key: str, value: str | bool | int | float) -> None:
        if self._span is not None:
            self._span.set_attribute(key, value)

    def record_exception(self, error: BaseException) -> None:
        """Record an exception and set error status."""
        if self._span is not None:
            self._span.record_exception(error)
            self._span.set_status(Status(StatusCode.ERROR, str(error)))


class TelemetryRuntime:
    """Process-wide telemetry runtime."""

    def __init__(
        self,
        *,
        enabled: bool,
        tracer: Tracer | None,
        tracer_provider: TracerProvider | None,
        meter_provider: MeterProvider | None,
    ) -> None:
        self._enabled = enabled
        self._tracer = tracer
        self._tracer_provider = tracer_provider
        self._meter_provider = meter_provider
        self._shutdown = False

        if enabled:
            meter = metrics.get_meter("typesto.telemetry")
            self._sessions_completed: Counter = meter.create_counter(
                name="typesto_sessions_completed_total",
                unit="1",
                description="Completed typing sessions by difficulty",
            )
            self._session_wpm: Histogram = meter.create_histogram(
                name="typesto_session_wpm",
                unit="1",
                description="Net WPM of completed sessions",
            )
            self._word_fetch_total: Counter = meter.create_counter(
                name="typesto_word_fetch_total",
                unit="1",
                description="Word list requests by source",
            )
            self._score_submit_total: Counter = meter.create_counter(
                name="typesto_score_submit_total",
                unit="1",
                description="Score submissions by result",
            )
        else:
            self._sessions_completed = cast(Counter, _NoopCounter())
            self._session_wpm = cast(Histogram, _NoopHistogram())
            self._word_fetch_total = cast(Counter, _NoopCounter())
            self._score_submit_total = cast(Counter, _NoopCounter())

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    @contextmanager
    def start_span(
        self,
        name: str,
        *,
        attributes: Mapping[str, str | bool | int | float] | None = None,
    ) -> Iterator[TelemetrySpan]:
        """Start a new span as current context."""
        if not self._enabled or self._tracer is None:
            yield TelemetrySpan(None)
            return

        with self._tracer.start_as_current_span(name, attributes=attributes) as span:
            yield TelemetrySpan(span)

    def record_session_completed(self, *, difficulty: str, wpm: int) -> None:
        attributes = {"difficulty": difficulty}
        self._sessions_completed.add(1, attributes=attributes)
        self._session_wpm.record(wpm, attributes=attributes)

    def record_word_fetch(self, *, source: str) -> None:
        """Record where a word list came from (``static``, ``remote``, ``fallback``)."""
        self._word_fetch_total.add(1, attributes={"source": source})

    def record_score_submit(self, *, result: str) -> None:
        self._score_submit_total.add(1, attributes={"result": result})

    def install_log_correlation(self) -> None:
        """Attach trace context fields to log records."""
        if not self._enabled:
            return

        root = logging.getLogger()
        for handler in root.handlers:
            if not any(isinstance(f, TraceContextFilter) for f in handler.filters):
                handler.addFilter(TraceContextFilter())

    def shutdown(self) -> None:
        """Flush and shutdown telemetry providers."""
        if self._shutdown:
            return
        if self._tracer_provider is not None:
            self._tracer_provider.shutdown()
        if self._meter_provider is not None:
            self._meter_provider.shutdown()
        self._shutdown = True


def _disabled_runtime() -> TelemetryRuntime:
    return TelemetryRuntime(
        enabled=False, tracer=None, tracer_provider=None, meter_provider=None
    )


_runtime_lock = Lock()
_runtime: TelemetryRuntime | None = None


def get_telemetry() -> TelemetryRuntime:
    """Return process telemetry runtime (disabled by default)."""
    global _runtime
    with _runtime_lock:
        if _runtime is None:
            _runtime = _disabled_runtime()
        return _runtime


def configure_telemetry(config: TelemetryConfig) -> TelemetryRuntime:
    """Configure global telemetry runtime once per process."""
    global _runtime

    with _runtime_lock:
        if _runtime is not None and _runtime.enabled and not _runtime.is_shutdown:
            return _runtime

        if not config.enabled:
            if _runtime is None:
                _runtime = _disabled_runtime()
            return _runtime

        resource = Resource.create(
            {
                "service.name": config.service_name,
                "deployment.environment": config.environment,
            }
        )
        sampler = ParentBased(TraceIdRatioBased(config.sample_ratio))
        tracer_provider = TracerProvider(resource=resource, sampler=sampler)

        if config.otlp_endpoint:
            endpoint = config.otlp_endpoint.rstrip("/")
            tracer_provider.add_span_processor(
                BatchSpanProcessor(
                    OTLPSpanExporter(
                        endpoint=endpoint + "/v1/traces", headers=dict(config.headers)
                    )
                )
            )
            metric_reader = PeriodicExportingMetricReader(
                exporter=OTLPMetricExporter(
                    endpoint=endpoint + "/v1/metrics", headers=dict(config.headers)
                ),
                export_interval_millis=config.metrics_export_interval_ms,
            )
            meter_provider = MeterProvider(
                resource=resource, metric_readers=[metric_reader]
            )
        else:
            meter_provider = MeterProvider(resource=resource)

        trace.set_tracer_provider(tracer_provider)
        metrics.set_meter_provider(meter_provider)

        _runtime = TelemetryRuntime(
            enabled=True,
            tracer=trace.get_tracer("typesto.telemetry"),
            tracer_provider=tracer_provider,
            meter_provider=meter_provider,
        )
        _runtime.install_log_correlation()

        logger.info(
            "OpenTelemetry enabled",
            extra={
                "service_name": config.service_name,
                "environment": config.environment,
                "otlp_endpoint": config.otlp_endpoint,
            },
        )
        return _runtime
