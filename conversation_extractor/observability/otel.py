"""OpenTelemetry + Prometheus fallback wiring for the conversation extractor."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from conversation_extractor import config

logger = logging.getLogger("conversation_extractor.observability")


_initialized = False
_enabled = False
_tracer: Any | None = None
_trace_provider: Any | None = None
_meter_provider: Any | None = None
_fastapi_instrumentor: Any | None = None

_extraction_counter: Any | None = None
_extraction_latency_hist: Any | None = None
_turns_counter: Any | None = None
_tokens_counter: Any | None = None
_cost_counter: Any | None = None

_prom_enabled = False
_prom_extraction_counter: Any | None = None
_prom_extraction_latency_hist: Any | None = None
_prom_turns_counter: Any | None = None
_prom_tokens_counter: Any | None = None
_prom_cost_counter: Any | None = None


def _normalize_otlp_endpoint(base_endpoint: str, signal_path: str) -> str:
    endpoint = (base_endpoint or "").strip()
    if not endpoint:
        return ""
    if endpoint.endswith(signal_path):
        return endpoint
    if endpoint.endswith("/"):
        endpoint = endpoint[:-1]
    if endpoint.endswith("/v1"):
        return f"{endpoint}{signal_path[3:]}"
    return f"{endpoint}{signal_path}"


def _prom_labels(**values: str) -> dict[str, str]:
    return {key: (value or "").strip() or "unknown" for key, value in values.items()}


def initialize(app: Any | None = None) -> None:
    global _initialized, _enabled, _tracer, _trace_provider, _meter_provider, _fastapi_instrumentor
    global _extraction_counter, _extraction_latency_hist, _turns_counter, _tokens_counter, _cost_counter
    global _prom_enabled
    global _prom_extraction_counter, _prom_extraction_latency_hist, _prom_turns_counter
    global _prom_tokens_counter, _prom_cost_counter

    if _initialized:
        if _enabled and app and _fastapi_instrumentor:
            _fastapi_instrumentor.instrument_app(app)
        return

    _initialized = True

    if not config.OTEL_ENABLED:
        logger.info("OpenTelemetry disabled (OPENCLAW_EXTRACTOR_OTEL_ENABLED=false)")
        return

    try:
        from opentelemetry import metrics, trace
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError as exc:
        logger.warning("OpenTelemetry dependencies unavailable: %s", exc)
        return

    traces_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/traces")
    metrics_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/metrics")
    service_name = config.OTEL_SERVICE_NAME or "conversation-extractor"

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.namespace": "openclaw",
        }
    )

    trace_provider = TracerProvider(resource=resource)
    trace_exporter = OTLPSpanExporter(endpoint=traces_endpoint or None)
    trace_provider.add_span_processor(BatchSpanProcessor(trace_exporter))
    trace.set_tracer_provider(trace_provider)
    tracer = trace.get_tracer("conversation_extractor")

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=metrics_endpoint or None)
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)
    meter = metrics.get_meter("conversation_extractor")

    _extraction_counter = meter.create_counter(
        "extractor_runs_total",
        unit="1",
        description="Count of extraction runs by mode and result",
    )
    _extraction_latency_hist = meter.create_histogram(
        "extractor_run_latency_ms",
        unit="ms",
        description="Latency of one extraction run",
    )
    _turns_counter = meter.create_counter(
        "extractor_turns_written_total",
        unit="1",
        description="Turns written to the output log",
    )
    _tokens_counter = meter.create_counter(
        "extractor_tokens_total",
        unit="1",
        description="Token totals observed in extracted turns",
    )
    _cost_counter = meter.create_counter(
        "extractor_cost_total",
        unit="usd",
        description="Cost totals observed in extracted turns",
    )

    _trace_provider = trace_provider
    _meter_provider = meter_provider
    _tracer = tracer
    _fastapi_instrumentor = FastAPIInstrumentor()
    _enabled = True

    if app:
        _fastapi_instrumentor.instrument_app(app)

    if config.PROM_PORT > 0:
        try:
            from prometheus_client import Counter, Histogram, start_http_server

            start_http_server(config.PROM_PORT)
            _prom_enabled = True
            _prom_extraction_counter = Counter(
                "extractor_runs_total",
                "Count of extraction runs by mode and result",
                ["mode", "result"],
            )
            _prom_extraction_latency_hist = Histogram(
                "extractor_run_latency_ms",
                "Latency of one extraction run",
                ["mode", "result"],
            )
            _prom_turns_counter = Counter(
                "extractor_turns_written_total",
                "Turns written to the output log",
                ["mode", "agent"],
            )
            _prom_tokens_counter = Counter(
                "extractor_tokens_total",
                "Token totals observed in extracted turns",
                ["model", "direction", "agent"],
            )
            _prom_cost_counter = Counter(
                "extractor_cost_total",
                "Cost totals observed in extracted turns",
                ["model", "agent"],
            )
            logger.info("Prometheus fallback metrics server listening on port %s", config.PROM_PORT)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Prometheus fallback not started: %s", exc)
            _prom_enabled = False

    logger.info(
        "OpenTelemetry initialized (service=%s endpoint=%s)",
        service_name,
        config.OTEL_ENDPOINT,
    )


def shutdown(app: Any | None = None) -> None:
    global _enabled
    if not _initialized:
        return
    try:
        if app and _fastapi_instrumentor:
            _fastapi_instrumentor.uninstrument_app(app)
    except Exception:
        logger.debug("FastAPI uninstrumentation failed", exc_info=True)
    try:
        if _meter_provider is not None:
            _meter_provider.shutdown()
    except Exception:
        logger.debug("Meter provider shutdown failed", exc_info=True)
    try:
        if _trace_provider is not None:
            _trace_provider.shutdown()
    except Exception:
        logger.debug("Trace provider shutdown failed", exc_info=True)
    _enabled = False


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None):
    if not _enabled or _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)
        yield span


def record_extraction(mode: str, result: str, duration_ms: float) -> None:
    labels = {"mode": mode or "unknown", "result": result or "unknown"}
    if _enabled and _extraction_counter is not None:
        _extraction_counter.add(1, labels)
    if _enabled and _extraction_latency_hist is not None:
        _extraction_latency_hist.record(max(0.0, float(duration_ms)), labels)
    if _prom_enabled and _prom_extraction_counter is not None:
        _prom_extraction_counter.labels(**_prom_labels(mode=mode, result=result)).inc()
    if _prom_enabled and _prom_extraction_latency_hist is not None:
        _prom_extraction_latency_hist.labels(**_prom_labels(mode=mode, result=result)).observe(
            max(0.0, float(duration_ms))
        )


def record_turns_written(mode: str, count: int, *, agent_id: str) -> None:
    safe_count = max(0, int(count))
    if safe_count == 0:
        return
    labels = {"mode": mode or "unknown", "agent_id": agent_id or "unknown"}
    if _enabled and _turns_counter is not None:
        _turns_counter.add(safe_count, labels)
    if _prom_enabled and _prom_turns_counter is not None:
        _prom_turns_counter.labels(**_prom_labels(mode=mode, agent=agent_id)).inc(safe_count)


def record_token_cost(
    *,
    agent_id: str,
    model: str,
    token_input: float,
    token_output: float,
    cost: float,
) -> None:
    labels_base = {
        "model": (model or "unknown").strip() or "unknown",
        "agent_id": agent_id or "unknown",
    }
    in_tokens = max(0, int(token_input))
    out_tokens = max(0, int(token_output))
    if _enabled and _tokens_counter is not None:
        if in_tokens > 0:
            _tokens_counter.add(in_tokens, {**labels_base, "direction": "input"})
        if out_tokens > 0:
            _tokens_counter.add(out_tokens, {**labels_base, "direction": "output"})
    if _enabled and _cost_counter is not None and cost > 0:
        _cost_counter.add(float(cost), labels_base)

    if _prom_enabled and _prom_tokens_counter is not None:
        prom_base = _prom_labels(model=model, agent=agent_id)
        if in_tokens > 0:
            _prom_tokens_counter.labels(**{**prom_base, "direction": "input"}).inc(in_tokens)
        if out_tokens > 0:
            _prom_tokens_counter.labels(**{**prom_base, "direction": "output"}).inc(out_tokens)
    if _prom_enabled and _prom_cost_counter is not None and cost > 0:
        _prom_cost_counter.labels(**_prom_labels(model=model, agent=agent_id)).inc(float(cost))
