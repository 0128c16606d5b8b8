"""Monitoring and observability setup.

Tracing and metrics are exported over OTLP when ``OTEL_ENABLED`` is set.
With it off, the OpenTelemetry API hands out no-op tracers and meters, so
every counter and span below stays safe to use (tests run this way).

Exemplars are attached automatically to histograms recorded inside an
active trace, so a spike in ``marketplace.orders.amount`` links straight to
the order traces behind it.
"""
import logging
from opentelemetry import trace, metrics
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
import pyroscope

from farmdirect.config import (
    OTEL_ENABLED,
    OTEL_EXPORTER_OTLP_ENDPOINT,
    PROFILING_ENABLED,
    PYROSCOPE_SERVER,
    SERVICE_NAME,
)

logger = logging.getLogger(__name__)


def init_tracing() -> trace.Tracer:
    """
    Initialize OpenTelemetry tracing.

    Returns:
        Tracer instance
    """
    resource = Resource.create({"service.name": SERVICE_NAME})

    tracer_provider = TracerProvider(resource=resource)
    otlp_span_exporter = OTLPSpanExporter(
        endpoint=OTEL_EXPORTER_OTLP_ENDPOINT,
        insecure=True
    )
    tracer_provider.add_span_processor(BatchSpanProcessor(otlp_span_exporter))
    trace.set_tracer_provider(tracer_provider)

    logger.info(f"Tracing initialized with endpoint: {OTEL_EXPORTER_OTLP_ENDPOINT}")

    return trace.get_tracer(__name__)


def init_metrics() -> metrics.Meter:
    """
    Initialize OpenTelemetry metrics.

    Returns:
        Meter instance
    """
    resource = Resource.create({"service.name": SERVICE_NAME})

    otlp_metric_exporter = OTLPMetricExporter(
        endpoint=OTEL_EXPORTER_OTLP_ENDPOINT,
        insecure=True
    )
    otlp_metric_reader = PeriodicExportingMetricReader(
        otlp_metric_exporter,
        export_interval_millis=5000
    )

    meter_provider = MeterProvider(
        resource=resource,
        metric_readers=[otlp_metric_reader]
    )
    metrics.set_meter_provider(meter_provider)

    logger.info("Metrics initialized with OTLP exporter")

    return metrics.get_meter(__name__)


def init_profiling() -> None:
    """Initialize Pyroscope profiling."""
    if not PROFILING_ENABLED:
        return
    try:
        pyroscope.configure(
            application_name=SERVICE_NAME,
            server_address=PYROSCOPE_SERVER,
            tags={"env": "demo"}
        )
        logger.info(f"Profiling initialized with server: {PYROSCOPE_SERVER}")
    except Exception as e:
        logger.warning(f"Failed to initialize profiling: {e}")


# Initialize tracer and meter
if OTEL_ENABLED:
    tracer = init_tracing()
    meter = init_metrics()
else:
    tracer = trace.get_tracer(__name__)
    meter = metrics.get_meter(__name__)

# Business metrics using OpenTelemetry

# Catalog metrics
catalog_views_counter = meter.create_counter(
    "marketplace.catalog.views",
    description="Total number of catalog listings served, by category filter",
    unit="1"
)

product_writes_counter = meter.create_counter(
    "marketplace.products.writes",
    description="Product create/update/stock/delete operations by farmers",
    unit="1"
)

# Order metrics
orders_created_counter = meter.create_counter(
    "marketplace.orders.created",
    description="Total number of orders placed",
    unit="1"
)

order_amount_histogram = meter.create_histogram(
    "marketplace.orders.amount",
    description="Order total in INR",
    unit="INR"
)

order_failures_counter = meter.create_counter(
    "marketplace.orders.failures",
    description="Rejected order attempts by reason (not_found, insufficient_stock)",
    unit="1"
)

orders_cancelled_counter = meter.create_counter(
    "marketplace.orders.cancelled",
    description="Total number of orders cancelled by buyers",
    unit="1"
)

order_status_changes_counter = meter.create_counter(
    "marketplace.orders.status_changes",
    description="Order status updates by target status",
    unit="1"
)

# Market price metrics
market_price_updates_counter = meter.create_counter(
    "marketplace.market_prices.updates",
    description="Total number of market price updates",
    unit="1"
)

# Security monitoring metrics
auth_failures_counter = meter.create_counter(
    "marketplace.auth.failures",
    description="Total number of authentication failures",
    unit="1"
)

auth_attempts_counter = meter.create_counter(
    "marketplace.auth.attempts",
    description="Total number of authentication attempts",
    unit="1"
)

rate_limit_exceeded_counter = meter.create_counter(
    "marketplace.rate_limit.exceeded",
    description="Total number of rate limit violations",
    unit="1"
)

suspicious_activity_counter = meter.create_counter(
    "marketplace.security.suspicious_activity",
    description="Total number of suspicious activity detections",
    unit="1"
)
