"""
Shared metrics configuration for the asset gateway.
"""

from typing import Any, Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, Info


class MetricsCollector:
    """Centralized metrics collector for services.

    Each collector owns its registry so several service instances (tests,
    embedded apps) can coexist in one process without duplicate series.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        # Service info
        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        # Health check metrics
        self._metrics["health_check_total"] = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

        # Error metrics
        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        self._setup_gateway_metrics()

    def _setup_gateway_metrics(self):
        """Set up gateway-specific metrics."""
        self._metrics["cache_lookups_total"] = Counter(
            "cache_lookups_total",
            "Cache lookups by result",
            ["result"],
            registry=self.registry
        )

        self._metrics["store_operations_total"] = Counter(
            "store_operations_total",
            "Backing store operations",
            ["store", "operation", "outcome"],
            registry=self.registry
        )

        self._metrics["store_operation_duration_seconds"] = Histogram(
            "store_operation_duration_seconds",
            "Backing store operation duration in seconds",
            ["store", "operation"],
            registry=self.registry
        )

        self._metrics["cache_jobs_total"] = Counter(
            "cache_jobs_total",
            "Background cache jobs by outcome",
            ["kind", "outcome"],
            registry=self.registry
        )

        self._metrics["cache_jobs_dropped_total"] = Counter(
            "cache_jobs_dropped_total",
            "Background cache jobs dropped because the queue was full",
            ["kind"],
            registry=self.registry
        )

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).inc()

    def observe_histogram(self, metric_name: str, value: float, **labels):
        """Observe a histogram metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).observe(value)

    def sample(self, metric_name: str, **labels) -> Optional[float]:
        """Read the current value of a counter sample (None when never recorded)."""
        return self.registry.get_sample_value(metric_name, labels)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
