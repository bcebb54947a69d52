import functools

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest


class MetricsManager:
    """
    Centralized Prometheus metrics manager for the SpamSift API.

    Attributes
    ----------
    registry : CollectorRegistry
        Prometheus registry that holds all defined metrics. If not provided,
        a new isolated registry is created.
    requests : Counter
        HTTP requests served, labeled by route, method and status code.
    predictions : Counter
        Predicted labels returned by `/predict`, labeled by label.
    reloads : Counter
        Model reload attempts, labeled by outcome ("ok" or an error kind).
    infer_time : Histogram
        Latency of model inference, in seconds.
    request_time : Histogram
        End-to-end request latency, labeled by route and method.
    payload_size : Histogram
        Incoming request payload sizes, in bytes.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry: CollectorRegistry = registry or CollectorRegistry()

        self.requests = Counter(
            "api_requests_total",
            "Total requests",
            ["route", "method", "status"],
            registry=self.registry,
        )

        self.predictions = Counter(
            "predictions_total",
            "Predicted labels",
            ["label"],
            registry=self.registry,
        )

        self.reloads = Counter(
            "model_reloads_total",
            "Model reload attempts",
            ["outcome"],
            registry=self.registry,
        )

        self.infer_time: Histogram = Histogram(
            "model_inference_seconds",
            "Latency of model inference",
            buckets=(0.001, 0.005, 0.01, 0.02, 0.05, 0.1, 0.25, 0.5, 1, 2, 5),
            registry=self.registry,
        )

        self.request_time: Histogram = Histogram(
            "request_latency_seconds",
            "End-to-end request latency",
            ["route", "method"],
            buckets=(0.005, 0.01, 0.02, 0.05, 0.1, 0.25, 0.5, 1, 2, 5),
            registry=self.registry,
        )

        self.payload_size: Histogram = Histogram(
            "request_payload_bytes",
            "Payload size in bytes",
            buckets=(128, 512, 1024, 4096, 16384, 65536),
            registry=self.registry,
        )

    def render(self) -> bytes:
        """Render all registered metrics in Prometheus' text exposition format."""
        return generate_latest(self.registry)


@functools.cache
def get_metrics_manager() -> MetricsManager:
    """
    Retrieve a cached global instance of the MetricsManager.

    All routes share the same Prometheus registry unless the dependency is
    overridden (e.g. in tests).
    """
    return MetricsManager()
