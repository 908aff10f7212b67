"""
Prometheus metrics for the Drive upload action.

Metrics Provided:
    - drive_uploads_total: Counter for upload invocations by status
    - drive_upload_bytes_total: Counter for uploaded bytes
    - drive_upload_duration_seconds: Histogram for end-to-end upload latency
    - drive_api_requests_total: Counter for Drive/OAuth API calls
    - drive_stage_failures_total: Counter for failures by stage and kind

Collectors live in their own CollectorRegistry so that several
UploadMetrics instances (e.g. one per test) never collide on the global
default registry.

Usage:
    from drive_uploader.utils.metrics import get_metrics
    from drive_uploader.uploader import upload_to_drive

    metrics = get_metrics()
    result = upload_to_drive(request, metrics=metrics)

    # upload_to_drive times itself and records success or failure
    print(metrics.registry.get_sample_value("drive_uploads_total", {"status": "success"}))
"""

from contextlib import nullcontext
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, start_http_server

from drive_uploader.utils.config import get_config
from drive_uploader.utils.logging import get_logger

logger = get_logger(__name__)


class UploadMetrics:
    """
    Prometheus collectors for upload invocations.

    When disabled, every record_* call is a no-op and track_upload returns a
    null context.
    """

    def __init__(self, enabled: bool = True, registry: Optional[CollectorRegistry] = None) -> None:
        self.enabled = enabled
        self.registry = registry if registry is not None else CollectorRegistry()

        if not self.enabled:
            logger.debug("Metrics collection disabled")
            return

        self.uploads = Counter(
            name="drive_uploads_total",
            documentation="Total number of upload invocations",
            labelnames=["status"],  # success, failure
            registry=self.registry,
        )

        self.upload_bytes = Counter(
            name="drive_upload_bytes_total",
            documentation="Total bytes uploaded to Google Drive",
            registry=self.registry,
        )

        self.upload_duration = Histogram(
            name="drive_upload_duration_seconds",
            documentation="End-to-end time of an upload invocation",
            buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 900.0],
            registry=self.registry,
        )

        self.api_requests = Counter(
            name="drive_api_requests_total",
            documentation="Drive and OAuth API requests",
            labelnames=["operation", "status"],
            registry=self.registry,
        )

        self.stage_failures = Counter(
            name="drive_stage_failures_total",
            documentation="Upload failures by stage and error kind",
            labelnames=["stage", "kind"],
            registry=self.registry,
        )

    def track_upload(self):
        """Context manager timing one upload invocation."""
        if not self.enabled:
            return nullcontext()
        return self.upload_duration.time()

    def record_api_request(self, operation: str, status: str) -> None:
        """Count one API call; status is "ok", an HTTP status code or "error"."""
        if not self.enabled:
            return
        self.api_requests.labels(operation=operation, status=status).inc()

    def record_upload_success(self, bytes_uploaded: int) -> None:
        if not self.enabled:
            return
        self.uploads.labels(status="success").inc()
        self.upload_bytes.inc(bytes_uploaded)

    def record_upload_failure(self, stage: str, kind: str) -> None:
        """Record a failed invocation and the stage it failed in."""
        if not self.enabled:
            return
        self.uploads.labels(status="failure").inc()
        self.stage_failures.labels(stage=stage, kind=kind).inc()


# Global metrics instance (singleton)
_metrics_instance: Optional[UploadMetrics] = None


def get_metrics() -> UploadMetrics:
    """Get the process-level metrics instance, honouring config.metrics_enabled."""
    global _metrics_instance
    if _metrics_instance is None:
        _metrics_instance = UploadMetrics(enabled=get_config().metrics_enabled)
    return _metrics_instance


def start_metrics_server(port: int = 9090, addr: str = "0.0.0.0") -> None:
    """
    Expose the metrics registry over HTTP in a background thread.

    Args:
        port: Port to listen on
        addr: Address to bind to
    """
    metrics = get_metrics()
    logger.info(f"Starting Prometheus metrics server on {addr}:{port}")
    start_http_server(port=port, addr=addr, registry=metrics.registry)
