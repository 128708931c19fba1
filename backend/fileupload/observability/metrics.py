"""Prometheus metrics for the upload service.

Defines and exposes operational metrics for monitoring and alerting.
"""

from prometheus_client import Counter, Histogram

# Upload outcomes
uploads_total = Counter(
    "fileupload_uploads_total",
    "Total number of upload requests by outcome",
    ["outcome"]  # accepted | no_file_provided | invalid_type | too_large | ...
)

upload_size_bytes = Histogram(
    "fileupload_upload_size_bytes",
    "Size of accepted uploads in bytes",
    buckets=[1024, 16 * 1024, 128 * 1024, 1024 ** 2, 4 * 1024 ** 2, 10 * 1024 ** 2, 50 * 1024 ** 2]
)

upload_duration_seconds = Histogram(
    "fileupload_upload_duration_seconds",
    "Time spent staging, validating and storing an upload",
    ["outcome"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)


def record_upload(outcome: str, duration_seconds: float, size_bytes: int = 0) -> None:
    """Record one finished upload request."""
    uploads_total.labels(outcome=outcome).inc()
    upload_duration_seconds.labels(outcome=outcome).observe(duration_seconds)
    if outcome == "accepted":
        upload_size_bytes.observe(size_bytes)
