"""Integration tests for /health and /metrics"""

import io
import json
import logging
import shutil
from collections import namedtuple

from fastapi.testclient import TestClient

from fileupload.observability import health
from fileupload.observability.health import (
    ComponentHealth,
    HealthStatus,
    check_directory_health,
    get_overall_health,
)
from fileupload.observability.logging_config import JSONFormatter, RequestIDFilter, configure_logging
from fileupload.observability.request_id import (
    accept_client_request_id,
    get_request_id,
    reset_request_id,
    set_request_id,
)

DiskUsage = namedtuple("DiskUsage", "total used free")


class TestHealthEndpoint:
    """Test directory health reporting"""

    def test_health_ok(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] in ("healthy", "degraded")
        assert set(data["components"]) == {"upload_dir", "staging_dir"}

    def test_missing_staging_dir_is_unhealthy(self, client: TestClient, staging_dir):
        shutil.rmtree(staging_dir)

        response = client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["components"]["staging_dir"]["status"] == "unhealthy"
        assert "missing" in data["components"]["staging_dir"]["message"].lower()


class TestMetricsEndpoint:
    """Test Prometheus exposition"""

    def test_metrics_format(self, client: TestClient):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "fileupload_uploads_total" in response.text

    def test_upload_outcomes_counted(self, client: TestClient, make_png):
        client.post("/upload", files={"uploadedFile": ("cat.png", io.BytesIO(make_png(100)), "image/png")})
        client.post("/upload", files={"uploadedFile": ("setup.exe", io.BytesIO(b"MZ"), "application/x-msdownload")})

        text = client.get("/metrics").text

        assert 'fileupload_uploads_total{outcome="accepted"}' in text
        assert 'fileupload_uploads_total{outcome="invalid_type"}' in text
        assert "fileupload_upload_size_bytes_bucket" in text


class TestRequestIdLogging:
    """Test request id propagation into log records"""

    def test_request_id_context(self):
        assert get_request_id() == "no-request-id"

        token = set_request_id("abc")
        try:
            assert get_request_id() == "abc"
        finally:
            reset_request_id(token)

        assert get_request_id() == "no-request-id"

    def test_untrusted_request_id_replaced(self):
        assert accept_client_request_id("ok-123") == "ok-123"
        assert accept_client_request_id("x" * 500) != "x" * 500
        assert accept_client_request_id("bad\nid") != "bad\nid"
        assert len(accept_client_request_id(None)) == 32

    def test_json_formatter_includes_request_id_and_extras(self):
        record = logging.LogRecord(
            name="fileupload.test", level=logging.INFO, pathname=__file__, lineno=1,
            msg="Upload accepted", args=(), exc_info=None,
        )
        record.upload_outcome = "accepted"
        record.final_name = "1-2-cat.png"

        token = set_request_id("req-42")
        try:
            RequestIDFilter().filter(record)
        finally:
            reset_request_id(token)

        data = json.loads(JSONFormatter().format(record))

        assert data["request_id"] == "req-42"
        assert data["level"] == "INFO"
        assert data["message"] == "Upload accepted"
        assert data["upload_outcome"] == "accepted"
        assert data["final_name"] == "1-2-cat.png"
        assert data["timestamp"].endswith("Z")

    def test_configure_logging_replaces_root_handlers(self):
        root_logger = logging.getLogger()
        saved_handlers, saved_level = root_logger.handlers[:], root_logger.level
        try:
            configure_logging(level="DEBUG", json_format=True)
            configure_logging(level="WARNING", json_format=False)

            assert len(root_logger.handlers) == 1
            assert root_logger.level == logging.WARNING
            assert logging.getLogger("uvicorn.error").propagate is True
        finally:
            root_logger.handlers[:] = saved_handlers
            root_logger.setLevel(saved_level)


class TestDirectoryHealth:
    """Test directory health rules"""

    def test_low_disk_space_is_degraded(self, tmp_path, monkeypatch):
        monkeypatch.setattr(health.shutil, "disk_usage", lambda path: DiskUsage(100, 99, 1))

        component = check_directory_health(tmp_path)

        assert component.status == HealthStatus.DEGRADED
        assert component.as_dict()["free_bytes"] == 1

    def test_worst_status_wins(self):
        healthy = ComponentHealth(HealthStatus.HEALTHY)
        degraded = ComponentHealth(HealthStatus.DEGRADED)
        unhealthy = ComponentHealth(HealthStatus.UNHEALTHY)

        assert get_overall_health({"a": healthy, "b": healthy}) == HealthStatus.HEALTHY
        assert get_overall_health({"a": healthy, "b": degraded}) == HealthStatus.DEGRADED
        assert get_overall_health({"a": degraded, "b": unhealthy}) == HealthStatus.UNHEALTHY
