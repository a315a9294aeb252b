"""Tests for API middleware and logging setup."""
import logging
from logging.handlers import RotatingFileHandler

import pytest

# Skip entire module if fastapi not installed
pytest.importorskip("fastapi")

from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.log_rotation import configure_logging, setup_log_rotation
from api.middleware import BodySizeLimitMiddleware, RequestIdLogFilter, get_request_id


class TestRequestTracingMiddleware:
    """Tests for request tracing middleware."""

    def test_request_id_header_returned(self, client, auth_headers):
        response = client.get("/api/data", headers=auth_headers)
        assert len(response.headers["X-Request-ID"]) > 0
        assert response.headers["X-Response-Time"].endswith("s")

    def test_custom_request_id_preserved(self, client, auth_headers):
        response = client.get("/api/data", headers={**auth_headers, "X-Request-ID": "test-request-123"})
        assert response.headers["X-Request-ID"] == "test-request-123"

    def test_access_line_logged(self, client, auth_headers, caplog):
        caplog.handler.addFilter(RequestIdLogFilter())
        with caplog.at_level(logging.INFO, logger="api.middleware.request_tracing"):
            client.get("/api/data", headers={**auth_headers, "X-Request-ID": "trace-me"})

        access = [r for r in caplog.records if r.name == "api.middleware.request_tracing"]
        assert any(
            r.getMessage().startswith("GET /api/data 404") and r.request_id == "trace-me"
            for r in access
        )

    def test_store_log_lines_carry_request_id(self, client, auth_headers, caplog):
        caplog.handler.addFilter(RequestIdLogFilter())
        with caplog.at_level(logging.INFO):
            client.post("/api/data", json={"v": 1}, headers={**auth_headers, "X-Request-ID": "save-42"})
            client.get("/api/data", headers={**auth_headers, "X-Request-ID": "read-43"})

        writes = [r for r in caplog.records if "Writing backup slot" in r.getMessage()]
        reads = [r for r in caplog.records if "Reading latest backup" in r.getMessage()]
        assert [r.request_id for r in writes] == ["save-42"]
        assert [r.request_id for r in reads] == ["read-43"]

    def test_no_request_id_outside_requests(self):
        record = logging.LogRecord("core.backup", logging.INFO, __file__, 1, "msg", None, None)

        assert RequestIdLogFilter().filter(record) is True
        assert record.request_id == "-"
        assert get_request_id() == "-"


class TestBodySizeLimitMiddleware:
    """Tests for body size limit middleware."""

    @pytest.fixture
    def limited_client(self):
        app = FastAPI()
        app.add_middleware(BodySizeLimitMiddleware, max_size=16)

        @app.post("/echo")
        async def echo():
            return {"ok": True}

        return TestClient(app)

    def test_small_body_allowed(self, limited_client):
        assert limited_client.post("/echo", content=b"tiny").status_code == 200

    def test_large_body_rejected(self, limited_client):
        response = limited_client.post("/echo", content=b"x" * 17)

        assert response.status_code == 413
        assert response.json()["error"]["code"] == "VAL_005"


class TestCORS:
    """Browser clients call the API cross-origin."""

    def test_preflight_allowed_without_auth(self, client):
        response = client.options(
            "/api/data",
            headers={
                "Origin": "https://chat.example",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Authorization, Content-Type",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert "POST" in response.headers["access-control-allow-methods"]


class TestLogRotation:
    """Tests for logging configuration."""

    def test_handler_created(self, temp_dir):
        handler = setup_log_rotation(str(temp_dir / "logs" / "sync.log"), max_bytes=1024, backup_count=2)
        try:
            assert isinstance(handler, RotatingFileHandler)
            assert handler.maxBytes == 1024
            assert (temp_dir / "logs").is_dir()
        finally:
            handler.close()

    def test_configure_logging_adds_file_handler_once(self, temp_dir):
        log_file = str(temp_dir / "sync.log")
        root = logging.getLogger()
        before = list(root.handlers)
        level = root.level
        try:
            configure_logging("INFO", log_file)
            configure_logging("INFO", log_file)

            added = [h for h in root.handlers if h not in before]
            assert len(added) == 1
            assert isinstance(added[0], RotatingFileHandler)
            assert all(
                any(isinstance(f, RequestIdLogFilter) for f in h.filters)
                for h in root.handlers
            )
        finally:
            for handler in root.handlers[:]:
                if handler not in before:
                    root.removeHandler(handler)
                    handler.close()
                else:
                    for f in [f for f in handler.filters if isinstance(f, RequestIdLogFilter)]:
                        handler.removeFilter(f)
            root.setLevel(level)

    def test_create_app_leaves_root_logger_alone(self, sync_config, backup_store):
        from api.fastapi_app import create_app

        root = logging.getLogger()
        level, handlers = root.level, list(root.handlers)

        create_app(sync_config, store=backup_store)

        assert root.level == level
        assert root.handlers == handlers
