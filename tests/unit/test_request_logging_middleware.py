from __future__ import annotations

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient

from moodwall.app.core.errors import GENERIC_ERROR_MESSAGE
from moodwall.app.metrics import REQUEST_COUNT, REQUEST_ERRORS
from moodwall.app.middleware import RequestLoggingMiddleware


def _metric_value(counter, **labels) -> float:
    for family in counter.collect():
        for sample in family.samples:
            if not sample.name.endswith("_total"):
                continue
            if all(sample.labels.get(key) == value for key, value in labels.items()):
                return sample.value
    return 0.0


def _app_with_middleware() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestLoggingMiddleware)
    return app


def test_request_logging_success_adds_header() -> None:
    app = _app_with_middleware()

    @app.get("/ping")
    async def ping() -> dict[str, str]:  # pragma: no cover - executed via client
        return {"pong": "ok"}

    before = _metric_value(REQUEST_COUNT, method="GET", path="/ping", status="200")
    with TestClient(app) as client:
        response = client.get("/ping")
    after = _metric_value(REQUEST_COUNT, method="GET", path="/ping", status="200")

    assert response.status_code == 200
    assert response.headers.get("X-Request-ID")
    assert after == pytest.approx(before + 1.0)


def test_request_logging_failure_returns_generic_error(caplog: pytest.LogCaptureFixture) -> None:
    app = _app_with_middleware()

    @app.get("/boom")
    async def boom() -> dict[str, str]:  # pragma: no cover - executed via client
        raise RuntimeError("secret internals")

    before_count = _metric_value(REQUEST_COUNT, method="GET", path="/boom", status="500")
    before_errors = _metric_value(REQUEST_ERRORS, method="GET", path="/boom", status="500")

    with caplog.at_level("ERROR", logger="moodwall.request"):
        with TestClient(app) as client:
            response = client.get("/boom")

    after_count = _metric_value(REQUEST_COUNT, method="GET", path="/boom", status="500")
    after_errors = _metric_value(REQUEST_ERRORS, method="GET", path="/boom", status="500")

    assert response.status_code == 500
    assert response.json() == {"status": "error", "message": GENERIC_ERROR_MESSAGE}
    assert "secret internals" not in response.text
    assert response.headers.get("X-Request-ID")
    assert any(record.exc_info for record in caplog.records)
    assert after_count == pytest.approx(before_count + 1.0)
    assert after_errors == pytest.approx(before_errors + 1.0)


def test_access_log_uses_route_template(caplog: pytest.LogCaptureFixture) -> None:
    app = _app_with_middleware()

    @app.get("/posts/{post_id}")
    async def read_post(post_id: int) -> dict[str, int]:  # pragma: no cover - executed via client
        return {"post_id": post_id}

    with caplog.at_level("INFO", logger="moodwall.request"):
        with TestClient(app) as client:
            first = client.get("/posts/7")
            second = client.get("/posts/8")

    records = [record for record in caplog.records if record.name == "moodwall.request"]
    assert [record.path for record in records] == ["/posts/{post_id}", "/posts/{post_id}"]
    assert [record.status for record in records] == [200, 200]
    assert records[0].request_id == first.headers["X-Request-ID"]
    assert first.headers["X-Request-ID"] != second.headers["X-Request-ID"]
