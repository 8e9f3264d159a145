from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field
from sqlalchemy.exc import OperationalError

from moodwall.app.core.errors import (
    GENERIC_ERROR_MESSAGE,
    NotFound,
    ValidationFailed,
    error_payload,
    register_exception_handlers,
)


class _Payload(BaseModel):
    name: str = Field(min_length=3)


def _build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/missing")
    async def missing() -> None:  # pragma: no cover - executed via client
        raise NotFound("Post not found.")

    @app.get("/invalid")
    async def invalid() -> None:  # pragma: no cover - executed via client
        raise ValidationFailed()

    @app.get("/database")
    async def database() -> None:  # pragma: no cover - executed via client
        raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

    @app.post("/items")
    async def items(payload: _Payload) -> dict[str, str]:  # pragma: no cover
        return {"name": payload.name}

    return app


def test_error_payload_merges_extra_fields() -> None:
    assert error_payload("nope", errors=[]) == {
        "status": "error",
        "message": "nope",
        "errors": [],
    }


def test_api_errors_render_envelope() -> None:
    client = TestClient(_build_app())

    missing = client.get("/missing")
    assert missing.status_code == 404
    assert missing.json() == {"status": "error", "message": "Post not found."}

    invalid = client.get("/invalid")
    assert invalid.status_code == 400
    assert invalid.json()["message"] == "invalid request"


def test_unknown_route_uses_envelope() -> None:
    response = TestClient(_build_app()).get("/nowhere")
    assert response.status_code == 404
    assert response.json() == {"status": "error", "message": "Not Found"}


def test_request_validation_maps_to_400() -> None:
    response = TestClient(_build_app()).post("/items", json={"name": "ab"})

    assert response.status_code == 400
    body = response.json()
    assert body["status"] == "error"
    assert [error["field"] for error in body["errors"]] == ["name"]


def test_database_errors_hide_details() -> None:
    response = TestClient(_build_app()).get("/database")

    assert response.status_code == 500
    assert response.json() == {"status": "error", "message": GENERIC_ERROR_MESSAGE}
    assert "disk" not in response.text
