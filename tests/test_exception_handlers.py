from __future__ import annotations

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from app.core.security import oauth2_scheme
from app.shared.exceptions import (
    FieldError,
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    ValidationFailedException,
    register_exception_handlers,
)


class _Payload(BaseModel):
    title: str = Field(min_length=3)


def _build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/forbidden")
    async def forbidden() -> None:
        raise ForbiddenException("Missing permission: ads.approve")

    @app.get("/missing")
    async def missing() -> None:
        raise NotFoundException("Ad not found")

    @app.get("/transition")
    async def transition() -> None:
        raise InvalidTransitionException("Cannot approve an ad in status APPROVED; expected PENDING_APPROVAL")

    @app.get("/invalid")
    async def invalid() -> None:
        raise ValidationFailedException(
            [
                FieldError("year", "Must not be greater than 2027", "out_of_range"),
                FieldError("brand", "This field is required", "required"),
            ],
        )

    @app.post("/payload")
    async def payload(body: _Payload) -> dict[str, str]:
        return {"title": body.title}

    @app.get("/private")
    async def private(token: str = Depends(oauth2_scheme)) -> dict[str, str]:
        return {"token": token}

    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("database exploded")

    return app


client = TestClient(_build_app(), raise_server_exceptions=False)


def test_domain_errors_use_error_envelope() -> None:
    response = client.get("/forbidden")
    assert response.status_code == 403
    assert response.json() == {"error": {"code": "Forbidden", "message": "Missing permission: ads.approve"}}

    assert client.get("/missing").json()["error"]["code"] == "NotFound"


def test_invalid_transition_is_a_conflict() -> None:
    response = client.get("/transition")
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "InvalidTransition"


def test_validation_failure_lists_every_field() -> None:
    response = client.get("/invalid")

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "ValidationFailed"
    assert error["fields"] == [
        {"field": "year", "message": "Must not be greater than 2027", "code": "out_of_range"},
        {"field": "brand", "message": "This field is required", "code": "required"},
    ]


def test_request_schema_errors_share_the_envelope() -> None:
    response = client.post("/payload", json={"title": "x"})

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "ValidationFailed"
    assert error["fields"][0]["field"] == "title"


def test_missing_bearer_token_is_unauthenticated() -> None:
    response = client.get("/private")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "Unauthenticated"
    assert response.headers["www-authenticate"] == "Bearer"


def test_unexpected_errors_are_hidden() -> None:
    response = client.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"error": {"code": "InternalError", "message": "Internal server error"}}
