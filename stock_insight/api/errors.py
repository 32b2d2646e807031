from __future__ import annotations

from dataclasses import dataclass

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


@dataclass(slots=True)
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: dict | None = None


def raise_api_error(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict | None = None,
) -> None:
    raise ApiError(status_code=status_code, code=code, message=message, details=details)


def install_api_error_handlers(application: FastAPI) -> None:
    @application.exception_handler(ApiError)
    async def _handle_api_error(_, exc: ApiError) -> JSONResponse:  # type: ignore[override]
        return _error_response(
            status_code=exc.status_code,
            code=exc.code,
            message=exc.message,
            details=exc.details,
        )

    @application.exception_handler(RequestValidationError)
    async def _handle_validation_error(_, exc: RequestValidationError) -> JSONResponse:  # type: ignore[override]
        return _error_response(
            status_code=400,
            code="REQUEST_VALIDATION_FAILED",
            message="request parameters are invalid",
            details={"errors": [{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in exc.errors()]},
        )


def _error_response(*, status_code: int, code: str, message: str, details: dict | None) -> JSONResponse:
    error_payload: dict = {
        "code": code,
        "message": message,
    }
    if details is not None:
        error_payload["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error_payload})
