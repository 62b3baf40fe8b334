"""Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``install_exception_handlers`` turns them into JSON
responses at the boundary so nothing is swallowed on the way out.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

logger = logging.getLogger(__name__)


class ThermoError(Exception):
    status_code = 500
    default_detail = "Internal error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def headers(self) -> dict[str, str] | None:
        return None


class AuthenticationError(ThermoError):
    """Missing, malformed, expired or forged credentials."""

    status_code = 401
    default_detail = "Not authenticated"

    def headers(self):
        return {"WWW-Authenticate": "Bearer"}


class AuthorizationError(ThermoError):
    """Valid identity without the capability the operation needs."""

    status_code = 403
    default_detail = "Forbidden"


class ValidationError(ThermoError):
    status_code = 400
    default_detail = "Invalid request"


class NotFoundError(ThermoError):
    status_code = 404
    default_detail = "Not found"


class ConflictError(ThermoError):
    status_code = 409
    default_detail = "Conflict"


class StoreUnavailable(ThermoError):
    status_code = 503
    default_detail = "Storage unavailable"


def _thermo_error_handler(request: Request, exc: ThermoError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers())


def _request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")}
        for e in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": "Invalid request", "errors": errors})


def _operational_error_handler(request: Request, exc: OperationalError):
    logger.exception("Store error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=503, content={"detail": StoreUnavailable.default_detail})


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ThermoError, _thermo_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(OperationalError, _operational_error_handler)
