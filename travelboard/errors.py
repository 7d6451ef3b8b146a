"""
travelboard.errors — Error Taxonomy
====================================

Services raise these; the API maps each one to a status code via
:func:`register_exception_handlers`.  Persistence failures that escape a
service are reported as a generic internal error without leaking detail.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class TravelBoardError(Exception):
    """Base exception for travelboard."""

    status_code = 500
    code = "internal"

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.code, "message": self.message}


class Unauthenticated(TravelBoardError):
    """No valid session accompanied the request."""

    status_code = 401
    code = "unauthenticated"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class NotFound(TravelBoardError):
    status_code = 404
    code = "not_found"

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class Forbidden(TravelBoardError):
    """Authenticated, but the resolved capabilities don't cover the action."""

    status_code = 403
    code = "forbidden"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class ValidationError(TravelBoardError):
    status_code = 400
    code = "validation"


class SelfReferenceError(ValidationError):
    code = "self_reference"


class Conflict(TravelBoardError):
    status_code = 409
    code = "conflict"


class IdentityProviderError(TravelBoardError):
    """Profile lookup against the identity provider failed; the caller retries."""

    status_code = 503
    code = "identity_provider_unavailable"

    def __init__(self, message: str = "Identity provider unavailable, please retry"):
        super().__init__(message)


def register_exception_handlers(app: FastAPI) -> None:
    """Register JSON handlers for the taxonomy and for stray DB failures."""

    @app.exception_handler(TravelBoardError)
    async def _handle_domain_error(request: Request, exc: TravelBoardError):
        if exc.status_code >= 500:
            logger.error(
                "%s %s failed: %s", request.method, request.url.path, exc.message
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(SQLAlchemyError)
    async def _handle_db_error(request: Request, exc: SQLAlchemyError):
        logger.exception(
            "Persistence failure during %s %s", request.method, request.url.path,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content=TravelBoardError().to_dict(),
        )
