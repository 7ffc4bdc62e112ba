# app/core/errors.py
from __future__ import annotations

from typing import Any, Optional

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.validation import describe_error

logger = structlog.get_logger(__name__)

_REQUEST_PARTS = ("body", "query", "path", "header", "cookie")


class ApiError(HTTPException):
    """Erreur métier rendue en JSON {message, error, details}."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Une erreur inattendue est survenue."

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(status_code=type(self).status_code, detail=self.message)

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message, "error": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


class Unauthenticated(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Non authentifié"


class ProfileMissing(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Profil utilisateur introuvable."


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Action non autorisée."


class ValidationFailed(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Données invalides"

    def __init__(self, errors: list[str], message: Optional[str] = None):
        super().__init__(message, details=list(errors))
        self.errors = list(errors)


class ResourceNotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Ressource introuvable."


class ResourceConflict(ApiError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "La ressource existe déjà."


class StateConflict(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Opération impossible dans l'état actuel."


class StoreFailure(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Erreur lors de l'accès à la base de données."


class UnexpectedError(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Erreur serveur interne"


def _store_detail(exc: SQLAlchemyError) -> str:
    # message du driver uniquement (jamais l'URL de connexion)
    orig = getattr(exc, "orig", None)
    return str(orig if orig is not None else exc).strip().splitlines()[0]


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("api_error", path=request.url.path, error=exc.code, message=exc.message, details=exc.details)
    else:
        logger.info("api_denied", path=request.url.path, error=exc.code, status=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [describe_error(err, skip=_REQUEST_PARTS) for err in exc.errors()]
    return await api_error_handler(request, ValidationFailed(errors))


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    detail = _store_detail(exc)
    logger.error("store_failure", path=request.url.path, error=detail, exc_info=exc)
    err = StoreFailure(details=detail)
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unexpected_error", path=request.url.path, error=str(exc), exc_info=exc)
    err = UnexpectedError(details=str(exc) or type(exc).__name__)
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
