"""
Exception handlers para FastAPI.
"""

import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.exceptions import (
    EmailQueueException,
    DatabaseError,
    ConfigurationError,
)

logger = logging.getLogger(__name__)


async def email_queue_exception_handler(request: Request, exc: EmailQueueException) -> JSONResponse:
    """Handler para todas as exceptions customizadas."""
    status_code = 500
    error_type = exc.__class__.__name__

    # Mapear tipo de exception para status code HTTP
    if isinstance(exc, DatabaseError):
        status_code = 503
    elif isinstance(exc, ConfigurationError):
        status_code = 500

    # Log do erro
    logger.error(
        f"{error_type}: {exc.message}",
        extra={"extra_fields": {"error_type": error_type, "details": exc.details, "path": request.url.path}},
    )

    return JSONResponse(
        status_code=status_code,
        content={"error": error_type, "message": exc.message, "details": exc.details},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler para exceptions nao tratadas."""
    logger.exception(f"Erro nao tratado: {exc}", extra={"extra_fields": {"path": request.url.path}})

    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "message": "Erro interno do servidor",
            "details": {},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Registra todos os exception handlers no app FastAPI.

    Usage:
        from app.api.error_handlers import register_exception_handlers

        app = FastAPI()
        register_exception_handlers(app)
    """
    # Handler para exceptions customizadas (subclasses incluidas)
    app.add_exception_handler(EmailQueueException, email_queue_exception_handler)

    # Handler generico para exceptions nao tratadas
    app.add_exception_handler(Exception, generic_exception_handler)
