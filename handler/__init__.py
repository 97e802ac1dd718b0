from fastapi import Request, responses, exceptions
from pydantic import ValidationError
from typing import Union
from sqlalchemy.exc import IntegrityError, DBAPIError
from error import ServerError
import logging

logger = logging.getLogger(__name__)

# locations FastAPI prepends to field paths
REQUEST_PARTS = {"body", "query", "path", "header", "cookie"}


def _message(status_code: int, message: str) -> responses.JSONResponse:
    return responses.JSONResponse(status_code=status_code, content={"message": message})


def _field_name(loc) -> str:
    parts = [str(p) for p in (loc or ()) if p not in REQUEST_PARTS]
    return ".".join(parts) or "body"


def value_error_handler(request: Request, exc: ValueError) -> responses.JSONResponse:
    return _message(400, exc.args[0] if exc.args else "Invalid value")


def validation_error_handler(
    request: Request, exec: Union[ValidationError, exceptions.RequestValidationError]
) -> responses.JSONResponse:
    """Validation Error Handler

    Reports the first pydantic error as ``Invalid <field>: <msg>``
    so clients get a single readable message
    """
    error = exec.errors()[0]
    error_msg = f"Invalid {_field_name(error.get('loc'))}: {error.get('msg')}"
    return _message(422, error_msg)


def validation_http_exceptions_handler(
    request: Request, exec: exceptions.HTTPException
) -> responses.JSONResponse:
    """Validation handler for http exceptions"""
    return _message(exec.status_code, exec.detail)


def db_error_handler(request: Request, exec: Union[IntegrityError, DBAPIError]):
    """Db error handler"""
    logger.error(f"Database error on {request.url.path}: {exec}")

    # database details never reach the client
    return _message(500, "Erro interno. Tente novamente mais tarde.")


def server_error_handler(request: Request, exec: ServerError) -> responses.JSONResponse:
    """Server error handler"""
    if exec.status_code >= 500:
        logger.error(f"{exec.__class__.__name__} on {request.url.path}: {exec.msg}")
    return _message(exec.status_code, str(exec.msg))
