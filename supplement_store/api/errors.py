"""
Error Handlers
Domain exceptions and their FastAPI exception handlers.
"""

import logging
from datetime import datetime
from typing import Optional, Union
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base exception for API errors."""

    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[dict] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ResourceNotFoundError(APIError):
    """Exception raised when resource is not found."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Union[int, str, None] = None):
        if resource_id is None:
            message = f"{resource} not found"
        else:
            message = f"{resource} with identifier '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id},
        )


class ConflictError(APIError):
    """Exception raised when a unique value is already taken."""

    code = "CONFLICT"

    def __init__(self, resource: str, field: str, value: str):
        super().__init__(
            message=f"{resource} with {field} '{value}' already exists",
            status_code=status.HTTP_409_CONFLICT,
            details={"resource": resource, "field": field, "value": value},
        )


class InvalidRequestError(APIError):
    """Exception raised for invalid requests."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None, details: dict = None):
        super().__init__(
            message=f"{field}: {message}" if field else message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details or ({"field": field} if field else None),
        )


class UnauthorizedError(APIError):
    """Exception raised when authentication is missing or invalid."""

    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized access"):
        super().__init__(message=message, status_code=status.HTTP_401_UNAUTHORIZED)


class ForbiddenError(APIError):
    """Exception raised when the caller lacks the required role."""

    code = "FORBIDDEN"

    def __init__(self, message: str = "Forbidden operation"):
        super().__init__(message=message, status_code=status.HTTP_403_FORBIDDEN)


class InsufficientStockError(APIError):
    """Exception raised when a stock adjustment would go below zero."""

    code = "INSUFFICIENT_STOCK"

    def __init__(self, resource: str, available: int, requested: int):
        super().__init__(
            message=f"Insufficient {resource}. Available: {available}, Requested: {requested}",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details={"available": available, "requested": requested},
        )


class InternalError(APIError):
    """Exception raised when a backing service fails."""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message=message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_body(code: str, message: str, error_type: str, details=None) -> dict:
    """Build the JSON body shared by every error response."""
    return {
        "error": {
            "code": code,
            "message": message,
            "type": error_type,
            "details": details,
        },
        "timestamp": datetime.utcnow().isoformat(),
    }


_HTTP_CODES = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


def setup_error_handlers(app: FastAPI) -> None:
    """
    Set up custom error handlers for the FastAPI app.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        """Handle custom API errors."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"API error: {exc.message}",
            extra={
                "status_code": exc.status_code,
                "details": exc.details,
                "path": request.url.path,
            },
        )

        # Internal failures never leak their message
        message = exc.message if exc.status_code < 500 else "An unexpected error occurred"

        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.code, message, exc.__class__.__name__, exc.details or None),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        """Handle routing errors (unknown path, wrong method)."""
        message = exc.detail
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            message = f"Route {request.method} {request.url.path} not found"

        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(
                _HTTP_CODES.get(exc.status_code, "HTTP_ERROR"), message, "HTTPException"
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        logger.warning(f"Validation error: {exc}", extra={"path": request.url.path})

        # Convert error details to JSON-serializable format
        errors = []
        for error in exc.errors():
            errors.append(
                {
                    "loc": error.get("loc", []),
                    "msg": str(error.get("msg", "")),
                    "type": error.get("type", ""),
                }
            )

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_body(
                "VALIDATION_ERROR", "Request validation failed", "ValidationError", errors
            ),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(f"Unexpected error: {exc}", exc_info=True, extra={"path": request.url.path})

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(
                "INTERNAL_ERROR", "An unexpected error occurred", "InternalServerError"
            ),
        )
