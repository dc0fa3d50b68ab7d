"""
Consolidated middleware for the PantryLedger API
"""

import time
import logging
from uuid import uuid4

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.exceptions import (
    ServiceValidationError,
    NotFoundError,
    InvalidOperationError,
    ConcurrencyConflictError,
)
from domain.models import utcnow

logger = logging.getLogger("pantryledger.middleware")


# ============================================================================
# Helper Functions
# ============================================================================


def error_response(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    """Build the JSON error envelope shared by every handler"""
    error = {"code": code, "message": message}
    if details:
        error["details"] = jsonable_encoder(details)
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "timestamp": utcnow().isoformat(),
        },
    )


# ============================================================================
# Request Logging Middleware
# ============================================================================


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all HTTP requests and responses"""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid4())
        request.state.request_id = request_id

        logger.info(
            "Request started %s %s",
            request.method,
            request.url.path,
            extra={
                "request_id": request_id,
                "method": request.method,
                "url": str(request.url),
                "client": request.client.host if request.client else None,
            },
        )

        start_time = time.time()

        try:
            response: Response = await call_next(request)
            process_time = time.time() - start_time

            logger.info(
                "Request completed %s %s -> %d",
                request.method,
                request.url.path,
                response.status_code,
                extra={
                    "request_id": request_id,
                    "status_code": response.status_code,
                    "process_time": f"{process_time:.4f}s",
                },
            )

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = f"{process_time:.4f}"

            return response

        except Exception as exc:
            process_time = time.time() - start_time
            logger.error(
                "Request failed %s %s",
                request.method,
                request.url.path,
                extra={
                    "request_id": request_id,
                    "error": str(exc),
                    "process_time": f"{process_time:.4f}s",
                },
                exc_info=True,
            )
            raise


# ============================================================================
# Error Handlers
# ============================================================================


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors"""
    logger.warning(f"Validation error on {request.url}: {exc.errors()}")
    return error_response(
        422,
        "VALIDATION_ERROR",
        "Request validation failed",
        exc.errors(),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions"""
    logger.warning(f"HTTP {exc.status_code} on {request.url}: {exc.detail}")
    return error_response(exc.status_code, f"HTTP_{exc.status_code}", str(exc.detail))


async def service_validation_exception_handler(
    request: Request, exc: ServiceValidationError
):
    """Handle service validation errors"""
    logger.warning(f"Service validation error on {request.url}: {exc}")
    return error_response(
        exc.http_status, exc.code or "SERVICE_VALIDATION_ERROR", exc.message, exc.details
    )


async def not_found_exception_handler(request: Request, exc: NotFoundError):
    """Handle not found errors"""
    logger.warning(f"Resource not found on {request.url}: {exc}")
    return error_response(status.HTTP_404_NOT_FOUND, "NOT_FOUND", exc.message, exc.details)


async def invalid_operation_exception_handler(request: Request, exc: InvalidOperationError):
    """Handle operations the ledger state does not allow"""
    logger.warning(f"Invalid operation on {request.url}: {exc}")
    return error_response(
        status.HTTP_409_CONFLICT, exc.code or "INVALID_OPERATION", exc.message, exc.details
    )


async def concurrency_conflict_exception_handler(
    request: Request, exc: ConcurrencyConflictError
):
    """Handle mutations that lost a race after retrying"""
    logger.warning(f"Concurrency conflict on {request.url}: {exc}")
    return error_response(
        status.HTTP_409_CONFLICT, "CONCURRENCY_CONFLICT", exc.message, exc.details
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors"""
    logger.exception(f"Unexpected error on {request.url}: {exc}")
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred",
    )
