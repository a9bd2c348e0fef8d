"""
API middleware for MediLex AI.

Provides:
- Rate limiting
- Request logging
- Error handling, including the credential-required response
"""

import time
from typing import Callable

from fastapi import FastAPI, Request, Response, HTTPException
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from medilex.core.exceptions import ChatInProgressError, CredentialError, NoActiveResultError
from medilex.utils.logger import get_logger

logger = get_logger("middleware")


# Rate limiter using client IP
limiter = Limiter(key_func=get_remote_address)


def error_body(error: str, message: str, error_code: str) -> dict:
    return {
        "error": error,
        "message": message,
        "error_code": error_code
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request/response logging.
    
    Logs method, path, status code and processing time.
    """
    
    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        start_time = time.time()
        method = request.method
        path = request.url.path
        
        logger.info(
            "Request received",
            method=method,
            path=path,
            client_ip=get_remote_address(request)
        )
        
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                method=method,
                path=path,
                error=str(e),
                process_time_ms=int((time.time() - start_time) * 1000)
            )
            raise
        
        process_time = time.time() - start_time
        logger.info(
            "Request completed",
            method=method,
            path=path,
            status_code=response.status_code,
            process_time_ms=int(process_time * 1000)
        )
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.
    
    Catches unhandled exceptions and returns safe error responses.
    """
    
    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        try:
            return await call_next(request)
            
        except HTTPException:
            raise
            
        except ValueError as e:
            logger.warning("Validation error", error=str(e))
            return JSONResponse(
                status_code=400,
                content=error_body("Validation Error", str(e), "VALIDATION_ERROR")
            )
            
        except Exception as e:
            logger.error("Unhandled exception", error=str(e), exc_info=True)
            return JSONResponse(
                status_code=500,
                content=error_body(
                    "Internal Server Error",
                    "An unexpected error occurred. Please try again.",
                    "INTERNAL_ERROR"
                )
            )


def setup_exception_handlers(app: FastAPI) -> None:
    """Map application errors to HTTP responses."""
    
    @app.exception_handler(CredentialError)
    async def credential_error_handler(request: Request, exc: CredentialError):
        return JSONResponse(
            status_code=401,
            content=error_body("Credential Required", str(exc), "CREDENTIAL_REQUIRED")
        )
    
    @app.exception_handler(NoActiveResultError)
    async def no_result_handler(request: Request, exc: NoActiveResultError):
        return JSONResponse(
            status_code=409,
            content=error_body("No Active Result", str(exc), "NO_ACTIVE_RESULT")
        )
    
    @app.exception_handler(ChatInProgressError)
    async def chat_in_progress_handler(request: Request, exc: ChatInProgressError):
        return JSONResponse(
            status_code=409,
            content=error_body("Busy", str(exc), "CHAT_IN_PROGRESS")
        )


def setup_rate_limiting(app: FastAPI) -> None:
    """Setup rate limiting on the application."""
    app.state.limiter = limiter
    
    @app.exception_handler(429)
    async def rate_limit_handler(request: Request, exc: Exception):
        return JSONResponse(
            status_code=429,
            content=error_body(
                "Rate Limit Exceeded",
                "Too many requests. Please wait before trying again.",
                "RATE_LIMIT_EXCEEDED"
            )
        )
