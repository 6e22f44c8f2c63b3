"""
Custom exception handlers and error types
"""

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import logging
import traceback
from typing import Optional

logger = logging.getLogger(__name__)


class BeatcutError(Exception):
    """Base exception for beat planning and clip selection errors"""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class InputError(BeatcutError):
    """Raised when the word stream is missing, empty or malformed.

    This is the only pipeline-fatal condition; it is reported, never recovered.
    """

    def __init__(self, message: str, validation_errors: Optional[list] = None):
        super().__init__(message, "INPUT_ERROR")
        self.validation_errors = validation_errors or []


class ConfigurationError(BeatcutError):
    """Exception raised when configuration is invalid"""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message, "CONFIGURATION_ERROR")
        self.config_key = config_key


class ProviderUnavailable(BeatcutError):
    """A search/rerank collaborator failed or timed out.

    Recovered at the beat level by falling back to the heuristic path.
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(message, error_code or "PROVIDER_UNAVAILABLE")
        self.provider = provider


class MalformedProviderResponse(ProviderUnavailable):
    """A collaborator answered with an unexpected JSON shape; handled like ProviderUnavailable"""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message, provider, "MALFORMED_PROVIDER_RESPONSE")


class NoCandidates(BeatcutError):
    """No usable candidate remained for a beat after every fallback"""

    def __init__(self, message: Optional[str] = None, beat_index: Optional[int] = None):
        self.beat_index = beat_index
        msg = message or f"No candidates for beat {beat_index}"
        super().__init__(msg, "NO_CANDIDATES")


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors"""
    logger.warning(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={
            "detail": {
                "error": "Validation error",
                "details": "Invalid request data",
                "errors": exc.errors(),
            }
        },
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with consistent format"""
    logger.warning(f"HTTP exception: {exc.status_code} - {exc.detail}")

    if isinstance(exc.detail, dict):
        detail = exc.detail
    else:
        detail = {"error": "HTTP Error", "details": str(exc.detail)}

    return JSONResponse(status_code=exc.status_code, content={"detail": detail})


async def input_exception_handler(request: Request, exc: InputError):
    """Handle an empty or malformed word stream"""
    logger.warning(f"Input error: {exc.message}")
    return JSONResponse(
        status_code=400,
        content={
            "detail": {
                "error": "Invalid word stream",
                "details": exc.message,
                "error_code": exc.error_code,
                "errors": exc.validation_errors,
            }
        },
    )


async def beatcut_exception_handler(request: Request, exc: BeatcutError):
    """Handle beat planning errors that escaped the pipeline"""
    logger.error(f"Beat planning error: {exc.message}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": {
                "error": "Beat planning failed",
                "details": exc.message,
                "error_code": exc.error_code,
            }
        },
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors"""
    logger.error(f"Unexpected error: {type(exc).__name__}: {str(exc)}")
    logger.error(f"Traceback: {traceback.format_exc()}")

    return JSONResponse(
        status_code=500,
        content={
            "detail": {
                "error": "Internal server error",
                "details": "An unexpected error occurred",
            }
        },
    )
