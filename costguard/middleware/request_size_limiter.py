"""
Request size limiting middleware for FastAPI.
Protects the plan estimation endpoints from oversized payloads.
"""
from typing import Set, Optional, Any
import json
import logging
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from costguard.core.config import config

logger = logging.getLogger(__name__)


# Endpoints that require size limiting
PROTECTED_ENDPOINTS: Set[str] = {
    "/api/plan/estimate",
    "/api/plan/estimate/upload",
}

# Endpoints whose body is a plan JSON document
PLAN_BODY_ENDPOINTS: Set[str] = {
    "/api/plan/estimate",
}


def _too_large(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content={
            "status": "error",
            "error": "request_too_large",
            "message": message,
        }
    )


class RequestSizeLimiterMiddleware(BaseHTTPMiddleware):
    """
    FastAPI middleware for request size limiting.

    Applies size limits only to configured endpoints.
    Other routes pass through untouched.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """
        Process request and apply size limits if applicable.

        Args:
            request: FastAPI request object
            call_next: Next middleware or route handler

        Returns:
            Response object
        """
        path = request.url.path

        if path not in PROTECTED_ENDPOINTS:
            return await call_next(request)

        limit = config.MAX_PLAN_BODY_SIZE
        size_message = f"Request body size exceeds allowed limit of {limit} bytes."

        # Check Content-Length header if present
        content_length = request.headers.get("Content-Length")
        if content_length:
            try:
                if int(content_length) > limit:
                    logger.info(
                        "Request body size exceeded for %s: %s bytes (limit: %d)",
                        path, content_length, limit
                    )
                    return _too_large(size_message)
            except ValueError:
                # Invalid Content-Length header, measure the body instead
                pass

        # Starlette caches the body, so the route handler can read it again
        body_bytes = await request.body()
        if len(body_bytes) > limit:
            logger.info(
                "Request body size exceeded for %s: %d bytes (limit: %d)",
                path, len(body_bytes), limit
            )
            return _too_large(size_message)

        if path in PLAN_BODY_ENDPOINTS and body_bytes:
            try:
                body_json = json.loads(body_bytes.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError, RecursionError):
                # Invalid plan JSON is reported by the route handler
                body_json = None

            try:
                validation_error = self._validate_plan(body_json)
            except Exception as error:
                # Fail closed on unexpected errors
                logger.error("Error during payload validation for %s: %s", path, error, exc_info=True)
                return _too_large("Request validation failed.")

            if validation_error:
                logger.info("Payload validation failed for %s: %s", path, validation_error)
                return _too_large(validation_error)

        return await call_next(request)

    def _validate_plan(self, body_json: Any) -> Optional[str]:
        """
        Validate the number of resource changes in a plan document.

        Args:
            body_json: Parsed JSON body (may be any JSON value)

        Returns:
            Error message if validation fails, None if valid
        """
        if not isinstance(body_json, dict):
            return None

        changes = body_json.get("resource_changes")
        if isinstance(changes, list) and len(changes) > config.MAX_RESOURCE_CHANGES:
            return (
                f"Plan too large: {len(changes)} resource changes "
                f"(limit: {config.MAX_RESOURCE_CHANGES})"
            )

        return None
