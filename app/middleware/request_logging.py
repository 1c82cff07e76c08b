import json
import logging
import time
from typing import Any, Dict, Tuple

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


LOG_METHODS = {"POST", "PUT", "DELETE"}
SECRET_KEYS = {"openaiapikey", "open_ai_api_key", "api_key", "authorization", "x-relay-token"}
URL_KEYS = {"fileurl", "file_url"}
REDACTED = "***"
MULTIPART_PLACEHOLDER = "<multipart omitted>"
UNPARSED_PLACEHOLDER = "<unparsed body omitted>"
PLACEHOLDERS = {MULTIPART_PLACEHOLDER, UNPARSED_PLACEHOLDER}
logger = logging.getLogger("app.middleware.request")


def redact(payload: Any) -> Any:
    """Mask API keys and drop signed query strings from logged bodies."""
    if isinstance(payload, dict):
        cleaned: Dict[str, Any] = {}
        for key, value in payload.items():
            lowered = str(key).lower()
            if lowered in SECRET_KEYS:
                cleaned[key] = REDACTED if value else value
            elif lowered in URL_KEYS and isinstance(value, str):
                cleaned[key] = value.split("?", 1)[0]
            else:
                cleaned[key] = redact(value)
        return cleaned
    if isinstance(payload, list):
        return [redact(item) for item in payload]
    return payload


def loggable_body(body: Any) -> Any:
    # Only JSON objects have named fields that can be redacted
    if isinstance(body, dict):
        return redact(body)
    if body is None or (isinstance(body, str) and body in PLACEHOLDERS):
        return body
    return "<non-object body omitted>"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log request/response data for mutating HTTP methods."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        method = request.method.upper()
        if method not in LOG_METHODS:
            return await call_next(request)

        start_time = time.perf_counter()
        request_body, body_bytes = await self._extract_body(request)
        logger.info(
            "Incoming %s %s query=%s body=%s",
            method,
            request.url.path,
            dict(request.query_params),
            loggable_body(request_body),
        )

        response = await call_next(request)

        response_body, response_bytes = await self._extract_response_body(response)
        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Completed %s %s status=%s duration_ms=%.2f body=%s",
            method,
            request.url.path,
            response.status_code,
            duration_ms,
            response_body,
        )

        headers = dict(response.headers)
        headers.pop("content-length", None)
        new_response = Response(
            content=response_bytes,
            status_code=response.status_code,
            headers=headers,
            media_type=response.media_type,
        )
        new_response.background = response.background
        return new_response

    async def _extract_body(self, request: Request) -> Tuple[Any, bytes]:
        content_type = request.headers.get("content-type", "")
        if "multipart" in content_type:
            return MULTIPART_PLACEHOLDER, b""

        try:
            body_bytes = await request.body()
            if not body_bytes:
                return None, b""

            async def receive() -> Dict[str, Any]:
                return {"type": "http.request", "body": body_bytes, "more_body": False}

            request._receive = receive  # type: ignore[attr-defined]
            return self._safe_json(body_bytes), body_bytes
        except Exception as exc:
            logger.debug("Failed to read request body: %s", exc)
            return None, b""

    async def _extract_response_body(self, response: Response) -> Tuple[Any, bytes]:
        body_chunks = []
        try:
            async for chunk in response.body_iterator:
                body_chunks.append(chunk)
        except Exception as exc:
            logger.debug("Failed to read response body: %s", exc)

        body_bytes = b"".join(body_chunks)
        parsed_body: Any = self._safe_json(body_bytes) if body_bytes else None
        return parsed_body, body_bytes

    def _safe_json(self, body: bytes) -> Any:
        if not body:
            return None
        trimmed = body[:4096]
        try:
            return json.loads(trimmed)
        except json.JSONDecodeError:
            # Unparsed bodies cannot be redacted, so they are not logged verbatim
            return UNPARSED_PLACEHOLDER
