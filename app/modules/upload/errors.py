"""Error kinds raised by the upload relay.

Each error carries the HTTP status it maps to and a stable machine-readable
``code``; the application turns them into ``{"error": ..., "code": ...}``
JSON bodies.
"""

from typing import Any, Dict, Iterable, Optional


class UploadRelayError(Exception):
    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "Error uploading file to OpenAI"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code}


class MissingParameter(UploadRelayError):
    status_code = 400
    code = "missing_parameter"
    default_message = "API Key and File URL are required."


class InvalidUrlFormat(UploadRelayError):
    status_code = 400
    code = "invalid_url_format"
    default_message = "Invalid file URL format."


class UnsupportedExtension(UploadRelayError):
    status_code = 400
    code = "unsupported_extension"

    def __init__(self, extension: str, allowed: Iterable[str]):
        self.extension = extension
        self.allowed = tuple(allowed)
        super().__init__(
            f"Unsupported file extension: {extension}. "
            f"Supported extensions are: {', '.join(self.allowed)}"
        )


class UpstreamDownloadFailed(UploadRelayError):
    status_code = 500
    code = "upstream_download_failed"
    default_message = "Error downloading file from the provided URL"


class UpstreamUploadFailed(UploadRelayError):
    status_code = 500
    code = "upstream_upload_failed"


class RelayUnauthorized(UploadRelayError):
    status_code = 401
    code = "unauthorized"
    default_message = "Invalid or missing relay access token."
