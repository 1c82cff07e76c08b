import asyncio
import json
import logging
import os
import re
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional
from urllib.parse import unquote

import openai
import requests

from app.core.config import settings
from app.core.openai_client import build_openai_client

from .errors import (
    InvalidUrlFormat,
    MissingParameter,
    UnsupportedExtension,
    UpstreamDownloadFailed,
    UpstreamUploadFailed,
)
from .schemas import FileCategory, UploadRequest, UploadResponse

logger = logging.getLogger(__name__)

# Storage download URLs embed the original object name as an encoded path segment
_FILE_NAME_PATTERN = re.compile(r"public%2F(.*?)\?")

IMAGE_EXTENSIONS = ("jpeg", "jpg", "png", "gif", "webp")
DOCUMENT_EXTENSIONS = ("txt", "doc", "docx", "pdf")
ALLOWED_EXTENSIONS = ("txt", "jpeg", "jpg", "png", "gif", "webp", "doc", "docx", "pdf")

CONTENT_TYPES = {
    "txt": "text/plain",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "pdf": "application/pdf",
}


def _safe_url(url: str) -> str:
    """Strip the query string (signed tokens) before a URL reaches the logs."""
    return url.split("?", 1)[0]


def _base_name(name: str) -> str:
    # NUL cannot appear in a file system path
    if "\x00" in name:
        return ""
    return os.path.basename(name.replace("\\", "/")).strip()


def extract_file_name(file_url: str) -> str:
    """Pull the original file name out of an encoded ``.../public%2F<name>?...`` URL."""
    match = _FILE_NAME_PATTERN.search(file_url or "")
    if not match or not match.group(1):
        raise InvalidUrlFormat()

    file_name = _base_name(unquote(match.group(1)))
    if not file_name:
        raise InvalidUrlFormat()
    return file_name


def resolve_file_name(file_url: str, file_name: Optional[str] = None) -> str:
    if file_name and file_name.strip():
        resolved = _base_name(file_name)
        if not resolved:
            raise InvalidUrlFormat("Invalid file name.")
        return resolved
    return extract_file_name(file_url)


def get_extension(file_name: str) -> str:
    return os.path.splitext(file_name)[1][1:].lower()


def check_extension(extension: str) -> str:
    if extension not in ALLOWED_EXTENSIONS:
        raise UnsupportedExtension(extension, ALLOWED_EXTENSIONS)
    return extension


def classify_extension(extension: str) -> FileCategory:
    if extension in IMAGE_EXTENSIONS:
        return "image"
    if extension in DOCUMENT_EXTENSIONS:
        return "document"
    raise UnsupportedExtension(extension, ALLOWED_EXTENSIONS)


def content_type_for(extension: str) -> str:
    return CONTENT_TYPES.get(extension, "application/octet-stream")


def download_file(file_url: str) -> bytes:
    """Fetch the remote file body. Any failure is reported as UpstreamDownloadFailed."""
    try:
        response = requests.get(file_url, timeout=settings.DOWNLOAD_TIMEOUT_SECONDS)
        response.raise_for_status()
    except requests.HTTPError as exc:
        status = exc.response.status_code if exc.response is not None else None
        logger.error("Download failed for %s: HTTP %s", _safe_url(file_url), status)
        raise UpstreamDownloadFailed(
            f"Error downloading file from the provided URL: HTTP {status}"
        ) from exc
    except requests.RequestException as exc:
        logger.error("Download failed for %s: %s", _safe_url(file_url), exc.__class__.__name__)
        raise UpstreamDownloadFailed(
            f"Error downloading file from the provided URL: {exc.__class__.__name__}"
        ) from exc

    logger.info("Downloaded %d bytes from %s", len(response.content), _safe_url(file_url))
    return response.content


@contextmanager
def scratch_file(file_name: str, data: bytes) -> Iterator[Path]:
    """Write ``data`` to a private scratch directory, removed again on exit."""
    scratch_dir = Path(tempfile.mkdtemp(prefix="relay-", dir=settings.UPLOAD_DIR))
    try:
        path = scratch_dir / file_name
        path.write_bytes(data)
        yield path
    finally:
        try:
            shutil.rmtree(scratch_dir)
        except OSError as e:
            logger.warning(f"Failed to remove scratch directory {scratch_dir}: {e}")


def upload_to_openai(api_key: str, path: Path, file_name: str, content_type: str) -> str:
    """Send the stored file to the OpenAI Files API and return the new file id."""
    client = build_openai_client(api_key)
    try:
        with open(path, "rb") as fh:
            uploaded = client.files.create(
                file=(file_name, fh, content_type),
                purpose=settings.OPENAI_FILE_PURPOSE,
            )
    except openai.APIStatusError as exc:
        body = exc.body
        logger.error(
            "Error uploading file to OpenAI: status=%s body=%s",
            exc.status_code,
            body,
        )
        detail = json.dumps(body) if isinstance(body, (dict, list)) else (body or exc.message)
        raise UpstreamUploadFailed(
            f"Error uploading file to OpenAI: HTTP {exc.status_code} {detail}"
        ) from exc
    except openai.OpenAIError as exc:
        logger.error("Error uploading file to OpenAI: %s", exc)
        raise UpstreamUploadFailed(f"Error uploading file to OpenAI: {exc}") from exc

    file_id = getattr(uploaded, "id", None)
    if not file_id:
        raise UpstreamUploadFailed("Error uploading file to OpenAI: response did not include a file id")
    return file_id


async def relay_upload(body: UploadRequest) -> UploadResponse:
    """
    Download the file behind ``body.file_url`` and re-upload it to OpenAI.

    Args:
        body: Parsed request carrying the caller's API key and the file URL

    Returns:
        UploadResponse with the OpenAI file id and the file category

    Raises:
        UploadRelayError: One of its subclasses, for every client or upstream failure
    """
    api_key = (body.api_key or "").strip()
    file_url = (body.file_url or "").strip()
    if not api_key or not file_url:
        raise MissingParameter()

    file_name = resolve_file_name(file_url, body.file_name)
    extension = check_extension(get_extension(file_name))
    file_type = classify_extension(extension)
    content_type = content_type_for(extension)

    data = await asyncio.to_thread(download_file, file_url)

    with scratch_file(file_name, data) as path:
        file_id = await asyncio.to_thread(upload_to_openai, api_key, path, file_name, content_type)

    logger.info("Relayed %s to OpenAI as %s (%s)", file_name, file_id, file_type)
    return UploadResponse(file_id=file_id, file_type=file_type)
