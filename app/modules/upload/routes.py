import logging

from fastapi import APIRouter, Depends

from app.core.dependencies import verify_relay_token

from .errors import UploadRelayError
from .schemas import ErrorResponse, UploadRequest, UploadResponse
from .service import relay_upload

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    dependencies=[Depends(verify_relay_token)],
    summary="Relay a remote file to the OpenAI Files API",
)
async def upload_file(body: UploadRequest) -> UploadResponse:
    """Download the file at ``fileUrl`` and upload it to OpenAI with the caller's key."""
    try:
        return await relay_upload(body)
    except UploadRelayError as err:
        logger.warning("Upload relay failed (%s): %s", err.code, err.message)
        raise
    except Exception as exc:
        logger.exception("Unexpected error while relaying upload")
        raise UploadRelayError() from exc
