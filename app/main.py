import logging

# FastAPI imports
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# API imports
from app.api import api_router

# Core imports
from app.core.config import settings
from app.core.lifespan import lifespan

# Middleware imports
from app.middleware import RequestLoggingMiddleware

from app.modules.upload.errors import MissingParameter, UploadRelayError

# Logging configuration
logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"


async def upload_relay_error_handler(request: Request, exc: UploadRelayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def _summarize_errors(errors: list) -> list:
    # pydantic echoes the offending input, which may carry the caller's key
    return [{key: error.get(key) for key in ("loc", "type", "msg")} for error in errors]


def _body_missing(errors: list) -> bool:
    return any(error.get("type") == "missing" and tuple(error.get("loc", ())) == ("body",) for error in errors)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    logger.warning("Rejected malformed request to %s: %s", request.url.path, _summarize_errors(errors))
    if _body_missing(errors):
        missing = MissingParameter()
        return JSONResponse(status_code=missing.status_code, content=missing.to_payload())
    return JSONResponse(
        status_code=400,
        content={"error": "Request body must be a JSON object.", "code": "invalid_request"},
    )


def create_application() -> FastAPI:
    application = FastAPI(
        title="OpenAI Upload Relay",
        description="Downloads a remote file and re-uploads it to the OpenAI Files API",
        version=APP_VERSION,
        lifespan=lifespan
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_middleware(RequestLoggingMiddleware)
    application.add_exception_handler(UploadRelayError, upload_relay_error_handler)
    application.add_exception_handler(RequestValidationError, validation_error_handler)
    application.include_router(api_router, prefix=settings.API_PREFIX)

    return application

app = create_application()

@app.get("/", tags=["App"], summary="App Version")
async def root():
    return {
        "message": "Upload relay is running!",
        "version": APP_VERSION,
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT)
