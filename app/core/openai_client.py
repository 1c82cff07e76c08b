from openai import OpenAI
from app.core.config import settings


# The caller supplies the key with every request, so clients are not cached.
# Retries are disabled: a failed upload is reported, never replayed.
def build_openai_client(api_key: str) -> OpenAI:
    api_key = (api_key or "").strip()
    if not api_key:
        raise RuntimeError("OpenAI API key is required")
    return OpenAI(
        api_key=api_key,
        base_url=settings.OPENAI_BASE_URL,
        timeout=settings.UPLOAD_TIMEOUT_SECONDS,
        max_retries=0,
    )
