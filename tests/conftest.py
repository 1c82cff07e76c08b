import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest
import requests

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


class FakeDownloadResponse:
    def __init__(self, status_code: int = 200, content: bytes = b""):
        self.status_code = status_code
        self.content = content

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error", response=self)


class FakeFiles:
    def __init__(self, owner: "FakeOpenAI"):
        self._owner = owner

    def create(self, *, file, purpose):
        name, fh, content_type = file
        call = {
            "file_name": name,
            "content": fh.read(),
            "content_type": content_type,
            "purpose": purpose,
            "stored_at": Path(fh.name),
            "stored_exists": Path(fh.name).exists(),
        }
        self._owner.calls.append(call)
        if self._owner.error is not None:
            raise self._owner.error
        file_id = self._owner.ids.pop(0) if self._owner.ids else f"file-{len(self._owner.calls)}"
        return SimpleNamespace(id=file_id, object="file", purpose=purpose)


class FakeOpenAI:
    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.api_keys: List[str] = []
        self.ids: List[str] = []
        self.error: Exception | None = None
        self.files = FakeFiles(self)


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    target = tmp_path / "uploads"
    monkeypatch.setattr("app.core.config.settings.UPLOAD_DIR", str(target), raising=False)
    monkeypatch.setattr("app.core.config.settings.RELAY_ACCESS_TOKEN", "", raising=False)
    return target


@pytest.fixture
def fake_openai(monkeypatch):
    fake = FakeOpenAI()

    def _build(api_key):
        fake.api_keys.append(api_key)
        return fake

    monkeypatch.setattr("app.modules.upload.service.build_openai_client", _build)
    return fake


@pytest.fixture
def fake_download(monkeypatch):
    state: Dict[str, Any] = {"status_code": 200, "content": b"%PDF-1.4 test", "urls": [], "error": None}

    def _get(url, timeout=None, **kwargs):
        state["urls"].append(url)
        if state["error"] is not None:
            raise state["error"]
        return FakeDownloadResponse(state["status_code"], state["content"])

    monkeypatch.setattr("app.modules.upload.service.requests.get", _get)
    return state


@pytest.fixture
def client(upload_dir, fake_openai, fake_download):
    from fastapi.testclient import TestClient

    from app.main import app

    with TestClient(app) as test_client:
        yield test_client
