import pytest

from app.modules.upload import service as upload_service
from app.modules.upload.errors import InvalidUrlFormat, UnsupportedExtension
from app.middleware import loggable_body, redact

STORAGE_URL = "https://firebasestorage.googleapis.com/v0/b/demo.appspot.com/o/public%2F{name}?alt=media&token=abc"


def test_extract_file_name_decodes_encoded_segment():
    url = STORAGE_URL.format(name="Quarterly%20Report.pdf")
    assert upload_service.extract_file_name(url) == "Quarterly Report.pdf"


def test_extract_file_name_stops_at_first_query_delimiter():
    url = "https://host/o/public%2Fnotes.txt?alt=media&next=?x"
    assert upload_service.extract_file_name(url) == "notes.txt"


def test_extract_file_name_keeps_only_base_name():
    url = STORAGE_URL.format(name="..%2F..%2Fetc%2Fpasswd.txt")
    assert upload_service.extract_file_name(url) == "passwd.txt"


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/files/report.pdf",
        "https://host/o/public%2Freport.pdf",
        "https://host/o/public%2F?alt=media",
        "https://host/o/public/report.pdf?alt=media",
        "",
    ],
)
def test_extract_file_name_rejects_other_url_shapes(url):
    with pytest.raises(InvalidUrlFormat):
        upload_service.extract_file_name(url)


def test_resolve_file_name_prefers_explicit_name():
    url = "https://cdn.example.com/blob/8f2c1"
    assert upload_service.resolve_file_name(url, "scan.PNG") == "scan.PNG"


def test_resolve_file_name_falls_back_to_url():
    url = STORAGE_URL.format(name="photo.png")
    assert upload_service.resolve_file_name(url, "   ") == "photo.png"


@pytest.mark.parametrize(
    "name, expected",
    [
        ("report.PDF", "pdf"),
        ("archive.tar.gz", "gz"),
        ("README", ""),
        (".env", ""),
        ("trailing.", ""),
    ],
)
def test_get_extension(name, expected):
    assert upload_service.get_extension(name) == expected


@pytest.mark.parametrize("extension", ["jpeg", "jpg", "png", "gif", "webp"])
def test_image_extensions_classify_as_image(extension):
    assert upload_service.classify_extension(extension) == "image"


@pytest.mark.parametrize("extension", ["txt", "doc", "docx", "pdf"])
def test_document_extensions_classify_as_document(extension):
    assert upload_service.classify_extension(extension) == "document"


def test_every_allowed_extension_has_a_category_and_content_type():
    for extension in upload_service.ALLOWED_EXTENSIONS:
        assert upload_service.classify_extension(extension) in {"image", "document"}
        assert upload_service.content_type_for(extension) in upload_service.CONTENT_TYPES.values()
    assert set(upload_service.CONTENT_TYPES) == set(upload_service.ALLOWED_EXTENSIONS)


@pytest.mark.parametrize("extension", ["zip", "exe", "", "svg", "csv"])
def test_check_extension_rejects_unlisted(extension):
    with pytest.raises(UnsupportedExtension) as excinfo:
        upload_service.check_extension(extension)
    assert excinfo.value.extension == extension
    assert "txt, jpeg, jpg, png, gif, webp, doc, docx, pdf" in str(excinfo.value)


def test_content_types_use_real_mime_types():
    assert upload_service.content_type_for("png") == "image/png"
    assert upload_service.content_type_for("jpg") == "image/jpeg"
    assert upload_service.content_type_for("txt") == "text/plain"
    assert upload_service.content_type_for("docx").startswith("application/vnd.openxmlformats")


def test_scratch_file_is_removed_after_error(upload_dir):
    upload_dir.mkdir(parents=True)
    with pytest.raises(RuntimeError):
        with upload_service.scratch_file("report.pdf", b"data") as path:
            assert path.read_bytes() == b"data"
            raise RuntimeError("boom")
    assert list(upload_dir.iterdir()) == []


def test_scratch_files_with_same_name_do_not_collide(upload_dir):
    upload_dir.mkdir(parents=True)
    with upload_service.scratch_file("report.pdf", b"one") as first:
        with upload_service.scratch_file("report.pdf", b"two") as second:
            assert first != second
            assert first.read_bytes() == b"one"
            assert second.read_bytes() == b"two"
    assert list(upload_dir.iterdir()) == []


def test_redact_masks_keys_and_signed_query():
    body = {
        "openAiApiKey": "sk-live-secret",
        "fileUrl": "https://host/o/public%2Fa.pdf?token=signed",
        "nested": [{"api_key": "sk-other"}],
    }
    cleaned = redact(body)
    assert cleaned["openAiApiKey"] == "***"
    assert cleaned["fileUrl"] == "https://host/o/public%2Fa.pdf"
    assert cleaned["nested"][0]["api_key"] == "***"


def test_loggable_body_omits_non_object_bodies():
    assert loggable_body(["sk-live-secret", "x"]) == "<non-object body omitted>"
    assert loggable_body("sk-live-secret") == "<non-object body omitted>"
    assert loggable_body(None) is None
    assert loggable_body({"openAiApiKey": "sk-live-secret"}) == {"openAiApiKey": "***"}
