import base64

import pytest

from knowledgebase.core.errors import InvalidInput
from knowledgebase.schemas.content import PdfContent
from knowledgebase.utils.file_utils import get_extension, validate_pdf_type
from knowledgebase.utils.pdf_loader import ingest_pdf

PDF_BYTES = b"%PDF-1.4\n%fake pdf body\n%%EOF\n"


def test_ingest_pdf_encodes_bytes():
    upload = ingest_pdf("cv.pdf", "application/pdf", PDF_BYTES)

    assert base64.b64decode(upload.base64_data) == PDF_BYTES
    assert upload.file_name == "cv.pdf"
    assert upload.file_size == len(PDF_BYTES)
    assert upload.mime_type == "application/pdf"
    assert upload.text.startswith("[PDF Document: cv.pdf]")


def test_upload_converts_to_pdf_content():
    content = ingest_pdf("cv.pdf", "application/pdf", PDF_BYTES).to_content()

    assert isinstance(content, PdfContent)
    assert content.file_data.file_name == "cv.pdf"
    assert content.file_data.file_size == len(PDF_BYTES)


def test_extension_is_enough_when_mime_is_generic():
    upload = ingest_pdf("report.PDF", "application/octet-stream", PDF_BYTES)
    assert upload.file_name == "report.PDF"


def test_rejects_non_pdf():
    with pytest.raises(InvalidInput) as exc:
        ingest_pdf("notes.txt", "text/plain", b"hello")
    assert exc.value.message == "Invalid file type. Please upload a PDF file."


def test_rejects_large_file():
    with pytest.raises(InvalidInput) as exc:
        ingest_pdf("big.pdf", "application/pdf", b"0" * 2048, max_bytes=1024)
    assert "File too large" in exc.value.message


def test_rejects_empty_upload():
    with pytest.raises(InvalidInput):
        ingest_pdf("empty.pdf", "application/pdf", b"")


def test_file_helpers():
    assert get_extension("a.b.PDF") == "pdf"
    assert get_extension("README") == ""
    validate_pdf_type(None, "application/pdf")
