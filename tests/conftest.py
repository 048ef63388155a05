"""Shared fixtures: in-memory PDFs, stored uploads and a test app."""

from io import BytesIO
from pathlib import Path

import pytest
from pypdf import PdfWriter

from models.order import UploadedFile
from services.upload_store import UploadStore


def make_pdf_bytes(pages: int) -> bytes:
    """Build a PDF with ``pages`` blank A4 pages."""
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=595, height=842)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


# A few bytes that look like a PNG header; enough for an "image" upload
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def pdf_bytes():
    """Factory: pdf_bytes(10) -> bytes of a 10-page PDF."""
    return make_pdf_bytes


@pytest.fixture
def upload_folder(tmp_path):
    folder = tmp_path / "uploads"
    folder.mkdir()
    return folder


@pytest.fixture
def upload_store(upload_folder):
    return UploadStore(upload_folder)


@pytest.fixture
def make_upload(upload_folder):
    """Factory writing content into the upload folder and returning an UploadedFile."""
    counter = {"n": 0}

    def _make(filename: str, content: bytes, mimetype: str = "application/pdf") -> UploadedFile:
        counter["n"] += 1
        path = Path(upload_folder) / f"{counter['n']}-{filename}"
        path.write_bytes(content)
        return UploadedFile(
            filename=filename,
            mimetype=mimetype,
            size=len(content),
            path=path,
        )

    return _make


@pytest.fixture
def app(upload_folder):
    from app import create_app

    flask_app = create_app(
        "config.TestingConfig",
        {"UPLOAD_FOLDER": str(upload_folder)},
    )
    yield flask_app
    flask_app.config["NOTIFICATION_SERVICE"].shutdown()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def png_bytes():
    return PNG_BYTES
