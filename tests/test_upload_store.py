"""
Unit tests for the UploadStore.
"""

from io import BytesIO

from werkzeug.datastructures import FileStorage

from services.upload_store import UploadStore


def _file(name, content=b"data", mimetype="application/pdf"):
    return FileStorage(stream=BytesIO(content), filename=name, content_type=mimetype)


class TestUploadStore:
    """Saving and deleting temporary uploads."""

    def test_creates_folder(self, tmp_path):
        folder = tmp_path / "nested" / "uploads"
        UploadStore(folder)
        assert folder.is_dir()

    def test_save_keeps_original_metadata(self, upload_store, upload_folder):
        upload = upload_store.save(_file("My Thesis (final).pdf", b"12345"))

        assert upload.filename == "My Thesis (final).pdf"
        assert upload.mimetype == "application/pdf"
        assert upload.size == 5
        assert upload.path.parent == upload_folder
        assert upload.path.read_bytes() == b"12345"
        assert " " not in upload.path.name

    def test_unique_names_for_same_file(self, upload_store):
        first = upload_store.save(_file("doc.pdf"))
        second = upload_store.save(_file("doc.pdf"))
        assert first.path != second.path

    def test_unsafe_name_is_sanitized(self, upload_store, upload_folder):
        upload = upload_store.save(_file("../../etc/passwd"))
        assert upload.path.parent == upload_folder

    def test_save_all(self, upload_store):
        uploads = upload_store.save_all([_file("a.pdf"), _file("b.png", mimetype="image/png")])
        assert [u.filename for u in uploads] == ["a.pdf", "b.png"]

    def test_discard_removes_files(self, upload_store):
        upload = upload_store.save(_file("doc.pdf"))
        upload_store.discard([upload])
        assert not upload.path.exists()

    def test_discard_is_idempotent(self, upload_store):
        """Deleting an already-deleted file does not raise."""
        upload = upload_store.save(_file("doc.pdf"))
        upload_store.discard([upload])
        upload_store.discard([upload])
        assert not upload.path.exists()
