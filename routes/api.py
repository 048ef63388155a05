"""
API routes (JSON endpoints used by the mobile client).

Handles:
- /api/print-request - Submit a print order (validated, priced, emailed)
- /api/count-one     - Page count for a single file
- /api/count-pages   - Page counts for up to 5 files
"""

from typing import List

from flask import Blueprint, current_app, request
from werkzeug.datastructures import FileStorage

from config import MAX_FILE_SIZE, MAX_FILES
from core.exceptions import OrderValidationError
from logging_config import get_logger
from models.order import UploadedFile


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


def _incoming_files(field_name: str) -> List[FileStorage]:
    """File parts under ``field_name``, skipping empty form inputs."""
    return [f for f in request.files.getlist(field_name) if f and f.filename]


def _oversized(uploads: List[UploadedFile]) -> List[str]:
    max_mb = MAX_FILE_SIZE / (1024 * 1024)
    return [
        f"{u.filename} is too large. Maximum size is {max_mb:.0f} MB"
        for u in uploads
        if u.size > MAX_FILE_SIZE
    ]


@api_bp.route("/api/print-request", methods=["POST"])
def print_request():
    """
    Accept a print order.

    Responds as soon as the order is validated and priced; the notification
    email is sent afterwards in a background thread.
    """
    # Parsing the body may raise RequestEntityTooLarge; the 413 handler owns it
    incoming = _incoming_files("files")

    upload_store = current_app.config["UPLOAD_STORE"]
    pipeline = current_app.config["PIPELINE"]

    try:
        uploads = upload_store.save_all(incoming)
    except Exception as e:
        logger.error(f"Storing print request uploads failed: {e}", exc_info=True)
        return {"ok": False, "error": str(e)}, 500

    try:
        return pipeline.submit(request.form, uploads, request.form.get("filesMeta"))
    except OrderValidationError as e:
        return {"ok": False, "errors": e.errors}, 400
    except Exception as e:
        logger.error(f"Print request failed: {e}", exc_info=True)
        return {"ok": False, "error": str(e)}, 500


@api_bp.route("/api/count-one", methods=["POST"])
def count_one():
    """Count the pages of one file (clients that upload files one at a time)."""
    incoming = _incoming_files("file")
    if not incoming:
        return {"ok": False, "error": "file is required"}, 400

    upload_store = current_app.config["UPLOAD_STORE"]
    pipeline = current_app.config["PIPELINE"]

    try:
        upload = upload_store.save(incoming[0])
        logger.info(f"count-one received '{upload.filename}' ({upload.mimetype}, {upload.size} bytes)")

        errors = _oversized([upload])
        if errors:
            upload_store.discard([upload])
            return {"ok": False, "error": errors[0]}, 400

        return pipeline.count_one(upload)
    except Exception as e:
        logger.error(f"count-one failed: {e}", exc_info=True)
        return {"ok": False, "error": str(e)}, 500


@api_bp.route("/api/count-pages", methods=["POST"])
def count_pages():
    """Count the pages of up to 5 files."""
    incoming = _incoming_files("files")
    if not incoming:
        return {"ok": False, "error": "At least one file is required"}, 400
    if len(incoming) > MAX_FILES:
        return {"ok": False, "error": f"At most {MAX_FILES} files can be uploaded"}, 400

    upload_store = current_app.config["UPLOAD_STORE"]
    pipeline = current_app.config["PIPELINE"]

    try:
        uploads = upload_store.save_all(incoming)
        logger.info(f"count-pages received {len(uploads)} file(s)")

        errors = _oversized(uploads)
        if errors:
            upload_store.discard(uploads)
            return {"ok": False, "error": errors[0]}, 400

        return pipeline.count_pages(uploads)
    except Exception as e:
        logger.error(f"count-pages failed: {e}", exc_info=True)
        return {"ok": False, "error": str(e)}, 500
