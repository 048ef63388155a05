"""
Print order validation.

Turns the raw multipart fields, the stored uploads and the client page
selections into an Order, or raises OrderValidationError listing every
violated constraint at once.
"""

from __future__ import annotations

import html
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import bleach

from config import MAX_FILE_SIZE, MAX_FILES
from core.exceptions import OrderValidationError
from logging_config import get_logger
from models.dispatch_result import RequestState
from models.order import BilledFile, FileSelection, Order, PrintOptions, UploadedFile
from modules.page_counter import PageCounter
from modules.range_resolver import parse_files_meta, resolve


logger = get_logger(__name__)

# Egyptian mobile numbers: optional +20 / 0020 / 20 / 0 prefix, then 10/11/12/15, then 8 digits
MOBILE_PATTERN = re.compile(r"^(?:\+?20|0020|0)?1[0125]\d{8}$")
MOBILE_SEPARATORS = re.compile(r"[\s-]")

COLOR_MODES = ("color", "monochrome")
COLOR_MODE_ALIASES = {"bw": "monochrome"}
PAPER_SIZES = ("A4", "A3")
SIDES = ("single", "double")

MIN_COPIES, MAX_COPIES = 1, 100
MIN_PAGES, MAX_PAGES = 1, 10000

MAX_NAME_LENGTH = 200
MAX_ADDRESS_LENGTH = 500
MAX_NOTES_LENGTH = 2000

ALLOWED_MIME_TYPES = frozenset({
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/bmp",
    "image/heic",
    "image/heif",
    "application/octet-stream",
})
ALLOWED_EXTENSIONS = frozenset({
    "pdf", "doc", "docx", "jpg", "jpeg", "png", "gif", "webp", "bmp", "heic", "heif",
})

Selections = Union[Mapping[int, FileSelection], str, List[Any], None]


def normalize_mobile(mobile: Optional[str]) -> str:
    """Strip whitespace and hyphens from a phone number."""
    return MOBILE_SEPARATORS.sub("", str(mobile or ""))


def is_valid_mobile(mobile: Optional[str]) -> bool:
    normalized = normalize_mobile(mobile)
    return bool(normalized) and MOBILE_PATTERN.match(normalized) is not None


def is_allowed_file(filename: str, mimetype: str) -> bool:
    """Accept a file by its declared MIME type or by its extension."""
    if mimetype in ALLOWED_MIME_TYPES:
        return True
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


def sanitize_text(text: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Strip HTML markup from user input.

    Args:
        text: Raw input text
        max_length: Optional maximum length to enforce

    Returns:
        Plain text; entities are decoded since the email templates escape on output
    """
    if not text:
        return ""

    text = bleach.clean(str(text).strip(), tags=[], strip=True)
    text = html.unescape(text).strip()

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def _parse_copies(raw: Any) -> Optional[int]:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return 1
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return None
    if not number.is_integer():
        return None
    return int(number)


class OrderValidator:
    """
    Validate a print submission and build the Order.

    Never stops at the first problem: every check runs and all messages are
    reported together. The validator reads the uploads for page counting but
    does not delete them; the pipeline owns the upload lifecycle.
    """

    def __init__(self, page_counter: Optional[PageCounter] = None) -> None:
        self.page_counter = page_counter or PageCounter()

    def validate(
        self,
        raw_fields: Mapping[str, Any],
        raw_files: Sequence[UploadedFile],
        raw_selections: Selections = None,
    ) -> Order:
        """
        Args:
            raw_fields: Form fields (name, mobile, address, notes, colorMode,
                paperSize, sides, copies)
            raw_files: Files already stored by the upload layer
            raw_selections: index -> FileSelection mapping, or the raw
                ``filesMeta`` JSON text

        Returns:
            Order without a price quote

        Raises:
            OrderValidationError: With the full list of error messages
        """
        errors: List[str] = []

        name = sanitize_text(raw_fields.get("name"), MAX_NAME_LENGTH)
        if not name:
            errors.append("Name is required")

        mobile = normalize_mobile(raw_fields.get("mobile"))
        if not is_valid_mobile(mobile):
            errors.append("Valid Egypt mobile number is required")

        address = sanitize_text(raw_fields.get("address"), MAX_ADDRESS_LENGTH)
        if not address:
            errors.append("Delivery address is required")

        notes = sanitize_text(raw_fields.get("notes"), MAX_NOTES_LENGTH)

        files = list(raw_files or [])
        errors.extend(self._check_files(files))

        options = self._parse_options(raw_fields, errors)

        if isinstance(raw_selections, Mapping):
            selections: Dict[int, FileSelection] = {
                index: selection
                for index, selection in raw_selections.items()
                if 0 <= index < len(files)
            }
        else:
            selections = parse_files_meta(raw_selections, len(files))

        billed_files = self._count_files(files, selections)
        if files:
            total_pages = sum(f.billed_pages for f in billed_files)
            if not MIN_PAGES <= total_pages <= MAX_PAGES:
                errors.append("Could not determine total pages from uploaded files")

        if errors:
            logger.info(f"Order rejected: {len(errors)} validation error(s)")
            raise OrderValidationError(errors)

        return Order(
            name=name,
            mobile=mobile,
            address=address,
            notes=notes,
            options=options,
            files=tuple(billed_files),
        )

    @staticmethod
    def _check_files(files: Sequence[UploadedFile]) -> List[str]:
        errors: List[str] = []

        if not files:
            errors.append("At least one file is required")
        elif len(files) > MAX_FILES:
            errors.append(f"At most {MAX_FILES} files can be uploaded")

        max_mb = MAX_FILE_SIZE / (1024 * 1024)
        for upload in files:
            if upload.size > MAX_FILE_SIZE:
                errors.append(f"{upload.filename} is too large. Maximum size is {max_mb:.0f} MB")
            if not is_allowed_file(upload.filename, upload.mimetype):
                errors.append(f"Unsupported file type: {upload.mimetype} for {upload.filename}")

        return errors

    @staticmethod
    def _parse_options(raw_fields: Mapping[str, Any], errors: List[str]) -> PrintOptions:
        color_mode = raw_fields.get("colorMode") or "color"
        color_mode = COLOR_MODE_ALIASES.get(color_mode, color_mode)
        if color_mode not in COLOR_MODES:
            errors.append("colorMode must be one of: color, monochrome")

        paper_size = raw_fields.get("paperSize") or "A4"
        if paper_size not in PAPER_SIZES:
            errors.append("paperSize must be one of: A4, A3")

        sides = raw_fields.get("sides") or "single"
        if sides not in SIDES:
            errors.append("sides must be one of: single, double")

        copies = _parse_copies(raw_fields.get("copies"))
        if copies is None or not MIN_COPIES <= copies <= MAX_COPIES:
            errors.append(f"copies must be an integer between {MIN_COPIES} and {MAX_COPIES}")
            copies = MIN_COPIES

        return PrintOptions(
            color_mode=color_mode,
            paper_size=paper_size,
            sides=sides,
            copies=copies,
        )

    def _count_files(
        self,
        files: Sequence[UploadedFile],
        selections: Mapping[int, FileSelection],
    ) -> List[BilledFile]:
        logger.debug(f"Print request -> {RequestState.COUNTING.value}: {len(files)} file(s)")
        billed: List[BilledFile] = []
        for index, upload in enumerate(files):
            selection = selections.get(index)
            total = self.page_counter.count(upload)
            pages = resolve(total, selection)
            logger.debug(
                f"File {index} '{upload.filename}': detected={total}, billed={pages}"
            )
            billed.append(BilledFile(
                upload=upload,
                total_pages=total,
                billed_pages=pages,
                selection=selection,
            ))
        return billed
