"""
Unit tests for the OrderValidator.

Covers field checks, error accumulation and the page total computed through
the PageCounter and range selections.
"""

import json
from unittest.mock import MagicMock

import pytest

from config import MAX_FILE_SIZE
from core.exceptions import OrderValidationError
from models.order import FileSelection
from modules.validator import (
    OrderValidator,
    is_allowed_file,
    is_valid_mobile,
    sanitize_text,
)


# Fixtures

@pytest.fixture
def valid_fields():
    return {
        "name": "Mona Hassan",
        "mobile": "010 1234-5678",
        "address": "12 Nile Street, Cairo",
    }


@pytest.fixture
def fixed_counter():
    """Page counter that reports 10 pages for every file."""
    counter = MagicMock()
    counter.count.return_value = 10
    return counter


@pytest.fixture
def validator(fixed_counter):
    return OrderValidator(fixed_counter)


def _errors(excinfo):
    return excinfo.value.errors


# Tests for mobile number validation

class TestMobileValidation:
    """Egyptian mobile numbers with optional country/trunk prefix."""

    @pytest.mark.parametrize("mobile", [
        "01012345678",
        "+201012345678",
        "00201012345678",
        "201512345678",
        "1112345678",
        "010-1234 5678",
    ])
    def test_accepts_valid_numbers(self, mobile):
        assert is_valid_mobile(mobile)

    @pytest.mark.parametrize("mobile", [
        "0301234567",
        "01312345678",
        "0101234567",
        "+1 555 123 4567",
        "",
        None,
    ])
    def test_rejects_invalid_numbers(self, mobile):
        assert not is_valid_mobile(mobile)


# Tests for helpers

class TestHelpers:
    """Sanitizing and file-type checks."""

    def test_sanitize_strips_markup(self):
        assert sanitize_text("  <b>Mona</b> <script>x</script> ") == "Mona x"

    def test_sanitize_keeps_ampersands_readable(self):
        assert sanitize_text("Building 4 & 5") == "Building 4 & 5"

    def test_sanitize_truncates(self):
        assert sanitize_text("abcdef", max_length=3) == "abc"

    def test_sanitize_empty(self):
        assert sanitize_text(None) == ""

    def test_allowed_by_mime_or_extension(self):
        assert is_allowed_file("x.bin", "application/pdf")
        assert is_allowed_file("photo.HEIC", "video/quicktime")
        assert not is_allowed_file("archive.zip", "application/zip")


# Tests for field validation

class TestFieldValidation:
    """Every violated constraint is reported."""

    def test_valid_order_with_defaults(self, validator, valid_fields, make_upload):
        upload = make_upload("doc.pdf", b"%PDF")
        order = validator.validate(valid_fields, [upload])

        assert order.name == "Mona Hassan"
        assert order.mobile == "01012345678"
        assert order.options.color_mode == "color"
        assert order.options.paper_size == "A4"
        assert order.options.sides == "single"
        assert order.options.copies == 1
        assert order.total_pages == 10
        assert order.quote is None

    def test_accumulates_all_errors(self, validator):
        """Empty name, bad phone and no files are all reported together."""
        with pytest.raises(OrderValidationError) as excinfo:
            validator.validate({"name": "  ", "mobile": "123", "address": ""}, [])

        errors = _errors(excinfo)
        assert len(errors) >= 3
        assert "Name is required" in errors
        assert "Valid Egypt mobile number is required" in errors
        assert "Delivery address is required" in errors
        assert "At least one file is required" in errors

    def test_rejects_bad_options(self, validator, valid_fields, make_upload):
        fields = dict(valid_fields, colorMode="sepia", paperSize="Letter", sides="triple", copies="0")
        with pytest.raises(OrderValidationError) as excinfo:
            validator.validate(fields, [make_upload("doc.pdf", b"%PDF")])

        errors = _errors(excinfo)
        assert len(errors) == 4
        assert "colorMode must be one of: color, monochrome" in errors
        assert "paperSize must be one of: A4, A3" in errors
        assert "sides must be one of: single, double" in errors
        assert "copies must be an integer between 1 and 100" in errors

    @pytest.mark.parametrize("copies", ["101", "2.5", "abc", "-1"])
    def test_rejects_bad_copies(self, validator, valid_fields, make_upload, copies):
        with pytest.raises(OrderValidationError):
            validator.validate(dict(valid_fields, copies=copies), [make_upload("doc.pdf", b"%PDF")])

    def test_accepts_legacy_bw_color_mode(self, validator, valid_fields, make_upload):
        order = validator.validate(dict(valid_fields, colorMode="bw"), [make_upload("doc.pdf", b"%PDF")])
        assert order.options.color_mode == "monochrome"

    def test_rejects_too_many_files(self, validator, valid_fields, make_upload):
        uploads = [make_upload(f"doc{i}.pdf", b"%PDF") for i in range(6)]
        with pytest.raises(OrderValidationError) as excinfo:
            validator.validate(valid_fields, uploads)
        assert "At most 5 files can be uploaded" in _errors(excinfo)

    def test_rejects_oversized_and_unsupported_files(self, validator, valid_fields, make_upload):
        big = make_upload("big.pdf", b"%PDF")
        big = type(big)(filename=big.filename, mimetype=big.mimetype, size=MAX_FILE_SIZE + 1, path=big.path)
        archive = make_upload("files.zip", b"PK", mimetype="application/zip")

        with pytest.raises(OrderValidationError) as excinfo:
            validator.validate(valid_fields, [big, archive])

        errors = _errors(excinfo)
        assert any("big.pdf is too large" in e for e in errors)
        assert any("Unsupported file type" in e for e in errors)

    def test_does_not_delete_uploads(self, validator, make_upload):
        upload = make_upload("doc.pdf", b"%PDF")
        with pytest.raises(OrderValidationError):
            validator.validate({}, [upload])
        assert upload.path.exists()


# Tests for page totals

class TestPageTotals:
    """Aggregate billed pages go through the counter and the selections."""

    def test_applies_range_selection_from_files_meta(self, validator, valid_fields, make_upload):
        meta = json.dumps([{"index": 0, "isPdf": True, "selectMode": "range", "rangeFrom": 3, "rangeTo": 7}])
        order = validator.validate(valid_fields, [make_upload("doc.pdf", b"%PDF")], meta)

        assert order.total_pages == 5
        assert order.files[0].total_pages == 10
        assert order.files[0].range_label == "3-7"

    def test_accepts_selection_mapping(self, validator, valid_fields, make_upload):
        selections = {
            0: FileSelection(index=0, is_pdf=True, select_mode="range", range_from=1, range_to=2),
            7: FileSelection(index=7, is_pdf=True, select_mode="range", range_from=1, range_to=1),
        }
        order = validator.validate(valid_fields, [make_upload("doc.pdf", b"%PDF")], selections)
        assert order.total_pages == 2

    def test_undetermined_pages_rejected(self, valid_fields, make_upload):
        counter = MagicMock()
        counter.count.return_value = 0
        validator = OrderValidator(counter)

        with pytest.raises(OrderValidationError) as excinfo:
            validator.validate(valid_fields, [make_upload("a.pdf", b"x"), make_upload("b.pdf", b"y")])
        assert _errors(excinfo) == ["Could not determine total pages from uploaded files"]

    def test_manual_override_rescues_undetermined_file(self, valid_fields, make_upload):
        counter = MagicMock()
        counter.count.return_value = 0
        validator = OrderValidator(counter)
        meta = [{"index": 0, "isPdf": True, "manualPages": 6}]

        order = validator.validate(valid_fields, [make_upload("a.pdf", b"x")], meta)
        assert order.total_pages == 6

    def test_page_total_upper_bound(self, valid_fields, make_upload):
        counter = MagicMock()
        counter.count.return_value = 10001
        with pytest.raises(OrderValidationError):
            OrderValidator(counter).validate(valid_fields, [make_upload("a.pdf", b"x")])

    def test_real_pdf_with_range(self, valid_fields, make_upload, pdf_bytes):
        """10-page PDF, pages 3-7 selected: 5 billed pages."""
        meta = [{"index": 0, "isPdf": True, "selectMode": "range", "rangeFrom": 3, "rangeTo": 7}]
        order = OrderValidator().validate(
            dict(valid_fields, colorMode="monochrome", sides="single", copies="2"),
            [make_upload("thesis.pdf", pdf_bytes(10))],
            meta,
        )
        assert order.total_pages == 5
        assert order.options.copies == 2
