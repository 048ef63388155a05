"""
Unit tests for billed-page resolution and filesMeta parsing.
"""

import json
from pathlib import Path

from models.order import BilledFile, FileSelection, UploadedFile
from modules.range_resolver import parse_files_meta, resolve


def _range(start, end, **kwargs):
    return FileSelection(index=0, is_pdf=True, select_mode="range", range_from=start, range_to=end, **kwargs)


# Tests for resolve

class TestResolve:
    """Test resolve() clamping and override rules."""

    def test_no_selection_bills_whole_file(self):
        assert resolve(10) == 10

    def test_whole_mode_bills_whole_file(self):
        selection = FileSelection(index=0, is_pdf=True, select_mode="whole")
        assert resolve(10, selection) == 10

    def test_range_is_inclusive(self):
        assert resolve(10, _range(3, 7)) == 5

    def test_range_clamped_to_document(self):
        """Out-of-bounds page numbers are clamped into [1, total]."""
        assert resolve(10, _range(-5, 999)) == 10

    def test_inverted_range_bills_nothing(self):
        assert resolve(10, _range(8, 3)) == 0

    def test_missing_bounds_default_to_document_edges(self):
        assert resolve(10, _range(None, 4)) == 4
        assert resolve(10, _range(6, None)) == 5

    def test_range_ignored_for_non_pdf(self):
        """The applicability flag gates range selection."""
        selection = FileSelection(index=0, is_pdf=False, select_mode="range", range_from=2, range_to=3)
        assert resolve(1, selection) == 1

    def test_undetermined_without_override_bills_nothing(self):
        assert resolve(0) == 0
        assert resolve(0, _range(1, 5)) == 0

    def test_manual_override_used_when_undetermined(self):
        selection = FileSelection(index=0, is_pdf=True, manual_pages=12)
        assert resolve(0, selection) == 12

    def test_manual_override_ignored_when_detected(self):
        """Detection wins over the typed-in count when it succeeded."""
        selection = FileSelection(index=0, is_pdf=True, manual_pages=12)
        assert resolve(4, selection) == 4

    def test_non_positive_override_ignored(self):
        selection = FileSelection(index=0, is_pdf=True, manual_pages=0)
        assert resolve(0, selection) == 0


# Tests for parse_files_meta

class TestParseFilesMeta:
    """Lenient parsing of the client filesMeta payload."""

    def test_parses_entries_by_index(self):
        raw = json.dumps([
            {"index": 0, "isPdf": True, "selectMode": "range", "rangeFrom": 3, "rangeTo": "7"},
            {"index": 1, "isPdf": False, "selectMode": "whole"},
        ])
        selections = parse_files_meta(raw, file_count=2)

        assert set(selections) == {0, 1}
        assert selections[0].is_range
        assert selections[0].range_from == 3
        assert selections[0].range_to == 7
        assert not selections[1].is_range

    def test_out_of_bounds_indices_dropped(self):
        raw = json.dumps([
            {"index": -1, "isPdf": True},
            {"index": 2, "isPdf": True},
            {"index": "1", "isPdf": True},
        ])
        selections = parse_files_meta(raw, file_count=2)
        assert list(selections) == [1]

    def test_malformed_json_ignored(self):
        assert parse_files_meta("{not json", file_count=3) == {}

    def test_non_list_payload_ignored(self):
        assert parse_files_meta(json.dumps({"index": 0}), file_count=1) == {}

    def test_empty_payload(self):
        assert parse_files_meta(None, file_count=1) == {}
        assert parse_files_meta("", file_count=1) == {}

    def test_bad_numbers_become_none(self):
        raw = [{"index": 0, "isPdf": True, "selectMode": "range", "rangeFrom": "abc", "rangeTo": None}]
        selection = parse_files_meta(raw, file_count=1)[0]
        assert selection.range_from is None
        assert selection.range_to is None

    def test_unknown_mode_treated_as_whole(self):
        raw = [{"index": 0, "isPdf": True, "selectMode": "odd-pages"}]
        assert parse_files_meta(raw, file_count=1)[0].select_mode == "whole"

    def test_manual_pages_parsed(self):
        raw = [{"index": 0, "isPdf": True, "manualPages": "8"}]
        assert parse_files_meta(raw, file_count=1)[0].manual_pages == 8


# Tests for range labels

class TestRangeLabel:
    """The label shown to the administrator matches the billed pages."""

    @staticmethod
    def _billed(selection, total_pages=10):
        upload = UploadedFile(filename="doc.pdf", mimetype="application/pdf", size=100, path=Path("doc.pdf"))
        return BilledFile(
            upload=upload,
            total_pages=total_pages,
            billed_pages=resolve(total_pages, selection),
            selection=selection,
        )

    def test_out_of_range_pages_are_clamped(self):
        billed = self._billed(_range(-5, 999))
        assert billed.range_label == "1-10"
        assert billed.billed_pages == 10

    def test_open_ended_range(self):
        assert self._billed(_range(4, None)).range_label == "4-10"

    def test_page_bounds(self):
        assert _range(0, 50).page_bounds(10) == (1, 10)
        assert _range(7, 3).page_bounds(10) == (7, 3)

    def test_no_label_without_range(self):
        assert self._billed(None).range_label is None
        assert self._billed(_range(3, 7), total_pages=0).range_label is None
