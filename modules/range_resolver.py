"""Billed-page resolution from client page selections."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Union

from logging_config import get_logger
from models.order import FileSelection


logger = get_logger(__name__)

SELECT_MODES = ("whole", "range")


def resolve(total_pages: int, selection: Optional[FileSelection] = None) -> int:
    """
    Number of pages to bill for one file.

    Args:
        total_pages: Pages detected in the file (0 = undetermined)
        selection: Client selection for this file, if any

    Returns:
        Billed pages, never negative. Out-of-range page numbers are clamped
        into [1, total_pages]; an inverted range bills 0 pages. When the
        total is undetermined, a positive manual override is used as-is.
    """
    if total_pages <= 0:
        if selection is not None and selection.has_manual_override:
            return selection.manual_pages
        return 0

    if selection is None or not selection.is_range:
        return total_pages

    start, end = selection.page_bounds(total_pages)
    return max(0, end - start + 1)


def _to_int(value: Any) -> Optional[int]:
    """Lenient integer parsing for client-supplied numbers ('3', 3.0, 3)."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return int(number)


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def parse_files_meta(
    raw: Union[str, List[Any], None],
    file_count: int,
) -> Dict[int, FileSelection]:
    """
    Build the index -> FileSelection mapping from the ``filesMeta`` field.

    ``raw`` is the JSON text sent by the client (or an already decoded list):
    ``[{index, isPdf, selectMode, rangeFrom, rangeTo, manualPages}, ...]``.
    Malformed payloads yield an empty mapping, and entries whose index is
    not a position in the upload list are dropped.
    """
    if not raw:
        return {}

    entries = raw
    if isinstance(raw, (str, bytes)):
        try:
            entries = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring malformed filesMeta payload")
            return {}

    if not isinstance(entries, list):
        return {}

    selections: Dict[int, FileSelection] = {}
    for entry in entries:
        if not isinstance(entry, dict):
            continue

        index = _to_int(entry.get("index"))
        if index is None or not 0 <= index < file_count:
            logger.debug(f"Dropping filesMeta entry with index {entry.get('index')!r}")
            continue

        mode = entry.get("selectMode")
        selections[index] = FileSelection(
            index=index,
            is_pdf=_to_bool(entry.get("isPdf", False)),
            select_mode=mode if mode in SELECT_MODES else "whole",
            range_from=_to_int(entry.get("rangeFrom")),
            range_to=_to_int(entry.get("rangeTo")),
            manual_pages=_to_int(entry.get("manualPages")),
        )

    return selections
