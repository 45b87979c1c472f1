"""Loading of XML requirement specification tables."""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from src.shared.errors import DuplicateRequirementError, TableFormatError
from src.shared.models.coverage import RequirementRecord
from src.shared.utils import child_text, iter_named

logger = logging.getLogger(__name__)

# XML child element -> RequirementRecord field
_COLUMNS: dict[str, str] = {
    "REQ_ID": "id",
    "Doc_Sect": "doc_section",
    "Description": "description",
    "Derived": "derived",
    "Scope": "scope",
    "Actor": "actor",
    "IsNormative": "is_normative",
    "Verification": "verification",
    "Delta": "delta",
}


def _parse_row(element: ET.Element, path: Path, position: int) -> RequirementRecord:
    values = {}
    for column, field_name in _COLUMNS.items():
        text = child_text(element, column)
        if text is not None:
            values[field_name] = text

    if not values.get("id"):
        raise TableFormatError(f"Requirement #{position} in {path} has no REQ_ID")
    if "verification" not in values:
        raise TableFormatError(f"Requirement {values['id']} in {path} has no Verification")
    # A blank Scope or Actor cell is the same as a missing column.
    for optional in ("scope", "actor"):
        if optional in values and not values[optional]:
            del values[optional]

    try:
        return RequirementRecord(**values)
    except ValidationError as exc:
        raise TableFormatError(
            f"Invalid requirement {values['id']} in {path}: {exc.errors()[0]['msg']}"
        ) from exc


def load_requirement_table(path: Path | str) -> list[RequirementRecord]:
    """Parse one requirement table file.

    Raises:
        TableFormatError: if the file cannot be read or a row is invalid.
    """
    path = Path(path)
    try:
        root = ET.parse(path).getroot()
    except (ET.ParseError, OSError) as exc:
        raise TableFormatError(
            f"Unable to get requirement data from specified requirement table file {path}. "
            f"Details: {exc}"
        ) from exc

    rows = [
        _parse_row(element, path, position)
        for position, element in enumerate(iter_named(root, "Requirement"), start=1)
    ]
    logger.info("Loaded %d requirements from %s", len(rows), path)
    return rows


def load_requirement_tables(paths: Iterable[Path | str]) -> list[RequirementRecord]:
    """Load and merge several tables in the given order.

    Raises:
        DuplicateRequirementError: if the same Req_ID appears twice.
    """
    merged: dict[str, RequirementRecord] = {}
    for path in paths:
        for record in load_requirement_table(path):
            if record.id in merged:
                raise DuplicateRequirementError(record.id, record.id)
            merged[record.id] = record
    return list(merged.values())
