"""Parsing of the Derived column into typed derivation edges."""
from __future__ import annotations

from src.shared.constants import (
    DEFAULT_DERIVATION_CODE,
    DERIVATION_SEPARATOR,
    DERIVATION_TYPE_SEPARATOR,
)
from src.shared.errors import DerivationFormatError
from src.shared.models.coverage import DerivationEdge, DerivedType


def parse_derivation(requirement_id: str, text: str) -> list[DerivationEdge]:
    """Split ``"R1:i, R2:c"`` style text into edges pointing at *requirement_id*.

    Original IDs are returned as written; resolution against the table is
    done by the caller.  Blank terms between separators are skipped.

    Raises:
        DerivationFormatError: if a term has more than one ``:``, an empty
            original ID, or a type letter other than ``i``/``p``/``c``.
    """
    edges: list[DerivationEdge] = []
    if not text or not text.strip():
        return edges

    for raw_term in text.split(DERIVATION_SEPARATOR):
        term = raw_term.strip()
        if not term:
            continue
        parts = term.split(DERIVATION_TYPE_SEPARATOR)
        if len(parts) > 2:
            raise DerivationFormatError(requirement_id, term)

        parent_id = parts[0].strip()
        if not parent_id:
            raise DerivationFormatError(requirement_id, term)

        # "R1:" with no letter counts as the default type
        code = (parts[1].strip() if len(parts) == 2 else "") or DEFAULT_DERIVATION_CODE
        try:
            derived_type = DerivedType.from_code(code)
        except ValueError:
            raise DerivationFormatError(requirement_id, term) from None

        edges.append(
            DerivationEdge(child_id=requirement_id, parent_id=parent_id, type=derived_type)
        )
    return edges
