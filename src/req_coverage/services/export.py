"""JSON export of a coverage result."""
from __future__ import annotations

import logging
from pathlib import Path

from src.shared.models.coverage import CoverageResult

logger = logging.getLogger(__name__)


def write_coverage_result(result: CoverageResult, path: Path | str, replace: bool = False) -> Path:
    """Write *result* as indented JSON with requirements sorted by ID.

    Raises:
        FileExistsError: if *path* exists and *replace* is false.
    """
    path = Path(path)
    if path.exists() and not replace:
        raise FileExistsError(
            f"The output file {path} already exists, use the replace option to overwrite it."
        )

    ordered = result.model_copy(
        update={"requirements": sorted(result.requirements, key=lambda r: r.requirement_id)}
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(ordered.model_dump_json(indent=2), encoding="utf-8")
    logger.info("Wrote coverage result to %s", path)
    return path
