"""Shared test fixtures for the req-coverage test suite."""
from __future__ import annotations

from pathlib import Path
from typing import Callable
from xml.sax.saxutils import escape

import pytest

from src.shared.models.coverage import CoverageEvidence, EvidenceCollection, RequirementRecord
from src.req_coverage.config import ScopeConfig, ScopeRules, build_scope_rules


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


def make_record(req_id: str, **overrides) -> RequirementRecord:
    """Build an in-scope normative Test Case requirement with *overrides*."""
    values = {
        "id": req_id,
        "verification": "Test Case",
        "is_normative": True,
        "scope": "Server",
        "description": f"Description of {req_id}",
        "doc_section": "2.2",
    }
    values.update(overrides)
    return RequirementRecord(**values)


def make_evidence(*req_ids: str, timestamp: str = "2024-01-01T00:00:00") -> EvidenceCollection:
    """Evidence collection covering *req_ids* from a single log."""
    return EvidenceCollection(
        evidence={
            req_id: CoverageEvidence(
                requirement_id=req_id, timestamp=timestamp, sources=["run.xml"]
            )
            for req_id in req_ids
        }
    )


@pytest.fixture
def default_rules() -> ScopeRules:
    """Scope rules built from the default Server+Both / Client values."""
    return build_scope_rules(ScopeConfig())


@pytest.fixture
def sample_record() -> RequirementRecord:
    return make_record("MS-XXXX_R1")


# ---------------------------------------------------------------------------
# XML file fixtures
# ---------------------------------------------------------------------------


def _element(name: str, value) -> str:
    if value is None:
        return ""
    return f"<{name}>{escape(str(value))}</{name}>"


@pytest.fixture
def write_table(tmp_path: Path) -> Callable[..., Path]:
    """Return a writer that stores requirement dicts as a table XML file."""

    def _write(rows: list[dict], name: str = "table.xml") -> Path:
        body = []
        for row in rows:
            cells = "".join(
                _element(column, row.get(column))
                for column in (
                    "REQ_ID", "Doc_Sect", "Description", "Derived", "Scope",
                    "Actor", "IsNormative", "Verification", "Delta",
                )
            )
            body.append(f"  <Requirement>{cells}</Requirement>")
        path = tmp_path / name
        path.write_text(
            '<?xml version="1.0" encoding="utf-8"?>\n<ReqTable>\n'
            + "\n".join(body)
            + "\n</ReqTable>\n",
            encoding="utf-8",
        )
        return path

    return _write


@pytest.fixture
def write_log(tmp_path: Path) -> Callable[..., Path]:
    """Return a writer that stores ``(kind, message, test_case, timestamp)`` tuples as a test log."""

    def _write(entries: list[tuple], name: str = "log.xml") -> Path:
        body = []
        for entry in entries:
            kind, message = entry[0], entry[1]
            test_case = entry[2] if len(entry) > 2 else None
            timestamp = entry[3] if len(entry) > 3 else "2024-01-01T10:00:00"
            attrs = f'kind="{kind}" timeStamp="{timestamp}"'
            if test_case:
                attrs += f' testCase="{escape(test_case)}"'
            body.append(f"  <LogEntry {attrs}><Message>{escape(message)}</Message></LogEntry>")
        path = tmp_path / name
        path.write_text(
            '<?xml version="1.0" encoding="utf-8"?>\n<TestLog>\n'
            + "\n".join(body)
            + "\n</TestLog>\n",
            encoding="utf-8",
        )
        return path

    return _write
