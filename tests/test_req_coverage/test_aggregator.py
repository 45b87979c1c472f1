"""Tests for reconcile_evidence and Aggregator -- inconsistencies and duplicate-aware counts."""
from __future__ import annotations

from src.shared.constants import NON_EXIST
from src.shared.models.coverage import (
    EvidenceCollection,
    ExcludedRequirement,
    FinalStatus,
)
from src.req_coverage.engine import CoverageEngine
from src.req_coverage.services.aggregator import reconcile_evidence
from tests.conftest import make_evidence, make_record


def _table(rows):
    return CoverageEngine().analyze_table(rows)


def _classifications(items):
    return {item.requirement_id: item.classification for item in items}


# ---------------------------------------------------------------------------
# reconcile_evidence
# ---------------------------------------------------------------------------


class TestReconcileEvidence:
    """Classification of log evidence against the table."""

    def _rows(self):
        return [
            make_record("R1"),
            make_record("R2", verification="Unverified"),
            make_record("R3", verification="Non-testable"),
            make_record("R4", verification="Deleted"),
            make_record("R5", scope="Client", verification="Non-testable"),
            make_record("R6", scope="Client"),
        ]

    def test_accepts_testable_to_verify(self):
        table = _table(self._rows())
        verified, errors = reconcile_evidence(make_evidence("R1"), table.index, table.classification)
        assert list(verified) == ["R1"]
        assert verified["R1"].sources == ["run.xml"]
        assert errors == []

    def test_unknown_id(self):
        table = _table(self._rows())
        _, errors = reconcile_evidence(make_evidence("R9"), table.index, table.classification)
        assert _classifications(errors) == {"R9": NON_EXIST}

    def test_declared_unverified(self):
        table = _table(self._rows())
        verified, errors = reconcile_evidence(make_evidence("R2"), table.index, table.classification)
        assert verified == {}
        assert _classifications(errors) == {"R2": "Unverified"}

    def test_non_testable_deleted_and_out_of_scope(self):
        table = _table(self._rows())
        verified, errors = reconcile_evidence(
            make_evidence("R3", "R4", "R5", "R6"), table.index, table.classification
        )
        assert verified == {}
        assert _classifications(errors) == {
            "R3": "Non-testable",
            "R4": "Deleted",
            "R5": "Non-testable",
        }

    def test_case_insensitive_log_id(self):
        table = _table(self._rows())
        verified, _ = reconcile_evidence(make_evidence("r1"), table.index, table.classification)
        assert list(verified) == ["R1"]
        assert verified["R1"].requirement_id == "R1"

    def test_unknown_excluded_id(self):
        table = _table(self._rows())
        evidence = EvidenceCollection(
            excluded={
                "R8": ExcludedRequirement(requirement_id="R8", test_case="T1", test_result="TestFailed"),
                "R1": ExcludedRequirement(requirement_id="R1", test_case="T1", test_result="TestFailed"),
            }
        )
        _, errors = reconcile_evidence(evidence, table.index, table.classification)
        assert _classifications(errors) == {"R8": NON_EXIST}


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


class TestStatistics:
    """Final counts combine leaves and derivation roots without double counting."""

    def test_plain_table(self):
        rows = [make_record("R1"), make_record("R2"), make_record("R3", verification="Non-testable")]
        result = CoverageEngine().run(rows, make_evidence("R1"))
        stats = result.statistics
        assert stats.total_count == 3
        assert stats.to_verify_count == 2
        assert stats.verified_count == 1
        assert stats.unverified_count == 1
        assert stats.final_to_verify == 2
        assert stats.final_verified == 1
        assert stats.final_unverified == 1
        assert stats.derived_total == 0

    def test_non_testable_root_counts_once(self):
        rows = [make_record("R1", verification="Non-testable"), make_record("R2", derived="R1")]
        result = CoverageEngine().run(rows, make_evidence("R2"))
        stats = result.statistics
        assert stats.total_original_count == 1
        assert stats.final_to_verify == 1
        assert stats.final_verified == 1
        assert result.status_of("R1") is FinalStatus.VERIFIED

    def test_duplicate_accounting_never_exceeds_distinct(self):
        rows = [make_record("R1"), make_record("R2", derived="R1")]
        result = CoverageEngine().run(rows, make_evidence("R1", "R2"))
        stats = result.statistics
        assert stats.duplicate_requirements_count == 2
        assert stats.duplicate_verified_count == 2
        assert stats.final_verified <= stats.final_to_verify <= len(rows)
        assert stats.final_verified == 1

    def test_informative_root_not_counted(self):
        rows = [
            make_record("R1", is_normative=False),
            make_record("R0"),
            make_record("R2", derived="R1, R0"),
        ]
        result = CoverageEngine().run(rows, make_evidence("R2"))
        assert result.statistics.total_original_count == 1
        assert result.status_of("R1") is FinalStatus.NOT_APPLICABLE
        assert result.status_of("R0") is FinalStatus.VERIFIED

    def test_derived_counts(self):
        rows = [
            make_record("R1"),
            make_record("R2", derived="R1:c"),
            make_record("R3", derived="R1:c"),
        ]
        stats = CoverageEngine().run(rows, make_evidence("R2")).statistics
        assert stats.derived_total == 2
        assert stats.derived_verified == 1
        assert stats.derived_unverified == 1
        assert stats.derived_verified_ratio() == 0.5

    def test_partial_derived_counts_as_verified(self):
        rows = [
            make_record("R1"),
            make_record("R2", derived="R1:i"),
            make_record("R4", derived="R2:p"),
        ]
        stats = CoverageEngine().run(rows, make_evidence("R4")).statistics
        assert stats.derived_total == 2
        assert stats.derived_verified == 2
        assert stats.derived_unverified == 0

    def test_final_counts_sum(self):
        rows = [
            make_record("R1"),
            make_record("R2", derived="R1:c"),
            make_record("R3", derived="R1:c"),
            make_record("R4"),
            make_record("R5"),
        ]
        stats = CoverageEngine().run(rows, make_evidence("R2", "R4")).statistics
        assert stats.final_to_verify == 3
        assert stats.final_verified == 1
        assert stats.final_partial == 1
        assert stats.final_unverified == 1
        assert (
            stats.final_verified + stats.final_partial + stats.final_unverified
            == stats.final_to_verify
        )


# ---------------------------------------------------------------------------
# Warnings and per-requirement results
# ---------------------------------------------------------------------------


class TestWarnings:
    def test_uncovered_testable_requirement(self):
        rows = [make_record("R1"), make_record("R2", verification="Adapter"), make_record("R3")]
        result = CoverageEngine().run(rows, make_evidence("R3"))
        assert _classifications(result.inconsistency_warnings) == {
            "R1": "Test Case",
            "R2": "Adapter",
        }

    def test_declared_unverified_not_warned(self):
        result = CoverageEngine().run([make_record("R1", verification="Unverified")], make_evidence())
        assert result.inconsistency_warnings == []

    def test_partial_through_derivation_not_warned(self):
        rows = [
            make_record("R1"),
            make_record("R2", derived="R1:c"),
            make_record("R3", derived="R1:c"),
        ]
        result = CoverageEngine().run(rows, make_evidence("R2"))
        assert _classifications(result.inconsistency_warnings) == {"R3": "Test Case"}


class TestRequirementResults:
    def test_order_status_and_capture(self):
        rows = [
            make_record("R2"),
            make_record("R1", verification="Unverified"),
            make_record("R3", verification="Non-testable"),
            make_record("R4", verification="Deleted"),
        ]
        result = CoverageEngine().run(rows, make_evidence("R2", "R1"))
        assert [r.requirement_id for r in result.requirements] == ["R2", "R1", "R3"]
        by_id = {r.requirement_id: r for r in result.requirements}
        assert by_id["R2"].status is FinalStatus.VERIFIED
        assert by_id["R2"].captured is True
        assert by_id["R2"].sources == ["run.xml"]
        assert by_id["R2"].timestamp == "2024-01-01T00:00:00"
        assert by_id["R1"].status is FinalStatus.UNVERIFIED
        assert by_id["R1"].captured is True
        assert by_id["R3"].status is FinalStatus.NOT_APPLICABLE
        assert by_id["R3"].captured is False

    def test_derived_flag_and_timestamp(self):
        rows = [make_record("R1"), make_record("R2", derived="R1")]
        result = CoverageEngine().run(rows, make_evidence("R2", timestamp="t2"))
        by_id = {r.requirement_id: r for r in result.requirements}
        assert by_id["R2"].is_derived is True
        assert by_id["R1"].is_derived is False
        assert by_id["R1"].timestamp == "t2"
        assert by_id["R1"].description == "Description of R1"
        assert by_id["R1"].scope == "Server"
