"""Reconciliation of log evidence with the table and final coverage counts."""
from __future__ import annotations

import logging

from src.shared.constants import NON_EXIST
from src.shared.models.coverage import (
    CoverageEvidence,
    CoverageStatistics,
    CoveredStatus,
    EvidenceCollection,
    FinalStatus,
    Inconsistency,
    RequirementRecord,
    RequirementResult,
    VerificationMethod,
)
from src.req_coverage.services.classifier import Classification
from src.req_coverage.services.derivation_graph import DerivationGraph
from src.req_coverage.services.requirement_index import RequirementIndex

logger = logging.getLogger(__name__)

_FINAL_STATUS = {
    CoveredStatus.VERIFIED: FinalStatus.VERIFIED,
    CoveredStatus.PARTIAL: FinalStatus.PARTIAL,
    CoveredStatus.UNVERIFIED: FinalStatus.UNVERIFIED,
}


def reconcile_evidence(
    evidence: EvidenceCollection,
    index: RequirementIndex,
    classification: Classification,
) -> tuple[dict[str, CoverageEvidence], list[Inconsistency]]:
    """Match log checkpoints against the table.

    Returns:
        Tuple of (directly verified requirement ID -> evidence, inconsistency
        errors).  Only to-verify requirements whose declared method is not
        Unverified are accepted as direct evidence.
    """
    verified: dict[str, CoverageEvidence] = {}
    errors: list[Inconsistency] = []
    flagged: set[str] = set()

    def _flag(req_id: str, classification_text: str) -> None:
        if req_id in flagged:
            return
        flagged.add(req_id)
        errors.append(Inconsistency(requirement_id=req_id, classification=classification_text))
        logger.warning("Inconsistency for %s: %s", req_id, classification_text)

    for log_id, item in evidence.evidence.items():
        req_id = index.resolve(log_id, partial=False)
        if req_id is None:
            _flag(log_id, NON_EXIST)
            continue
        record = index[req_id]
        if req_id in classification.to_verify:
            if record.verification == VerificationMethod.UNVERIFIED:
                _flag(req_id, record.verification.value)
            elif req_id not in verified:
                verified[req_id] = item.model_copy(update={"requirement_id": req_id})
        elif not record.verification.is_testable:
            _flag(req_id, record.verification.value)

    for log_id in evidence.excluded:
        if index.resolve(log_id, partial=False) is None:
            _flag(log_id, NON_EXIST)

    logger.info(
        "Reconciled %d covered ids: %d verified, %d inconsistencies",
        len(evidence.evidence), len(verified), len(errors),
    )
    return verified, errors


class Aggregator:
    """Computes statistics, warnings and per-requirement results."""

    def __init__(
        self,
        classification: Classification,
        graph: DerivationGraph,
        verified: dict[str, CoverageEvidence],
    ) -> None:
        self._classification = classification
        self._graph = graph
        self._verified = verified

    def _roots(self) -> list[str]:
        return [
            node for node in self._graph.roots()
            if node not in self._classification.informative
        ]

    def statistics(self) -> CoverageStatistics:
        """Combine leaf counts with derivation roots without double counting."""
        to_verify = self._classification.to_verify
        roots = self._roots()
        statuses = [self._graph.status(node) for node in roots]

        total_original = len(roots)
        verified_original = statuses.count(CoveredStatus.VERIFIED)
        partial_original = statuses.count(CoveredStatus.PARTIAL)
        duplicate_requirements = sum(1 for node in self._graph if node in to_verify)
        duplicate_verified = sum(
            1 for node in self._graph
            if self._graph.status(node) == CoveredStatus.VERIFIED and node in self._verified
        )

        final_to_verify = max(0, total_original + len(to_verify) - duplicate_requirements)
        final_verified = verified_original + len(self._verified) - duplicate_verified
        final_verified = min(max(0, final_verified), final_to_verify)
        final_partial = max(0, min(partial_original, final_to_verify - final_verified))
        final_unverified = max(0, final_to_verify - final_verified - final_partial)

        derived = self._graph.derived_nodes()
        # Partial counts as covered at the derived level.
        derived_verified = sum(
            1 for node in derived if self._graph.status(node) != CoveredStatus.UNVERIFIED
        )

        return CoverageStatistics(
            total_count=self._classification.total_count,
            to_verify_count=len(to_verify),
            verified_count=len(self._verified),
            unverified_count=max(0, len(to_verify) - len(self._verified)),
            total_original_count=total_original,
            verified_original_count=verified_original,
            partial_original_count=partial_original,
            duplicate_requirements_count=duplicate_requirements,
            duplicate_verified_count=duplicate_verified,
            final_to_verify=final_to_verify,
            final_verified=final_verified,
            final_partial=final_partial,
            final_unverified=final_unverified,
            derived_total=len(derived),
            derived_verified=derived_verified,
            derived_unverified=len(derived) - derived_verified,
        )

    def warnings(self) -> list[Inconsistency]:
        """Testable to-verify requirements that nothing brought to Partial or better."""
        found: list[Inconsistency] = []
        for req_id, record in self._classification.to_verify.items():
            if req_id in self._verified:
                continue
            if req_id in self._graph and self._graph.status(req_id) != CoveredStatus.UNVERIFIED:
                continue
            if record.verification == VerificationMethod.UNVERIFIED:
                continue
            found.append(
                Inconsistency(requirement_id=req_id, classification=record.verification.value)
            )
        return found

    def status_of(self, req_id: str) -> FinalStatus:
        if req_id in self._graph:
            is_root = not self._graph.original_reqs(req_id)
            if not is_root or req_id not in self._classification.informative:
                return _FINAL_STATUS[self._graph.status(req_id)]
        if req_id in self._classification.to_verify:
            return FinalStatus.VERIFIED if req_id in self._verified else FinalStatus.UNVERIFIED
        return FinalStatus.NOT_APPLICABLE

    def results(
        self,
        records: list[RequirementRecord],
        captured: set[str] | None = None,
    ) -> list[RequirementResult]:
        """One result per non-deleted record, in table order."""
        captured = captured or set()
        out: list[RequirementResult] = []
        for record in records:
            if record.id in self._classification.deleted:
                continue
            item = self._verified.get(record.id)
            timestamp = None
            if record.id in self._graph and self._graph.timestamp(record.id):
                timestamp = self._graph.timestamp(record.id)
            elif item is not None:
                timestamp = item.timestamp
            out.append(
                RequirementResult(
                    requirement_id=record.id,
                    status=self.status_of(record.id),
                    timestamp=timestamp,
                    sources=list(item.sources) if item is not None else [],
                    description=record.description,
                    doc_section=record.doc_section,
                    scope=record.scope or (record.actor.value if record.actor else ""),
                    is_derived=record.id in self._graph and bool(self._graph.original_reqs(record.id)),
                    captured=record.id in self._verified or record.id in captured,
                )
            )
        return out
