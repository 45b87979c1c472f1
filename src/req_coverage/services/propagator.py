"""Propagation of direct coverage evidence up the derivation graph."""
from __future__ import annotations

import logging
from collections import deque
from typing import Iterable, Mapping

from src.shared.errors import PropagationError
from src.shared.models.coverage import CoveredStatus, DerivedType
from src.req_coverage.services.derivation_graph import DerivationGraph

logger = logging.getLogger(__name__)


class CoveragePropagator:
    """Marks directly covered nodes Verified and walks status up to originals.

    Propagation works on a copy of the given graph, so the input graph can be
    reused with a different evidence set.  A status never moves backwards.

    Args:
        ineligible: Requirement IDs whose status must not be changed through
            derivation (originals declared Unverified in the table).
    """

    def __init__(self, ineligible: Iterable[str] = ()) -> None:
        self._ineligible = frozenset(ineligible)

    def propagate(self, graph: DerivationGraph, evidence: Mapping[str, str]) -> DerivationGraph:
        """Return a propagated copy of *graph*.

        Args:
            graph: Graph produced by the builder.
            evidence: Directly verified requirement ID -> evidence timestamp.
        """
        result = graph.copy()
        queue: deque[str] = deque()
        for req_id, timestamp in evidence.items():
            if req_id not in result:
                continue
            result.set_status(req_id, CoveredStatus.VERIFIED)
            result.set_timestamp(req_id, timestamp)
            queue.append(req_id)

        while queue:
            child_id = queue.popleft()
            for parent_id in result.original_reqs(child_id):
                if self._update_parent(result, parent_id, child_id):
                    if result.original_reqs(parent_id):
                        queue.append(parent_id)

        logger.info("Propagated evidence of %d requirements", len(evidence))
        return result

    def _update_parent(self, graph: DerivationGraph, parent_id: str, child_id: str) -> bool:
        """Apply one child -> parent step; returns ``True`` if the parent changed."""
        if not graph.is_active(parent_id, child_id) or parent_id in self._ineligible:
            return False

        before = (graph.status(parent_id), graph.timestamp(parent_id))
        child_status = graph.status(child_id)
        if child_status == CoveredStatus.UNVERIFIED:
            raise PropagationError(
                f"Unverified requirement {child_id} cannot change the status of {parent_id}"
            )

        if before[0] != CoveredStatus.VERIFIED:
            new_status = self._transition(graph, parent_id, child_id, child_status)
            if new_status.rank > before[0].rank:
                graph.set_status(parent_id, new_status)

        graph.set_timestamp(parent_id, graph.timestamp(child_id))
        return (graph.status(parent_id), graph.timestamp(parent_id)) != before

    @staticmethod
    def _transition(
        graph: DerivationGraph, parent_id: str, child_id: str, child_status: CoveredStatus
    ) -> CoveredStatus:
        derived_type = graph.edge_type(parent_id, child_id)
        if derived_type == DerivedType.INFERRED:
            return child_status
        if derived_type == DerivedType.PARTIAL:
            return CoveredStatus.PARTIAL

        remaining = graph.case_count(parent_id)
        new_status = CoveredStatus.PARTIAL if remaining > 1 else child_status
        if child_status == CoveredStatus.VERIFIED:
            graph.resolve_derivation(parent_id, child_id)
        return new_status
