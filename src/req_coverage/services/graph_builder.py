"""Construction and validation of the requirement derivation graph."""
from __future__ import annotations

import logging
from collections import deque
from typing import Iterable

from src.shared.models.coverage import RequirementRecord, ValidationRule, VerificationMethod
from src.req_coverage.config import ScopeRules
from src.req_coverage.services.classifier import Classification
from src.req_coverage.services.derivation_graph import DerivationGraph
from src.req_coverage.services.derivation_parser import parse_derivation
from src.req_coverage.services.requirement_index import RequirementIndex
from src.req_coverage.services.validation import ValidationReport

logger = logging.getLogger(__name__)


class DerivationGraphBuilder:
    """Builds a :class:`DerivationGraph` from the Derived column of a table.

    Illegal derivations are recorded in the :class:`ValidationReport` and
    left out of the graph.  Malformed derivation text and self-derivation
    are fatal.
    """

    def __init__(
        self,
        index: RequirementIndex,
        classification: Classification,
        rules: ScopeRules,
        report: ValidationReport,
    ) -> None:
        self._index = index
        self._classification = classification
        self._rules = rules
        self._report = report

    def build(self, rows: Iterable[RequirementRecord]) -> DerivationGraph:
        """Build the graph and sever relationships of out-of-delta originals.

        Only scope-based tables carry derivations; a legacy table yields an
        empty graph.
        """
        graph = DerivationGraph()
        if not self._classification.scope_table:
            logger.info("Legacy requirement table, derivations are not evaluated")
            return graph

        informative_only: list[str] = []
        for row in rows:
            if not row.has_derivation:
                continue
            if not self._validate_derived(row):
                continue
            if self._add_edges(graph, row):
                informative_only.append(row.id)

        # Deriving from informative requirements is only an error when no
        # normative original remains.
        for child_id in informative_only:
            originals = graph.original_reqs(child_id) if child_id in graph else []
            if all(o in self._classification.informative for o in originals):
                self._report.add_error(child_id, ValidationRule.DERIVE_FROM_INFORMATIVE)

        for req_id in self._classification.out_of_delta:
            self._sever(graph, req_id)

        logger.info(
            "Built derivation graph with %d nodes and %d edges",
            len(graph), graph.graph.number_of_edges(),
        )
        return graph

    def _validate_derived(self, row: RequirementRecord) -> bool:
        """Check that *row* may be derived at all; ``False`` aborts its edges.

        A Deleted row never gets edges, whichever rule is recorded for it.
        """
        if row.id in self._classification.informative:
            self._report.add_error(row.id, ValidationRule.DERIVED_REQ_IS_INFORMATIVE)
        elif row.scope is not None and self._rules.is_out_of_scope(row.scope):
            self._report.add_error(row.id, ValidationRule.DERIVED_REQ_OUT_OF_SCOPE)
        elif row.verification in (
            VerificationMethod.DELETED, VerificationMethod.NON_TESTABLE, VerificationMethod.UNVERIFIED,
        ):
            self._report.add_error(row.id, ValidationRule.DERIVED_REQ_NOT_TESTABLE)
        return row.verification != VerificationMethod.DELETED

    def _add_edges(self, graph: DerivationGraph, row: RequirementRecord) -> bool:
        """Add the legal edges of *row*.

        Returns ``True`` if any original was an informative requirement.
        """
        from_informative = False
        for edge in parse_derivation(row.id, row.derived):
            parent_id = self._index.resolve(edge.parent_id, partial=True)
            if parent_id is None:
                self._report.add_error(row.id, ValidationRule.DERIVE_FROM_NON_EXIST, edge.parent_id)
                continue

            parent = self._index[parent_id]
            if parent_id in self._classification.deleted:
                self._report.add_error(row.id, ValidationRule.DERIVE_FROM_DELETED)
                continue
            if parent_id in self._classification.informative:
                if parent.verification != VerificationMethod.UNVERIFIED:
                    from_informative = True
            elif (
                parent_id in self._classification.to_verify
                and parent.verification == VerificationMethod.UNVERIFIED
            ):
                self._report.add_warning(row.id, ValidationRule.DERIVE_FROM_UNVERIFIED)

            graph.add_derivation(row.id, parent_id, edge.type)
        return from_informative

    def _sever(self, graph: DerivationGraph, req_id: str) -> None:
        """Remove *req_id* as an original and cascade into orphaned children."""
        if req_id not in graph:
            return
        queue: deque[str] = deque([req_id])
        while queue:
            node = queue.popleft()
            if node not in graph:
                continue
            children = list(graph.derived_reqs(node))
            graph.remove_requirement(node)
            self._classification.demote(node)
            for child in children:
                if child in graph and not graph.original_reqs(child):
                    logger.info("Requirement %s lost every original, removing it", child)
                    queue.append(child)
