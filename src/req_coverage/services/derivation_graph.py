"""Requirement derivation graph backed by a NetworkX DiGraph."""
from __future__ import annotations

import logging
from typing import Iterator

import networkx as nx

from src.shared.errors import DerivationCycleError
from src.shared.models.coverage import CoveredStatus, DerivedType

logger = logging.getLogger(__name__)


class DerivationGraph:
    """Directed graph of "derived-from" relationships.

    Node IDs are requirement IDs.  Edges point from the original (parent)
    requirement to the derived (child) requirement and carry:

    - ``derived_type``: the :class:`DerivedType` of the relationship
    - ``resolved``: ``True`` once a Cases edge has been satisfied by a fully
      verified child; resolved edges still count as originals of the child
      but no longer appear in the parent's active derived map

    Nodes carry ``covered_status`` and ``timestamp`` attributes.
    """

    def __init__(self, graph: nx.DiGraph | None = None) -> None:
        self._graph: nx.DiGraph = graph if graph is not None else nx.DiGraph()

    @property
    def graph(self) -> nx.DiGraph:
        """Return the underlying NetworkX DiGraph."""
        return self._graph

    def __contains__(self, req_id: object) -> bool:
        return req_id in self._graph

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def __iter__(self) -> Iterator[str]:
        return iter(self._graph.nodes)

    def add_requirement(self, req_id: str) -> None:
        if req_id not in self._graph:
            self._graph.add_node(
                req_id, covered_status=CoveredStatus.UNVERIFIED, timestamp=""
            )

    def add_derivation(
        self, child_id: str, parent_id: str, derived_type: DerivedType = DerivedType.INFERRED
    ) -> None:
        """Record that *child_id* is derived from *parent_id*.

        Raises:
            DerivationCycleError: if *child_id* and *parent_id* are the same.
        """
        if child_id == parent_id:
            raise DerivationCycleError([child_id, parent_id])

        self.add_requirement(child_id)
        self.add_requirement(parent_id)
        if self._graph.has_edge(parent_id, child_id):
            logger.warning(
                "Duplicate derivation %s -> %s, keeping type %s",
                parent_id, child_id, derived_type.value,
            )
        self._graph.add_edge(parent_id, child_id, derived_type=derived_type, resolved=False)

    def original_reqs(self, req_id: str) -> list[str]:
        """IDs this requirement is derived from."""
        return list(self._graph.predecessors(req_id))

    def derived_reqs(self, req_id: str) -> dict[str, DerivedType]:
        """Active (unresolved) children of *req_id* mapped to their edge type."""
        return {
            child: data["derived_type"]
            for child, data in self._graph.succ[req_id].items()
            if not data["resolved"]
        }

    def is_active(self, parent_id: str, child_id: str) -> bool:
        if not self._graph.has_edge(parent_id, child_id):
            return False
        return not self._graph.edges[parent_id, child_id]["resolved"]

    def edge_type(self, parent_id: str, child_id: str) -> DerivedType:
        return self._graph.edges[parent_id, child_id]["derived_type"]

    def case_count(self, req_id: str) -> int:
        """Number of remaining Cases edges below *req_id*."""
        return sum(
            1 for derived_type in self.derived_reqs(req_id).values()
            if derived_type == DerivedType.CASES
        )

    def resolve_derivation(self, parent_id: str, child_id: str) -> None:
        self._graph.edges[parent_id, child_id]["resolved"] = True
        logger.debug("Resolved cases derivation %s -> %s", parent_id, child_id)

    def remove_original(self, child_id: str, parent_id: str) -> None:
        if self._graph.has_edge(parent_id, child_id):
            self._graph.remove_edge(parent_id, child_id)

    def remove_requirement(self, req_id: str) -> None:
        if req_id in self._graph:
            self._graph.remove_node(req_id)

    def status(self, req_id: str) -> CoveredStatus:
        return self._graph.nodes[req_id]["covered_status"]

    def set_status(self, req_id: str, status: CoveredStatus) -> None:
        self._graph.nodes[req_id]["covered_status"] = status

    def timestamp(self, req_id: str) -> str:
        return self._graph.nodes[req_id]["timestamp"]

    def set_timestamp(self, req_id: str, timestamp: str) -> None:
        self._graph.nodes[req_id]["timestamp"] = timestamp

    def roots(self) -> list[str]:
        """Nodes that are not derived from anything."""
        return [node for node in self._graph.nodes if self._graph.in_degree(node) == 0]

    def derived_nodes(self) -> list[str]:
        return [node for node in self._graph.nodes if self._graph.in_degree(node) > 0]

    def copy(self) -> "DerivationGraph":
        """Independent copy; node and edge attribute dicts are not shared."""
        return DerivationGraph(self._graph.copy())
