"""Detection of derivation loops before coverage propagation."""
from __future__ import annotations

import logging

import networkx as nx

from src.shared.errors import DerivationCycleError
from src.req_coverage.services.derivation_graph import DerivationGraph

logger = logging.getLogger(__name__)


def find_cycle(graph: DerivationGraph) -> None:
    """Raise if any requirement transitively derives from itself.

    The search is a depth-first traversal from every node along
    original -> derived edges, so it runs in O(V+E).  The reported path
    reads in derives-from order: each node is derived from the next one.

    Raises:
        DerivationCycleError: with the loop path, first node repeated at
            the end (``A --> B --> A``).
    """
    try:
        edges = nx.find_cycle(graph.graph)
    except nx.NetworkXNoCycle:
        logger.debug("No loop found in %d derivation nodes", len(graph))
        return

    walk = [edges[0][0]] + [target for _, target, *_ in edges]
    raise DerivationCycleError(walk[::-1])
