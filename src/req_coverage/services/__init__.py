"""Business logic services for requirement coverage analysis."""

from src.req_coverage.services.requirement_index import RequirementIndex
from src.req_coverage.services.validation import ValidationReport
from src.req_coverage.services.classifier import Classification, RequirementClassifier
from src.req_coverage.services.derivation_parser import parse_derivation
from src.req_coverage.services.derivation_graph import DerivationGraph
from src.req_coverage.services.graph_builder import DerivationGraphBuilder
from src.req_coverage.services.cycle_detector import find_cycle
from src.req_coverage.services.propagator import CoveragePropagator
from src.req_coverage.services.aggregator import Aggregator, reconcile_evidence
from src.req_coverage.services.table_loader import load_requirement_table, load_requirement_tables
from src.req_coverage.services.log_analyzer import TestLogAnalyzer, collect_evidence
from src.req_coverage.services.export import write_coverage_result

__all__ = [
    "RequirementIndex",
    "ValidationReport",
    "Classification",
    "RequirementClassifier",
    "parse_derivation",
    "DerivationGraph",
    "DerivationGraphBuilder",
    "find_cycle",
    "CoveragePropagator",
    "Aggregator",
    "reconcile_evidence",
    "load_requirement_table",
    "load_requirement_tables",
    "TestLogAnalyzer",
    "collect_evidence",
    "write_coverage_result",
]
