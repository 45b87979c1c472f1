"""Coverage analysis pipeline: classify, build, check, propagate, aggregate."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from src.shared.logging import new_run_id
from src.shared.models.coverage import (
    CoverageResult,
    EvidenceCollection,
    RequirementRecord,
    VerificationMethod,
)
from src.req_coverage.config import (
    AnalysisConfig,
    ScopeRules,
    build_scope_rules,
    normalize_prefix,
    parse_delta_values,
)
from src.req_coverage.services import (
    Aggregator,
    Classification,
    CoveragePropagator,
    DerivationGraph,
    DerivationGraphBuilder,
    RequirementClassifier,
    RequirementIndex,
    ValidationReport,
    collect_evidence,
    find_cycle,
    load_requirement_tables,
    reconcile_evidence,
)

logger = logging.getLogger(__name__)


@dataclass
class TableAnalysis:
    """Everything derived from the requirement tables alone."""

    records: list[RequirementRecord]
    index: RequirementIndex
    classification: Classification
    graph: DerivationGraph
    report: ValidationReport


class CoverageEngine:
    """Runs a complete coverage analysis for one configuration.

    The engine holds no state between runs: each call to :meth:`run` starts
    from a fresh table analysis or from the one passed in, and propagation
    never mutates the table graph.
    """

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        self._config = config or AnalysisConfig()
        scope = self._config.scope
        self._rules: ScopeRules = build_scope_rules(scope)
        self._delta_values = parse_delta_values(scope.delta)
        self._prefix = normalize_prefix(scope.prefix)

    @property
    def config(self) -> AnalysisConfig:
        return self._config

    def analyze_table(self, rows: Iterable[RequirementRecord]) -> TableAnalysis:
        """Index, classify and build the derivation graph, then check for loops."""
        records = list(rows)
        index = RequirementIndex(records, prefix=self._prefix)
        report = ValidationReport()
        classification = RequirementClassifier(
            self._rules, self._delta_values, scope_mode=self._config.scope.scope_mode
        ).classify(records, report)
        graph = DerivationGraphBuilder(index, classification, self._rules, report).build(records)
        find_cycle(graph)
        return TableAnalysis(
            records=records,
            index=index,
            classification=classification,
            graph=graph,
            report=report,
        )

    def run(
        self,
        rows: Iterable[RequirementRecord] | TableAnalysis,
        evidence: EvidenceCollection,
    ) -> CoverageResult:
        """Compute the coverage result of *rows* against *evidence*."""
        run_id = new_run_id()
        logger.info("Starting coverage analysis")
        table = rows if isinstance(rows, TableAnalysis) else self.analyze_table(rows)

        verified, inconsistency_errors = reconcile_evidence(
            evidence, table.index, table.classification
        )
        ineligible = [
            record.id for record in table.records
            if record.verification == VerificationMethod.UNVERIFIED
        ]
        propagated = CoveragePropagator(ineligible).propagate(
            table.graph, {req_id: item.timestamp for req_id, item in verified.items()}
        )

        aggregator = Aggregator(table.classification, propagated, verified)
        statistics = aggregator.statistics()
        captured = {item.requirement_id for item in inconsistency_errors}
        result = CoverageResult(
            run_id=run_id,
            statistics=statistics,
            requirements=aggregator.results(table.records, captured),
            validation_errors=table.report.errors,
            validation_warnings=table.report.warnings,
            inconsistency_errors=inconsistency_errors,
            inconsistency_warnings=aggregator.warnings(),
            excluded=list(evidence.excluded.values()),
            logs=list(evidence.logs),
        )
        logger.info(
            "Finished coverage analysis: %d of %d verified, %d partial",
            statistics.final_verified, statistics.final_to_verify, statistics.final_partial,
        )
        return result

    def analyze_files(
        self,
        tables: Iterable[Path | str] | None = None,
        logs: Iterable[Path | str] | None = None,
    ) -> CoverageResult:
        """Load tables and logs from disk (defaulting to the configured ones) and run."""
        table_paths = list(tables) if tables is not None else list(self._config.tables)
        log_paths = list(logs) if logs is not None else list(self._config.logs)
        rows = load_requirement_tables(table_paths)
        evidence = collect_evidence(log_paths)
        return self.run(rows, evidence)
