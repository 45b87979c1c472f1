"""Partitioning of requirement rows into to-verify, not-to-verify and deleted buckets."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from src.shared.constants import CLIENT_ACTOR, NONE_SCOPE_KEYWORD
from src.shared.errors import ScopeConfigurationError, TableFormatError
from src.shared.models.coverage import RequirementRecord, ValidationRule, VerificationMethod
from src.req_coverage.config import ScopeRules
from src.req_coverage.services.validation import ValidationReport

logger = logging.getLogger(__name__)

# Verification methods that make an in-scope normative requirement "to verify"
_VERIFIABLE_METHODS = (
    VerificationMethod.ADAPTER,
    VerificationMethod.TEST_CASE,
    VerificationMethod.UNVERIFIED,
)


@dataclass
class Classification:
    """Bucket assignment of every requirement row.

    Each bucket maps requirement ID to its record and keeps table order.
    ``out_of_delta`` lists in-scope requirements moved to ``not_to_verify``
    because their delta value is filtered out and they have no derivation.
    """

    to_verify: dict[str, RequirementRecord] = field(default_factory=dict)
    not_to_verify: dict[str, RequirementRecord] = field(default_factory=dict)
    deleted: dict[str, RequirementRecord] = field(default_factory=dict)
    informative: set[str] = field(default_factory=set)
    out_of_delta: list[str] = field(default_factory=list)
    scope_table: bool = False
    total_count: int = 0

    def bucket_of(self, req_id: str) -> str | None:
        if req_id in self.to_verify:
            return "to_verify"
        if req_id in self.not_to_verify:
            return "not_to_verify"
        if req_id in self.deleted:
            return "deleted"
        return None

    def demote(self, req_id: str) -> None:
        """Move a requirement from ``to_verify`` to ``not_to_verify``."""
        record = self.to_verify.pop(req_id, None)
        if record is not None:
            self.not_to_verify[req_id] = record
            logger.info("Requirement %s moved out of the to-verify set", req_id)


class RequirementClassifier:
    """Assigns every requirement row to exactly one bucket.

    The table format is detected from the first non-deleted row: a row with a
    Scope value selects the scope rules, a row with only an Actor value
    selects the legacy actor rules.
    """

    def __init__(
        self,
        rules: ScopeRules,
        delta_values: Iterable[str] = (),
        scope_mode: bool = False,
    ) -> None:
        self._rules = rules
        self._delta_values = frozenset(delta_values)
        self._scope_mode = scope_mode

    def classify(
        self,
        rows: Iterable[RequirementRecord],
        report: ValidationReport | None = None,
    ) -> Classification:
        """Classify *rows* and record out-of-scope testability errors in *report*.

        Raises:
            TableFormatError: if a row has neither Actor nor Scope, mixes
                the two formats, or uses ``None`` as its scope.
            ScopeConfigurationError: if a scope value is in both or neither
                configured set, or scope/delta options are used with a
                legacy table.
        """
        report = report if report is not None else ValidationReport()
        result = Classification()
        table_format_known = False

        for row in rows:
            if row.verification == VerificationMethod.DELETED:
                result.deleted[row.id] = row
                continue

            result.total_count += 1
            if row.actor is None and row.scope is None:
                raise TableFormatError(f"Column Actor or Scope is expected at {row.id}")
            if not table_format_known:
                result.scope_table = row.scope is not None
                table_format_known = True

            if result.scope_table:
                self._classify_scoped(row, result, report)
            else:
                self._classify_legacy(row, result)

        logger.info(
            "Classified %d requirements: %d to verify, %d not to verify, %d deleted",
            result.total_count, len(result.to_verify),
            len(result.not_to_verify), len(result.deleted),
        )
        return result

    def _classify_legacy(self, row: RequirementRecord, result: Classification) -> None:
        if row.scope is not None:
            raise TableFormatError("Using Actor and Scope together is not supported.")
        if self._scope_mode:
            raise ScopeConfigurationError("Scope is not supported in old version of RS")
        if self._delta_values:
            raise ScopeConfigurationError("Delta scope is not supported in old version of RS")

        if (
            row.is_normative
            and (row.actor is None or row.actor.value != CLIENT_ACTOR)
            and row.verification != VerificationMethod.NON_TESTABLE
        ):
            result.to_verify[row.id] = row
        else:
            result.not_to_verify[row.id] = row

    def _classify_scoped(
        self, row: RequirementRecord, result: Classification, report: ValidationReport
    ) -> None:
        if row.scope is None:
            raise TableFormatError("Using Actor and Scope together is not supported.")
        if row.scope_key == NONE_SCOPE_KEYWORD:
            raise TableFormatError(
                f"'None' keyword should not be the value of scope in requirement {row.id}"
            )

        in_scope = self._rules.is_in_scope(row.scope)
        out_of_scope = self._rules.is_out_of_scope(row.scope)
        if in_scope and out_of_scope:
            raise ScopeConfigurationError(
                f"Value {row.scope} for InScope and OutOfScope parameters is duplicated."
            )
        if not in_scope and not out_of_scope:
            raise ScopeConfigurationError(f"Unexpected scope value in Requirement {row.id}.")

        if out_of_scope:
            result.not_to_verify[row.id] = row
            if not row.is_normative:
                result.informative.add(row.id)
            if row.verification.is_testable:
                report.add_error(row.id, ValidationRule.OUT_OF_SCOPE_IS_TESTABLE)
            return

        if not row.is_normative:
            result.not_to_verify[row.id] = row
            result.informative.add(row.id)
            return

        if row.verification not in _VERIFIABLE_METHODS:
            result.not_to_verify[row.id] = row
            return

        if self._delta_values and row.delta not in self._delta_values and not row.has_derivation:
            result.not_to_verify[row.id] = row
            result.out_of_delta.append(row.id)
            return

        result.to_verify[row.id] = row
