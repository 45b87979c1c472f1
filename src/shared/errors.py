"""Custom exception classes for the coverage engine.

Every class here is fatal: raising one aborts the analysis with no partial
result.  Rule violations that do not prevent computation are recorded as
``ValidationIssue`` / ``Inconsistency`` models instead.
"""
from __future__ import annotations

from src.shared.constants import EXIT_GENERATE_REPORT_FAILED


class CoverageError(Exception):
    """Base coverage engine error."""

    def __init__(self, detail: str, exit_code: int = EXIT_GENERATE_REPORT_FAILED) -> None:
        self.detail = detail
        self.exit_code = exit_code
        super().__init__(detail)


class DuplicateRequirementError(CoverageError):
    """Two requirement IDs collide after prefix normalization."""

    def __init__(self, first_id: str, second_id: str) -> None:
        self.first_id = first_id
        self.second_id = second_id
        super().__init__(
            f"Found two ids in Requirement Specification '{first_id}','{second_id}' "
            "which are treated as duplicated"
        )


class TableFormatError(CoverageError):
    """Requirement table is missing columns or holds invalid values."""

    def __init__(self, detail: str = "Requirement table format error") -> None:
        super().__init__(detail=detail)


class ScopeConfigurationError(CoverageError):
    """Scope, delta or prefix configuration is inconsistent."""

    def __init__(self, detail: str = "Scope configuration error") -> None:
        super().__init__(detail=detail)


class DerivationFormatError(CoverageError):
    """Derivation text of a requirement cannot be parsed."""

    def __init__(self, requirement_id: str, term: str, detail: str = "") -> None:
        self.requirement_id = requirement_id
        self.term = term
        super().__init__(
            detail
            or (
                f"The format of derived text '{term}' in Requirement {requirement_id} "
                "is not correct, the correct format should be Req_ID plus :i :p or :c as suffix."
            )
        )


class DerivationCycleError(CoverageError):
    """A requirement transitively derives from itself."""

    def __init__(self, path: list[str]) -> None:
        self.path = list(path)
        super().__init__(
            "Found loop in the derived requirements " + " --> ".join(self.path)
        )


class PropagationError(CoverageError):
    """Coverage propagation reached a state that should be impossible."""

    def __init__(self, detail: str = "Coverage propagation failed") -> None:
        super().__init__(detail=detail)


class LogFormatError(CoverageError):
    """A test log file cannot be read or parsed."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(
            f"Unable to get test log data from specified xml log file {path}. Details: {reason}"
        )
