"""Requirement coverage Pydantic v2 data models."""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.shared.constants import DEFAULT_DELTA, INFORMATIVE, NORMATIVE


class VerificationMethod(str, Enum):
    """Values of the Verification column."""
    NON_TESTABLE = "Non-testable"
    ADAPTER = "Adapter"
    TEST_CASE = "Test Case"
    UNVERIFIED = "Unverified"
    DELETED = "Deleted"

    @classmethod
    def parse(cls, value: Any) -> "VerificationMethod":
        """Case-insensitive lookup that also tolerates missing separators."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace(" ", "").replace("-", "")
        for member in cls:
            if member.value.lower().replace(" ", "").replace("-", "") == key:
                return member
        raise ValueError(f"Unknown verification value '{value}'")

    @property
    def is_testable(self) -> bool:
        return self in (VerificationMethod.ADAPTER, VerificationMethod.TEST_CASE)


class Actor(str, Enum):
    """Values of the legacy Actor column."""
    CLIENT = "Client"
    SERVER = "Server"
    BOTH = "Both"


class DerivedType(str, Enum):
    """Semantics of a derivation edge."""
    INFERRED = "inferred"
    PARTIAL = "partial"
    CASES = "cases"

    @classmethod
    def from_code(cls, code: str) -> "DerivedType":
        """Map a derivation suffix letter (i/p/c) to its type."""
        codes = {"i": cls.INFERRED, "p": cls.PARTIAL, "c": cls.CASES}
        try:
            return codes[code.strip().lower()]
        except KeyError:
            raise ValueError(f"Unexpected derived type '{code}'") from None


class CoveredStatus(str, Enum):
    """Coverage state of a derivation graph node."""
    UNVERIFIED = "unverified"
    PARTIAL = "partial"
    VERIFIED = "verified"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]


_STATUS_RANK: dict[CoveredStatus, int] = {
    CoveredStatus.UNVERIFIED: 0,
    CoveredStatus.PARTIAL: 1,
    CoveredStatus.VERIFIED: 2,
}


class FinalStatus(str, Enum):
    """Reported status of a single requirement."""
    VERIFIED = "verified"
    PARTIAL = "partial"
    UNVERIFIED = "unverified"
    NOT_APPLICABLE = "not_applicable"


class ValidationRule(str, Enum):
    """Requirement table rule codes."""
    OUT_OF_SCOPE_IS_TESTABLE = "OutOfScopeIsTestable"
    DERIVE_FROM_DELETED = "DeriveFromDeleted"
    DERIVE_FROM_INFORMATIVE = "DeriveFromInformative"
    DERIVE_FROM_NON_EXIST = "DeriveFromNonExist"
    DERIVE_FROM_UNVERIFIED = "DeriveFromUnverified"
    DERIVED_REQ_IS_INFORMATIVE = "DerivedReqIsInformative"
    DERIVED_REQ_NOT_TESTABLE = "DerivedReqNotTestable"
    DERIVED_REQ_OUT_OF_SCOPE = "DerivedReqOutOfScope"


class RequirementRecord(BaseModel):
    """One row of a requirement specification table."""
    id: str = Field(..., min_length=1)
    verification: VerificationMethod
    is_normative: bool = True
    scope: str | None = None
    actor: Actor | None = None
    delta: str = DEFAULT_DELTA
    derived: str = ""
    description: str = ""
    doc_section: str = ""

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("id", mode="before")
    @classmethod
    def strip_id(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("verification", mode="before")
    @classmethod
    def parse_verification(cls, value: Any) -> VerificationMethod:
        return VerificationMethod.parse(value)

    @field_validator("is_normative", mode="before")
    @classmethod
    def parse_normative(cls, value: Any) -> Any:
        if isinstance(value, str):
            text = value.strip().lower()
            if text == NORMATIVE.lower():
                return True
            if text == INFORMATIVE.lower():
                return False
            raise ValueError(f"Unknown IsNormative value '{value}'")
        return value

    @field_validator("scope", mode="before")
    @classmethod
    def strip_scope(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("actor", mode="before")
    @classmethod
    def parse_actor(cls, value: Any) -> Any:
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            for member in Actor:
                if member.value.lower() == text.lower():
                    return member
        return value

    @field_validator("delta", mode="before")
    @classmethod
    def normalize_delta(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return DEFAULT_DELTA
        return str(value).strip().lower()

    @field_validator("derived", "description", "doc_section", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def has_derivation(self) -> bool:
        return bool(self.derived.strip())

    @property
    def scope_key(self) -> str:
        """Lower-cased scope used for scope rule lookups."""
        return (self.scope or "").lower()


class DerivationEdge(BaseModel):
    """A parsed ``OriginalId[:type]`` term of a requirement's derivation text."""
    child_id: str
    parent_id: str
    type: DerivedType = DerivedType.INFERRED

    model_config = {"from_attributes": True}


class CoverageEvidence(BaseModel):
    """A requirement observed as a checkpoint of a passing test case."""
    requirement_id: str
    timestamp: str = ""
    sources: list[str] = Field(default_factory=list)
    test_case: str | None = None

    model_config = {"from_attributes": True}


class ExcludedRequirement(BaseModel):
    """A checkpoint that was only hit inside non-passing test cases."""
    requirement_id: str
    test_case: str
    test_result: str
    timestamp: str = ""
    source: str = ""

    model_config = {"from_attributes": True}


class LogSummary(BaseModel):
    """Statistics of a single test log."""
    source: str
    protocols: list[str] = Field(default_factory=list)
    configurations: dict[str, str] = Field(default_factory=dict)
    test_result: dict[str, str] = Field(default_factory=dict)
    covered_count: int = 0
    excluded_count: int = 0

    model_config = {"from_attributes": True}


class EvidenceCollection(BaseModel):
    """Merged checkpoint evidence from one or more test logs."""
    evidence: dict[str, CoverageEvidence] = Field(default_factory=dict)
    excluded: dict[str, ExcludedRequirement] = Field(default_factory=dict)
    logs: list[LogSummary] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class ValidationIssue(BaseModel):
    """A recorded requirement table rule violation."""
    requirement_id: str
    rule: ValidationRule
    message: str

    model_config = {"from_attributes": True}


class Inconsistency(BaseModel):
    """A mismatch between a requirement table and the test logs."""
    requirement_id: str
    classification: str

    model_config = {"from_attributes": True}


class CoverageStatistics(BaseModel):
    """Aggregate coverage counts."""
    total_count: int = 0
    to_verify_count: int = 0
    verified_count: int = 0
    unverified_count: int = 0
    total_original_count: int = 0
    verified_original_count: int = 0
    partial_original_count: int = 0
    duplicate_requirements_count: int = 0
    duplicate_verified_count: int = 0
    final_to_verify: int = Field(default=0, ge=0)
    final_verified: int = Field(default=0, ge=0)
    final_partial: int = Field(default=0, ge=0)
    final_unverified: int = Field(default=0, ge=0)
    derived_total: int = 0
    derived_verified: int = 0
    derived_unverified: int = 0

    model_config = {"from_attributes": True}

    @staticmethod
    def _ratio(count: int, total: int) -> float:
        return 0.0 if total == 0 else count / total

    def final_verified_ratio(self) -> float:
        return self._ratio(self.final_verified, self.final_to_verify)

    def final_partial_ratio(self) -> float:
        return self._ratio(self.final_partial, self.final_to_verify)

    def final_unverified_ratio(self) -> float:
        return self._ratio(self.final_unverified, self.final_to_verify)

    def derived_verified_ratio(self) -> float:
        return self._ratio(self.derived_verified, self.derived_total)


class RequirementResult(BaseModel):
    """Final status of one requirement."""
    requirement_id: str
    status: FinalStatus
    timestamp: str | None = None
    sources: list[str] = Field(default_factory=list)
    description: str = ""
    doc_section: str = ""
    scope: str = ""
    is_derived: bool = False
    captured: bool = False

    model_config = {"from_attributes": True}


class CoverageResult(BaseModel):
    """Everything an analysis run produces."""
    run_id: str = ""
    statistics: CoverageStatistics = Field(default_factory=CoverageStatistics)
    requirements: list[RequirementResult] = Field(default_factory=list)
    validation_errors: list[ValidationIssue] = Field(default_factory=list)
    validation_warnings: list[ValidationIssue] = Field(default_factory=list)
    inconsistency_errors: list[Inconsistency] = Field(default_factory=list)
    inconsistency_warnings: list[Inconsistency] = Field(default_factory=list)
    excluded: list[ExcludedRequirement] = Field(default_factory=list)
    logs: list[LogSummary] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    def status_of(self, requirement_id: str) -> FinalStatus | None:
        for entry in self.requirements:
            if entry.requirement_id == requirement_id:
                return entry.status
        return None
