"""Shared constants used across the coverage engine."""
from __future__ import annotations

# Application version
VERSION: str = "1.0.0"

# Service name used for logger setup
SERVICE_NAME: str = "req-coverage"

# Verification column values as they appear in requirement tables
NON_TESTABLE: str = "Non-testable"
ADAPTER: str = "Adapter"
TEST_CASE: str = "Test Case"
UNVERIFIED: str = "Unverified"
DELETED: str = "Deleted"
NON_EXIST: str = "Non Exist"

# IsNormative column values
NORMATIVE: str = "Normative"
INFORMATIVE: str = "Informative"

# Actor value that is never verified by a server-side suite
CLIENT_ACTOR: str = "Client"

# Scope defaults, used when neither in-scope nor out-of-scope is given
DEFAULT_IN_SCOPE: str = "Server+Both"
DEFAULT_OUT_OF_SCOPE: str = "Client"
SCOPE_SEPARATOR: str = "+"
NONE_SCOPE_KEYWORD: str = "none"

# Delta values
DEFAULT_DELTA: str = "new"
DELTA_ALIASES: dict[str, list[str]] = {
    "new": ["new"],
    "changed": ["changed"],
    "unchanged": ["unchanged", "editorial", "sectionmoved"],
}

# Requirement ID prefix suffix
PREFIX_SUFFIX: str = "_R"

# Derivation text separators
DERIVATION_SEPARATOR: str = ","
DERIVATION_TYPE_SEPARATOR: str = ":"
DEFAULT_DERIVATION_CODE: str = "i"

# Requirement table validation messages, keyed by rule code
VALIDATION_MESSAGES: dict[str, str] = {
    "OutOfScopeIsTestable": "Requirement is Out-of-Scope but marked as adapter or test case.",
    "DeriveFromDeleted": "Cannot derive from a Deleted requirement.",
    "DeriveFromInformative": "A requirement cannot be derived from informative requirement alone.",
    "DeriveFromNonExist": "Cannot derive from a non-existent requirement {0}.",
    "DeriveFromUnverified": "Cannot derive from a Normative Unverified requirement.",
    "DerivedReqIsInformative": "Derived requirement cannot be Informative.",
    "DerivedReqNotTestable": "Derived requirement can only be Test Case or Adapter.",
    "DerivedReqOutOfScope": "Derived requirement cannot be out-of-scope.",
}

# Test log entry kinds
CHECKPOINT_KIND: str = "Checkpoint"
COMMENT_KIND: str = "Comment"
SETTINGS_KIND: str = "Settings"
TEST_PASSED_KIND: str = "TestPassed"
CONFIG_PROPERTY_PREFIX: str = "PTFConfigProperties."
TEST_RESULT_PREFIX: str = "PTFTestResult."
TESTS_EXECUTED_KEY: str = "TestsExecuted"

# Test outcome entry kind -> result counter name
TEST_OUTCOME_KINDS: list[tuple[str, str]] = [
    ("TestPassed", "TestsPassed"),
    ("TestFailed", "TestsFailed"),
    ("TestInconclusive", "TestsInconclusive"),
    ("TestError", "TestsError"),
    ("TestAborted", "TestsAborted"),
    ("TestTimeout", "TestsTimeout"),
    ("TestUnknown", "TestsUnknown"),
]

# Checkpoint IDs that carry a protocol name
MS_REQUIREMENT_PATTERN: str = r"^MS-[A-Za-z0-9]{2,8}_R\d{1,4}$"
RFC_REQUIREMENT_PATTERN: str = r"^RFC\d{2,5}_R\d{1,4}$"

# Process exit codes
EXIT_SUCCESS: int = 0
EXIT_GENERATE_REPORT_FAILED: int = 1
