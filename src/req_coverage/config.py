"""Configuration dataclasses and loader for a coverage analysis run."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from src.shared.constants import (
    DEFAULT_IN_SCOPE,
    DEFAULT_OUT_OF_SCOPE,
    DELTA_ALIASES,
    NONE_SCOPE_KEYWORD,
    PREFIX_SUFFIX,
    SCOPE_SEPARATOR,
)
from src.shared.errors import ScopeConfigurationError

_TRAILING_UNDERSCORES = re.compile(r"_+\b")


@dataclass
class ScopeConfig:
    """Scope, delta and ID prefix options.

    ``in_scope`` and ``out_of_scope`` are ``None`` unless given explicitly.
    Giving either one switches the run into scope mode, which requires both.
    """

    in_scope: str | None = None
    out_of_scope: str | None = None
    delta: str = ""
    prefix: str = ""

    @property
    def scope_mode(self) -> bool:
        return self.in_scope is not None or self.out_of_scope is not None


@dataclass
class AnalysisConfig:
    """Top-level configuration of a coverage analysis."""

    scope: ScopeConfig = field(default_factory=ScopeConfig)
    tables: list[str] = field(default_factory=list)
    logs: list[str] = field(default_factory=list)
    verbose: bool = False
    output: str = ""
    replace: bool = False


@dataclass(frozen=True)
class ScopeRules:
    """Lower-cased in-scope and out-of-scope value sets."""

    in_scope: frozenset[str]
    out_of_scope: frozenset[str]

    def is_in_scope(self, scope: str) -> bool:
        return scope.lower() in self.in_scope

    def is_out_of_scope(self, scope: str) -> bool:
        return scope.lower() in self.out_of_scope


def _parse_scope_values(raw: str, label: str) -> frozenset[str]:
    """Split a ``+``-separated scope string; ``None`` alone means empty."""
    values = [v.strip() for v in raw.split(SCOPE_SEPARATOR) if v.strip()]
    lowered = [v.lower() for v in values]
    if NONE_SCOPE_KEYWORD in lowered:
        if len(lowered) > 1:
            raise ScopeConfigurationError(
                f"None keyword is not allowed as the {label} value. "
                f"If no value specified to {label}, please use 'None' only."
            )
        return frozenset()
    return frozenset(lowered)


def build_scope_rules(scope: ScopeConfig) -> ScopeRules:
    """Turn scope options into the rule sets used by the classifier."""
    if scope.scope_mode:
        if scope.in_scope is None:
            raise ScopeConfigurationError("Please explicitly specify in-scope parameter.")
        if scope.out_of_scope is None:
            raise ScopeConfigurationError("Please explicitly specify out-of-scope parameter.")
        in_raw, out_raw = scope.in_scope, scope.out_of_scope
    else:
        in_raw, out_raw = DEFAULT_IN_SCOPE, DEFAULT_OUT_OF_SCOPE

    rules = ScopeRules(
        in_scope=_parse_scope_values(in_raw, "in-scope"),
        out_of_scope=_parse_scope_values(out_raw, "out-of-scope"),
    )
    if not rules.in_scope and not rules.out_of_scope:
        raise ScopeConfigurationError(
            "No scope value is found to compute the requirement verifiable."
        )
    return rules


def parse_delta_values(raw: str) -> frozenset[str]:
    """Expand a ``+``-separated delta string into the delta column values it selects."""
    if not raw or not raw.strip():
        return frozenset()
    if any(ch.isspace() for ch in raw.strip()):
        raise ScopeConfigurationError(
            f"Invalid delta string format \"{raw}\", please use the correct format e.g. Changed+New. "
            "Don't allow spaces in the delta scope argument string."
        )
    values: set[str] = set()
    for delta in raw.split(SCOPE_SEPARATOR):
        key = delta.strip().lower()
        if not key:
            continue
        if key not in DELTA_ALIASES:
            raise ScopeConfigurationError(f"Unsupported delta scope value {delta}")
        values.update(DELTA_ALIASES[key])
    return frozenset(values)


def normalize_prefix(raw: str | None) -> str | None:
    """Normalize a requirement ID prefix to the ``<name>_R`` form."""
    if not raw:
        return None
    if " " in raw:
        raise ScopeConfigurationError("Prefix cannot contain spaces.")
    prefix = _TRAILING_UNDERSCORES.sub("", raw)
    if not prefix.endswith(PREFIX_SUFFIX):
        prefix += PREFIX_SUFFIX
    return prefix


def load_analysis_config(path: Path | str | None = None) -> AnalysisConfig:
    """Load analysis configuration from a YAML file.

    Missing sections fall back to defaults.  Unknown keys are silently
    ignored so that forward-compatible config files work.

    Args:
        path: Path to config YAML.  If ``None`` or the file does not
              exist, returns full defaults.

    Returns:
        Populated configuration dataclass.
    """
    if path is None:
        return AnalysisConfig()

    path = Path(path)
    if not path.exists():
        return AnalysisConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw: dict[str, Any] = yaml.safe_load(f) or {}

    def _pick(data: dict[str, Any], cls: type) -> dict[str, Any]:
        """Filter *data* to only keys accepted by *cls*."""
        valid = {f.name for f in cls.__dataclass_fields__.values()}
        return {k: v for k, v in data.items() if k in valid}

    scope_raw = raw.get("scope") or {}
    top_level = _pick(raw, AnalysisConfig)
    top_level.pop("scope", None)

    scope_values = _pick(scope_raw, ScopeConfig)
    for key in ("in_scope", "out_of_scope", "delta", "prefix"):
        if key in scope_values and scope_values[key] is not None:
            scope_values[key] = str(scope_values[key])

    return AnalysisConfig(scope=ScopeConfig(**scope_values), **top_level)
