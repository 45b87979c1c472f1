"""Collection of non-fatal requirement table rule violations."""
from __future__ import annotations

import logging

from src.shared.constants import VALIDATION_MESSAGES
from src.shared.models.coverage import ValidationIssue, ValidationRule

logger = logging.getLogger(__name__)


class ValidationReport:
    """Keeps at most one error and one warning per requirement.

    The first issue recorded for a requirement at a given severity wins;
    later ones are dropped.
    """

    def __init__(self) -> None:
        self._errors: dict[str, ValidationIssue] = {}
        self._warnings: dict[str, ValidationIssue] = {}

    @staticmethod
    def _issue(requirement_id: str, rule: ValidationRule, *args: str) -> ValidationIssue:
        message = VALIDATION_MESSAGES[rule.value].format(*args)
        return ValidationIssue(requirement_id=requirement_id, rule=rule, message=message)

    def add_error(self, requirement_id: str, rule: ValidationRule, *args: str) -> bool:
        """Record an error; returns ``False`` if one was already recorded."""
        if requirement_id in self._errors:
            return False
        issue = self._issue(requirement_id, rule, *args)
        self._errors[requirement_id] = issue
        logger.warning("Validation error in %s: %s", requirement_id, issue.message)
        return True

    def add_warning(self, requirement_id: str, rule: ValidationRule, *args: str) -> bool:
        if requirement_id in self._warnings:
            return False
        issue = self._issue(requirement_id, rule, *args)
        self._warnings[requirement_id] = issue
        logger.warning("Validation warning in %s: %s", requirement_id, issue.message)
        return True

    def has_error(self, requirement_id: str) -> bool:
        return requirement_id in self._errors

    @property
    def errors(self) -> list[ValidationIssue]:
        return list(self._errors.values())

    @property
    def warnings(self) -> list[ValidationIssue]:
        return list(self._warnings.values())
