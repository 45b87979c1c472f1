"""Extraction of checkpoint evidence from XML test execution logs."""
from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from src.shared.constants import (
    CHECKPOINT_KIND,
    COMMENT_KIND,
    CONFIG_PROPERTY_PREFIX,
    MS_REQUIREMENT_PATTERN,
    RFC_REQUIREMENT_PATTERN,
    SETTINGS_KIND,
    TEST_OUTCOME_KINDS,
    TEST_PASSED_KIND,
    TEST_RESULT_PREFIX,
    TESTS_EXECUTED_KEY,
)
from src.shared.errors import LogFormatError
from src.shared.models.coverage import (
    CoverageEvidence,
    EvidenceCollection,
    ExcludedRequirement,
    LogSummary,
)
from src.shared.utils import child_text, iter_named

logger = logging.getLogger(__name__)

_PROTOCOL_PATTERNS = (re.compile(MS_REQUIREMENT_PATTERN), re.compile(RFC_REQUIREMENT_PATTERN))


@dataclass
class _LogEntry:
    kind: str
    timestamp: str
    message: str
    test_case: str | None


class TestLogAnalyzer:
    """Parses one test log and exposes its checkpoints and statistics.

    A checkpoint logged inside a test case whose outcome is anything but
    passed is excluded; every other checkpoint counts as covered.  For both,
    the first occurrence wins.
    """

    __test__ = False  # not a pytest test class

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.configurations: dict[str, str] = {}
        self.test_result: dict[str, str] = {}
        self.test_cases: dict[str, str] = {}
        self.checkpoints: dict[str, str] = {}
        self.excluded: dict[str, ExcludedRequirement] = {}
        self.protocols: list[str] = []
        self._load()

    def _load(self) -> None:
        try:
            root = ET.parse(self.path).getroot()
        except (ET.ParseError, OSError) as exc:
            raise LogFormatError(str(self.path), str(exc)) from exc

        entries = [self._read_entry(element) for element in iter_named(root, "LogEntry")]
        self._read_stats(entries, SETTINGS_KIND, CONFIG_PROPERTY_PREFIX, self.configurations)
        self._read_stats(entries, COMMENT_KIND, TEST_RESULT_PREFIX, self.test_result)
        self._read_outcomes(entries)
        self._read_checkpoints(entries)
        logger.info(
            "Analyzed %s: %d covered, %d excluded checkpoints",
            self.path.name, len(self.checkpoints), len(self.excluded),
        )

    def _read_entry(self, element: ET.Element) -> _LogEntry:
        kind = element.get("kind")
        if not kind:
            raise LogFormatError(str(self.path), "LogEntry without kind attribute")
        test_case = element.get("testCase")
        if test_case is None:
            test_case = child_text(element, "testCase")
        return _LogEntry(
            kind=kind,
            timestamp=element.get("timeStamp") or child_text(element, "timeStamp") or "",
            message=child_text(element, "Message") or "",
            test_case=test_case or None,
        )

    @staticmethod
    def _read_stats(
        entries: list[_LogEntry], kind: str, prefix: str, target: dict[str, str]
    ) -> None:
        matching = [entry for entry in entries if entry.kind == kind]
        if not matching:
            logger.warning("The log entry kind '%s' should be enabled.", kind)
        for entry in matching:
            if not entry.message.startswith(prefix):
                continue
            key, sep, value = entry.message[len(prefix):].partition(":")
            if not sep:
                continue
            target[key] = value
            if key == TESTS_EXECUTED_KEY:
                target["TimeStamp"] = entry.timestamp

    def _read_outcomes(self, entries: list[_LogEntry]) -> None:
        for kind, counter in TEST_OUTCOME_KINDS:
            matching = [entry for entry in entries if entry.kind == kind]
            if not matching and counter in self.test_result:
                logger.warning("The log entry kind '%s' should be enabled.", kind)
            for entry in matching:
                self.test_cases[entry.message.strip()] = kind

    def _read_checkpoints(self, entries: list[_LogEntry]) -> None:
        for entry in entries:
            if entry.kind != CHECKPOINT_KIND:
                continue
            req_id = entry.message.strip()
            outcome = self.test_cases.get(entry.test_case) if entry.test_case else None
            if outcome is not None and outcome.lower() != TEST_PASSED_KIND.lower():
                if req_id not in self.excluded:
                    self.excluded[req_id] = ExcludedRequirement(
                        requirement_id=req_id,
                        test_case=entry.test_case,
                        test_result=outcome,
                        timestamp=entry.timestamp,
                        source=self.path.name,
                    )
                continue
            if req_id in self.checkpoints:
                continue
            self.checkpoints[req_id] = entry.timestamp
            if any(pattern.match(req_id) for pattern in _PROTOCOL_PATTERNS):
                protocol = req_id.split("_", 1)[0]
                if protocol not in self.protocols:
                    self.protocols.append(protocol)

    def summary(self) -> LogSummary:
        return LogSummary(
            source=self.path.name,
            protocols=list(self.protocols),
            configurations=dict(self.configurations),
            test_result=dict(self.test_result),
            covered_count=len(self.checkpoints),
            excluded_count=len(self.excluded),
        )


def collect_evidence(paths: Iterable[Path | str]) -> EvidenceCollection:
    """Analyze every log and merge the results.

    Logs are processed in sorted filename order so the merged result does
    not depend on argument order.  An ID is excluded only if no passing test
    case covered it in any log.
    """
    collection = EvidenceCollection()
    excluded: dict[str, ExcludedRequirement] = {}
    for path in sorted((Path(p) for p in paths), key=lambda p: (p.name, str(p))):
        analyzer = TestLogAnalyzer(path)
        for req_id, timestamp in analyzer.checkpoints.items():
            item = collection.evidence.get(req_id)
            if item is None:
                collection.evidence[req_id] = CoverageEvidence(
                    requirement_id=req_id, timestamp=timestamp, sources=[path.name]
                )
            elif path.name not in item.sources:
                item.sources.append(path.name)
        for req_id, entry in analyzer.excluded.items():
            excluded.setdefault(req_id, entry)
        collection.logs.append(analyzer.summary())

    collection.excluded = {
        req_id: entry for req_id, entry in excluded.items()
        if req_id not in collection.evidence
    }
    return collection
