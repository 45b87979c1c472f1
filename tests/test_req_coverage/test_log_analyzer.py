"""Tests for TestLogAnalyzer and collect_evidence."""
from __future__ import annotations

import logging

import pytest

from src.shared.errors import LogFormatError
from src.req_coverage.services.log_analyzer import TestLogAnalyzer, collect_evidence


# ---------------------------------------------------------------------------
# Single log
# ---------------------------------------------------------------------------


class TestStatistics:
    """Settings and comment entries."""

    def test_configuration_properties(self, write_log):
        path = write_log(
            [
                ("Settings", "PTFConfigProperties.ServerName:node01"),
                ("Settings", "PTFConfigProperties.Endpoint:http://node01:80"),
                ("Settings", "Unrelated setting"),
            ]
        )
        analyzer = TestLogAnalyzer(path)
        assert analyzer.configurations == {
            "ServerName": "node01",
            "Endpoint": "http://node01:80",
        }

    def test_test_result_and_timestamp(self, write_log):
        path = write_log(
            [
                ("Comment", "PTFTestResult.TestsExecuted:3", None, "2024-01-02T08:00:00"),
                ("Comment", "PTFTestResult.TestsPassed:2"),
                ("Comment", "PTFTestResult.TestsFailed:1"),
                ("TestPassed", "TC1"),
                ("TestPassed", "TC2"),
                ("TestFailed", "TC3"),
            ]
        )
        analyzer = TestLogAnalyzer(path)
        assert analyzer.test_result == {
            "TestsExecuted": "3",
            "TimeStamp": "2024-01-02T08:00:00",
            "TestsPassed": "2",
            "TestsFailed": "1",
        }
        assert analyzer.test_cases == {"TC1": "TestPassed", "TC2": "TestPassed", "TC3": "TestFailed"}

    def test_missing_kind_is_warned(self, write_log, caplog):
        path = write_log([("Comment", "PTFTestResult.TestsInconclusive:1")])
        with caplog.at_level(logging.WARNING):
            TestLogAnalyzer(path)
        messages = [record.getMessage() for record in caplog.records]
        assert "The log entry kind 'Settings' should be enabled." in messages
        assert "The log entry kind 'TestInconclusive' should be enabled." in messages


class TestCheckpoints:
    def test_passed_and_unattributed_checkpoints_covered(self, write_log):
        path = write_log(
            [
                ("TestPassed", "TC1"),
                ("Checkpoint", "R1", "TC1"),
                ("Checkpoint", "R2"),
            ]
        )
        analyzer = TestLogAnalyzer(path)
        assert set(analyzer.checkpoints) == {"R1", "R2"}
        assert analyzer.excluded == {}

    def test_failed_case_excludes(self, write_log):
        path = write_log(
            [
                ("TestFailed", "TC2"),
                ("Checkpoint", "R3", "TC2", "2024-01-01T11:00:00"),
            ]
        )
        analyzer = TestLogAnalyzer(path)
        assert analyzer.checkpoints == {}
        excluded = analyzer.excluded["R3"]
        assert excluded.test_case == "TC2"
        assert excluded.test_result == "TestFailed"
        assert excluded.timestamp == "2024-01-01T11:00:00"
        assert excluded.source == path.name

    def test_first_timestamp_wins(self, write_log):
        path = write_log(
            [
                ("Checkpoint", "R1", None, "2024-01-01T10:00:00"),
                ("Checkpoint", "R1", None, "2024-01-01T12:00:00"),
            ]
        )
        assert TestLogAnalyzer(path).checkpoints == {"R1": "2024-01-01T10:00:00"}

    def test_message_is_stripped(self, write_log):
        path = write_log([("Checkpoint", "  R1 ")])
        assert list(TestLogAnalyzer(path).checkpoints) == ["R1"]

    def test_protocols(self, write_log):
        path = write_log(
            [
                ("Checkpoint", "MS-XXXX_R12"),
                ("Checkpoint", "MS-XXXX_R13"),
                ("Checkpoint", "RFC4120_R3"),
                ("Checkpoint", "Custom-1"),
            ]
        )
        assert TestLogAnalyzer(path).protocols == ["MS-XXXX", "RFC4120"]

    def test_child_element_fields(self, tmp_path):
        path = tmp_path / "children.xml"
        path.write_text(
            "<TestLog>"
            '<LogEntry kind="TestFailed"><Message>TC9</Message></LogEntry>'
            '<LogEntry kind="Checkpoint"><timeStamp>t1</timeStamp>'
            "<testCase>TC9</testCase><Message>R1</Message></LogEntry>"
            "</TestLog>",
            encoding="utf-8",
        )
        analyzer = TestLogAnalyzer(path)
        assert analyzer.excluded["R1"].timestamp == "t1"

    def test_summary(self, write_log):
        path = write_log([("TestFailed", "TC2"), ("Checkpoint", "R1"), ("Checkpoint", "R2", "TC2")])
        summary = TestLogAnalyzer(path).summary()
        assert summary.source == path.name
        assert summary.covered_count == 1
        assert summary.excluded_count == 1


class TestLogErrors:
    def test_malformed_xml(self, tmp_path):
        path = tmp_path / "broken.xml"
        path.write_text("<TestLog><LogEntry", encoding="utf-8")
        with pytest.raises(LogFormatError):
            TestLogAnalyzer(path)

    def test_entry_without_kind(self, tmp_path):
        path = tmp_path / "nokind.xml"
        path.write_text("<TestLog><LogEntry><Message>R1</Message></LogEntry></TestLog>", encoding="utf-8")
        with pytest.raises(LogFormatError, match="kind"):
            TestLogAnalyzer(path)


# ---------------------------------------------------------------------------
# Several logs
# ---------------------------------------------------------------------------


class TestCollectEvidence:
    def test_sorted_by_file_name(self, write_log):
        later = write_log([("Checkpoint", "R1", None, "t-b")], name="b.xml")
        earlier = write_log([("Checkpoint", "R1", None, "t-a")], name="a.xml")
        collection = collect_evidence([later, earlier])
        assert collection.evidence["R1"].timestamp == "t-a"
        assert collection.evidence["R1"].sources == ["a.xml", "b.xml"]
        assert [log.source for log in collection.logs] == ["a.xml", "b.xml"]

    def test_covered_elsewhere_not_excluded(self, write_log):
        failing = write_log(
            [("TestFailed", "TC1"), ("Checkpoint", "R1", "TC1"), ("Checkpoint", "R2", "TC1")],
            name="a.xml",
        )
        passing = write_log([("TestPassed", "TC1"), ("Checkpoint", "R1", "TC1")], name="b.xml")
        collection = collect_evidence([failing, passing])
        assert set(collection.evidence) == {"R1"}
        assert set(collection.excluded) == {"R2"}

    def test_no_logs(self):
        collection = collect_evidence([])
        assert collection.evidence == {}
        assert collection.logs == []
