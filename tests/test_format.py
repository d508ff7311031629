"""Tests for ranking and selection rendering (text and CSV)."""

import csv
import io

from helpers import TIMEOUT, make_report

from realityprobe.formatters.csv import pass_report_to_csv
from realityprobe.formatters.text import format_ranking, format_selection
from realityprobe.models import PassReport, Selection, SelectionSource


def _rows(text: str) -> list[dict]:
    return list(csv.DictReader(io.StringIO(text)))


class TestCsv:
    def test_header_and_ranking_order(self):
        report = make_report([("a.com", 120), ("b.com", 80.46), ("c.com", TIMEOUT)])
        rows = _rows(pass_report_to_csv(report))

        assert [r["domain"] for r in rows] == ["b.com", "a.com", "c.com"]
        assert [r["rank"] for r in rows] == ["1", "2", "3"]
        assert rows[0]["latency_ms"] == "80.5"
        assert rows[0]["best"] == "yes"
        assert rows[1]["best"] == ""

    def test_failed_row(self):
        report = make_report([("c.com", TIMEOUT)])
        row = _rows(pass_report_to_csv(report))[0]
        assert row["status"] == "timeout"
        assert row["latency_ms"] == ""
        assert row["position"] == "0"

    def test_empty_report(self):
        text = pass_report_to_csv(PassReport(pass_id="p"))
        assert text.strip() == "rank,position,domain,status,latency_ms,error,best"


class TestText:
    def test_marks_best_and_failures(self):
        report = make_report([("a.com", 120), ("b.com", 80), ("c.com", TIMEOUT)])
        lines = format_ranking(report).splitlines()

        assert lines[0].startswith(" * b.com")
        assert lines[0].endswith("80 ms")
        assert "timeout" in lines[2]
        assert lines[-1].strip().startswith("2 ok, 1 failed")

    def test_no_candidates(self):
        assert "no candidates" in format_ranking(PassReport(pass_id="p"))

    def test_rejected_entries_summarised(self):
        report = make_report([("a.com", 10)])
        report.rejected = ["1.1.1.1", "bad!"]
        assert "2 malformed entries skipped" in format_ranking(report)

    def test_selection_measured(self):
        selection = Selection(domain="b.com", source=SelectionSource.MEASURED, latency_ms=80.4)
        assert format_selection(selection) == "b.com (80 ms, measured)"

    def test_selection_manual(self):
        selection = Selection(domain="my.custom.domain", source=SelectionSource.MANUAL)
        assert format_selection(selection) == "my.custom.domain (manual, unverified)"
