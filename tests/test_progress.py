"""Tests for console reporting of steps and operation summaries."""

import io

from rich.console import Console

from profile_bundler import BundleReport, CleanReport
from profile_bundler.progress import NullProgressReporter, RichProgressReporter


def _reporter():
    buffer = io.StringIO()
    console = Console(file=buffer, width=120, color_system=None)
    return RichProgressReporter(console), buffer


class TestRichProgressReporter:
    def test_step_numbering(self):
        reporter, buffer = _reporter()
        reporter.step("Loading profiles", 1, 5)
        assert "1/5 Loading profiles" in buffer.getvalue()

    def test_clean_summary_table(self):
        reporter, buffer = _reporter()
        report = CleanReport(files_processed=3, properties_removed=4, properties_hoisted={"y": "5"})

        reporter.summary("Clean complete", report.summary_rows())

        out = buffer.getvalue()
        assert "Clean complete" in out
        assert "Properties removed" in out
        assert "Moved to parent: y" in out

    def test_values_are_not_markup(self):
        reporter, buffer = _reporter()
        reporter.summary("Clean complete", [("condition", "nozzle_diameter[0]==0.4 and [bold]")])
        assert "nozzle_diameter[0]==0.4 and [bold]" in buffer.getvalue()


class TestReportRows:
    def test_bundle_rows(self):
        report = BundleReport(
            bundle_name="B",
            parent_name="print: *B*",
            moved=["print: *Parent*"],
            leaves=["print: Child"],
            descendants_found=1,
        )
        rows = dict(report.summary_rows())
        assert rows["Moved"] == "1"
        assert rows["Descendants"] == "1"
        assert "Files deleted" not in rows

    def test_null_reporter_accepts_everything(self):
        reporter = NullProgressReporter()
        reporter.update_status("x")
        reporter.step("x", 1, 1)
        reporter.summary("x", [("a", "b")])
