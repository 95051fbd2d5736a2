import unittest

from sockcheck.checks.results import CaseResult, Outcome, Report
from sockcheck.formatting import format_status_line


class StatusLineTests(unittest.TestCase):
    def test_status_lines(self) -> None:
        cases = [
            (Outcome.success(), "[SUCCESS] NO_SSL"),
            (Outcome.failure("connect failed: refused"), "[FAILED] NO_SSL: connect failed: refused"),
            (Outcome.timed_out(), "[FAILED] NO_SSL: Timed out!"),
        ]
        for outcome, expected in cases:
            with self.subTest(status=outcome.status):
                self.assertEqual(format_status_line("NO_SSL", outcome), expected)


class ReportTests(unittest.TestCase):
    def test_empty_report_is_ok(self) -> None:
        report = Report()
        self.assertFalse(report.any_failed)
        self.assertEqual(report.body, "")
        self.assertEqual(report.status_code, 200)

    def test_timed_out_counts_as_failed(self) -> None:
        report = Report()
        report.add(CaseResult("a", Outcome.success(), "[SUCCESS] a"))
        report.add(CaseResult("b", Outcome.timed_out(), "[FAILED] b: Timed out!"))

        self.assertTrue(report.any_failed)
        self.assertEqual(report.lines, ["[SUCCESS] a", "[FAILED] b: Timed out!"])
        self.assertEqual(report.status_code, 500)
