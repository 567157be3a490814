import unittest
from datetime import datetime, timedelta

from dateutil import tz

from todo_report.formatting import clamp_lines, fmt_count, report_filename, wrap_text


class FixedWidthFonts:
    """Every character is one unit wide."""

    def text_width(self, text: str, size: int, bold: bool = False) -> float:
        return float(len(text))


class FormattingTests(unittest.TestCase):
    def test_fmt_count_uses_k_and_m_suffixes(self) -> None:
        self.assertEqual(fmt_count(0.0), "0")
        self.assertEqual(fmt_count(800), "800")
        self.assertEqual(fmt_count(1500), "1.5k")
        self.assertEqual(fmt_count(2_500_000), "2.5M")

    def test_report_filename_uses_utc_second_granularity(self) -> None:
        moment = datetime(2026, 1, 15, 10, 30, 5, 123456, tzinfo=tz.tzutc())

        self.assertEqual(report_filename(moment), "todos-20260115-103005.pdf")

    def test_report_filename_converts_aware_times_to_utc(self) -> None:
        moment = datetime(2026, 1, 15, 12, 0, 0, tzinfo=tz.tzoffset(None, 2 * 3600))

        self.assertEqual(report_filename(moment), "todos-20260115-100000.pdf")

    def test_resubmission_a_second_later_gets_a_new_name(self) -> None:
        first = datetime(2026, 1, 15, 10, 30, 5, tzinfo=tz.tzutc())

        self.assertNotEqual(report_filename(first), report_filename(first + timedelta(seconds=1)))

    def test_report_filename_defaults_to_now(self) -> None:
        name = report_filename()

        self.assertRegex(name, r"^todos-\d{8}-\d{6}\.pdf$")

    def test_wrap_text_breaks_on_words(self) -> None:
        self.assertEqual(wrap_text(FixedWidthFonts(), "aaa bbb ccc", 7, 10), ["aaa bbb", "ccc"])

    def test_wrap_text_hard_breaks_long_words(self) -> None:
        self.assertEqual(wrap_text(FixedWidthFonts(), "ab abcdefgh", 4, 10), ["ab", "abcd", "efgh"])

    def test_wrap_text_keeps_empty_text_as_one_line(self) -> None:
        self.assertEqual(wrap_text(FixedWidthFonts(), "", 4, 10), [""])

    def test_clamp_lines_marks_truncation(self) -> None:
        self.assertEqual(clamp_lines(["a", "b", "c"], 2), ["a", "b…"])
        self.assertEqual(clamp_lines(["a"], 2), ["a"])


if __name__ == "__main__":
    unittest.main()
