import builtins
import unittest
from datetime import datetime
from importlib import util as importlib_util
from unittest.mock import patch

from todo_report.errors import DependencyError
from todo_report.server import create_render_pool, load_render_todos

RENDER_DEPS_AVAILABLE = all(
    importlib_util.find_spec(name) is not None for name in ("fpdf", "matplotlib")
)
if RENDER_DEPS_AVAILABLE:
    from fpdf import FPDF

    from todo_report import charting
    from todo_report.config import LOG_FORMAT, LOG_LEVEL
    from todo_report.fonts import FontManager
    from todo_report.models import TodoItem
    from todo_report.pagination import FIRST_PAGE_CAPACITY
    from todo_report.rendering import TodoReportRenderer, init_render_worker, render_todos

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
RESULT_TIMEOUT = 120


@unittest.skipUnless(RENDER_DEPS_AVAILABLE, "fpdf and matplotlib are not installed")
class RenderingTests(unittest.TestCase):
    def test_render_todos_returns_pdf_bytes(self) -> None:
        todos = [
            TodoItem(1, "Complete project documentation", True),
            TodoItem(2, "Review code changes", False),
        ]

        pdf = render_todos(todos)

        self.assertIsInstance(pdf, bytes)
        self.assertTrue(pdf.startswith(b"%PDF"))
        self.assertGreater(len(pdf), 1000)

    def test_empty_input_renders_single_page_document(self) -> None:
        renderer = TodoReportRenderer([])

        pdf = renderer.render()

        self.assertTrue(pdf.startswith(b"%PDF"))
        self.assertEqual(renderer.pdf.page_no(), 1)

    def test_rows_overflowing_the_table_box_continue_on_new_pages(self) -> None:
        todos = [TodoItem(i, f"Todo number {i}", i % 2 == 0) for i in range(FIRST_PAGE_CAPACITY + 5)]
        renderer = TodoReportRenderer(todos)

        renderer.render()

        self.assertEqual(renderer.pdf.page_no(), 2)

    def test_long_and_unicode_text_wraps_without_error(self) -> None:
        todos = [
            TodoItem(1, "Überprüfen " * 40, False),
            TodoItem(2, "Задача: проверить отчёт Δ", True),
            TodoItem(3, "x" * 500, False),
        ]

        pdf = render_todos(todos)

        self.assertTrue(pdf.startswith(b"%PDF"))

    def test_trend_chart_is_png(self) -> None:
        png = charting.render_trend_chart(datetime(2026, 3, 1))

        self.assertTrue(png.startswith(PNG_SIGNATURE))

    def test_month_tick_labels_carry_two_digit_year(self) -> None:
        labels = charting.month_tick_labels(datetime(2026, 3, 1))

        self.assertEqual(labels[0], "Jan 26")
        self.assertEqual(len(labels), len(charting.MONTH_LABELS))

    def test_worker_initializer_is_idempotent(self) -> None:
        init_render_worker()
        init_render_worker()

        self.assertTrue(charting._CONFIGURED)
        self.assertEqual(charting.matplotlib.get_backend().lower(), "agg")

    def test_worker_initializer_configures_logging_from_environment(self) -> None:
        with patch("todo_report.rendering.logging.basicConfig") as basic_config:
            init_render_worker()

        basic_config.assert_called_once_with(level=LOG_LEVEL, format=LOG_FORMAT)

    def test_bold_face_is_registered_for_table_headers(self) -> None:
        fonts = FontManager(FPDF(unit="mm", format="A4"))

        regular = fonts.text_width("Status", 11)
        bold = fonts.text_width("Status", 11, bold=True)

        self.assertGreater(bold, regular)

    def test_renderer_uses_a4_millimetre_canvas(self) -> None:
        renderer = TodoReportRenderer([])

        self.assertIsInstance(renderer.pdf, FPDF)
        self.assertAlmostEqual(renderer.pdf.w, 210.0, places=0)
        self.assertAlmostEqual(renderer.pdf.h, 297.0, places=0)


@unittest.skipUnless(RENDER_DEPS_AVAILABLE, "fpdf and matplotlib are not installed")
class RenderPoolIntegrationTests(unittest.TestCase):
    def test_production_pool_renders_pdfs_in_worker_processes(self) -> None:
        pool = create_render_pool(2)
        self.addCleanup(pool.drain, RESULT_TIMEOUT)
        pool.start()
        payloads = [
            (TodoItem(1, "Complete project documentation", True),),
            (TodoItem(2, "Review code changes", False), TodoItem(3, "Update dependencies", True)),
            tuple(TodoItem(index, f"Task {index}", index % 2 == 0) for index in range(1, 26)),
            (),
        ]

        futures = [pool.submit(payload) for payload in payloads]
        results = [future.result(timeout=RESULT_TIMEOUT) for future in futures]

        for result in results:
            self.assertIsInstance(result, bytes)
            self.assertTrue(result.startswith(b"%PDF"))
        self.assertEqual(pool.stats()["restarts"], 0)
        self.assertTrue(all(slot.pid is not None for slot in pool.slots))


class RenderDependencyTests(unittest.TestCase):
    def _import_failing(self, missing: str):
        real_import = builtins.__import__

        def fake_import(name, globals=None, locals=None, fromlist=(), level=0):
            if name in ("rendering", "todo_report.rendering"):
                raise ModuleNotFoundError(f"No module named '{missing}'", name=missing)
            return real_import(name, globals, locals, fromlist, level)

        return patch("builtins.__import__", side_effect=fake_import)

    def test_missing_render_library_maps_to_dependency_error(self) -> None:
        for missing in ("fpdf", "matplotlib"):
            with self.subTest(missing=missing):
                with self._import_failing(missing):
                    with self.assertRaises(DependencyError) as caught:
                        load_render_todos()

                self.assertIn(missing, str(caught.exception))
                self.assertIsInstance(caught.exception.__cause__, ModuleNotFoundError)

    def test_missing_render_library_fails_pool_creation(self) -> None:
        with self._import_failing("fpdf"):
            with self.assertRaises(DependencyError):
                create_render_pool(2)

    def test_unrelated_missing_module_is_not_masked(self) -> None:
        with self._import_failing("some_internal_helper"):
            with self.assertRaises(ModuleNotFoundError) as caught:
                load_render_todos()

        self.assertNotIsInstance(caught.exception, DependencyError)


if __name__ == "__main__":
    unittest.main()
