"""Todo report PDF rendering logic.

Everything here runs inside a render worker process. ``init_render_worker``
is the pool initialiser; ``render_todos`` is the job target.
"""

from __future__ import annotations

import io
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from fpdf import FPDF

from .charting import configure_matplotlib, render_trend_chart
from .config import LOG_FORMAT, LOG_LEVEL
from .fonts import FontManager
from .formatting import clamp_lines, wrap_text
from .layout import (
    ASCENT,
    BODY_FONT_SIZE,
    BODY_LINE_H,
    BORDER_WIDTH,
    CELL_PADDING,
    CHART_H,
    CHART_W,
    CHART_X,
    CHART_Y,
    COLOR_BODY_ALT_BG,
    COLOR_BODY_BG,
    COLOR_BODY_TEXT,
    COLOR_BORDER,
    COLOR_HEAD_BG,
    COLOR_HEAD_TEXT,
    COLOR_TITLE,
    COLUMN_ALIGN,
    COLUMN_WIDTHS,
    HEAD_FONT_SIZE,
    HEAD_ROW_H,
    PAGE_FORMAT,
    TABLE_BOTTOM_CONT,
    TABLE_BOTTOM_FIRST,
    TABLE_HEAD,
    TABLE_X,
    TABLE_Y_CONT,
    TABLE_Y_FIRST,
    TITLE_FONT_SIZE,
    TITLE_H,
    TITLE_TEXT,
    TITLE_W,
    TITLE_X,
    TITLE_Y,
    pt_to_mm,
)
from .models import TodoItem

logger = logging.getLogger(__name__)

# Tallest row a continuation page can hold.
MAX_ROW_LINES = int((TABLE_BOTTOM_CONT - TABLE_Y_CONT - HEAD_ROW_H - 2 * CELL_PADDING) // BODY_LINE_H)


def init_render_worker() -> None:
    """Per-process setup for a render worker slot.

    Spawned workers start with an unconfigured root logger; they read the
    same level from the environment as the server process.
    """
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    configure_matplotlib()


def _baseline(top: float, line_height: float, font_size: int) -> float:
    font_h = pt_to_mm(font_size)
    return top + (line_height - font_h) / 2.0 + font_h * ASCENT


class TodoReportRenderer:
    def __init__(self, todos: Sequence[TodoItem], generated_at: Optional[datetime] = None) -> None:
        self.todos = list(todos)
        self.generated_at = generated_at
        self.pdf = FPDF(orientation="P", unit="mm", format=PAGE_FORMAT)
        self.pdf.set_auto_page_break(False)
        self.pdf.set_title(TITLE_TEXT)
        self.pdf.set_line_width(BORDER_WIDTH)
        self.pdf.set_draw_color(*COLOR_BORDER)
        self.pdf.add_page()

        self.fonts = FontManager(self.pdf)

    def _cell_box(self, x: float, y: float, width: float, height: float, fill: Tuple[int, int, int]) -> None:
        self.pdf.set_fill_color(*fill)
        self.pdf.rect(x, y, width, height, style="DF")

    def _draw_title(self) -> None:
        baseline = _baseline(TITLE_Y, TITLE_H, TITLE_FONT_SIZE)
        self.fonts.draw_aligned(TITLE_X, TITLE_W, baseline, TITLE_TEXT, TITLE_FONT_SIZE, COLOR_TITLE, align="C")

    def _draw_table_header(self, y: float) -> float:
        x = TABLE_X
        baseline = _baseline(y, HEAD_ROW_H, HEAD_FONT_SIZE)
        for label, width in zip(TABLE_HEAD, COLUMN_WIDTHS):
            self._cell_box(x, y, width, HEAD_ROW_H, COLOR_HEAD_BG)
            self.fonts.draw_aligned(
                x + CELL_PADDING,
                width - 2 * CELL_PADDING,
                baseline,
                label,
                HEAD_FONT_SIZE,
                COLOR_HEAD_TEXT,
                align="C",
                bold=True,
            )
            x += width
        return y + HEAD_ROW_H

    def _row_lines(self, row: List[str]) -> List[List[str]]:
        cells = []
        for value, width in zip(row, COLUMN_WIDTHS):
            lines = wrap_text(self.fonts, value, width - 2 * CELL_PADDING, BODY_FONT_SIZE)
            cells.append(clamp_lines(lines, MAX_ROW_LINES))
        return cells

    def _draw_row(self, y: float, cells: List[List[str]], row_h: float, index: int) -> None:
        fill = COLOR_BODY_ALT_BG if index % 2 else COLOR_BODY_BG
        x = TABLE_X
        for lines, width, align in zip(cells, COLUMN_WIDTHS, COLUMN_ALIGN):
            self._cell_box(x, y, width, row_h, fill)
            text_h = len(lines) * BODY_LINE_H
            top = y + (row_h - text_h) / 2.0
            for line_index, line in enumerate(lines):
                if not line:
                    continue
                self.fonts.draw_aligned(
                    x + CELL_PADDING,
                    width - 2 * CELL_PADDING,
                    _baseline(top + line_index * BODY_LINE_H, BODY_LINE_H, BODY_FONT_SIZE),
                    line,
                    BODY_FONT_SIZE,
                    COLOR_BODY_TEXT,
                    align=align,
                )
            x += width

    def _draw_table(self) -> None:
        y = self._draw_table_header(TABLE_Y_FIRST)
        bottom = TABLE_BOTTOM_FIRST

        for index, todo in enumerate(self.todos):
            cells = self._row_lines(todo.display_row())
            line_count = max(len(lines) for lines in cells) or 1
            row_h = line_count * BODY_LINE_H + 2 * CELL_PADDING
            if y + row_h > bottom:
                self.pdf.add_page()
                y = self._draw_table_header(TABLE_Y_CONT)
                bottom = TABLE_BOTTOM_CONT
            self._draw_row(y, cells, row_h, index)
            y += row_h

    def _draw_chart(self) -> None:
        chart_png = render_trend_chart(self.generated_at)
        self.pdf.image(io.BytesIO(chart_png), x=CHART_X, y=CHART_Y, w=CHART_W, h=CHART_H)

    def render(self) -> bytes:
        self._draw_title()
        # The chart sits at a fixed spot on the first page; draw it before the
        # table may add continuation pages.
        self._draw_chart()
        self._draw_table()

        pdf_blob = self.pdf.output()
        if isinstance(pdf_blob, (bytes, bytearray)):
            return bytes(pdf_blob)
        raise RuntimeError(f"Unexpected PDF output type: {type(pdf_blob).__name__}")


def render_todos(todos: Sequence[TodoItem]) -> bytes:
    logger.debug("rendering report with %d todos", len(todos))
    return TodoReportRenderer(todos).render()
