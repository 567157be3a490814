"""Fixed page template for the todo report (millimetres, top-left origin)."""

from __future__ import annotations

MM_PER_INCH = 25.4
MM_PER_PT = MM_PER_INCH / 72.0


def pt_to_mm(value: float) -> float:
    return value * MM_PER_PT


PAGE_FORMAT = "A4"
PAGE_W = 210.0
PAGE_H = 297.0
PAGE_PADDING = 10.0

TITLE_TEXT = "Todo List"
TITLE_X = 20.0
TITLE_Y = 20.0
TITLE_W = 170.0
TITLE_H = 15.0
TITLE_FONT_SIZE = 20

TABLE_X = 20.0
TABLE_Y_FIRST = 45.0
TABLE_W = 170.0
TABLE_H_FIRST = 150.0
TABLE_BOTTOM_FIRST = TABLE_Y_FIRST + TABLE_H_FIRST

# Continuation pages carry only the table.
TABLE_Y_CONT = PAGE_PADDING + 10.0
TABLE_BOTTOM_CONT = PAGE_H - PAGE_PADDING - 10.0

TABLE_HEAD = ("ID", "Todo Item", "Status")
COLUMN_PERCENTAGES = (12, 59, 29)
COLUMN_ALIGN = ("C", "L", "C")
COLUMN_WIDTHS = tuple(TABLE_W * pct / 100.0 for pct in COLUMN_PERCENTAGES)

HEAD_FONT_SIZE = 12
BODY_FONT_SIZE = 10
LINE_HEIGHT = 1.2
CELL_PADDING = pt_to_mm(5)
BORDER_WIDTH = pt_to_mm(1)
# Baseline offset below the top of a text line, as a share of the font size.
ASCENT = 0.8

HEAD_ROW_H = pt_to_mm(HEAD_FONT_SIZE) * LINE_HEIGHT + 2 * CELL_PADDING
BODY_LINE_H = pt_to_mm(BODY_FONT_SIZE) * LINE_HEIGHT
BODY_ROW_H = BODY_LINE_H + 2 * CELL_PADDING

CHART_X = 0.0
CHART_Y = 205.0
CHART_W = 210.0
CHART_H = 80.0
CHART_BASE_DPI = 96
# Rasterise above the embed size so the image stays sharp when scaled down.
CHART_RESOLUTION_MULTIPLIER = 2
CHART_DPI = CHART_BASE_DPI * CHART_RESOLUTION_MULTIPLIER

COLOR_TITLE = (0, 0, 0)
COLOR_BORDER = (0, 0, 0)
COLOR_HEAD_BG = (0x2C, 0x3E, 0x50)
COLOR_HEAD_TEXT = (0xFF, 0xFF, 0xFF)
COLOR_BODY_BG = (0xFF, 0xFF, 0xFF)
COLOR_BODY_ALT_BG = (0xF5, 0xF5, 0xF5)
COLOR_BODY_TEXT = (0, 0, 0)
