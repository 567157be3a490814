"""Font discovery and text drawing helpers."""

from __future__ import annotations

import os
from typing import List, Optional, Tuple

import matplotlib
from fpdf import FPDF


def find_font_path(env_var: str, candidates: List[str]) -> Optional[str]:
    override = os.getenv(env_var)
    if override and os.path.exists(override):
        return override

    for path in candidates:
        if os.path.exists(path):
            return path
    return None


def matplotlib_font(filename: str) -> str:
    return os.path.join(matplotlib.get_data_path(), "fonts", "ttf", filename)


class FontManager:
    FAMILY = "ReportFont"
    SYSTEM_REGULAR_CANDIDATES = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans.ttf",
        "/Library/Fonts/DejaVuSans.ttf",
    ]
    SYSTEM_BOLD_CANDIDATES = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
        "/Library/Fonts/DejaVuSans-Bold.ttf",
    ]

    def __init__(self, pdf: FPDF) -> None:
        self.pdf = pdf
        self.family = self.FAMILY

        regular_path = find_font_path(
            "TODO_REPORT_FONT_PATH",
            [*self.SYSTEM_REGULAR_CANDIDATES, matplotlib_font("DejaVuSans.ttf")],
        )
        if not regular_path:
            raise RuntimeError(
                "Unicode font not found. Set TODO_REPORT_FONT_PATH to a valid TTF file."
            )

        bold_path = find_font_path(
            "TODO_REPORT_FONT_BOLD_PATH",
            [*self.SYSTEM_BOLD_CANDIDATES, matplotlib_font("DejaVuSans-Bold.ttf")],
        )

        self.pdf.add_font(self.FAMILY, "", regular_path)
        # Without a bold TTF, headers use the regular face.
        self.pdf.add_font(self.FAMILY, "B", bold_path or regular_path)

    def _style(self, bold: bool) -> str:
        return "B" if bold else ""

    def text_width(self, text: str, size: int, bold: bool = False) -> float:
        self.pdf.set_font(self.family, self._style(bold), size)
        return self.pdf.get_string_width(text)

    def draw_text(
        self,
        x: float,
        y: float,
        text: str,
        size: int,
        color: Tuple[int, int, int],
        bold: bool = False,
    ) -> None:
        self.pdf.set_text_color(*color)
        self.pdf.set_font(self.family, self._style(bold), size)
        self.pdf.text(x, y, text)

    def draw_aligned(
        self,
        left: float,
        width: float,
        y: float,
        text: str,
        size: int,
        color: Tuple[int, int, int],
        align: str = "L",
        bold: bool = False,
    ) -> None:
        if align == "C":
            x = left + (width - self.text_width(text, size, bold=bold)) / 2.0
        elif align == "R":
            x = left + width - self.text_width(text, size, bold=bold)
        else:
            x = left
        self.draw_text(x, y, text, size, color, bold=bold)
