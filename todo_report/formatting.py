"""Formatting helpers for report text, chart ticks and file names."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol

from dateutil import tz

REPORT_PREFIX = "todos"


class TextWidthProvider(Protocol):
    def text_width(self, text: str, size: int, bold: bool = False) -> float:
        ...


def fmt_count(value: float) -> str:
    """Format an axis value as ``800``, ``1.5k`` or ``2.5M``."""
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1000:
        return f"{value / 1000:.1f}k"
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def utc_now() -> datetime:
    return datetime.now(tz.tzutc())


def report_timestamp(moment: Optional[datetime] = None) -> str:
    moment = moment or utc_now()
    if moment.tzinfo is not None:
        moment = moment.astimezone(tz.tzutc())
    return moment.strftime("%Y%m%d-%H%M%S")


def report_filename(moment: Optional[datetime] = None) -> str:
    """Return ``todos-YYYYMMDD-HHMMSS.pdf`` for *moment* (UTC, second granularity)."""
    return f"{REPORT_PREFIX}-{report_timestamp(moment)}.pdf"


def wrap_text(
    fonts_obj: TextWidthProvider,
    text: str,
    max_width: float,
    font_size: int,
    bold: bool = False,
) -> List[str]:
    def line_width(value: str) -> float:
        return fonts_obj.text_width(value, font_size, bold=bold)

    def wrap_paragraph(paragraph: str) -> List[str]:
        words = paragraph.split()
        if not words:
            return [paragraph]

        lines: List[str] = []
        current = ""
        for word in words:
            candidate = word if not current else f"{current} {word}"
            if line_width(candidate) <= max_width:
                current = candidate
                continue

            if current:
                lines.append(current)
                current = ""

            # Hard-break words wider than the cell.
            chunk = ""
            for char in word:
                candidate_chunk = chunk + char
                if chunk and line_width(candidate_chunk) > max_width:
                    lines.append(chunk)
                    chunk = char
                else:
                    chunk = candidate_chunk
            current = chunk

        if current:
            lines.append(current)
        return lines

    result: List[str] = []
    for paragraph in text.split("\n"):
        result.extend(wrap_paragraph(paragraph))
    return result if result else [text]


def clamp_lines(lines: List[str], max_lines: int, ellipsis: str = "…") -> List[str]:
    if max_lines < 1:
        return []
    if len(lines) <= max_lines:
        return lines
    kept = lines[:max_lines]
    kept[-1] = kept[-1].rstrip() + ellipsis
    return kept
