"""Trend chart rasterisation.

The chart content is a fixed sample series; it does not depend on the todo
payload. Chart setup mutates process-wide matplotlib state, so it runs once
per worker process (see ``configure_matplotlib``) rather than per request.
"""

from __future__ import annotations

import io
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

import matplotlib
from dateutil import tz
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.ticker import FuncFormatter

from .formatting import fmt_count
from .layout import CHART_DPI, CHART_H, CHART_W, MM_PER_INCH

logger = logging.getLogger(__name__)

CHART_TITLE = "Todo Completion Trends"
X_AXIS_TITLE = "Month"
Y_AXIS_TITLE = "Number of Todos"
MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun")

# (label, values, rgb colour)
TREND_SERIES: Tuple[Tuple[str, Sequence[int], Tuple[int, int, int]], ...] = (
    ("Completed Todos", (1200, 1900, 2500, 3200, 4100, 5500), (75, 192, 192)),
    ("Pending Todos", (800, 1200, 1500, 1800, 2200, 2800), (255, 99, 132)),
)
FILL_ALPHA = 0.2

_CONFIGURED = False


def configure_matplotlib() -> None:
    """Select the headless backend and chart defaults for this process."""
    global _CONFIGURED
    if _CONFIGURED:
        return
    matplotlib.use("Agg")
    matplotlib.rcParams.update(
        {
            "font.family": "DejaVu Sans",
            "axes.spines.top": False,
            "axes.spines.right": False,
            "axes.grid": True,
            "grid.alpha": 0.3,
            "legend.frameon": False,
        }
    )
    _CONFIGURED = True
    logger.debug("matplotlib configured with backend %s", matplotlib.get_backend())


def _rgb(color: Tuple[int, int, int]) -> Tuple[float, float, float]:
    return (color[0] / 255.0, color[1] / 255.0, color[2] / 255.0)


def month_tick_labels(moment: Optional[datetime] = None) -> List[str]:
    moment = moment or datetime.now(tz.tzlocal())
    year = moment.strftime("%y")
    return [f"{label} {year}" for label in MONTH_LABELS]


def render_trend_chart(moment: Optional[datetime] = None) -> bytes:
    """Return the trend chart as PNG bytes sized for the report's chart box."""
    configure_matplotlib()

    figure = Figure(figsize=(CHART_W / MM_PER_INCH, CHART_H / MM_PER_INCH))
    FigureCanvasAgg(figure)
    axes = figure.add_subplot()

    positions = list(range(len(MONTH_LABELS)))
    for label, values, color in TREND_SERIES:
        rgb = _rgb(color)
        axes.plot(positions, values, color=rgb, label=label, linewidth=1.5, marker="o", markersize=3)
        axes.fill_between(positions, values, color=rgb, alpha=FILL_ALPHA)

    axes.set_title(CHART_TITLE, fontsize=12)
    axes.set_xlabel(X_AXIS_TITLE, fontsize=9)
    axes.set_ylabel(Y_AXIS_TITLE, fontsize=9)
    axes.set_xticks(positions)
    axes.set_xticklabels(month_tick_labels(moment), fontsize=8)
    axes.set_ylim(bottom=0)
    axes.yaxis.set_major_formatter(FuncFormatter(lambda value, _pos: fmt_count(value)))
    axes.tick_params(axis="y", labelsize=8)
    axes.legend(loc="upper left", fontsize=8)
    figure.tight_layout()

    buffer = io.BytesIO()
    figure.savefig(buffer, format="png", dpi=CHART_DPI)
    return buffer.getvalue()
