"""
Chart presenter for the monthly bar chart and the totals pie chart.

The presenter owns both chart objects for the lifetime of one page.  The
first upsert builds a chart from a fixed configuration; later upserts swap
the dataset arrays in place and ask the chart to redraw, so the chart object
(and its rendering state) is never rebuilt.

The charting library is a soft dependency: with no chart factory, or no
canvas for a chart, the upsert is a silent no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from budget.form_model import AMOUNT_MAX, MONTH_LABELS, FormData
from budget.renderer import Canvas, TooltipContext
from utils.formatting import format_number, format_percent, percent_of_total

logger = logging.getLogger(__name__)

INCOME_COLOR = "rgba(13,110,253,0.6)"
EXPENSE_COLOR = "rgba(220,53,69,0.6)"
INCOME_BORDER = "#0d6efd"
EXPENSE_BORDER = "#dc3545"

ChartFactory = Callable[[Canvas, dict[str, Any]], Any]


@dataclass(frozen=True)
class ChartSeries:
    """Everything both charts draw, derived from one form read."""

    income: tuple[float, ...]
    expense: tuple[float, ...]
    total_income: float
    total_expense: float

    @classmethod
    def from_form(cls, data: FormData) -> "ChartSeries":
        return cls(
            income=tuple(data.income),
            expense=tuple(data.expense),
            total_income=sum(data.income),
            total_expense=sum(data.expense),
        )

    @property
    def totals(self) -> list[float]:
        return [self.total_income, self.total_expense]


def bar_tooltip_label(ctx: TooltipContext) -> str:
    return f"{ctx.dataset_label}: {format_number(ctx.parsed)}"


def bar_chart_config(series: ChartSeries) -> dict[str, Any]:
    """Fixed configuration of the monthly income/expense bar chart."""
    return {
        "type": "bar",
        "data": {
            "labels": list(MONTH_LABELS),
            "datasets": [
                {"label": "Income", "data": list(series.income), "backgroundColor": INCOME_COLOR},
                {"label": "Expense", "data": list(series.expense), "backgroundColor": EXPENSE_COLOR},
            ],
        },
        "options": {
            "responsive": True,
            "maintainAspectRatio": False,
            "scales": {"y": {"beginAtZero": True, "suggestedMax": AMOUNT_MAX}},
            "plugins": {"tooltip": {"callbacks": {"label": bar_tooltip_label}}},
        },
    }


def pie_chart_config(series: ChartSeries) -> dict[str, Any]:
    """Fixed configuration of the totals pie chart.

    The tooltip percentage is computed against the chart's data at the time
    the tooltip is shown, not against the totals the chart was built with.
    """
    config: dict[str, Any] = {
        "type": "pie",
        "data": {
            "labels": ["Income", "Expense"],
            "datasets": [{
                "data": series.totals,
                "backgroundColor": [INCOME_COLOR, EXPENSE_COLOR],
                "borderColor": [INCOME_BORDER, EXPENSE_BORDER],
                "borderWidth": 1,
            }],
        },
        "options": {
            "responsive": True,
            "maintainAspectRatio": False,
            "plugins": {"legend": {"position": "bottom"}},
        },
    }
    dataset = config["data"]["datasets"][0]

    def pie_tooltip_label(ctx: TooltipContext) -> str:
        value = ctx.parsed or 0
        pct = percent_of_total(value, sum(dataset["data"]))
        return f"{ctx.label}: {format_number(value)} ({format_percent(pct)})"

    config["options"]["plugins"]["tooltip"] = {"callbacks": {"label": pie_tooltip_label}}
    return config


class ChartPresenter:
    """Owner of the bar and pie chart objects of one page.

    Args:
        bar_canvas: Canvas for the monthly chart, or None if absent.
        pie_canvas: Canvas for the totals chart, or None if absent.
        chart_factory: Chart constructor ``factory(canvas, config)``; None
            when no charting library is available.
    """

    def __init__(
        self,
        bar_canvas: Optional[Canvas],
        pie_canvas: Optional[Canvas],
        chart_factory: Optional[ChartFactory],
    ) -> None:
        self.bar_canvas = bar_canvas
        self.pie_canvas = pie_canvas
        self.chart_factory = chart_factory
        self.bar_chart: Any = None
        self.pie_chart: Any = None
        self.series: Optional[ChartSeries] = None

    def upsert_bar_chart(self, data: FormData) -> None:
        if self.bar_canvas is None or self.chart_factory is None:
            return
        series = ChartSeries.from_form(data)
        self.series = series
        if self.bar_chart is not None:
            self.bar_chart.data["datasets"][0]["data"] = list(series.income)
            self.bar_chart.data["datasets"][1]["data"] = list(series.expense)
            self.bar_chart.update()
            return
        self.bar_chart = self.chart_factory(self.bar_canvas, bar_chart_config(series))
        logger.debug("bar chart created on #%s", self.bar_canvas.element_id)

    def upsert_pie_chart(self, data: FormData) -> None:
        if self.pie_canvas is None or self.chart_factory is None:
            return
        series = ChartSeries.from_form(data)
        self.series = series
        if self.pie_chart is not None:
            self.pie_chart.data["datasets"][0]["data"] = series.totals
            self.pie_chart.update()
            return
        self.pie_chart = self.chart_factory(self.pie_canvas, pie_chart_config(series))
        logger.debug("pie chart created on #%s", self.pie_canvas.element_id)

    def update(self, data: FormData) -> None:
        """Upsert both charts from one form read."""
        self.upsert_bar_chart(data)
        self.upsert_pie_chart(data)

    def resize(self) -> None:
        """Re-measure both charts, e.g. once their tab becomes visible."""
        for chart in (self.bar_chart, self.pie_chart):
            if chart is not None:
                chart.resize()

    def close(self) -> None:
        for chart in (self.bar_chart, self.pie_chart):
            if chart is not None:
                chart.destroy()
        self.bar_chart = None
        self.pie_chart = None

    def export(self, mime: str = "image/png") -> tuple[Optional[str], Optional[str]]:
        """Data URLs of the bar and pie charts; None where a chart does not exist."""
        bar = self.bar_chart.to_data_url(mime) if self.bar_chart is not None else None
        pie = self.pie_chart.to_data_url(mime) if self.pie_chart is not None else None
        return bar, pie
