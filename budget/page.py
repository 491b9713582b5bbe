"""
Per-visitor page context.

``BudgetPage`` owns everything one open budgeting page needs: the posted
field values, the form model reading them, the chart presenter and its two
canvases, the update scheduler driving the presenter, and the username
validator.  The charts live and die with the page (``close()``), not with
module state.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from budget.charts import ChartFactory, ChartPresenter
from budget.form_model import FIELD_IDS, FormData, FormModel
from budget.renderer import Canvas, MatplotlibChart
from budget.scheduler import Schedule, UpdateScheduler
from budget.username import UsernameValidator

logger = logging.getLogger(__name__)

BAR_CANVAS_ID = "monthlyChart"
PIE_CANVAS_ID = "totalsPieChart"


class BudgetPage:
    """Wiring of form, charts, scheduler and username validator for one page.

    Args:
        chart_factory: Charting library entry point; None disables charts.
        schedule: Frame primitive for the update scheduler.
        defer: "After this dispatch" primitive for the username reset.
        charts_visible: Whether the chart tab starts out visible.
    """

    def __init__(
        self,
        chart_factory: Optional[ChartFactory] = MatplotlibChart,
        schedule: Optional[Schedule] = None,
        defer: Optional[Callable[[Callable[[], None]], Any]] = None,
        charts_visible: bool = False,
    ) -> None:
        self.values: dict[str, str] = {}
        self.form = FormModel.from_values(self.values)
        self.bar_canvas = Canvas(BAR_CANVAS_ID, width=800, height=400, hidden=not charts_visible)
        self.pie_canvas = Canvas(PIE_CANVAS_ID, width=400, height=400, hidden=not charts_visible)
        self.presenter = ChartPresenter(self.bar_canvas, self.pie_canvas, chart_factory)
        self.scheduler = UpdateScheduler(self.refresh, schedule)
        self.notices: list[str] = []
        self.username = UsernameValidator(notify=self.notices.append, defer=defer)

    # ── Monthly form ──────────────────────────────────────────────────────

    def refresh(self) -> None:
        """Read the form and upsert both charts."""
        data = self.form.read()
        self.presenter.update(data)

    def on_input(self, field: str, value: Optional[str]) -> bool:
        """Record one field change and request a chart update.

        Returns False (and does nothing) for fields outside the monthly form.
        """
        if field not in FIELD_IDS:
            return False
        self.values[field] = value if value is not None else ""
        self.scheduler.request_update()
        return True

    def load(self, values: dict[str, str]) -> None:
        """Replace all known field values at once and request one update."""
        for key, value in values.items():
            if key in FIELD_IDS:
                self.values[key] = value
        self.scheduler.request_update()

    def read(self) -> FormData:
        return self.form.read()

    # ── Chart tab ─────────────────────────────────────────────────────────

    def on_chart_tab_shown(self) -> None:
        """Charts drawn while hidden have no size: update and re-measure them."""
        self.bar_canvas.hidden = False
        self.pie_canvas.hidden = False
        self.scheduler.request_update()
        self.presenter.resize()

    def export_charts(self) -> tuple[Optional[str], Optional[str]]:
        """Bring the charts up to date now and return both as PNG data URLs."""
        self.refresh()
        return self.presenter.export("image/png")

    # ── Username form ─────────────────────────────────────────────────────

    def on_username_reset(self) -> None:
        """The form's native reset clears the value; the state follows later."""
        self.username.on_reset()
        self.username.view.value = ""

    def pop_notices(self) -> list[str]:
        notices = list(self.notices)
        self.notices.clear()
        return notices

    def close(self) -> None:
        self.presenter.close()
