"""
Chart rendering endpoint.

POST /api/charts  {values: {"income-january": "1200", ...}}
    → sanitized series, totals, and both charts as PNG data URLs

Each call renders on a fresh, visible page, so the response depends only on
the posted values.
"""

from fastapi import APIRouter

from api.models import ChartsRequest, ChartsResponse
from budget.charts import ChartSeries
from budget.page import BudgetPage

router = APIRouter(prefix="/charts", tags=["charts"])


@router.post("", response_model=ChartsResponse, summary="Render the monthly and totals charts")
def render_charts(body: ChartsRequest) -> ChartsResponse:
    """Sanitize the posted month values and render both charts."""
    # Drawing happens synchronously in export_charts(); no frame is needed.
    page = BudgetPage(schedule=lambda callback: None, charts_visible=True)
    try:
        page.load({k: v for k, v in body.values.items() if v is not None})
        monthly, totals = page.export_charts()
        series = ChartSeries.from_form(page.read())
    finally:
        page.close()
    return ChartsResponse(
        income=list(series.income),
        expense=list(series.expense),
        total_income=series.total_income,
        total_expense=series.total_expense,
        monthlyChart=monthly,
        totalsPieChart=totals,
    )
