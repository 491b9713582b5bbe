"""
Frontend HTML routes.

Serves the budgeting page, its fragments, and the HTMX partials that keep
each visitor's ``BudgetPage`` in step with the browser.

Routes:
    GET  /                          → index.html (fragments spliced in)
    GET  /fragments/{name}          → raw fragment markup
    POST /partials/monthly          → charts partial after a form change
    POST /partials/chart-tab        → charts partial after the tab is shown
    POST /partials/username         → username feedback partial
    POST /partials/username/submit  → acknowledgement partial
    POST /partials/username/reset   → empty username feedback partial
    POST /partials/email-charts     → email status partial
"""

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from starlette.concurrency import run_in_threadpool

from api.dependencies import PageSession, get_page_session, get_relay
from api.routes.mail import relay_charts
from budget.email_form import EmailChartsForm
from budget.form_model import FIELD_IDS, INCOME, EXPENSE, MONTH_KEYS, MONTH_LABELS, field_id
from budget.page import BudgetPage
from utils.fragments import FragmentLoader
from utils.mail import MailRelay

logger = logging.getLogger(__name__)

router = APIRouter(tags=["frontend"])

# Templates instance is set by create_app() after mounting.
_templates: Jinja2Templates | None = None

FRAGMENTS: dict[str, str] = {
    "monthly-form": "fragments/monthly_form.html",
    "monthly-chart": "fragments/monthly_chart.html",
}

# Page container id -> fragment URL, in page order.
INCLUDES: dict[str, str] = {
    "monthly-form-container": "/fragments/monthly-form",
    "monthly-chart-container": "/fragments/monthly-chart",
}


def set_templates(t: Jinja2Templates) -> None:
    global _templates
    _templates = t


def _tmpl() -> Jinja2Templates:
    if _templates is None:
        raise RuntimeError("Templates not initialised -- call set_templates() first")
    return _templates


# ── Context helpers ───────────────────────────────────────────────────────────

def _months() -> list[dict[str, str]]:
    return [
        {
            "key": key,
            "label": label,
            "income_id": field_id(INCOME, key),
            "expense_id": field_id(EXPENSE, key),
        }
        for key, label in zip(MONTH_KEYS, MONTH_LABELS)
    ]


def _render_fragment(name: str, context: dict[str, Any]) -> str:
    template = FRAGMENTS.get(name)
    if template is None:
        raise LookupError(f"Unknown fragment {name!r}")
    return _tmpl().get_template(template).render(context)


def _charts_context(page: BudgetPage) -> dict[str, Any]:
    """Template context for the charts partial; draws, so call it off the loop."""
    monthly, totals = page.presenter.export("image/png")
    series = page.presenter.series
    return {
        "monthly_chart": monthly,
        "totals_chart": totals,
        "series": series,
        "charts_hidden": page.bar_canvas.hidden,
    }


def _partial(request: Request, session: PageSession, name: str,
             context: dict[str, Any]) -> HTMLResponse:
    response = _tmpl().TemplateResponse(request, name, context)
    return session.bind(response)


# ── Page + fragments ──────────────────────────────────────────────────────────

@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index(
    request: Request,
    session: PageSession = Depends(get_page_session),
) -> HTMLResponse:
    """Budgeting page with the monthly form and chart fragments spliced in."""
    page = session.page
    context = {"months": _months(), "values": dict(page.values)}

    def fetch(url: str) -> str:
        return _render_fragment(url.rsplit("/", 1)[-1], context)

    fragments = await FragmentLoader(fetch).include_all(INCLUDES)
    return _partial(request, session, "index.html", {
        "fragments": fragments,
        "username": page.username,
        "view": page.username.view,
    })


@router.get("/fragments/{name}", response_class=HTMLResponse, include_in_schema=False)
def fragment(name: str) -> HTMLResponse:
    """Raw fragment markup, scripts included."""
    if name not in FRAGMENTS:
        raise HTTPException(status_code=404, detail=f"Fragment {name} not found")
    return HTMLResponse(_render_fragment(name, {"months": _months(), "values": {}}))


# ── Monthly form + charts ─────────────────────────────────────────────────────

@router.post("/partials/monthly", response_class=HTMLResponse, include_in_schema=False)
async def monthly_changed(
    request: Request,
    session: PageSession = Depends(get_page_session),
) -> HTMLResponse:
    """Apply every posted month field, then render once the refresh has run."""
    page = session.page
    form = await request.form()
    for key, value in form.items():
        if key in FIELD_IDS:
            page.on_input(key, str(value))
    await page.scheduler.settle()
    context = await run_in_threadpool(_charts_context, page)
    return _partial(request, session, "partials/charts.html", context)


@router.post("/partials/chart-tab", response_class=HTMLResponse, include_in_schema=False)
async def chart_tab_shown(
    request: Request,
    session: PageSession = Depends(get_page_session),
) -> HTMLResponse:
    page = session.page
    page.on_chart_tab_shown()
    await page.scheduler.settle()
    context = await run_in_threadpool(_charts_context, page)
    return _partial(request, session, "partials/charts.html", context)


# ── Username form ─────────────────────────────────────────────────────────────

@router.post("/partials/username", response_class=HTMLResponse, include_in_schema=False)
async def username_changed(
    request: Request,
    session: PageSession = Depends(get_page_session),
) -> HTMLResponse:
    form = await request.form()
    validator = session.page.username
    validator.on_input(str(form.get("username", "")))
    return _partial(request, session, "partials/username_feedback.html",
                    {"view": validator.view, "oob": True})


@router.post("/partials/username/submit", response_class=HTMLResponse, include_in_schema=False)
async def username_submitted(
    request: Request,
    session: PageSession = Depends(get_page_session),
) -> HTMLResponse:
    page = session.page
    page.username.on_submit()
    return _partial(request, session, "partials/notice.html", {"notices": page.pop_notices()})


@router.post("/partials/username/reset", response_class=HTMLResponse, include_in_schema=False)
async def username_reset(
    request: Request,
    session: PageSession = Depends(get_page_session),
) -> HTMLResponse:
    page = session.page
    page.on_username_reset()
    # The deferred reset runs on the next loop iteration.
    await asyncio.sleep(0)
    return _partial(request, session, "partials/username_feedback.html",
                    {"view": page.username.view, "oob": True})


# ── Email charts ──────────────────────────────────────────────────────────────

@router.post("/partials/email-charts", response_class=HTMLResponse, include_in_schema=False)
async def email_charts(
    request: Request,
    session: PageSession = Depends(get_page_session),
    relay: MailRelay = Depends(get_relay),
) -> HTMLResponse:
    """Export the visitor's charts and send them through the relay in-process.

    Exporting draws the charts, so it runs with the send in the threadpool.
    """
    form = await request.form()
    email_form = EmailChartsForm(
        export=session.page.export_charts,
        send=lambda payload: relay_charts(relay, payload),
    )
    email = str(form.get("email", ""))
    status = await run_in_threadpool(email_form.submit, email)
    return _partial(request, session, "partials/email_status.html", {"status": status, "email": email})
