"""
Chart mail relay endpoint.

POST /api/send-charts  {email, monthlyChart, totalsPieChart}

Decodes the two chart data URLs into PNG attachments and emails them.
    200 {ok: true, messageId, previewUrl}
    400 {ok: false, error}   unreadable body, missing recipient or no chart image
    413 {ok: false, error}   body larger than MAX_JSON
    500 {ok: false, error}   transport or other internal failure

The body is read without a typed model: fields of the wrong type are
coerced or ignored by the relay rather than rejected with a 422.
"""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from api.dependencies import get_relay
from api.models import ErrorResponse, SendChartsRequest, SendChartsResponse
from utils.mail import MailRelay, RelayRequestError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["mail"])

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def relay_charts(relay: MailRelay, payload: dict[str, Any]) -> tuple[int, dict[str, Any]]:
    """Run one send-charts request; return ``(status_code, body)``.

    Shared by the HTTP endpoint and the page's in-process email form.
    """
    try:
        result = relay.send_charts(
            payload.get("email"),
            payload.get("monthlyChart"),
            payload.get("totalsPieChart"),
        )
    except RelayRequestError as exc:
        return 400, {"ok": False, "error": str(exc)}
    except Exception as exc:
        logger.exception("send-charts error")
        return 500, {"ok": False, "error": str(exc) or exc.__class__.__name__}
    return 200, {"ok": True, "messageId": result.message_id, "previewUrl": result.preview_url}


async def read_payload(request: Request) -> dict[str, Any]:
    """JSON object or urlencoded form from the request body.

    An empty body, or JSON that is not an object, reads as ``{}``.

    Raises:
        ValueError: The body is not valid JSON.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPE):
        form = await request.form()
        return dict(form)
    body = await request.body()
    if not body.strip():
        return {}
    data = json.loads(body)
    return data if isinstance(data, dict) else {}


@router.post(
    "/api/send-charts",
    response_model=SendChartsResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Bad body, missing email or chart images"},
        413: {"model": ErrorResponse, "description": "Request body too large"},
        500: {"model": ErrorResponse, "description": "Mail transport failure"},
    },
    openapi_extra={
        "requestBody": {
            "required": False,
            "content": {"application/json": {"schema": SendChartsRequest.model_json_schema()}},
        },
    },
    summary="Email the two chart images",
)
async def send_charts(
    request: Request,
    relay: MailRelay = Depends(get_relay),
) -> JSONResponse:
    """Decode both chart images and forward them by email."""
    try:
        payload = await read_payload(request)
    except ValueError as exc:
        logger.warning("send-charts unreadable body: %s", exc)
        return JSONResponse(status_code=400, content={"ok": False, "error": "Invalid JSON body"})
    status_code, content = await run_in_threadpool(relay_charts, relay, payload)
    return JSONResponse(status_code=status_code, content=content)
