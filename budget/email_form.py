"""
"Email my charts" form handler.

Validates the address, exports both charts as PNG data URLs and hands
``{email, monthlyChart, totalsPieChart}`` to a sender, then turns the
relay's reply into the status line shown under the form.

A sender is any callable ``send(payload) -> (status_code, body)``.
``http_sender`` posts to a relay over HTTP (the smoke script uses it); the
web app passes an in-process sender that calls the relay directly.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

import requests

from utils.http import SessionManager, post_json

logger = logging.getLogger(__name__)

RELAY_PORT = 3001
SEND_CHARTS_PATH = "/api/send-charts"

# The address grammar browsers apply to <input type="email">.
_EMAIL = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@"
    r"[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

Sender = Callable[[dict], tuple[int, Any]]
Exporter = Callable[[], tuple[Optional[str], Optional[str]]]


class ChartsNotReadyError(RuntimeError):
    pass


class SendFailedError(RuntimeError):
    pass


def is_valid_email(value: str) -> bool:
    """Required-field email check, as done by the browser."""
    return bool(value) and _EMAIL.match(value) is not None


def resolve_api_base(scheme: str, hostname: str, port: Optional[int],
                     relay_port: int = RELAY_PORT) -> str:
    """Relay origin for a page served from ``scheme://hostname:port``.

    Empty (same origin) when the page already comes from the relay's port.
    """
    if port == relay_port:
        return ""
    return f"{scheme}://{hostname}:{relay_port}"


def http_sender(api_base: str, session: Optional[requests.Session] = None) -> Sender:
    """Sender that posts to ``<api_base>/api/send-charts`` over a pooled session."""
    url = f"{api_base}{SEND_CHARTS_PATH}"
    http = session or SessionManager().session

    def send(payload: dict) -> tuple[int, Any]:
        return post_json(url, payload, session=http)

    return send


@dataclass(frozen=True)
class EmailStatus:
    text: str = ""
    css_class: Optional[str] = None
    field_invalid: bool = False
    sent: bool = False


class EmailChartsForm:
    def __init__(self, export: Exporter, send: Sender) -> None:
        self._export = export
        self._send = send

    def submit(self, email: Optional[str]) -> EmailStatus:
        address = (email or "").strip()
        if not is_valid_email(address):
            return EmailStatus(field_invalid=True)

        try:
            monthly_png, totals_png = self._export()
            if not monthly_png or not totals_png:
                raise ChartsNotReadyError("Charts are not ready to export")
            status, data = self._send({
                "email": address,
                "monthlyChart": monthly_png,
                "totalsPieChart": totals_png,
            })
            if not isinstance(data, dict):
                data = {}
            if status >= 400 or not data.get("ok"):
                raise SendFailedError(data.get("error") or "Failed to send email")
        except (ChartsNotReadyError, SendFailedError, requests.RequestException) as exc:
            logger.warning("email charts failed: %s", exc)
            return EmailStatus(text=f"Error: {exc}", css_class="text-danger")

        preview = data.get("previewUrl")
        text = f"Email sent (preview: {preview})" if preview else "Email sent successfully."
        return EmailStatus(text=text, css_class="text-success", sent=True)
