#!/usr/bin/env python3
"""
Post a tiny PNG to the local relay's /api/send-charts and print the reply.

Usage:
    python scripts/send_test_email.py
    TEST_EMAIL=me@example.com python scripts/send_test_email.py
    API_BASE=http://relay.internal:3001 python scripts/send_test_email.py

Reads ./.env first.  The relay URL comes from API_BASE, or else from PORT
(default 3001) on localhost.  Exits 1 if the relay cannot be reached.
"""

import json
import os
import sys
from pathlib import Path

import requests

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from budget.email_form import http_sender, resolve_api_base  # noqa: E402
from utils.config import load_env_file  # noqa: E402
from utils.http import SessionManager  # noqa: E402

# 1x1 PNG
DATA_URL = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR4nGMAAQAABQABDQottAAAAABJRU5ErkJggg=="
)


def main() -> int:
    load_env_file()
    port = int(os.getenv("PORT", "3001"))
    api_base = os.getenv("API_BASE") or resolve_api_base("http", "localhost", None, relay_port=port)
    payload = {
        "email": os.getenv("TEST_EMAIL", "test@example.com"),
        "monthlyChart": DATA_URL,
        "totalsPieChart": DATA_URL,
    }
    with SessionManager() as http:
        send = http_sender(api_base, session=http.session)
        try:
            status, body = send(payload)
        except requests.RequestException as exc:
            print(f"Error posting to API: {exc}", file=sys.stderr)
            return 1
    print(f"Status: {status}")
    print(f"Response: {json.dumps(body, indent=2)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
