#!/usr/bin/env python3
"""
Bucks2Bar -- launch the budgeting page and chart mail relay.

Usage:
    python main.py                          # http://localhost:3001
    python main.py --port 9000              # http://localhost:9000
    python main.py --host 0.0.0.0           # listen on all interfaces
    python main.py --outbox /tmp/mail       # where dev emails are written
    python main.py --reload                 # auto-reload on code changes
"""

from __future__ import annotations

import argparse
import os
import sys
import webbrowser

from utils.config import load_env_file


def main() -> None:
    # .env values fill in unset variables before any default below reads them
    load_env_file()

    parser = argparse.ArgumentParser(
        description="Launch the Bucks2Bar web interface and mail relay.",
    )
    parser.add_argument(
        "--host", default=os.getenv("APP_HOST", "127.0.0.1"),
        help="Bind address (default: 127.0.0.1 or APP_HOST env var)",
    )
    parser.add_argument(
        "--port", type=int, default=int(os.getenv("PORT") or os.getenv("APP_PORT", "3001")),
        help="Port to listen on (default: 3001 or PORT env var)",
    )
    parser.add_argument(
        "--outbox", default=None,
        help="Directory for emails when no SMTP transport is configured "
             "(default: outbox or APP_OUTBOX_DIR env var)",
    )
    parser.add_argument(
        "--reload", action="store_true",
        help="Enable auto-reload on file changes (development mode)",
    )
    parser.add_argument(
        "--no-browser", action="store_true",
        help="Don't open a browser window automatically",
    )
    args = parser.parse_args()

    # Settings are read from the environment when api.app is imported
    os.environ["PORT"] = str(args.port)
    if args.outbox is not None:
        os.environ["APP_OUTBOX_DIR"] = args.outbox

    if not (os.getenv("SMTP_URL") or os.getenv("SMTP_HOST")):
        print("Note: no SMTP_URL or SMTP_HOST set; emails are written to the outbox directory.")
        print()

    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn is not installed.")
        print("  pip install uvicorn[standard]")
        sys.exit(1)

    url = f"http://{'localhost' if args.host == '0.0.0.0' else args.host}:{args.port}"
    print(f"Starting Bucks2Bar at {url}")
    print()

    if not args.no_browser:
        # Open browser after a short delay to let the server start
        import threading
        threading.Timer(1.5, webbrowser.open, args=(url,)).start()

    uvicorn.run(
        "api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
