"""
FastAPI application factory.

Usage:
    python -m api.app                    # Dev server on port 3001
    PORT=8080 SMTP_URL=smtps://u:p@mail.example.com python -m api.app

OpenAPI docs available at http://localhost:3001/docs after starting.

One process serves both halves of Bucks2Bar:
  - the budgeting page (templates, fragments, HTMX partials, static files)
  - the chart mail relay (POST /api/send-charts) and GET /health

Cross-cutting concerns wired here:
  - Structured JSON logging when APP_LOG_FORMAT=json
  - Fully open CORS (the page may be served from another host or port)
  - Request body size limit (MAX_JSON) answered with a JSON 413
  - Request logging with a short request id (X-Request-ID)
  - JSON error bodies for unhandled exceptions
"""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from api.routes import charts, mail, username
from api.routes import frontend as frontend_routes
from budget.page import BudgetPage
from utils.config import AppConfig, load_env_file
from utils.formatting import format_number
from utils.mail import MailRelay, Transport
from utils.sessions import SessionStore

# ── Configuration ─────────────────────────────────────────────────────────────
load_env_file()
_cfg = AppConfig.from_env()

# ── Structured JSON logging ───────────────────────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge extra fields added via logger.info("...", extra={...})
        for key in ("method", "path", "status", "duration_ms", "request_id"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data)


_logger = logging.getLogger("bucks2bar")
_handler = logging.StreamHandler()
if _cfg.log_format == "json":
    _handler.setFormatter(_JsonFormatter())
else:
    _handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
logging.basicConfig(handlers=[_handler], level=logging.INFO, force=True)


# ── Body size limit ───────────────────────────────────────────────────────────


class PayloadTooLarge(HTTPException):
    def __init__(self) -> None:
        super().__init__(status_code=413, detail="Payload too large")


class BodySizeLimitMiddleware:
    """Reject request bodies larger than *max_body_bytes* before they are parsed.

    A declared Content-Length over the limit is answered straight away.
    Otherwise the bytes are counted as the app reads them, and the read that
    crosses the limit raises ``PayloadTooLarge``; chunked uploads carry no
    Content-Length, so this is what catches them.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        length = Headers(scope=scope).get("content-length")
        if length and length.isdigit() and int(length) > self.max_body_bytes:
            _logger.warning(
                "payload_too_large path=%s length=%s limit=%d",
                scope["path"], length, self.max_body_bytes,
            )
            await _too_large_response()(scope, receive, send)
            return

        received = 0

        async def counted_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    _logger.warning(
                        "payload_too_large path=%s received=%d limit=%d",
                        scope["path"], received, self.max_body_bytes,
                    )
                    raise PayloadTooLarge()
            return message

        await self.app(scope, counted_receive, send)


def _too_large_response() -> JSONResponse:
    return JSONResponse(status_code=413, content={"ok": False, "error": "Payload too large"})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close every open page's charts on shutdown."""
    yield
    app.state.pages.clear()


def create_app(config: AppConfig | None = None, transport: Transport | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Override the environment-derived configuration (useful for testing).
        transport: Override the mail transport (useful for testing).

    Returns:
        Configured FastAPI application instance.
    """
    cfg = config or _cfg

    app = FastAPI(
        title="Bucks2Bar",
        summary="Monthly budget charts with an email relay.",
        description=(
            "## Bucks2Bar API\n\n"
            "- `POST /api/send-charts` emails two chart images given as "
            "`data:<mime>;base64,<payload>` URLs.\n"
            "- `POST /api/charts` renders the monthly bar chart and the totals "
            "pie chart for twelve months of income/expense values.\n"
            "- `POST /api/username/validate` checks a username against the policy.\n\n"
            "Amounts are clamped to the range 0 to 50,000."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "mail", "description": "Chart email relay."},
            {"name": "charts", "description": "Server-side chart rendering."},
            {"name": "username", "description": "Username policy check."},
            {"name": "meta", "description": "Health check."},
        ],
    )

    app.state.config = cfg
    app.state.relay = MailRelay(cfg.mail, transport=transport)
    app.state.pages = SessionStore(
        factory=BudgetPage,
        maxsize=cfg.max_sessions,
        ttl_seconds=cfg.session_ttl,
        on_evict=BudgetPage.close,
    )

    # ── Body size limit ───────────────────────────────────────────────────────

    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=cfg.max_body_bytes)

    @app.exception_handler(PayloadTooLarge)
    async def payload_too_large_handler(request: Request, exc: PayloadTooLarge):
        return _too_large_response()

    # ── Request logging middleware ────────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request with its status, duration and a short request id."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        path = request.url.path

        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        if cfg.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f rid=%s",
                request.method, path, response.status_code, duration_ms, request_id,
            )
        return response

    # ── CORS ──────────────────────────────────────────────────────────────────

    if "*" in cfg.cors_origins:
        @app.middleware("http")
        async def allow_any_origin(request: Request, call_next):
            """Send Access-Control-Allow-Origin on every reply, not just cross-origin ones."""
            response = await call_next(request)
            response.headers.setdefault("Access-Control-Allow-Origin", "*")
            return response

    # Added last, so it wraps the middlewares above
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    # ── Error handling ────────────────────────────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of HTML traceback."""
        _logger.exception("unhandled error path=%s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={"ok": False, "error": str(exc) or "Internal server error"},
        )

    # ── Health check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 OK with the server time in epoch milliseconds."""
        return {"ok": True, "ts": int(time.time() * 1000)}

    # ── Register routers ──────────────────────────────────────────────────────

    app.include_router(mail.router)
    app.include_router(charts.router, prefix="/api")
    app.include_router(username.router, prefix="/api")

    # ── Static files + Jinja2 templates ───────────────────────────────────────
    _here = Path(__file__).parent.parent  # project root

    static_dir = _here / "static"
    templates_dir = _here / "templates"

    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    if templates_dir.exists():
        templates = Jinja2Templates(directory=str(templates_dir))
        templates.env.filters["fmt_number"] = format_number

        # Wire templates into the frontend router
        frontend_routes.set_templates(templates)
        app.include_router(frontend_routes.router)

    return app


# Singleton instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.app:app",
        host=_cfg.api_host,
        port=_cfg.api_port,
        reload=True,
        log_level="info",
    )
