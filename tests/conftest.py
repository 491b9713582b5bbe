"""
Pytest fixtures for Bucks2Bar tests.

Provides reusable fixtures: an app configuration isolated from the
environment, a TestClient whose mail relay writes to a temporary outbox,
a tiny PNG data URL, a manual frame clock, and a fake chart factory.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fastapi.testclient import TestClient  # noqa: E402

from utils.config import AppConfig  # noqa: E402
from utils.mail import OutboxTransport  # noqa: E402

# 1x1 PNG
TINY_PNG_B64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR4nGMAAQAABQABDQottAAAAABJRU5ErkJggg=="
)

_ENV_VARS = (
    "MAIL_FROM", "MAIL_TO", "SMTP_URL", "SMTP_HOST", "SMTP_PORT", "SMTP_SECURE",
    "SMTP_USER", "SMTP_PASS", "APP_OUTBOX_DIR", "PORT", "APP_PORT", "APP_HOST",
    "APP_CORS_ORIGINS", "MAX_JSON", "APP_LOG_FORMAT",
)


# ── Environment ───────────────────────────────────────────────────────────────

@pytest.fixture
def clean_env(monkeypatch):
    """Remove every Bucks2Bar setting from the environment."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def outbox_dir(tmp_path):
    return tmp_path / "outbox"


@pytest.fixture
def app_config(clean_env, outbox_dir):
    cfg = AppConfig.from_env()
    cfg.mail.outbox_dir = outbox_dir
    return cfg


# ── App ───────────────────────────────────────────────────────────────────────

@pytest.fixture
def client(app_config, outbox_dir):
    """TestClient whose relay writes messages to a temporary outbox."""
    from api.app import create_app
    app = create_app(config=app_config, transport=OutboxTransport(outbox_dir))
    return TestClient(app)


@pytest.fixture
def png_data_url():
    return f"data:image/png;base64,{TINY_PNG_B64}"


# ── Frames and charts ─────────────────────────────────────────────────────────

class ManualFrames:
    """Frame primitive that queues callbacks until ``run()`` is called."""

    def __init__(self):
        self.callbacks = []

    def __call__(self, callback):
        self.callbacks.append(callback)

    def __len__(self):
        return len(self.callbacks)

    def run(self):
        callbacks, self.callbacks = self.callbacks, []
        for callback in callbacks:
            callback()


@pytest.fixture
def frames():
    return ManualFrames()


class FakeChart:
    """Records what the presenter does to a chart object."""

    instances = []

    def __init__(self, canvas, config):
        self.canvas = canvas
        self.config = config
        self.type = config["type"]
        self.data = config["data"]
        self.options = config["options"]
        self.update_calls = 0
        self.resize_calls = 0
        self.destroyed = False
        FakeChart.instances.append(self)

    def update(self):
        self.update_calls += 1

    def resize(self):
        self.resize_calls += 1

    def destroy(self):
        self.destroyed = True

    def to_data_url(self, mime="image/png"):
        return f"data:{mime};base64,{TINY_PNG_B64}"


@pytest.fixture
def fake_chart():
    FakeChart.instances = []
    return FakeChart
