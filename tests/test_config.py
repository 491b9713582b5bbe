"""
Tests for configuration and formatting -- utils/config.py, utils/formatting.py
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.config import AppConfig, MailConfig, load_env_file, parse_size  # noqa: E402
from utils.formatting import format_number, format_percent, percent_of_total  # noqa: E402


# ── parse_size ────────────────────────────────────────────────────────────────

class TestParseSize:
    @pytest.mark.parametrize("value, expected", [
        ("2mb", 2 * 1024 * 1024),
        ("512kb", 512 * 1024),
        ("1.5KB", 1536),
        ("100", 100),
        ("1gb", 1024 ** 3),
    ])
    def test_sizes(self, value, expected):
        assert parse_size(value) == expected

    @pytest.mark.parametrize("value", ["", "two mb", "5tb", "-1kb"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_size(value)


# ── AppConfig ─────────────────────────────────────────────────────────────────

class TestAppConfig:
    def test_defaults(self, clean_env):
        cfg = AppConfig.from_env()
        assert cfg.api_host == "127.0.0.1"
        assert cfg.api_port == 3001
        assert cfg.log_format == "text"
        assert cfg.cors_origins == ["*"]
        assert cfg.max_body_bytes == 2 * 1024 * 1024
        assert cfg.session_ttl == 1800.0
        assert cfg.max_sessions == 1000

    def test_port_precedence(self, clean_env):
        clean_env.setenv("APP_PORT", "9000")
        assert AppConfig.from_env().api_port == 9000
        clean_env.setenv("PORT", "8080")
        assert AppConfig.from_env().api_port == 8080

    def test_env_overrides(self, clean_env):
        clean_env.setenv("APP_CORS_ORIGINS", "http://a.example, http://b.example")
        clean_env.setenv("MAX_JSON", "500kb")
        clean_env.setenv("APP_LOG_FORMAT", "json")
        cfg = AppConfig.from_env()
        assert cfg.cors_origins == ["http://a.example", "http://b.example"]
        assert cfg.max_body_bytes == 500 * 1024
        assert cfg.log_format == "json"


class TestEnvFile:
    def test_fills_unset_variables_only(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("MAX_JSON=1kb\nAPP_PORT=4000\nMAIL_TO=inbox@example.com\n")
        clean_env.setenv("APP_PORT", "5000")
        # Registered so the values loaded from the file are removed afterwards
        for name in ("MAX_JSON", "MAIL_TO"):
            clean_env.setenv(name, "")
            clean_env.delenv(name)

        assert load_env_file(env_file) is True
        cfg = AppConfig.from_env()
        assert cfg.max_body_bytes == 1024
        assert cfg.api_port == 5000
        assert cfg.mail.mail_to == "inbox@example.com"

    def test_missing_file(self, clean_env, tmp_path):
        assert load_env_file(tmp_path / "absent.env") is False
        assert AppConfig.from_env().max_body_bytes == 2 * 1024 * 1024


class TestMailConfig:
    def test_defaults(self, clean_env):
        cfg = MailConfig()
        assert cfg.smtp_url is None
        assert cfg.smtp_host is None
        assert cfg.smtp_secure is False
        assert cfg.mail_to == ""
        assert cfg.outbox_dir == Path("outbox")
        assert cfg.sender == "bucks2bar@localhost"

    def test_env(self, clean_env):
        clean_env.setenv("SMTP_HOST", "mail.example.com")
        clean_env.setenv("SMTP_PORT", "465")
        clean_env.setenv("SMTP_SECURE", "true")
        clean_env.setenv("SMTP_USER", "me@example.com")
        clean_env.setenv("MAIL_TO", "inbox@example.com")
        cfg = MailConfig()
        assert (cfg.smtp_host, cfg.smtp_port, cfg.smtp_secure) == ("mail.example.com", 465, True)
        assert cfg.mail_to == "inbox@example.com"
        assert cfg.sender == "me@example.com"


# ── Formatting ────────────────────────────────────────────────────────────────

class TestFormatting:
    @pytest.mark.parametrize("value, expected", [
        (12345.5, "12,345.5"),
        (1000, "1,000"),
        (0.126, "0.13"),
        (0.125, "0.13"),
        (0.005, "0.01"),
        (1234.565, "1,234.57"),
        (0, "0"),
        (None, "0"),
        (50000, "50,000"),
        (-0.001, "0"),
    ])
    def test_format_number(self, value, expected):
        assert format_number(value) == expected

    def test_format_percent(self):
        assert format_percent(42.5) == "42.5%"
        assert format_percent(0.0) == "0.0%"
        assert format_percent(None) == "-"

    def test_percent_of_total(self):
        assert percent_of_total(25, 100) == 25.0
        assert percent_of_total(0, 0) == 0.0
        assert percent_of_total(5, 0) == 500.0
