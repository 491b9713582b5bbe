"""Shared utilities for Bucks2Bar.

Configuration, formatting, HTTP helpers, fragment loading, the mail relay
and the per-visitor session store.
"""

# Configuration
from utils.config import AppConfig, MailConfig, load_env_file, parse_size

# Formatting
from utils.formatting import format_number, format_percent, percent_of_total

__all__ = [
    "AppConfig",
    "MailConfig",
    "load_env_file",
    "parse_size",
    "format_number",
    "format_percent",
    "percent_of_total",
]
