"""
Pydantic request/response models for the API.

Field names of the mail relay match the JSON the page sends
(``monthlyChart``, ``totalsPieChart``, ``messageId``, ``previewUrl``), so
those models use camelCase attributes rather than aliases.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


# ── Mail relay ────────────────────────────────────────────────────────────────

class SendChartsRequest(BaseModel):
    """Shape of the POST /api/send-charts body, as published in the API docs."""
    email: Optional[str] = Field(None, description="Recipient address", examples=["me@example.com"])
    monthlyChart: Optional[str] = Field(
        None, description="Monthly bar chart as a data URL",
        examples=["data:image/png;base64,iVBORw0KGgo..."],
    )
    totalsPieChart: Optional[str] = Field(
        None, description="Totals pie chart as a data URL",
        examples=["data:image/png;base64,iVBORw0KGgo..."],
    )


class SendChartsResponse(BaseModel):
    """Successful relay reply."""
    ok: bool = Field(True, description="Always true on success")
    messageId: str = Field(..., description="Message-ID header of the sent email")
    previewUrl: Optional[str] = Field(None, description="Where the message can be previewed, if anywhere")


class ErrorResponse(BaseModel):
    """Relay error reply (400 / 413 / 500)."""
    ok: bool = Field(False, description="Always false on failure")
    error: str = Field(..., description="What went wrong", examples=["No chart images provided"])


class HealthResponse(BaseModel):
    ok: bool = Field(True)
    ts: int = Field(..., description="Server time in epoch milliseconds")


# ── Username ──────────────────────────────────────────────────────────────────

class UsernameCheckRequest(BaseModel):
    username: str = Field("", description="Text currently in the username field")


class UsernameCheckResponse(BaseModel):
    state: str = Field(..., description="empty | valid | invalid", examples=["invalid"])
    reason: Optional[str] = Field(None, description="First violated rule, when invalid",
                                  examples=["Minimum 8 characters"])
    feedback: str = Field("", description="Feedback text shown under the field")
    submit_enabled: bool = Field(False, description="Whether the submit button is enabled")


# ── Charts ────────────────────────────────────────────────────────────────────

class ChartsRequest(BaseModel):
    """Monthly form values keyed by field id (``income-january`` ...)."""
    values: dict[str, Optional[str]] = Field(default_factory=dict)


class ChartsResponse(BaseModel):
    income: list[float] = Field(..., description="Sanitized income, January first")
    expense: list[float] = Field(..., description="Sanitized expense, January first")
    total_income: float
    total_expense: float
    monthlyChart: Optional[str] = Field(None, description="Bar chart PNG data URL")
    totalsPieChart: Optional[str] = Field(None, description="Pie chart PNG data URL")
