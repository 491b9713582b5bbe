"""
Username validation.

``validate_username`` applies the policy rules in a fixed order and reports
only the first one violated.  ``UsernameValidator`` is the small state
machine behind the username form: it keeps the field's presentation state
(``UsernameView``) in step with every text change, intercepts submit, and
returns to the empty state after a form reset.

Rules, in order:
    1. at least 8 characters
    2. at least one uppercase letter
    3. at least one lowercase letter
    4. at least one character outside [A-Za-z0-9]
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from budget.scheduler import next_loop_iteration

logger = logging.getLogger(__name__)

MIN_LENGTH = 8

REASON_LENGTH = "Minimum 8 characters"
REASON_UPPERCASE = "Must contain at least one uppercase letter"
REASON_LOWERCASE = "Must contain at least one lowercase letter"
REASON_SPECIAL = "Must contain at least one special character"

VALID_MESSAGE = "Username looks good."
ACCEPTED_MESSAGE = "Username accepted."

VALID_CLASSES = ("username-valid", "is-valid")
INVALID_CLASSES = ("username-invalid", "is-invalid")
SUCCESS_CLASS = "text-success"
ERROR_CLASS = "text-danger"

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_SPECIAL = re.compile(r"[^A-Za-z0-9]")


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    reason: Optional[str] = None

    @classmethod
    def valid(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def invalid(cls, reason: str) -> "ValidationResult":
        return cls(ok=False, reason=reason)


def validate_username(value: Optional[str]) -> ValidationResult:
    """Check *value* against the username policy, failing fast."""
    if not value or len(value) < MIN_LENGTH:
        return ValidationResult.invalid(REASON_LENGTH)
    if not _UPPER.search(value):
        return ValidationResult.invalid(REASON_UPPERCASE)
    if not _LOWER.search(value):
        return ValidationResult.invalid(REASON_LOWERCASE)
    if not _SPECIAL.search(value):
        return ValidationResult.invalid(REASON_SPECIAL)
    return ValidationResult.valid()


class FieldState(str, Enum):
    EMPTY = "empty"
    VALID = "valid"
    INVALID = "invalid"


@dataclass
class UsernameView:
    """Presentation state of the username field, its feedback and submit button."""

    value: str = ""
    input_classes: set[str] = field(default_factory=set)
    feedback_text: str = ""
    feedback_classes: set[str] = field(default_factory=set)
    submit_disabled: bool = True

    def clear_markers(self) -> None:
        self.input_classes.difference_update(VALID_CLASSES + INVALID_CLASSES)


class UsernameValidator:
    """State machine over the username field.

    Args:
        view: Presentation state to drive; a fresh one by default.
        notify: Called with the acknowledgement when a valid username is
            submitted.
        defer: Primitive that runs a callback after the current dispatch
            completes; defaults to the event loop's next iteration.
    """

    def __init__(
        self,
        view: Optional[UsernameView] = None,
        notify: Optional[Callable[[str], None]] = None,
        defer: Optional[Callable[[Callable[[], None]], Any]] = None,
    ) -> None:
        self.view = view or UsernameView()
        self.notify = notify or (lambda message: None)
        self._defer = defer or next_loop_iteration
        self.state = FieldState.EMPTY
        self.reason: Optional[str] = None
        self._apply_empty()

    def on_input(self, text: Optional[str]) -> FieldState:
        """Run the transition for the field's new text and apply its side effects."""
        value = text or ""
        self.view.value = value
        if not value:
            self._apply_empty()
            return self.state
        result = validate_username(value)
        if result.ok:
            self._apply_valid()
        else:
            self._apply_invalid(result.reason)
        return self.state

    def on_submit(self) -> bool:
        """Intercept a submit; acknowledge it only in the valid state."""
        if self.state is not FieldState.VALID:
            return False
        logger.info("username accepted")
        self.notify(ACCEPTED_MESSAGE)
        return True

    def on_reset(self) -> None:
        """Schedule the return to the empty state once the native reset has run."""
        self._defer(self._apply_empty)

    # ── State side effects ────────────────────────────────────────────────

    def _apply_empty(self) -> None:
        self.state = FieldState.EMPTY
        self.reason = None
        v = self.view
        v.clear_markers()
        v.feedback_text = ""
        v.feedback_classes.difference_update((SUCCESS_CLASS, ERROR_CLASS))
        v.submit_disabled = True

    def _apply_invalid(self, reason: str) -> None:
        self.state = FieldState.INVALID
        self.reason = reason
        v = self.view
        v.clear_markers()
        v.input_classes.update(INVALID_CLASSES)
        v.feedback_text = reason
        v.feedback_classes.discard(SUCCESS_CLASS)
        v.feedback_classes.add(ERROR_CLASS)
        v.submit_disabled = True

    def _apply_valid(self) -> None:
        self.state = FieldState.VALID
        self.reason = None
        v = self.view
        v.clear_markers()
        v.input_classes.update(VALID_CLASSES)
        v.feedback_text = VALID_MESSAGE
        v.feedback_classes.discard(ERROR_CLASS)
        v.feedback_classes.add(SUCCESS_CLASS)
        v.submit_disabled = False
