"""
Username policy check.

POST /api/username/validate  {username}
    → {state, reason, feedback, submit_enabled}

Stateless: runs the same transition the page's validator applies to each
keystroke, on a throwaway validator.
"""

from fastapi import APIRouter

from api.models import UsernameCheckRequest, UsernameCheckResponse
from budget.username import UsernameValidator

router = APIRouter(prefix="/username", tags=["username"])


@router.post(
    "/validate",
    response_model=UsernameCheckResponse,
    summary="Check a username against the policy",
)
def validate(body: UsernameCheckRequest) -> UsernameCheckResponse:
    """Return the field state, first violated rule and feedback for *username*."""
    validator = UsernameValidator(defer=lambda callback: None)
    state = validator.on_input(body.username)
    return UsernameCheckResponse(
        state=state.value,
        reason=validator.reason,
        feedback=validator.view.feedback_text,
        submit_enabled=not validator.view.submit_disabled,
    )
