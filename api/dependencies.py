"""
Shared request dependencies.

The app factory stores the mail relay and the page session store on
``app.state``; routes reach them through these ``Depends()`` helpers so
tests can build an app with their own relay or transport.
"""

from dataclasses import dataclass

from fastapi import Request, Response

from budget.page import BudgetPage
from utils.mail import MailRelay
from utils.sessions import SessionStore

SESSION_COOKIE = "b2b_session"


@dataclass
class PageSession:
    """A visitor's page plus the bookkeeping for its cookie."""

    session_id: str
    page: BudgetPage
    is_new: bool

    def bind(self, response: Response) -> Response:
        """Set the session cookie on *response* when the session is new."""
        if self.is_new:
            response.set_cookie(SESSION_COOKIE, self.session_id, httponly=True, samesite="lax")
        return response


def get_relay(request: Request) -> MailRelay:
    return request.app.state.relay


def get_pages(request: Request) -> SessionStore[BudgetPage]:
    return request.app.state.pages


def get_page_session(request: Request) -> PageSession:
    """The visitor's page, created on first use."""
    pages: SessionStore[BudgetPage] = request.app.state.pages
    current = request.cookies.get(SESSION_COOKIE)
    session_id, page = pages.get_or_create(current)
    return PageSession(session_id=session_id, page=page, is_new=session_id != current)
