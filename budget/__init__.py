"""
Budget package -- the Bucks2Bar budgeting page.

Re-exports key entry points so callers can do::

    from budget import BudgetPage, FormModel, validate_username
"""

from budget.charts import ChartPresenter, ChartSeries
from budget.form_model import FormData, FormModel, MonthlyEntry, parse_amount
from budget.page import BudgetPage
from budget.scheduler import UpdateScheduler
from budget.username import FieldState, UsernameValidator, ValidationResult, validate_username

__all__ = [
    "BudgetPage",
    "ChartPresenter",
    "ChartSeries",
    "FieldState",
    "FormData",
    "FormModel",
    "MonthlyEntry",
    "UpdateScheduler",
    "UsernameValidator",
    "ValidationResult",
    "parse_amount",
    "validate_username",
]
