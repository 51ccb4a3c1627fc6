"""Equity subsystem.

Models:
- ProjectEquitySummary: Offered, agreed and earned equity of a project
- JobEquityProgress: Granted share of an accepted job's agreed equity

Service:
- EquityService: Summaries, grants and task completion approval
"""

from sweaquity.equity.models import JobEquityProgress, ProjectEquitySummary
from sweaquity.equity.service import (
    EquityExceededError,
    EquityService,
    EquityServiceError,
    InvalidTransitionError,
    UnauthorizedError,
)

__all__ = [
    # Models
    "ProjectEquitySummary",
    "JobEquityProgress",
    # Service
    "EquityService",
    "EquityServiceError",
    "EquityExceededError",
    "UnauthorizedError",
    "InvalidTransitionError",
]
