"""Equity accounting views."""

from dataclasses import dataclass


@dataclass
class ProjectEquitySummary:
    """Equity position of one project.

    Attributes:
        equity_offered: The project's total equity allocation
        task_equity_total: Equity split across the project's tasks
        agreed_equity_total: Equity agreed on accepted jobs
        earned_equity_total: Equity already granted to workers
        remaining_task_equity: Equity not yet assigned to any task
        unallocated_equity: Equity offered but not yet granted
    """

    project_id: str
    equity_offered: float
    task_equity_total: float
    agreed_equity_total: float
    earned_equity_total: float
    remaining_task_equity: float
    unallocated_equity: float


@dataclass
class JobEquityProgress:
    """How much of an accepted job's agreed equity has been granted."""

    job_app_id: str
    equity_agreed: float
    equity_allocated: float
    completion_percentage: float

    @property
    def remaining_equity(self) -> float:
        return max(0.0, self.equity_agreed - self.equity_allocated)
