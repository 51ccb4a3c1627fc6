"""
Sweaquity - Equity-for-work marketplace.

Businesses post projects split into equity-bearing tasks, job seekers apply,
and accepted work earns equity as it is completed.
"""

from .applications import ApplicationService
from .config import MarketplaceConfig
from .equity import EquityService
from .projects import ProjectService
from .tickets import TicketService

try:
    from importlib.metadata import version

    __version__ = version("sweaquity")
except Exception:
    __version__ = "0.0.0"

__all__ = [
    "ApplicationService",
    "EquityService",
    "MarketplaceConfig",
    "ProjectService",
    "TicketService",
]
