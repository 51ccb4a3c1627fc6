"""Marketplace configuration.

Defaults can be overridden with SWEAQUITY_* environment variables via
``MarketplaceConfig.from_env()``.
"""

import os
from dataclasses import dataclass

SKILL_LEVELS = ("Beginner", "Intermediate", "Advanced", "Expert")


@dataclass
class MarketplaceConfig:
    """Limits and defaults shared by the marketplace services."""

    max_project_equity: float = 100.0
    default_skill_level: str = "Intermediate"
    max_hours_per_entry: float = 24.0
    default_ticket_priority: str = "medium"
    default_ticket_health: str = "good"
    # Matches must score strictly above this
    min_match_score: float = 0.0

    def __post_init__(self):
        if not 0 < self.max_project_equity <= 100:
            raise ValueError("max_project_equity must be in (0, 100]")
        if self.default_skill_level not in SKILL_LEVELS:
            raise ValueError(f"Invalid skill level: {self.default_skill_level}")
        if self.max_hours_per_entry <= 0:
            raise ValueError("max_hours_per_entry must be positive")
        if not 0 <= self.min_match_score < 1:
            raise ValueError("min_match_score must be in [0, 1)")

    @classmethod
    def from_env(cls) -> "MarketplaceConfig":
        """Build a config from environment variables, falling back to defaults."""
        kwargs = {}
        hours = os.environ.get("SWEAQUITY_MAX_HOURS_PER_ENTRY")
        if hours:
            kwargs["max_hours_per_entry"] = float(hours)
        level = os.environ.get("SWEAQUITY_DEFAULT_SKILL_LEVEL")
        if level:
            kwargs["default_skill_level"] = level
        score = os.environ.get("SWEAQUITY_MIN_MATCH_SCORE")
        if score:
            kwargs["min_match_score"] = float(score)
        return cls(**kwargs)


# Float slack for equity sums (e.g. 33.3 + 33.3 + 33.4)
EQUITY_TOLERANCE = 1e-6
