"""Dashboard statistics schemas."""

from pydantic import BaseModel, Field

from bugtracker.models.bug import BugCategory, BugSeverity


class StatsOverview(BaseModel):
    """Bug counts by status and by priority."""

    total: int = 0
    # By status
    open: int = 0
    in_progress: int = 0
    testing: int = 0
    closed: int = 0
    reopened: int = 0
    # By priority
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class CategoryCount(BaseModel):
    category: BugCategory
    count: int


class SeverityCount(BaseModel):
    severity: BugSeverity
    count: int


class BugStatsResponse(BaseModel):
    """Dashboard statistics over the whole bug collection."""

    overview: StatsOverview
    by_category: list[CategoryCount] = Field(default_factory=list)
    by_severity: list[SeverityCount] = Field(default_factory=list)
