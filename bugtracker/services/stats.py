"""Dashboard statistics over the whole bug collection."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.models.bug import Bug
from bugtracker.schemas.stats import BugStatsResponse, CategoryCount, SeverityCount, StatsOverview


class StatsService:
    """Grouped bug counts for the dashboard."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_stats(self) -> BugStatsResponse:
        """
        Count bugs by status, priority, category and severity.

        Every status and priority appears in the overview, so each group
        sums to ``total``. Category and severity lists only include values
        that occur, most frequent first.
        """
        by_status = await self._count_by(Bug.status)
        by_priority = await self._count_by(Bug.priority)

        overview = StatsOverview(
            total=sum(by_status.values()),
            **{status.value.replace("-", "_"): count for status, count in by_status.items()},
            **{priority.value: count for priority, count in by_priority.items()},
        )

        by_category = await self._count_by(Bug.category)
        by_severity = await self._count_by(Bug.severity)

        return BugStatsResponse(
            overview=overview,
            by_category=[
                CategoryCount(category=category, count=count)
                for category, count in _most_common(by_category)
            ],
            by_severity=[
                SeverityCount(severity=severity, count=count)
                for severity, count in _most_common(by_severity)
            ],
        )

    async def _count_by(self, column) -> dict:
        result = await self.db.execute(
            select(column, func.count(Bug.id)).group_by(column)
        )
        return {value: count for value, count in result.all()}


def _most_common(counts: dict) -> list[tuple]:
    # Ties keep the enum declaration order
    return sorted(
        counts.items(),
        key=lambda item: (-item[1], list(type(item[0])).index(item[0])),
    )
