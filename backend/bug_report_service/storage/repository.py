import logging
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bug_report_service.storage.models import BugReport

logger = logging.getLogger(__name__)


class BugReportRepository(Protocol):
    """Persistence operations the submission flow depends on."""

    async def find_by_log(self, log: Optional[str]) -> BugReport | None: ...

    async def get(self, report_id: int) -> BugReport | None: ...

    async def list_reports(
        self, status: Optional[int] = None, limit: int = 50, offset: int = 0
    ) -> list[BugReport]: ...

    async def add(self, report: BugReport) -> BugReport: ...

    async def save(self, report: BugReport) -> BugReport: ...


class SQLAlchemyBugReportRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_by_log(self, log: Optional[str]) -> BugReport | None:
        # A missing log is never a duplicate of anything (NULL = NULL is unknown).
        if log is None:
            return None
        result = await self.db.execute(
            select(BugReport).where(BugReport.log == log).order_by(BugReport.id)
        )
        return result.scalars().first()

    async def get(self, report_id: int) -> BugReport | None:
        return await self.db.get(BugReport, report_id)

    async def list_reports(
        self, status: Optional[int] = None, limit: int = 50, offset: int = 0
    ) -> list[BugReport]:
        stmt = select(BugReport)
        if status is not None:
            stmt = stmt.where(BugReport.status == status)
        stmt = (
            stmt.order_by(BugReport.date.desc(), BugReport.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def add(self, report: BugReport) -> BugReport:
        self.db.add(report)
        await self.db.commit()
        await self.db.refresh(report)
        logger.debug("Inserted bug report %s", report.id)
        return report

    async def save(self, report: BugReport) -> BugReport:
        await self.db.commit()
        await self.db.refresh(report)
        logger.debug("Updated bug report %s", report.id)
        return report
