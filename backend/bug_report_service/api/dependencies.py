import logging

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bug_report_service.services.notifications import BugNotifier, build_notifier
from bug_report_service.storage.database import get_db_session
from bug_report_service.storage.repository import (
    BugReportRepository,
    SQLAlchemyBugReportRepository,
)
from bug_report_service.utils.config import get_settings

logger = logging.getLogger(__name__)


def get_bug_report_repository(
    db: AsyncSession = Depends(get_db_session),
) -> BugReportRepository:
    return SQLAlchemyBugReportRepository(db)


def get_bug_notifier(request: Request) -> BugNotifier:
    """
    Build the notifier configured for this deployment.

    The queued notifier needs the arq pool created in the app lifespan; it is
    read from ``app.state`` so the pool is shared by every request.
    """
    pool = getattr(request.app.state, "arq_pool", None)
    notifier = build_notifier(get_settings(), pool)
    logger.debug("Using notifier %s", type(notifier).__name__)
    return notifier
