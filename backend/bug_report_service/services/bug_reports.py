import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.sql import func

from bug_report_service.schemas.bug_report import (
    BugReportStatusUpdate,
    BugReportSubmission,
)
from bug_report_service.services.notifications import BugNotifier
from bug_report_service.storage.models import BugReport, BugReportStatus
from bug_report_service.storage.repository import BugReportRepository

logger = logging.getLogger(__name__)

ACCUMULATOR_SEPARATOR = ";"


@dataclass
class SubmissionResult:
    report_id: int
    created: bool


def merge_accumulator(existing: Optional[str], value: Optional[str]) -> Optional[str]:
    """
    Add ``value`` to a ";"-joined set of distinct values.

    Tokens keep first-seen order. Empty tokens are dropped, so merging into an
    empty accumulator gives just ``value`` and merging an empty value is a no-op.
    """
    tokens = (existing or "").split(ACCUMULATOR_SEPARATOR)
    tokens.append(value or "")
    unique = [token for token in dict.fromkeys(tokens) if token]
    if not unique:
        return existing
    return ACCUMULATOR_SEPARATOR.join(unique)


def reopened_status(status: Optional[int]) -> Optional[int]:
    if status == BugReportStatus.RESOLVED:
        return int(BugReportStatus.REOPENED)
    return status


async def submit_bug_report(
    repository: BugReportRepository,
    notifier: BugNotifier,
    submission: BugReportSubmission,
) -> SubmissionResult:
    existing = await repository.find_by_log(submission.log)

    if existing is None:
        report = BugReport(
            os=submission.os,
            java=submission.java,
            version=submission.version,
            log=submission.log,
            count=1,
            status=int(BugReportStatus.NEW),
        )
        report = await repository.add(report)
        logger.info("Created bug report %s", report.id)
        await notifier.notify_new_report(report.id, submission.log)
        return SubmissionResult(report_id=report.id, created=True)

    existing.count = (existing.count or 0) + 1
    existing.os = merge_accumulator(existing.os, submission.os)
    existing.java = merge_accumulator(existing.java, submission.java)
    existing.version = merge_accumulator(existing.version, submission.version)
    previous_status = existing.status
    existing.status = reopened_status(previous_status)
    existing.date = func.now()
    report = await repository.save(existing)
    if report.status != previous_status:
        logger.info("Reopened bug report %s", report.id)
    logger.info("Merged submission into bug report %s (count=%s)", report.id, report.count)
    return SubmissionResult(report_id=report.id, created=False)


async def get_bug_report(
    repository: BugReportRepository, report_id: int
) -> BugReport | None:
    return await repository.get(report_id)


async def list_bug_reports(
    repository: BugReportRepository,
    status: Optional[int] = None,
    limit: int = 50,
    offset: int = 0,
) -> list[BugReport]:
    limit = max(1, min(limit, 200))
    offset = max(0, offset)
    return await repository.list_reports(status=status, limit=limit, offset=offset)


async def update_bug_report_status(
    repository: BugReportRepository, report_id: int, payload: BugReportStatusUpdate
) -> BugReport | None:
    report = await repository.get(report_id)
    if not report:
        return None
    report.status = int(payload.status)
    report = await repository.save(report)
    logger.info("Set status of bug report %s to %s", report_id, report.status)
    return report
