import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse

from bug_report_service.api.dependencies import (
    get_bug_notifier,
    get_bug_report_repository,
)
from bug_report_service.schemas.bug_report import (
    BugReportRead,
    BugReportStatusUpdate,
    BugReportSubmission,
)
from bug_report_service.services import bug_reports as bug_report_service
from bug_report_service.services.notifications import BugNotifier
from bug_report_service.storage.repository import BugReportRepository

router = APIRouter()
logger = logging.getLogger(__name__)


SUBMISSION_FIELDS = ("os", "java", "version", "log")


@router.post("/", response_class=PlainTextResponse)
async def submit_bug_report(
    request: Request,
    repository: BugReportRepository = Depends(get_bug_report_repository),
    notifier: BugNotifier = Depends(get_bug_notifier),
):
    """
    Record a bug report submission and answer with the report id as plain text.

    Expects form fields ``os``, ``java``, ``version`` and ``log``. Values are
    kept verbatim: an empty field stays ``""`` and only an absent one is ``None``.
    """
    form = await request.form()
    fields = {}
    for name in SUBMISSION_FIELDS:
        value = form.get(name)
        fields[name] = value if isinstance(value, str) else None
    logger.debug(
        "Received bug report: os=%s java=%s version=%s log_length=%s",
        fields["os"],
        fields["java"],
        fields["version"],
        len(fields["log"]) if fields["log"] is not None else None,
    )
    submission = BugReportSubmission(**fields)
    result = await bug_report_service.submit_bug_report(
        repository, notifier, submission
    )
    return PlainTextResponse(str(result.report_id))


@router.get("/", response_model=list[BugReportRead])
async def list_bug_reports(
    status: Optional[int] = None,
    limit: int = 50,
    offset: int = 0,
    repository: BugReportRepository = Depends(get_bug_report_repository),
):
    return await bug_report_service.list_bug_reports(
        repository, status=status, limit=limit, offset=offset
    )


@router.get("/{report_id}", response_model=BugReportRead)
async def get_bug_report(
    report_id: int,
    repository: BugReportRepository = Depends(get_bug_report_repository),
):
    report = await bug_report_service.get_bug_report(repository, report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Bug report not found")
    return report


@router.patch("/{report_id}/status", response_model=BugReportRead)
async def update_bug_report_status(
    report_id: int,
    payload: BugReportStatusUpdate,
    repository: BugReportRepository = Depends(get_bug_report_repository),
):
    report = await bug_report_service.update_bug_report_status(
        repository, report_id, payload
    )
    if not report:
        raise HTTPException(status_code=404, detail="Bug report not found")
    return report
