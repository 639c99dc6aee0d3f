import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import Any, Optional, Protocol

from bug_report_service.utils.config import (
    NotificationSettings,
    ProductSettings,
    Settings,
)

logger = logging.getLogger(__name__)

MAILER_NAME = "bug-report-service"
SEND_NOTIFICATION_JOB = "send_bug_notification"


class BugNotifier(Protocol):
    """Announces newly created bug reports. Only called on the create path."""

    async def notify_new_report(self, report_id: int, log: Optional[str]) -> None: ...


def build_permalink(product: ProductSettings, report_id: int) -> str:
    return f"{product.bug_link_base}#bugid{report_id}"


def build_notification_email(
    product: ProductSettings,
    notification: NotificationSettings,
    report_id: int,
    log: Optional[str],
) -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = f"New {product.name} bug report"
    message["From"] = notification.from_address
    message["To"] = notification.to_address
    message["X-Mailer"] = MAILER_NAME
    body = "\r\n".join(
        [
            f"{product.name} bug report",
            f"BugID: {report_id}",
            build_permalink(product, report_id),
            "",
            log or "",
        ]
    )
    message.set_content(body)
    return message


class SmtpBugNotifier:
    def __init__(
        self, product: ProductSettings, notification: NotificationSettings
    ) -> None:
        self.product = product
        self.notification = notification

    def _send(self, message: EmailMessage) -> None:
        cfg = self.notification
        with smtplib.SMTP(cfg.smtp_host, cfg.smtp_port, timeout=cfg.smtp_timeout) as smtp:
            if cfg.smtp_starttls:
                smtp.starttls()
            if cfg.smtp_username:
                smtp.login(cfg.smtp_username, cfg.smtp_password or "")
            smtp.send_message(message)

    async def notify_new_report(self, report_id: int, log: Optional[str]) -> None:
        message = build_notification_email(
            self.product, self.notification, report_id, log
        )
        try:
            await asyncio.to_thread(self._send, message)
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send notification for bug report %s", report_id)
            return
        logger.info(
            "Sent notification for bug report %s to %s",
            report_id,
            self.notification.to_address,
        )


class QueuedBugNotifier:
    """Hands the email off to the arq worker."""

    def __init__(self, pool: Any) -> None:
        self.pool = pool

    async def notify_new_report(self, report_id: int, log: Optional[str]) -> None:
        if self.pool is None:
            logger.error(
                "No job queue available; dropping notification for bug report %s",
                report_id,
            )
            return
        try:
            job = await self.pool.enqueue_job(SEND_NOTIFICATION_JOB, report_id, log)
        except Exception:
            logger.exception(
                "Failed to enqueue notification for bug report %s", report_id
            )
            return
        logger.debug(
            "Enqueued notification job %s for bug report %s",
            getattr(job, "job_id", None),
            report_id,
        )


class DisabledBugNotifier:
    async def notify_new_report(self, report_id: int, log: Optional[str]) -> None:
        logger.debug("Notifications disabled; skipping bug report %s", report_id)


def build_notifier(settings: Settings, pool: Any = None) -> BugNotifier:
    backend = settings.notification.backend
    if backend == "queue":
        return QueuedBugNotifier(pool)
    if backend == "disabled":
        return DisabledBugNotifier()
    return SmtpBugNotifier(settings.product, settings.notification)
