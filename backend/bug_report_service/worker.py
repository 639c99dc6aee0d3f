import logging
from typing import Optional

from arq.connections import RedisSettings

from bug_report_service.logging_utils import configure_logging
from bug_report_service.services.notifications import SmtpBugNotifier
from bug_report_service.utils.config import settings

logger = logging.getLogger(__name__)


async def send_bug_notification(ctx, report_id: int, log: Optional[str]):
    """
    Deliver the "new bug report" email for a report created by the API.
    """
    logger.info("Sending queued notification for bug report %s", report_id)
    notifier = SmtpBugNotifier(settings.product, settings.notification)
    await notifier.notify_new_report(report_id, log)


async def startup(ctx):
    configure_logging()
    logger.info("Notification worker started")


# ARQ Worker Settings
class WorkerSettings:
    functions = [send_bug_notification]
    on_startup = startup
    redis_settings = RedisSettings(host=settings.redis.host, port=settings.redis.port)
