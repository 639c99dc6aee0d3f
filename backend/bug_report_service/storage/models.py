import enum

from sqlalchemy import Column, DateTime, Index, Integer, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

from bug_report_service.utils.config import settings

Base = declarative_base()

# MySQL can only index a prefix of a TEXT column.
LOG_INDEX_PREFIX_LENGTH = 255


class BugReportStatus(enum.IntEnum):
    REOPENED = -1
    NEW = 0
    ACKNOWLEDGED = 1
    IN_PROGRESS = 2
    FIX_PENDING_RELEASE = 3
    RESOLVED = 4


class BugReport(Base):
    __tablename__ = settings.database.table_name
    __table_args__ = (
        Index(
            f"ix_{settings.database.table_name}_log",
            "log",
            mysql_length=LOG_INDEX_PREFIX_LENGTH,
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    # os, java and version accumulate every distinct value seen, joined by ";".
    os = Column(Text, nullable=True)
    java = Column(Text, nullable=True)
    version = Column(Text, nullable=True)
    log = Column(Text, nullable=True)
    count = Column(Integer, nullable=False, default=1)
    status = Column(
        Integer,
        nullable=False,
        default=int(BugReportStatus.NEW),
        server_default=str(int(BugReportStatus.NEW)),
    )
    date = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<BugReport id={self.id} count={self.count} status={self.status}>"
