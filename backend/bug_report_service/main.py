import logging
from contextlib import asynccontextmanager

from arq import create_pool
from fastapi import FastAPI

from bug_report_service.api.v1 import bug_reports as bug_reports_api
from bug_report_service.logging_utils import configure_logging
from bug_report_service.storage.database import engine
from bug_report_service.storage.models import Base
from bug_report_service.utils.config import settings
from bug_report_service.worker import WorkerSettings

# Configure log persistence for uvicorn/FastAPI early in the import cycle.
configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.database.create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Ensured table %s exists", settings.database.table_name)

    app.state.arq_pool = None
    if settings.notification.backend == "queue":
        logger.debug("Creating Redis connection pool for notification jobs")
        app.state.arq_pool = await create_pool(WorkerSettings.redis_settings)
        logger.info("Redis connection pool created for notification jobs")

    yield

    if app.state.arq_pool is not None:
        logger.debug("Shutting down Redis connection pool")
        await app.state.arq_pool.close()
        logger.info("Redis connection pool closed")
    await engine.dispose()


app = FastAPI(title="Bug Report Collector", version="0.1.0", lifespan=lifespan)

# Include the bug reports router
app.include_router(bug_reports_api.router, prefix="/api/v1/bugs", tags=["Bug Reports"])


@app.get("/")
def read_root():
    logger.debug("Root endpoint called")
    return {"message": "Bug Report Collector is running."}
