import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

pytest.importorskip("aiosqlite")

from bug_report_service.api.dependencies import get_bug_notifier  # noqa: E402
from bug_report_service.main import app  # noqa: E402
from bug_report_service.storage.database import get_db_session  # noqa: E402
from bug_report_service.storage.models import Base, BugReport  # noqa: E402


class RecordingNotifier:
    def __init__(self):
        self.calls = []

    async def notify_new_report(self, report_id, log):
        self.calls.append((report_id, log))


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, notifier: RecordingNotifier):
    async def override_db_session():
        yield db_session

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_bug_notifier] = lambda: notifier
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_submit_returns_plain_text_id(client, notifier, db_session):
    resp = await client.post(
        "/api/v1/bugs/",
        data={"os": "win", "java": "11", "version": "2.0", "log": "Y"},
    )

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    report_id = int(resp.text)
    report = await db_session.get(BugReport, report_id)
    assert report.log == "Y"
    assert report.count == 1
    assert notifier.calls == [(report_id, "Y")]


@pytest.mark.asyncio
async def test_resubmission_returns_same_id_and_merges(client, notifier):
    first = await client.post("/api/v1/bugs/", data={"os": "linux", "log": "X"})
    second = await client.post("/api/v1/bugs/", data={"os": "mac", "log": "X"})

    assert first.text == second.text
    report = (await client.get(f"/api/v1/bugs/{first.text}")).json()
    assert report["os"] == "linux;mac"
    assert report["count"] == 2
    assert len(notifier.calls) == 1


@pytest.mark.asyncio
async def test_submit_with_missing_fields_still_succeeds(client):
    resp = await client.post("/api/v1/bugs/", data={"log": "only a log"})

    assert resp.status_code == 200
    report = (await client.get(f"/api/v1/bugs/{resp.text}")).json()
    assert report["os"] is None
    assert report["java"] is None


@pytest.mark.asyncio
async def test_get_missing_report_returns_404(client):
    resp = await client.get("/api/v1/bugs/9999")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_patch_status_then_resubmit_reopens(client):
    report_id = (await client.post("/api/v1/bugs/", data={"log": "Z"})).text

    resp = await client.patch(f"/api/v1/bugs/{report_id}/status", json={"status": 4})
    assert resp.status_code == 200
    assert resp.json()["status"] == 4

    await client.post("/api/v1/bugs/", data={"log": "Z"})
    report = (await client.get(f"/api/v1/bugs/{report_id}")).json()
    assert report["status"] == -1

    reopened = (await client.get("/api/v1/bugs/", params={"status": -1})).json()
    assert [item["id"] for item in reopened] == [int(report_id)]


@pytest.mark.asyncio
async def test_patch_rejects_unknown_status(client):
    report_id = (await client.post("/api/v1/bugs/", data={"log": "Q"})).text

    resp = await client.patch(f"/api/v1/bugs/{report_id}/status", json={"status": 9})

    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_root_reports_running(client):
    resp = await client.get("/")
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_empty_log_is_kept_verbatim_and_deduplicated(
    client, notifier, db_session
):
    first = await client.post("/api/v1/bugs/", data={"os": "linux", "log": ""})
    second = await client.post("/api/v1/bugs/", data={"os": "mac", "log": ""})

    assert first.status_code == 200
    assert first.text == second.text
    report = await db_session.get(BugReport, int(first.text))
    assert report.log == ""
    assert report.os == "linux;mac"
    assert report.count == 2
    assert len(notifier.calls) == 1


@pytest.mark.asyncio
async def test_empty_fields_are_stored_as_empty_strings(client, db_session):
    resp = await client.post(
        "/api/v1/bugs/", data={"os": "", "java": "", "version": "", "log": "E"}
    )

    report = await db_session.get(BugReport, int(resp.text))
    assert (report.os, report.java, report.version) == ("", "", "")
