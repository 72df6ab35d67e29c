"""HTTP surface, with the database and collaborators swapped for test doubles."""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from webstrate_assets.database import get_db
from webstrate_assets.main import app
from webstrate_assets.utils.background import drain

PREFIX = "/api/webstrates"


@pytest_asyncio.fixture
async def client(db_session, context):
    async def _override_db():
        yield db_session
        await db_session.commit()

    app.dependency_overrides[get_db] = _override_db
    app.state.assets = context
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    await drain()
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_upload_single_file_returns_summary(client, context):
    context.documents.versions["doc"] = 2

    response = await client.post(
        f"{PREFIX}/doc/assets",
        files={"files": ("cat.png", b"meow", "image/png")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["fileName"] == "cat.png"
    assert body["v"] == 2
    assert body["fileSize"] == 4
    assert body["mimeType"] == "image/png"
    assert set(body) == {"v", "fileName", "fileSize", "mimeType", "identifier", "fileHash"}
    assert await context.storage.exists(body["identifier"])


@pytest.mark.asyncio
async def test_upload_many_files_returns_list(client):
    response = await client.post(
        f"{PREFIX}/doc/assets",
        files=[
            ("files", ("a.csv", b"a,b", "text/csv")),
            ("files", ("b.csv", b"a,b", "text/csv")),
        ],
        data={"searchable": "true"},
    )

    assert response.status_code == 200
    body = response.json()
    assert [a["fileName"] for a in body] == ["a.csv", "b.csv"]
    assert body[0]["identifier"] == body[1]["identifier"]


@pytest.mark.asyncio
async def test_upload_without_files_is_unprocessable(client):
    response = await client.post(f"{PREFIX}/doc/assets", data={"searchable": "true"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_upload_without_write_permission(client, context):
    context.documents.readonly.add("doc")

    response = await client.post(
        f"{PREFIX}/doc/assets",
        files={"files": ("cat.png", b"meow", "image/png")},
    )

    assert response.status_code == 403
    assert response.json()["detail"] == "Insufficient permissions."


@pytest.mark.asyncio
async def test_oversize_upload(client):
    response = await client.post(
        f"{PREFIX}/doc/assets",
        files={"files": ("big.bin", b"x" * (1024 * 1024 + 1), "application/octet-stream")},
    )

    assert response.status_code == 409
    assert response.json()["detail"] == "Maximum file size exceeded (1 MB)."


@pytest.mark.asyncio
async def test_get_download_and_mark_deleted(client, context):
    context.documents.versions["doc"] = 1
    await client.post(f"{PREFIX}/doc/assets", files={"files": ("a.txt", b"hello", "text/plain")})
    context.documents.versions["doc"] = 2

    meta = await client.get(f"{PREFIX}/doc/assets/a.txt")
    download = await client.get(f"{PREFIX}/doc/assets/a.txt/download")
    deleted = await client.delete(f"{PREFIX}/doc/assets/a.txt")

    assert meta.status_code == 200
    assert meta.json()["fileName"] == "a.txt"
    assert download.status_code == 200
    assert download.content == b"hello"
    assert deleted.status_code == 200
    assert deleted.json()["deletedAt"] == 2

    assert (await client.get(f"{PREFIX}/doc/assets/a.txt")).status_code == 404
    assert (await client.get(f"{PREFIX}/doc/assets/a.txt", params={"v": 1})).status_code == 200
    assert (await client.get(f"{PREFIX}/doc/assets/a.txt/download")).status_code == 404
    assert (await client.delete(f"{PREFIX}/doc/assets/a.txt")).status_code == 404


@pytest.mark.asyncio
async def test_list_all_and_current(client, context):
    context.documents.versions["doc"] = 1
    await client.post(f"{PREFIX}/doc/assets", files={"files": ("a.png", b"1", "image/png")})
    context.documents.versions["doc"] = 2
    await client.post(f"{PREFIX}/doc/assets", files={"files": ("a.png", b"2", "image/png")})

    everything = await client.get(f"{PREFIX}/doc/assets")
    current = await client.get(f"{PREFIX}/doc/assets", params={"current": "true"})

    assert [a["v"] for a in everything.json()] == [1, 2]
    assert [a["v"] for a in current.json()] == [2]


@pytest.mark.asyncio
async def test_copy_restore_and_teardown(client, context):
    context.documents.versions["A"] = 1
    await client.post(f"{PREFIX}/A/assets", files={"files": ("a.png", b"first", "image/png")})
    context.documents.versions["A"] = 2
    await client.post(f"{PREFIX}/A/assets", files={"files": ("a.png", b"second", "image/png")})

    copied = await client.post(f"{PREFIX}/A/assets/copy", json={"toWebstrateId": "B", "version": 1})
    assert copied.status_code == 200
    assert [(a["fileName"], a["v"]) for a in copied.json()] == [("a.png", 0)]

    restored = await client.post(f"{PREFIX}/A/assets/restore", json={"version": 1, "newVersion": 3})
    assert restored.status_code == 200
    current = (await client.get(f"{PREFIX}/A/assets", params={"current": "true"})).json()
    assert [a["v"] for a in current] == [3]
    assert current[0]["identifier"] == copied.json()[0]["identifier"]

    teardown = await client.delete(f"{PREFIX}/A/assets")
    assert teardown.status_code == 200
    # The first blob lives on in B; the second one is A's alone.
    assert teardown.json() == {"records": 3, "blobs_deleted": 1, "blobs_kept": 1, "blob_failures": 0}
    assert (await client.get(f"{PREFIX}/B/assets/a.png")).status_code == 200


@pytest.mark.asyncio
async def test_restore_needs_version_or_tag(client):
    response = await client.post(f"{PREFIX}/A/assets/restore", json={"newVersion": 3})

    assert response.status_code == 422
