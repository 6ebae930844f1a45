"""API tests for release file upload, listing, download and deletion."""

import hashlib

import pytest
from sqlalchemy import select

from plugstore.models.release import Release

PAYLOAD = b"plugin bytes"


async def _plugin_with_release(client, cookie) -> tuple[str, str]:
    plugin = await client.post(
        "/api/v1/plugins",
        json={"name": "FilePlugin", "license": "MIT", "target_platform": ["Extera"]},
        headers=cookie,
    )
    plugin_id = plugin.json()["data"]["id"]
    release = await client.post(f"/api/v1/plugins/{plugin_id}/releases", json={"version": "1.0.0"}, headers=cookie)
    return plugin_id, release.json()["data"]["id"]


def _upload(name: str = "my.plugin", content: bytes = PAYLOAD) -> dict:
    return {"file": (name, content, "application/octet-stream")}


class TestUpload:
    @pytest.mark.asyncio
    async def test_upload_records_reference_and_hash(self, client, register_and_login, storage):
        _, cookie = await register_and_login()
        plugin_id, release_id = await _plugin_with_release(client, cookie)

        response = await client.post(f"/api/v1/files/{plugin_id}/{release_id}", files=_upload(), headers=cookie)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["file_path"] == f"{plugin_id}/{release_id}/my.plugin"
        assert data["sha256"] == hashlib.sha256(PAYLOAD).hexdigest()
        assert data["size"] == len(PAYLOAD)
        assert (storage.root / plugin_id / release_id / "my.plugin").read_bytes() == PAYLOAD

        release = await client.get(f"/api/v1/releases/{release_id}")
        assert release.json()["data"]["file_reference"] == data["file_path"]
        assert release.json()["data"]["release_hash"] == data["sha256"]

    @pytest.mark.asyncio
    async def test_upload_too_large(self, client, register_and_login):
        _, cookie = await register_and_login()
        plugin_id, release_id = await _plugin_with_release(client, cookie)

        response = await client.post(
            f"/api/v1/files/{plugin_id}/{release_id}", files=_upload(content=b"x" * 2048), headers=cookie
        )

        assert response.status_code == 413
        assert response.json()["error"]["code"] == "FILE_TOO_LARGE"

    @pytest.mark.asyncio
    async def test_upload_requires_author(self, client, register_and_login):
        _, owner = await register_and_login("owner01")
        _, other = await register_and_login("other01")
        plugin_id, release_id = await _plugin_with_release(client, owner)

        response = await client.post(f"/api/v1/files/{plugin_id}/{release_id}", files=_upload(), headers=other)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_release_of_other_plugin_rejected(self, client, register_and_login):
        _, cookie = await register_and_login()
        plugin_id, _ = await _plugin_with_release(client, cookie)
        other = await client.post(
            "/api/v1/plugins",
            json={"name": "OtherPlugin", "license": "MIT", "target_platform": ["AltUI"]},
            headers=cookie,
        )
        other_id = other.json()["data"]["id"]
        other_release = await client.post(
            f"/api/v1/plugins/{other_id}/releases", json={"version": "2.0.0"}, headers=cookie
        )

        response = await client.post(
            f"/api/v1/files/{plugin_id}/{other_release.json()['data']['id']}", files=_upload(), headers=cookie
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_RELEASE"


class TestDownloadAndDelete:
    @pytest.mark.asyncio
    async def test_download_counts(self, client, register_and_login, db_session):
        _, cookie = await register_and_login()
        plugin_id, release_id = await _plugin_with_release(client, cookie)
        await client.post(f"/api/v1/files/{plugin_id}/{release_id}", files=_upload(), headers=cookie)

        listed = await client.get(f"/api/v1/files/{plugin_id}")
        assert listed.json()["data"]["files"] == [f"{release_id}/my.plugin"]

        download = await client.get(f"/api/v1/files/{plugin_id}/{release_id}/my.plugin")
        assert download.status_code == 200
        assert download.content == PAYLOAD

        downloads = await db_session.scalar(select(Release.downloads).where(Release.id == release_id))
        assert downloads == 1

    @pytest.mark.asyncio
    async def test_download_missing_file(self, client):
        response = await client.get("/api/v1/files/plug/rel/absent.plugin")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "FILE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_deletes_need_master_key(self, client, register_and_login, master_headers):
        _, cookie = await register_and_login()
        plugin_id, release_id = await _plugin_with_release(client, cookie)
        await client.post(f"/api/v1/files/{plugin_id}/{release_id}", files=_upload(), headers=cookie)

        as_user = await client.delete(f"/api/v1/files/{plugin_id}/{release_id}", headers=cookie)
        assert as_user.status_code == 401

        removed = await client.delete(f"/api/v1/files/{plugin_id}/{release_id}", headers=master_headers)
        assert removed.status_code == 204

        release_again = await client.delete(f"/api/v1/files/{plugin_id}/{release_id}", headers=master_headers)
        assert release_again.status_code == 404

        plugin_dir = await client.delete(f"/api/v1/files/{plugin_id}", headers=master_headers)
        assert plugin_dir.status_code == 204
        missing = await client.delete(f"/api/v1/files/{plugin_id}", headers=master_headers)
        assert missing.json()["error"]["code"] == "FILE_NOT_FOUND"
