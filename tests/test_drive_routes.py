"""Tests for the Google Drive OAuth, passthrough and import endpoints."""

import pytest


def _start_oauth(client):
    client.get("/api/auth/google")
    with client.session_transaction() as sess:
        return sess["oauth_state"]


class TestOAuth:
    def test_auth_url(self, client):
        resp = client.get("/api/auth/google")
        url = resp.get_json()["auth_url"]
        assert url.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
        assert "client_id=test-client-id" in url
        assert "access_type=offline" in url
        with client.session_transaction() as sess:
            assert f"state={sess['oauth_state']}" in url

    def test_callback_connects(self, client, drive, app):
        state = _start_oauth(client)
        resp = client.post("/api/auth/google/callback", json={"code": "abc", "state": state})
        assert resp.get_json() == {"success": True}
        assert app.extensions["drive_auth"].exchanged == ["abc"]
        assert client.get("/api/auth/google/status").get_json() == {"connected": True}

    def test_state_mismatch(self, client, drive):
        _start_oauth(client)
        resp = client.post("/api/auth/google/callback", json={"code": "abc", "state": "forged"})
        assert resp.status_code == 400
        assert client.get("/api/auth/google/status").get_json() == {"connected": False}

    def test_missing_code(self, client, drive):
        resp = client.post("/api/auth/google/callback", json={})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Missing authorization code"

    def test_failed_exchange(self, client, drive):
        state = _start_oauth(client)
        resp = client.post("/api/auth/google/callback", json={"code": "bad-code", "state": state})
        assert resp.status_code == 502
        assert resp.get_json()["message"] == "Failed to authenticate with Google"

    def test_disconnect(self, connected_client):
        assert connected_client.get("/api/auth/google/status").get_json()["connected"] is True
        connected_client.post("/api/auth/google/disconnect")
        assert connected_client.get("/api/auth/google/status").get_json()["connected"] is False


class TestPassthrough:
    @pytest.mark.parametrize("method, url", [
        ("get", "/api/drive/folders"),
        ("get", "/api/drive/files/abc"),
        ("get", "/api/drive/file/abc/content"),
        ("put", "/api/drive/file/abc/content"),
        ("post", "/api/vaults/import"),
        ("post", "/api/vaults/1/sync"),
    ])
    def test_requires_connection(self, client, method, url):
        resp = getattr(client, method)(url, json={})
        assert resp.status_code == 401
        assert resp.get_json() == {"message": "Not connected to Google Drive"}

    def test_folders(self, connected_client, drive):
        drive.add_folder("root", "Vault", file_id="f1")
        drive.add_note("f1", "a.md", "x")
        folders = connected_client.get("/api/drive/folders").get_json()
        assert [f["id"] for f in folders] == ["f1"]

    def test_files_and_content(self, connected_client, drive):
        drive.add_folder("root", "Vault", file_id="f1")
        drive.add_note("f1", "a.md", "hello", file_id="n1")
        files = connected_client.get("/api/drive/files/f1").get_json()
        assert [f["name"] for f in files] == ["a.md"]

        content = connected_client.get("/api/drive/file/n1/content").get_json()
        assert content == {"content": "hello"}

        resp = connected_client.put("/api/drive/file/n1/content", json={"content": "bye"})
        assert resp.status_code == 200
        assert drive.contents["n1"] == "bye"

    def test_drive_failure_is_bad_gateway(self, connected_client, drive):
        drive.fail = True
        resp = connected_client.get("/api/drive/folders")
        assert resp.status_code == 502
        assert resp.get_json()["message"] == "list_folders failed"


@pytest.fixture
def remote_vault(drive):
    drive.add_folder("root", "My Vault", file_id="vault-root")
    drive.add_note("vault-root", "Welcome.md", "# Hi [[Daily]]", file_id="n-welcome")
    drive.add_folder("vault-root", "Notes", file_id="f-notes")
    drive.entries["img"] = {"id": "img", "name": "pic.png", "mimeType": "image/png",
                            "parents": ["vault-root"]}
    drive.add_note("f-notes", "Daily.md", "today", file_id="n-daily")
    return drive


class TestImportAndSync:
    def test_import(self, connected_client, remote_vault):
        resp = connected_client.post("/api/vaults/import",
                                     json={"folder_id": "vault-root", "name": "Imported"})
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["vault"]["name"] == "Imported"
        assert body["vault"]["is_connected"] is True
        assert body["report"] == {
            "created": ["/Welcome.md", "/Notes", "/Notes/Daily.md"],
            "updated": [],
            "failed": [],
        }

        tree = connected_client.get(f"/api/vaults/{body['vault']['id']}/tree").get_json()
        assert [n["name"] for n in tree] == ["Notes", "Welcome.md"]
        assert [c["name"] for c in tree[0]["children"]] == ["Daily.md"]

    def test_import_validates_payload(self, connected_client, remote_vault):
        resp = connected_client.post("/api/vaults/import", json={"folder_id": "vault-root"})
        assert resp.status_code == 400

    def test_sync_pulls_remote_changes(self, connected_client, remote_vault):
        vault = connected_client.post("/api/vaults/import",
                                      json={"folder_id": "vault-root", "name": "V"}).get_json()["vault"]
        remote_vault.contents["n-daily"] = "tomorrow"
        remote_vault.add_note("vault-root", "New.md", "fresh")

        resp = connected_client.post(f"/api/vaults/{vault['id']}/sync")
        assert resp.status_code == 200
        report = resp.get_json()["report"]
        assert report["updated"] == ["/Notes/Daily.md"]
        assert report["created"] == ["/New.md"]

    def test_sync_unknown_vault(self, connected_client, drive):
        assert connected_client.post("/api/vaults/99/sync").status_code == 404

    def test_sync_drive_outage(self, connected_client, store, drive):
        vault = store.create_vault(name="V", folder_id="vault-root", is_connected=True)
        drive.fail = True
        resp = connected_client.post(f"/api/vaults/{vault.id}/sync")
        assert resp.status_code == 502
