"""HTTP client for the vault API, used by the CLI's editor commands."""

import logging

import requests

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000"


class ApiError(Exception):
    """The vault API rejected a request or could not be reached."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class VaultApiClient:
    """Thin wrapper over the ``/api`` endpoints."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, session=None, timeout: float = 30):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs):
        url = f"{self.base_url}/api{path}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise ApiError(f"{method} {path} failed: {exc}") from exc
        if resp.status_code >= 400:
            try:
                detail = resp.json().get("message", resp.text)
            except ValueError:
                detail = resp.text
            raise ApiError(f"{method} {path} returned {resp.status_code}: {detail}",
                           status=resp.status_code)
        return resp.json()

    # ── Vaults ────────────────────────────────────────────────────────

    def list_vaults(self) -> list[dict]:
        return self._request("GET", "/vaults")

    def create_vault(self, name: str, folder_id: str, is_connected: bool = False) -> dict:
        return self._request("POST", "/vaults", json={
            "name": name, "folder_id": folder_id, "is_connected": is_connected,
        })

    def list_files(self, vault_id: int) -> list[dict]:
        return self._request("GET", f"/vaults/{vault_id}/files")

    # ── Files ─────────────────────────────────────────────────────────

    def get_file(self, file_id: int) -> dict:
        return self._request("GET", f"/files/{file_id}")

    def create_file(self, vault_id: int, name: str, content: str = "",
                    parent_id: int | None = None, is_folder: bool = False) -> dict:
        return self._request("POST", "/files", json={
            "vault_id": vault_id,
            "name": name,
            "content": content,
            "parent_id": parent_id,
            "is_folder": is_folder,
        })

    def update_file(self, file_id: int, **changes) -> dict:
        return self._request("PUT", f"/files/{file_id}", json=changes)

    def delete_file(self, file_id: int) -> dict:
        return self._request("DELETE", f"/files/{file_id}")

    def preview(self, content: str, vault_id: int | None = None) -> dict:
        return self._request("POST", "/preview", json={"content": content, "vault_id": vault_id})
