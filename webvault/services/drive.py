"""
Google Drive — OAuth code exchange and a thin Drive v3 client.

The editor only needs a handful of Drive calls: list folders, list a folder's
files, read and write a text file, and create/delete files.  Everything else
about OAuth is delegated to Google's consent screen.
"""

import io
import logging
from urllib.parse import urlencode

import requests
from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseDownload, MediaIoBaseUpload

logger = logging.getLogger(__name__)

AUTH_URI = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"
DEFAULT_SCOPES = ["https://www.googleapis.com/auth/drive.file"]

FOLDER_MIME = "application/vnd.google-apps.folder"
TEXT_MIMES = {"text/markdown", "text/plain", "text/x-markdown"}
NOTE_EXTENSIONS = (".md", ".markdown", ".txt")
FILE_FIELDS = "id, name, mimeType, modifiedTime, parents"

# API errors, expired or revoked credentials, and network failures
API_ERRORS = (HttpError, GoogleAuthError, OSError)


class DriveError(Exception):
    """A Drive API or OAuth call failed."""


class DriveAuth:
    """OAuth2 web-flow collaborator for Drive access."""

    def __init__(self, client_id: str, client_secret: str, redirect_uri: str,
                 scopes: list[str] | None = None):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = scopes or DEFAULT_SCOPES

    def authorization_url(self, state: str | None = None) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "access_type": "offline",
            "prompt": "consent",
        }
        if state:
            params["state"] = state
        return f"{AUTH_URI}?{urlencode(params)}"

    def exchange_code(self, code: str) -> dict:
        """Trade an authorization code for a token dict."""
        try:
            resp = requests.post(
                TOKEN_URI,
                data={
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": self.redirect_uri,
                    "grant_type": "authorization_code",
                },
                timeout=30,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.exception("OAuth code exchange failed")
            raise DriveError("Failed to authenticate with Google") from exc
        return resp.json()

    def credentials(self, tokens: dict) -> Credentials:
        return Credentials(
            token=tokens.get("access_token"),
            refresh_token=tokens.get("refresh_token"),
            token_uri=TOKEN_URI,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=self.scopes,
        )

    def build_client(self, tokens: dict) -> "DriveClient":
        return DriveClient(build("drive", "v3", credentials=self.credentials(tokens),
                                 cache_discovery=False))


def is_note(meta: dict) -> bool:
    """True for Drive entries the editor can open as markdown."""
    if meta.get("mimeType") == FOLDER_MIME:
        return False
    return (
        meta.get("mimeType") in TEXT_MIMES
        or meta.get("name", "").lower().endswith(NOTE_EXTENSIONS)
    )


def is_folder(meta: dict) -> bool:
    return meta.get("mimeType") == FOLDER_MIME


class DriveClient:
    """The subset of Drive v3 the vault editor uses."""

    def __init__(self, service):
        self.service = service

    def list_folders(self) -> list[dict]:
        return self._list(f"mimeType = '{FOLDER_MIME}' and trashed = false",
                          fields="files(id, name, parents), nextPageToken")

    def list_files(self, folder_id: str) -> list[dict]:
        return self._list(f"'{folder_id}' in parents and trashed = false",
                          fields=f"files({FILE_FIELDS}), nextPageToken")

    def get_file_content(self, file_id: str) -> str:
        request = self.service.files().get_media(fileId=file_id)
        buf = io.BytesIO()
        try:
            downloader = MediaIoBaseDownload(buf, request)
            done = False
            while not done:
                _, done = downloader.next_chunk()
        except API_ERRORS as exc:
            raise DriveError(f"Failed to fetch file content for {file_id}") from exc
        return buf.getvalue().decode("utf-8", errors="replace")

    def update_file_content(self, file_id: str, content: str) -> dict:
        media = MediaIoBaseUpload(io.BytesIO(content.encode("utf-8")), mimetype="text/markdown")
        try:
            return (
                self.service.files()
                .update(fileId=file_id, media_body=media, fields=FILE_FIELDS)
                .execute()
            )
        except API_ERRORS as exc:
            raise DriveError(f"Failed to update file content for {file_id}") from exc

    def create_file(self, folder_id: str, name: str, content: str) -> dict:
        media = MediaIoBaseUpload(io.BytesIO(content.encode("utf-8")), mimetype="text/markdown")
        try:
            meta = (
                self.service.files()
                .create(body={"name": name, "parents": [folder_id]},
                        media_body=media, fields=FILE_FIELDS)
                .execute()
            )
        except API_ERRORS as exc:
            raise DriveError(f"Failed to create {name}") from exc
        logger.info("Created Drive file %s (%s)", name, meta.get("id"))
        return meta

    def create_folder(self, parent_id: str, name: str) -> dict:
        try:
            return (
                self.service.files()
                .create(body={"name": name, "parents": [parent_id], "mimeType": FOLDER_MIME},
                        fields=FILE_FIELDS)
                .execute()
            )
        except API_ERRORS as exc:
            raise DriveError(f"Failed to create folder {name}") from exc

    def delete_file(self, file_id: str) -> None:
        try:
            self.service.files().delete(fileId=file_id).execute()
        except API_ERRORS as exc:
            raise DriveError(f"Failed to delete {file_id}") from exc

    def _list(self, query: str, fields: str) -> list[dict]:
        files = []
        page_token = None
        try:
            while True:
                results = (
                    self.service.files()
                    .list(q=query, fields=fields, pageSize=100, pageToken=page_token)
                    .execute()
                )
                files.extend(results.get("files", []))
                page_token = results.get("nextPageToken")
                if not page_token:
                    break
        except API_ERRORS as exc:
            raise DriveError(f"Drive list failed: {query}") from exc
        return files
