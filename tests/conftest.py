"""Shared test fixtures and configuration."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from webvault import create_app, db
from webvault.seed import seed_demo_vault
from webvault.services.drive import FOLDER_MIME, DriveError


class TestingConfig:
    __test__ = False

    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    GOOGLE_CLIENT_ID = "test-client-id"
    GOOGLE_CLIENT_SECRET = "test-client-secret"
    GOOGLE_REDIRECT_URI = "http://localhost/auth/callback"
    GOOGLE_DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive.file"]
    AUTOSAVE_DELAY = 1.0
    SEED_DEMO_DATA = False
    LOG_LEVEL = "DEBUG"
    LOG_FILE = ""


@pytest.fixture
def app():
    """Fresh app with an in-memory database, inside an app context."""
    app = create_app(TestingConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.extensions["vault_store"]


@pytest.fixture
def demo(store):
    """The demo vault, with file ids keyed by name."""
    vault = seed_demo_vault(store)
    files = {f.name: f.id for f in store.get_files_by_vault(vault.id)}
    return {"vault_id": vault.id, "files": files}


# ── Scheduling ────────────────────────────────────────────────────────

class FakeTimer:
    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Deterministic stand-in for ThreadingScheduler; time moves on advance()."""

    def __init__(self):
        self.now = 0.0
        self.timers: list[FakeTimer] = []

    def call_later(self, delay, callback):
        timer = FakeTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self):
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = sorted((t for t in self.pending if t.when <= target), key=lambda t: t.when)
            if not due:
                break
            timer = due[0]
            self.now = max(self.now, timer.when)
            timer.fired = True
            timer.callback()
        self.now = target


@pytest.fixture
def scheduler():
    return FakeScheduler()


# ── Google Drive ──────────────────────────────────────────────────────

@dataclass
class FakeDrive:
    """In-memory Drive: entries keyed by id, each with a parent folder id."""

    entries: dict = field(default_factory=dict)
    contents: dict = field(default_factory=dict)
    fail: bool = False
    calls: list = field(default_factory=list)
    _next_id: int = 1

    def add_folder(self, parent_id, name, file_id=None):
        file_id = file_id or self._new_id()
        self.entries[file_id] = {"id": file_id, "name": name, "mimeType": FOLDER_MIME,
                                 "parents": [parent_id]}
        return file_id

    def add_note(self, parent_id, name, content, file_id=None):
        file_id = file_id or self._new_id()
        self.entries[file_id] = {"id": file_id, "name": name, "mimeType": "text/markdown",
                                 "parents": [parent_id]}
        self.contents[file_id] = content
        return file_id

    def _new_id(self):
        file_id = f"drive-{self._next_id}"
        self._next_id += 1
        return file_id

    def _check(self, call):
        self.calls.append(call)
        if self.fail:
            raise DriveError(f"{call} failed")

    def list_folders(self):
        self._check("list_folders")
        return [e for e in self.entries.values() if e["mimeType"] == FOLDER_MIME]

    def list_files(self, folder_id):
        self._check("list_files")
        return [e for e in self.entries.values() if folder_id in e["parents"]]

    def get_file_content(self, file_id):
        self._check("get_file_content")
        return self.contents[file_id]

    def update_file_content(self, file_id, content):
        self._check("update_file_content")
        self.contents[file_id] = content
        return self.entries[file_id]

    def create_file(self, folder_id, name, content):
        self._check("create_file")
        file_id = self.add_note(folder_id, name, content)
        return self.entries[file_id]

    def create_folder(self, parent_id, name):
        self._check("create_folder")
        return self.entries[self.add_folder(parent_id, name)]

    def delete_file(self, file_id):
        self._check("delete_file")
        self.entries.pop(file_id, None)
        self.contents.pop(file_id, None)


class FakeDriveAuth:
    def __init__(self, drive):
        self.drive = drive
        self.exchanged = []

    def authorization_url(self, state=None):
        return f"https://accounts.example/auth?state={state}"

    def exchange_code(self, code):
        self.exchanged.append(code)
        if code == "bad-code":
            raise DriveError("Failed to authenticate with Google")
        return {"access_token": "access-" + code, "refresh_token": "refresh"}

    def build_client(self, tokens):
        return self.drive


@pytest.fixture
def drive(app):
    fake = FakeDrive()
    app.extensions["drive_auth"] = FakeDriveAuth(fake)
    return fake


@pytest.fixture
def connected_client(client, drive):
    """Test client whose session already holds Drive tokens."""
    with client.session_transaction() as sess:
        sess["drive_tokens"] = {"access_token": "token", "refresh_token": "refresh"}
    return client
