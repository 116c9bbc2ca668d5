"""
Vault sync — mirrors the local store to a Google Drive folder.

The local store is the system of record.  Pulls bring remote notes in; pushes
and deletes are best-effort: a Drive failure is logged and swallowed so a
remote outage never costs a local edit.
"""

import logging
from dataclasses import dataclass, field

from webvault.services.drive import DriveClient, DriveError, is_folder, is_note
from webvault.services.store import StoreError

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"created": self.created, "updated": self.updated, "failed": self.failed}


class VaultSync:
    """Moves notes between a vault in the store and its Drive folder."""

    def __init__(self, store, drive: DriveClient):
        self.store = store
        self.drive = drive

    # ── Pull ──────────────────────────────────────────────────────────

    def import_folder(self, folder_id: str, name: str):
        """Create a connected vault from a Drive folder and pull its notes."""
        vault = self.store.create_vault(name=name, folder_id=folder_id, is_connected=True)
        report = self.pull(vault)
        logger.info(
            "Imported Drive folder %s as vault %s: %d note(s), %d failure(s).",
            folder_id, vault.id, len(report.created), len(report.failed),
        )
        return vault, report

    def pull(self, vault) -> SyncReport:
        """Walk the vault's Drive folder and upsert every note and sub-folder."""
        report = SyncReport()
        self._pull_folder(vault, vault.folder_id, parent=None, report=report)
        self.store.mark_synced(vault)
        return report

    def _pull_folder(self, vault, folder_id: str, parent, report: SyncReport) -> None:
        for meta in self.drive.list_files(folder_id):
            name = meta.get("name", meta["id"])
            try:
                if is_folder(meta):
                    folder = self._upsert(vault, meta, parent, is_folder=True, content="", report=report)
                    self._pull_folder(vault, meta["id"], folder, report)
                elif is_note(meta):
                    content = self.drive.get_file_content(meta["id"])
                    self._upsert(vault, meta, parent, is_folder=False, content=content, report=report)
            except (DriveError, StoreError):
                logger.warning("Could not pull %s", name, exc_info=True)
                report.failed.append(name)

    def _upsert(self, vault, meta: dict, parent, is_folder: bool, content: str, report: SyncReport):
        existing = self.store.get_file_by_drive_id(vault.id, meta["id"])
        if existing is None:
            base = parent.path.rstrip("/") if parent else ""
            existing = self.store.get_file_by_path(vault.id, f"{base}/{meta['name']}")
        if existing is not None:
            if not is_folder and existing.content != content:
                self.store.update_file(existing.id, content=content, drive_file_id=meta["id"])
                report.updated.append(existing.path)
            elif existing.drive_file_id != meta["id"]:
                self.store.update_file(existing.id, drive_file_id=meta["id"])
            return existing
        created = self.store.create_file(
            vault_id=vault.id,
            name=meta["name"],
            content=content,
            drive_file_id=meta["id"],
            is_folder=is_folder,
            parent_id=parent.id if parent else None,
        )
        report.created.append(created.path)
        return created

    # ── Push ──────────────────────────────────────────────────────────

    def push_file(self, file) -> bool:
        """Mirror one local file to Drive. Returns False (and logs) on failure."""
        vault = self.store.get_vault(file.vault_id)
        if vault is None or not vault.is_connected:
            return False
        try:
            if file.drive_file_id:
                if not file.is_folder:
                    self.drive.update_file_content(file.drive_file_id, file.content or "")
            else:
                remote_parent = self._remote_parent_id(file, vault)
                if file.is_folder:
                    meta = self.drive.create_folder(remote_parent, file.name)
                else:
                    meta = self.drive.create_file(remote_parent, file.name, file.content or "")
                self.store.update_file(file.id, drive_file_id=meta["id"])
        except DriveError:
            logger.warning("Drive sync failed for %s; keeping local copy.", file.path, exc_info=True)
            return False
        self.store.mark_synced(vault)
        return True

    def delete_remote(self, drive_file_id: str | None) -> bool:
        if not drive_file_id:
            return False
        try:
            self.drive.delete_file(drive_file_id)
        except DriveError:
            logger.warning("Drive delete failed for %s", drive_file_id, exc_info=True)
            return False
        return True

    def _remote_parent_id(self, file, vault) -> str:
        if file.parent_id is None:
            return vault.folder_id
        parent = self.store.get_file(file.parent_id)
        if parent is None:
            return vault.folder_id
        if not parent.drive_file_id:
            # the parent folder has to exist remotely first
            self.push_file(parent)
        return parent.drive_file_id or vault.folder_id
