"""
Vault store — the local system of record for vaults and files.

Wraps a SQLAlchemy session and enforces the tree invariants: a parent must be
a folder in the same vault, paths are unique per vault, and re-parenting can
never create a cycle.
"""

import datetime
import logging

from webvault.models import File, Vault
from webvault.services.file_tree import would_create_cycle

logger = logging.getLogger(__name__)

VAULT_FIELDS = ("name", "folder_id", "is_connected")
FILE_FIELDS = ("vault_id", "name", "path", "content", "drive_file_id", "is_folder", "parent_id")


class StoreError(Exception):
    """Base class for record store failures."""


class NotFoundError(StoreError):
    pass


class InvalidParentError(StoreError):
    pass


class DuplicatePathError(StoreError):
    pass


class VaultStore:
    """CRUD over vaults and files."""

    def __init__(self, session):
        self.session = session

    # ── Vaults ────────────────────────────────────────────────────────

    def get_vault(self, vault_id: int) -> Vault | None:
        return self.session.get(Vault, vault_id)

    def get_all_vaults(self) -> list[Vault]:
        return self.session.query(Vault).order_by(Vault.id).all()

    def create_vault(self, name: str, folder_id: str, is_connected: bool = False) -> Vault:
        vault = Vault(
            name=name,
            folder_id=folder_id,
            is_connected=is_connected,
            last_sync=datetime.datetime.utcnow(),
        )
        self.session.add(vault)
        self.session.commit()
        logger.info("Vault created: %s (%s)", vault.name, vault.id)
        return vault

    def update_vault(self, vault_id: int, **changes) -> Vault | None:
        vault = self.get_vault(vault_id)
        if vault is None:
            return None
        for key in VAULT_FIELDS:
            if key in changes:
                setattr(vault, key, changes[key])
        self.session.commit()
        return vault

    def mark_synced(self, vault: Vault) -> Vault:
        vault.last_sync = datetime.datetime.utcnow()
        self.session.commit()
        return vault

    # ── Files ─────────────────────────────────────────────────────────

    def get_file(self, file_id: int) -> File | None:
        return self.session.get(File, file_id)

    def get_file_by_path(self, vault_id: int, path: str) -> File | None:
        return self.session.query(File).filter_by(vault_id=vault_id, path=path).first()

    def get_file_by_drive_id(self, vault_id: int, drive_file_id: str) -> File | None:
        return (
            self.session.query(File)
            .filter_by(vault_id=vault_id, drive_file_id=drive_file_id)
            .first()
        )

    def get_files_by_vault(self, vault_id: int) -> list[File]:
        return self.session.query(File).filter_by(vault_id=vault_id).order_by(File.id).all()

    def get_files_by_parent(self, parent_id: int) -> list[File]:
        return self.session.query(File).filter_by(parent_id=parent_id).order_by(File.id).all()

    def create_file(self, vault_id: int, name: str, path: str | None = None,
                    content: str = "", drive_file_id: str | None = None,
                    is_folder: bool = False, parent_id: int | None = None) -> File:
        if self.get_vault(vault_id) is None:
            raise NotFoundError(f"Vault {vault_id} not found")
        parent = self._check_parent(vault_id, parent_id)
        if not path:
            path = self._derive_path(parent, name)
        if self.get_file_by_path(vault_id, path) is not None:
            raise DuplicatePathError(f"A file already exists at {path}")

        file = File(
            vault_id=vault_id,
            name=name,
            path=path,
            content=content or "",
            drive_file_id=drive_file_id,
            is_folder=is_folder,
            parent_id=parent_id,
        )
        self.session.add(file)
        self.session.commit()
        logger.debug("File created: %s (%s)", file.path, file.id)
        return file

    def update_file(self, file_id: int, **changes) -> File | None:
        file = self.get_file(file_id)
        if file is None:
            return None

        vault_id = changes.get("vault_id", file.vault_id)
        parent_id = changes.get("parent_id", file.parent_id)
        if "parent_id" in changes or vault_id != file.vault_id:
            parent = self._check_parent(vault_id, parent_id)
            siblings = self.get_files_by_vault(vault_id)
            if would_create_cycle(siblings, file.id, parent_id):
                raise InvalidParentError(
                    f"Moving {file.id} under {parent_id} would create a folder cycle"
                )
        else:
            parent = self.get_file(parent_id) if parent_id is not None else None

        # a move or rename without an explicit path keeps the path in step with the tree
        name = changes.get("name") or file.name
        new_path = changes.get("path")
        if not new_path and (parent_id != file.parent_id or name != file.name):
            new_path = self._derive_path(parent, name)
            changes["path"] = new_path

        old_path = file.path
        if new_path and new_path != old_path:
            clash = self.get_file_by_path(vault_id, new_path)
            if clash is not None and clash.id != file.id:
                raise DuplicatePathError(f"A file already exists at {new_path}")

        for key in FILE_FIELDS:
            if key in changes:
                setattr(file, key, changes[key])
        if "content" in changes and file.content is None:
            file.content = ""
        if file.is_folder and file.path != old_path:
            self._rebase_paths(file, old_path)
        file.last_modified = datetime.datetime.utcnow()
        self.session.commit()
        return file

    def delete_file(self, file_id: int) -> bool:
        """Delete a file; deleting a folder removes its whole subtree."""
        file = self.get_file(file_id)
        if file is None:
            return False
        for doomed in self._subtree(file):
            self.session.delete(doomed)
        self.session.commit()
        logger.info("Deleted %s", file.path)
        return True

    # ── Helpers ───────────────────────────────────────────────────────

    def _check_parent(self, vault_id: int, parent_id: int | None) -> File | None:
        if parent_id is None:
            return None
        parent = self.get_file(parent_id)
        if parent is None:
            raise InvalidParentError(f"Parent {parent_id} does not exist")
        if not parent.is_folder:
            raise InvalidParentError(f"Parent {parent_id} is not a folder")
        if parent.vault_id != vault_id:
            raise InvalidParentError(f"Parent {parent_id} belongs to another vault")
        return parent

    @staticmethod
    def _derive_path(parent: File | None, name: str) -> str:
        base = parent.path.rstrip("/") if parent else ""
        return f"{base}/{name}"

    def _rebase_paths(self, folder: File, old_path: str) -> None:
        """Move descendants' paths from under *old_path* to under the folder's new path."""
        old_prefix = old_path.rstrip("/") + "/"
        new_prefix = folder.path.rstrip("/") + "/"
        for node in self._subtree(folder):
            if node.id != folder.id and node.path.startswith(old_prefix):
                node.path = new_prefix + node.path[len(old_prefix):]

    def _subtree(self, root: File) -> list[File]:
        """Children before parents, so deletes never leave dangling parent ids."""
        ordered = []
        stack = [root]
        seen = set()
        while stack:
            node = stack.pop()
            if node.id in seen:
                continue
            seen.add(node.id)
            ordered.append(node)
            if node.is_folder:
                stack.extend(self.get_files_by_parent(node.id))
        return list(reversed(ordered))
