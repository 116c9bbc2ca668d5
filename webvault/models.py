import datetime
from pathlib import PurePosixPath

from webvault import db


class Vault(db.Model):
    """A note vault backed by a Google Drive folder."""
    __tablename__ = "vaults"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(500), nullable=False)
    folder_id = db.Column(db.String(200), nullable=False)  # Drive folder ID
    is_connected = db.Column(db.Boolean, default=False)
    last_sync = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)

    files = db.relationship("File", backref="vault", lazy=True,
                            cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "folder_id": self.folder_id,
            "is_connected": bool(self.is_connected),
            "last_sync": self.last_sync.isoformat() if self.last_sync else None,
            "file_count": len(self.files),
        }


class File(db.Model):
    """A note or folder inside a vault. Folders form a tree via parent_id."""
    __tablename__ = "files"
    __table_args__ = (
        db.UniqueConstraint("vault_id", "path", name="uq_files_vault_path"),
    )

    id = db.Column(db.Integer, primary_key=True)
    vault_id = db.Column(db.Integer, db.ForeignKey("vaults.id"), nullable=False)
    name = db.Column(db.String(500), nullable=False)
    path = db.Column(db.String(2000), nullable=False)
    content = db.Column(db.Text, default="")
    drive_file_id = db.Column(db.String(200), nullable=True)
    is_folder = db.Column(db.Boolean, default=False)
    parent_id = db.Column(db.Integer, db.ForeignKey("files.id"), nullable=True)
    last_modified = db.Column(db.DateTime, default=datetime.datetime.utcnow,
                              onupdate=datetime.datetime.utcnow)

    @property
    def stem(self):
        if self.is_folder:
            return self.name
        return PurePosixPath(self.name).stem

    def to_dict(self, include_content=True):
        data = {
            "id": self.id,
            "vault_id": self.vault_id,
            "name": self.name,
            "path": self.path,
            "drive_file_id": self.drive_file_id,
            "is_folder": bool(self.is_folder),
            "parent_id": self.parent_id,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
        }
        if include_content:
            data["content"] = self.content or ""
        return data
