"""Request payloads for the vault and file endpoints."""

from pydantic import BaseModel, Field, field_validator

from webvault.services.markdown_utils import sanitize_filename


class VaultCreate(BaseModel):
    name: str = Field(min_length=1)
    folder_id: str = Field(min_length=1, description="Google Drive folder ID")
    is_connected: bool = False


class VaultUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    folder_id: str | None = Field(default=None, min_length=1)
    is_connected: bool | None = None

    @field_validator("name", "folder_id", "is_connected")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class FileCreate(BaseModel):
    vault_id: int
    name: str = Field(min_length=1)
    path: str | None = None
    content: str = ""
    drive_file_id: str | None = None
    is_folder: bool = False
    parent_id: int | None = None

    @field_validator("name")
    @classmethod
    def clean_name(cls, value: str) -> str:
        cleaned = sanitize_filename(value)
        if not cleaned:
            raise ValueError("name has no valid filename characters")
        return cleaned


class FileUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    path: str | None = None
    content: str | None = None
    drive_file_id: str | None = None
    parent_id: int | None = None

    @field_validator("name")
    @classmethod
    def clean_name(cls, value: str | None) -> str:
        # omitted fields are never validated, so None here is an explicit null
        if value is None:
            raise ValueError("name may be omitted but not null")
        cleaned = sanitize_filename(value)
        if not cleaned:
            raise ValueError("name has no valid filename characters")
        return cleaned

    @field_validator("path")
    @classmethod
    def reject_null_path(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("path may be omitted but not null")
        return value


class ImportRequest(BaseModel):
    folder_id: str = Field(min_length=1)
    name: str = Field(min_length=1)


class PreviewRequest(BaseModel):
    content: str = ""
    vault_id: int | None = None


class DriveContentUpdate(BaseModel):
    content: str
