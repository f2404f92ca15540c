"""Records exchanged between the Drive adapter, the mirror store and the CLI."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from drorg.errors import DriveDataError

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
PLACEHOLDER_NAME = "???"


def parse_timestamp(raw: str) -> datetime:
    """Parse an RFC 3339 timestamp as returned by Drive into an aware UTC datetime."""
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise DriveDataError(f"unparseable timestamp {raw!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class Document(BaseModel):
    """One row of the local mirror's document table."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    mime_type: str
    modified_time: datetime
    starred: bool = False
    trashed: bool = False

    @field_validator("id")
    @classmethod
    def non_empty_id(cls, v: str) -> str:
        if not v:
            raise ValueError("document id cannot be empty")
        return v

    @field_validator("modified_time")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @property
    def is_folder(self) -> bool:
        return self.mime_type == FOLDER_MIME_TYPE

    @property
    def open_url(self) -> str:
        return f"https://drive.google.com/open?id={self.id}"


class Account(BaseModel):
    id: int
    email: str


class Link(BaseModel):
    """A parent -> child edge as seen by one account."""

    model_config = ConfigDict(frozen=True)

    account_id: int
    parent_id: str
    child_id: str


class DocumentRecord(BaseModel):
    """A Drive ``File`` resource restricted to the fields we request.

    Every field is optional on the wire; :meth:`to_document` enforces the ones
    the mirror cannot do without.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = None
    name: str | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")
    modified_time: str | None = Field(default=None, alias="modifiedTime")
    parents: list[str] = Field(default_factory=list)
    size: int | None = None
    starred: bool | None = None
    trashed: bool | None = None

    @field_validator("parents", mode="before")
    @classmethod
    def none_means_no_parents(cls, v: object) -> object:
        return [] if v is None else v

    @classmethod
    def from_api(cls, payload: object) -> DocumentRecord:
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise DriveDataError(f"malformed file resource from Drive: {exc}") from exc

    def to_document(self) -> Document:
        if not self.id:
            raise DriveDataError("no ID provided with file object")
        if not self.modified_time:
            raise DriveDataError(f"no modifiedTime provided with file object {self.id}")
        return Document(
            id=self.id,
            name=self.name if self.name is not None else PLACEHOLDER_NAME,
            mime_type=self.mime_type or "",
            modified_time=parse_timestamp(self.modified_time),
            starred=bool(self.starred),
            trashed=bool(self.trashed),
        )


class ChangeRecord(BaseModel):
    """One entry of a Drive ``changes.list`` page."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    file_id: str | None = Field(default=None, alias="fileId")
    removed: bool = False
    file: DocumentRecord | None = None

    @field_validator("removed", mode="before")
    @classmethod
    def none_means_not_removed(cls, v: object) -> object:
        return False if v is None else v

    @classmethod
    def from_api(cls, payload: object) -> ChangeRecord:
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise DriveDataError(f"malformed change resource from Drive: {exc}") from exc


__all__ = [
    "FOLDER_MIME_TYPE",
    "Account",
    "ChangeRecord",
    "Document",
    "DocumentRecord",
    "Link",
    "parse_timestamp",
]
