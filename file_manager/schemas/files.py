import mimetypes
from datetime import datetime
from pathlib import Path
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FileRecord(BaseModel):
    """One stored file as known to the client. Snapshots are immutable."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    id: str
    original_name: str = Field(alias="originalName", min_length=1)
    mimetype: Optional[str] = None
    size: int = Field(default=0, ge=0)
    description: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class FilePatch(BaseModel):
    """Partial metadata patch for `PUT /files/{id}`. Only set fields are sent."""

    model_config = ConfigDict(populate_by_name=True)

    description: Optional[str] = None
    original_name: Optional[str] = Field(default=None, alias="originalName")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=True)


class UploadItem(BaseModel):
    """A locally chosen file waiting to be uploaded."""

    name: str = Field(min_length=1)
    content: bytes
    content_type: Optional[str] = None

    @model_validator(mode="after")
    def guess_content_type(self):
        if not self.content_type:
            guessed, _ = mimetypes.guess_type(self.name)
            self.content_type = guessed or "application/octet-stream"
        return self

    @property
    def size(self) -> int:
        return len(self.content)

    def as_multipart(self) -> tuple:
        return (self.name, self.content, self.content_type)


class DownloadedFile(BaseModel):
    """Binary content returned by a download, paired with the name to save it under."""

    filename: str
    content: bytes
    media_type: Optional[str] = None

    def save(self, directory: Union[str, Path] = ".") -> Path:
        target = Path(directory) / Path(self.filename).name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.content)
        return target


# ── Operation results ──────────────────────────────────────────────────────

class OperationSuccess(BaseModel):
    success: Literal[True] = True
    data: Any = None
    message: Optional[str] = None


class OperationFailure(BaseModel):
    success: Literal[False] = False
    error: str
    status: int = 0


OperationResult = Union[OperationSuccess, OperationFailure]


# ── Bulk outcomes ──────────────────────────────────────────────────────────

class BulkItemError(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    filename: Optional[str] = None
    id: Optional[str] = None
    error: str = "Unknown error"

    @property
    def subject(self) -> str:
        return self.filename or self.id or "unknown"


class BulkOutcome(BaseModel):
    """Result of a multi-file operation; ``succeeded + failed == requested``."""

    requested: int = Field(ge=0)
    succeeded: int = Field(ge=0)
    failed: int = Field(ge=0)
    records: List[FileRecord] = Field(default_factory=list)
    deleted_ids: List[str] = Field(default_factory=list)
    errors: List[BulkItemError] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_counts(self):
        if self.succeeded + self.failed != self.requested:
            raise ValueError(
                f"succeeded ({self.succeeded}) + failed ({self.failed}) "
                f"must equal requested ({self.requested})"
            )
        return self

    @property
    def is_partial(self) -> bool:
        return self.succeeded > 0 and self.failed > 0

    @property
    def is_total_failure(self) -> bool:
        return self.requested > 0 and self.succeeded == 0


class SelectionSummary(BaseModel):
    selected_count: int
    total_count: int
    total_size: str
    file_types: List[str]
    preview: List[FileRecord]
    remaining: int
