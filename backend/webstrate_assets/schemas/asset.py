"""Asset schemas for request/response validation."""
from pydantic import BaseModel, ConfigDict, Field, model_validator

from webstrate_assets.models.asset import AssetRecord


class AssetSummary(BaseModel):
    """Public view of an asset record.

    `fileName` is the logical name and `identifier` the storage key.
    """

    model_config = ConfigDict(populate_by_name=True)

    v: int
    file_name: str = Field(alias="fileName")
    file_size: int = Field(alias="fileSize")
    mime_type: str = Field(alias="mimeType")
    identifier: str
    file_hash: str = Field(alias="fileHash")
    deleted_at: int | None = Field(default=None, alias="deletedAt")

    @classmethod
    def from_record(cls, record: AssetRecord) -> "AssetSummary":
        return cls(
            v=record.v,
            file_name=record.original_file_name,
            file_size=record.file_size,
            mime_type=record.mime_type,
            identifier=record.file_name,
            file_hash=record.file_hash,
            deleted_at=record.deleted_at,
        )

    def wire(self) -> dict:
        """Dict in the camelCase shape clients expect, without unset deletion markers."""
        return self.model_dump(by_alias=True, exclude_none=True)


class CopyAssetsRequest(BaseModel):
    """Copy a document's assets into another document (prototyping)."""

    model_config = ConfigDict(populate_by_name=True)

    to_webstrate_id: str = Field(alias="toWebstrateId", min_length=1)
    version: int = Field(ge=0)


class RestoreAssetsRequest(BaseModel):
    """Restore a document's assets from an older version or tag."""

    model_config = ConfigDict(populate_by_name=True)

    version: int | None = Field(default=None, ge=0)
    tag: str | None = None
    new_version: int = Field(alias="newVersion", ge=0)

    @model_validator(mode="after")
    def _version_or_tag(self) -> "RestoreAssetsRequest":
        if self.version is None and not self.tag:
            raise ValueError("Either version or tag is required")
        return self


class AssetTeardownResponse(BaseModel):
    """Outcome of deleting all of a document's assets."""

    records: int
    blobs_deleted: int
    blobs_kept: int
    blob_failures: int
