"""Asset record database model."""
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from webstrate_assets.database import Base


class AssetRecord(Base):
    """One row per upload, copy or restore of an asset.

    Rows are never edited after insert, except `deleted_at` going from NULL to a
    version exactly once.
    """

    __tablename__ = "assets"
    __table_args__ = (
        Index("ix_assets_webstrate_name_v", "webstrate_id", "original_file_name", "v"),
        Index("ix_assets_size_hash", "file_size", "file_hash"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    webstrate_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    # Version from which this record is visible.
    v: Mapped[int] = mapped_column(Integer, nullable=False)

    # Storage key in the content store, shared by duplicates and copies.
    file_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    # Name the file had on the uploading client; the logical asset name.
    original_file_name: Mapped[str] = mapped_column(String(255), nullable=False)

    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    file_hash: Mapped[str] = mapped_column(String(128), nullable=False)

    # Version at which the logical asset was deleted.
    deleted_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Root record this one was copied from. Not a foreign key: the root's
    # document may be torn down while copies live on.
    original_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )

    def clone(self, **overrides) -> "AssetRecord":
        """Copy metadata into a new, unsaved record."""
        values = {
            "webstrate_id": self.webstrate_id,
            "v": self.v,
            "file_name": self.file_name,
            "original_file_name": self.original_file_name,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "file_hash": self.file_hash,
            "deleted_at": self.deleted_at,
            "original_id": self.original_id,
        }
        values.update(overrides)
        return AssetRecord(**values)

    def __repr__(self) -> str:
        return (
            f"<AssetRecord {self.webstrate_id}/{self.original_file_name} "
            f"v={self.v} key={self.file_name} deleted_at={self.deleted_at}>"
        )
