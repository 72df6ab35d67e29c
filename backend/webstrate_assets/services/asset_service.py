"""Asset admission, resolution and lifecycle service."""
import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

import httpx
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from webstrate_assets.context import AssetContext
from webstrate_assets.exceptions import (
    ConflictError,
    NotFoundError,
    OversizeUploadError,
    StorageInconsistencyError,
)
from webstrate_assets.models.asset import AssetRecord
from webstrate_assets.schemas.asset import AssetSummary
from webstrate_assets.services.version_resolver import visible_at, is_visible
from webstrate_assets.utils.logging import logger

CSV_MIME_TYPE = "text/csv"


@dataclass
class IncomingFile:
    """A file as received from the upload layer."""
    original_name: str
    content: bytes
    mime_type: str


@dataclass
class StoredFile:
    """A file that has been written to the content store and hashed."""
    original_name: str
    mime_type: str
    size: int
    key: str
    file_hash: str


class AssetService:
    """Service for asset records of versioned documents."""

    def __init__(self, db: AsyncSession, context: AssetContext):
        self.db = db
        self.context = context
        self.storage = context.storage
        self.documents = context.documents

    # Admission

    async def upload_assets(
        self,
        webstrate_id: str,
        files: Sequence[IncomingFile],
        searchable: Sequence[str] | None,
        source: str,
    ) -> list[AssetSummary]:
        """
        Store, hash, dedup and record a batch of uploaded files.

        Args:
            webstrate_id: Document the files are attached to
            files: Uploaded files
            searchable: ["true"] to make every CSV searchable, or the names to make searchable
            source: Origin of the upload, for logs

        Raises:
            OversizeUploadError: a file is over the limit; nothing is stored
            ConflictError: the records could not be written; none are kept
        """
        max_size = self.context.settings.max_asset_size
        for file in files:
            if len(file.content) > self.context.settings.max_asset_size_bytes:
                raise OversizeUploadError(file.original_name, max_size)

        keys = await asyncio.gather(*(self.storage.store(f.content) for f in files))
        hashes = await asyncio.gather(*(self.storage.hash(key) for key in keys))
        stored = [
            StoredFile(
                original_name=f.original_name,
                mime_type=f.mime_type,
                size=len(f.content),
                key=key,
                file_hash=file_hash,
            )
            for f, key, file_hash in zip(files, keys, hashes)
        ]

        await self._deduplicate(stored)
        searchables = self._searchable_names(stored, searchable)
        return await self.add_assets(webstrate_id, stored, searchables, source)

    async def find_duplicate(self, size: int, file_hash: str) -> AssetRecord | None:
        """First record of any document with the same size and hash."""
        result = await self.db.execute(
            select(AssetRecord)
            .where(AssetRecord.file_size == size, AssetRecord.file_hash == file_hash)
            .order_by(AssetRecord.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _deduplicate(self, files: list[StoredFile]) -> None:
        """Point duplicates at the existing blob and discard the fresh copy."""
        seen: dict[tuple[int, str], str] = {}
        for file in files:
            fingerprint = (file.size, file.file_hash)
            existing_key = seen.get(fingerprint)
            if existing_key is None:
                duplicate = await self.find_duplicate(file.size, file.file_hash)
                existing_key = duplicate.file_name if duplicate else None

            if existing_key is not None:
                logger.debug("Duplicate of {} uploaded as {}", existing_key, file.original_name)
                self.storage.discard(file.key)
                file.key = existing_key

            seen[fingerprint] = file.key

    @staticmethod
    def _searchable_names(files: list[StoredFile], searchable: Sequence[str] | None) -> set[str]:
        if not searchable:
            return set()
        if list(searchable) == ["true"]:
            return {f.original_name for f in files if f.original_name.endswith(".csv")}
        return set(searchable)

    async def add_asset(
        self,
        webstrate_id: str,
        file: StoredFile,
        searchable: bool,
        source: str,
    ) -> AssetSummary:
        """Record a single stored file at the document's current version."""
        searchables = {file.original_name} if searchable else set()
        summaries = await self.add_assets(webstrate_id, [file], searchables, source)
        return summaries[0]

    async def add_assets(
        self,
        webstrate_id: str,
        files: Sequence[StoredFile],
        searchables: set[str],
        source: str,
    ) -> list[AssetSummary]:
        """
        Record stored files at the document's current version.

        The version is fetched before anything is inserted. Searchable CSV
        files are indexed before the records are committed and announced.
        """
        version = await self.documents.get_current_version(webstrate_id)

        records = [
            AssetRecord(
                webstrate_id=webstrate_id,
                v=version,
                file_name=file.key,
                original_file_name=file.original_name,
                file_size=file.size,
                mime_type=file.mime_type,
                file_hash=file.file_hash,
            )
            for file in files
        ]

        try:
            self.db.add_all(records)
            await self.db.flush()
            await asyncio.gather(*(
                self.context.indexer.index_csv(
                    record.id, str(self.storage.get_absolute_path(record.file_name))
                )
                for record in records
                if record.original_file_name in searchables and record.mime_type == CSV_MIME_TYPE
            ))
            await self.db.commit()
        except (SQLAlchemyError, httpx.HTTPError) as exc:
            await self.db.rollback()
            logger.error("Failed to add assets to {}: {}", webstrate_id, exc)
            raise ConflictError(str(exc), details={"webstrateId": webstrate_id}) from exc

        summaries = [AssetSummary.from_record(record) for record in records]
        for summary in summaries:
            self.context.notifier.announce(webstrate_id, summary.wire())
        logger.info(
            "Added {} asset(s) to {} at v{} from {}",
            len(summaries), webstrate_id, version, source,
        )
        return summaries

    # Reads

    async def get_assets(self, webstrate_id: str) -> list[AssetSummary]:
        """Every record of a document, across all versions."""
        records = await self._records(webstrate_id)
        return [AssetSummary.from_record(record) for record in records]

    async def get_current_assets(self, webstrate_id: str) -> list[AssetSummary]:
        """Assets visible at the document's latest version."""
        records = await self._records(webstrate_id)
        return [AssetSummary.from_record(record) for record in visible_at(records)]

    async def get_asset(
        self,
        webstrate_id: str,
        asset_name: str,
        version: int | None = None,
    ) -> AssetRecord | None:
        """
        The record serving `asset_name` at `version` (latest when omitted).

        A deleted asset can still be served at versions before its deletion.
        """
        stmt = select(AssetRecord).where(
            AssetRecord.webstrate_id == webstrate_id,
            AssetRecord.original_file_name == asset_name,
        )
        if version is not None:
            stmt = stmt.where(AssetRecord.v <= version)
        stmt = stmt.order_by(AssetRecord.v.desc(), AssetRecord.id.desc()).limit(1)

        result = await self.db.execute(stmt)
        record = result.scalar_one_or_none()
        if record is None or not is_visible(record, version):
            return None
        return record

    async def _records(
        self,
        webstrate_id: str,
        upto_version: int | None = None,
    ) -> list[AssetRecord]:
        stmt = select(AssetRecord).where(AssetRecord.webstrate_id == webstrate_id)
        if upto_version is not None:
            stmt = stmt.where(AssetRecord.v <= upto_version)
        result = await self.db.execute(stmt.order_by(AssetRecord.v, AssetRecord.id))
        return list(result.scalars().all())

    # Lifecycle

    async def mark_as_deleted(self, webstrate_id: str, asset_name: str) -> AssetRecord:
        """
        Mark an asset as deleted at the document's current version.

        Nothing is removed from the database or disk; the asset just stops
        appearing from that version on. Only the newest record of the name is
        marked, in a single statement.

        Raises:
            NotFoundError: no live record with that name
        """
        version = await self.documents.get_current_version(webstrate_id)

        newest = aliased(AssetRecord)
        newest_id = (
            select(newest.id)
            .where(newest.webstrate_id == webstrate_id, newest.original_file_name == asset_name)
            .order_by(newest.v.desc(), newest.id.desc())
            .limit(1)
            .scalar_subquery()
        )
        stmt = (
            update(AssetRecord)
            .where(AssetRecord.id == newest_id, AssetRecord.deleted_at.is_(None))
            .values(deleted_at=version)
            .returning(AssetRecord)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.db.execute(stmt)
        record = result.scalars().first()
        if record is None:
            raise NotFoundError(
                f"Asset '{asset_name}' not found.",
                details={"webstrateId": webstrate_id, "assetName": asset_name},
            )
        await self.db.flush()
        logger.info("Marked {}/{} deleted at v{}", webstrate_id, asset_name, version)
        return record

    async def copy_assets(
        self,
        from_webstrate_id: str,
        to_webstrate_id: str,
        version: int,
    ) -> list[AssetRecord]:
        """
        Copy the assets visible at `version` of one document to a new document.

        Only the records are duplicated, never the blobs. A new document starts
        at version 0, so the copies do too. Each copy references the root
        original, since indexed CSV rows are keyed by that record.
        """
        sources = visible_at(await self._records(from_webstrate_id, version), version)
        if not sources:
            return []

        copies = [
            source.clone(
                webstrate_id=to_webstrate_id,
                v=0,
                deleted_at=None,
                original_id=source.original_id if source.original_id is not None else source.id,
            )
            for source in sources
        ]
        self.db.add_all(copies)
        await self.db.flush()
        logger.info(
            "Copied {} asset(s) from {}@v{} to {}",
            len(copies), from_webstrate_id, version, to_webstrate_id,
        )
        return copies

    async def restore_assets(
        self,
        webstrate_id: str,
        new_version: int,
        version: int | None = None,
        tag: str | None = None,
    ) -> list[AssetRecord]:
        """
        Make the assets of an older version current again at `new_version`.

        The latest view always serves the newest record, so the old records are
        re-inserted at `new_version` to shadow anything uploaded since. Names
        that only appeared after `version` get a record already deleted at
        `new_version`. Those markers are written even when nothing was visible
        at `version`, so restoring an empty snapshot empties the current view.
        Nothing is inserted only when both views are empty.

        Raises:
            NotFoundError: `tag` doesn't exist
        """
        if version is None:
            if not tag:
                raise ValueError("Either version or tag is required")
            version = await self.documents.resolve_tag(webstrate_id, tag)

        records = await self._records(webstrate_id)
        snapshot = visible_at(records, version)
        restored_names = {record.original_file_name for record in snapshot}

        restored = [
            record.clone(
                v=new_version,
                deleted_at=None,
                original_id=record.original_id if record.original_id is not None else record.id,
            )
            for record in snapshot
        ]
        retired = [
            record.clone(
                v=new_version,
                deleted_at=new_version,
                original_id=record.original_id if record.original_id is not None else record.id,
            )
            for record in visible_at(records)
            if record.original_file_name not in restored_names
        ]
        if not restored and not retired:
            return []

        self.db.add_all(restored + retired)
        await self.db.flush()
        logger.info(
            "Restored {} asset(s) of {} from v{} to v{} ({} retired)",
            len(restored), webstrate_id, version, new_version, len(retired),
        )
        return restored + retired

    async def delete_assets(self, webstrate_id: str) -> dict[str, int]:
        """
        Delete all assets of a document.

        Blobs still referenced by another document (it was prototyped or
        shares deduplicated content) stay on disk. The document's records are
        removed regardless of how the blob deletions went.

        The reference scan runs once, before any blob is removed. An upload
        into another document that dedups onto one of these keys after the
        scan is not seen, and its record ends up pointing at a removed blob.
        `prune_missing_assets` cleans such records up afterwards.
        """
        records = await self._records(webstrate_id)
        keys = {record.file_name for record in records}

        shared: set[str] = set()
        if keys:
            result = await self.db.execute(
                select(AssetRecord.file_name)
                .where(
                    AssetRecord.file_name.in_(keys),
                    AssetRecord.webstrate_id != webstrate_id,
                )
                .distinct()
            )
            shared = set(result.scalars().all())

        doomed = keys - shared
        outcomes = await asyncio.gather(*(self._remove_blob(key) for key in sorted(doomed)))

        indexed_roots = {
            record.original_id if record.original_id is not None else record.id
            for record in records
            if record.file_name in doomed and record.mime_type == CSV_MIME_TYPE
        }
        await asyncio.gather(*(self._drop_index(root_id) for root_id in indexed_roots))

        await self.db.execute(delete(AssetRecord).where(AssetRecord.webstrate_id == webstrate_id))
        await self.db.flush()

        report = {
            "records": len(records),
            "blobs_deleted": sum(1 for ok in outcomes if ok),
            "blobs_kept": len(shared),
            "blob_failures": sum(1 for ok in outcomes if not ok),
        }
        logger.info("Deleted assets of {}: {}", webstrate_id, report)
        return report

    async def _remove_blob(self, key: str) -> bool:
        try:
            await self.storage.delete(key)
        except StorageInconsistencyError as exc:
            logger.error(exc.message)
            return False
        return True

    async def _drop_index(self, record_id: int) -> None:
        try:
            await self.context.indexer.delete_index(record_id)
        except httpx.HTTPError as exc:
            logger.warning("Failed to drop search index of asset {}: {}", record_id, exc)

    async def delete_asset_from_database(self, file_name: str) -> int:
        """
        Remove records whose blob no longer exists in the content store.

        Nothing happens while the blob is still there.

        Returns:
            Number of records removed
        """
        if not file_name or await self.storage.exists(file_name):
            return 0
        result = await self.db.execute(
            delete(AssetRecord).where(AssetRecord.file_name == file_name)
        )
        await self.db.flush()
        if result.rowcount:
            logger.warning("Pruned {} record(s) of missing blob {}", result.rowcount, file_name)
        return result.rowcount
