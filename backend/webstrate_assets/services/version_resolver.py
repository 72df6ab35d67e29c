"""Which asset record is current at a given document version."""
from collections.abc import Iterable

from webstrate_assets.models.asset import AssetRecord


def resolve_current(records: Iterable[AssetRecord]) -> list[AssetRecord]:
    """
    Keep only the newest record of each logical name.

    If cow.jpg exists both at version 2 and 3, the version 3 record is the one
    active at any version from 3 onwards. Records are expected in insertion
    order within a version: when a name was written twice at the same version
    (a re-upload before the document changed), the later record wins, as it
    does for single lookups ordered by version and id.
    """
    newest: dict[str, AssetRecord] = {}
    for record in records:
        current = newest.get(record.original_file_name)
        if current is None or current.v <= record.v:
            newest[record.original_file_name] = record
    return list(newest.values())


def is_visible(record: AssetRecord, version: int | None = None) -> bool:
    """
    Whether a resolved record shows its asset at `version`.

    An asset deleted at or before the requested version is gone. Without a
    version the latest view is meant, and any deletion applies. Records from
    after `version` are never visible.
    """
    if version is not None and record.v > version:
        return False
    if record.deleted_at is None:
        return True
    return version is not None and record.deleted_at > version


def visible_at(records: Iterable[AssetRecord], version: int | None = None) -> list[AssetRecord]:
    """Resolve `records` at `version` and drop the names absent there."""
    if version is not None:
        records = [r for r in records if r.v <= version]
    return [r for r in resolve_current(records) if is_visible(r, version)]
