"""Maintenance tasks (records whose blobs went missing)."""

import asyncio

from webstrate_assets.config import get_settings
from webstrate_assets.context import AssetContext
from webstrate_assets.database import async_session_maker
from webstrate_assets.services.asset_service import AssetService
from webstrate_assets.tasks.celery_app import celery_app


def _run_async(coro):
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@celery_app.task
def prune_missing_assets(file_names: list[str]) -> dict:
    """Delete asset records whose blob no longer exists on disk.

    Keys whose blob is still present are left alone.
    """
    return _run_async(_prune_missing_assets_async(file_names))


async def _prune_missing_assets_async(
    file_names: list[str],
    session_maker=None,
    context: AssetContext | None = None,
) -> dict:
    context = context or AssetContext.from_settings(get_settings())
    session_maker = session_maker or async_session_maker

    async with session_maker() as db:
        service = AssetService(db, context)
        pruned = 0
        for file_name in file_names:
            pruned += await service.delete_asset_from_database(file_name)
        await db.commit()

    return {"checked": len(file_names), "pruned_records": pruned}
