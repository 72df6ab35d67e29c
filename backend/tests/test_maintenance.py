import pytest

from webstrate_assets.tasks.celery_app import celery_app
from webstrate_assets.tasks.maintenance import _prune_missing_assets_async, prune_missing_assets


def test_prune_task_is_registered():
    assert prune_missing_assets.name in celery_app.tasks
    assert celery_app.conf.task_serializer == "json"


@pytest.mark.asyncio
async def test_prune_missing_assets(session_maker, context, upload, service):
    kept = await upload("doc", "kept.png", b"kept")
    lost = await upload("doc", "lost.png", b"lost")
    context.storage.get_absolute_path(lost.identifier).unlink()

    result = await _prune_missing_assets_async(
        [kept.identifier, lost.identifier],
        session_maker=session_maker,
        context=context,
    )

    assert result == {"checked": 2, "pruned_records": 1}
    remaining = await service.get_assets("doc")
    assert [a.file_name for a in remaining] == ["kept.png"]
