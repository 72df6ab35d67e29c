from webstrate_assets.models.asset import AssetRecord
from webstrate_assets.services.version_resolver import is_visible, resolve_current, visible_at


def _record(name: str, v: int, deleted_at: int | None = None, key: str | None = None) -> AssetRecord:
    return AssetRecord(
        webstrate_id="doc",
        v=v,
        file_name=key or f"{name}-{v}",
        original_file_name=name,
        file_size=1,
        mime_type="image/png",
        file_hash="h",
        deleted_at=deleted_at,
    )


def test_resolve_current_keeps_newest_per_name():
    records = [
        _record("cow.jpg", 3),
        _record("cow.jpg", 2),
        _record("pig.jpg", 1),
        _record("cow.jpg", 5),
    ]

    resolved = resolve_current(records)

    assert sorted((r.original_file_name, r.v) for r in resolved) == [("cow.jpg", 5), ("pig.jpg", 1)]


def test_resolve_current_of_nothing_is_empty():
    assert resolve_current([]) == []


def test_is_visible_without_deletion():
    record = _record("a.png", 2)

    assert is_visible(record)
    assert is_visible(record, 2)
    assert is_visible(record, 10)
    assert not is_visible(record, 1)


def test_is_visible_respects_deletion_version():
    record = _record("b.csv", 1, deleted_at=2)

    assert is_visible(record, 1)
    assert not is_visible(record, 2)
    assert not is_visible(record, 3)
    # The latest view honours any deletion.
    assert not is_visible(record)


def test_visible_at_ignores_later_records_and_deleted_names():
    records = [
        _record("a.png", 1),
        _record("a.png", 4),
        _record("b.png", 2, deleted_at=3),
        _record("c.png", 5),
    ]

    at_two = visible_at(records, 2)
    at_three = visible_at(records, 3)
    latest = visible_at(records)

    assert sorted((r.original_file_name, r.v) for r in at_two) == [("a.png", 1), ("b.png", 2)]
    assert [(r.original_file_name, r.v) for r in at_three] == [("a.png", 1)]
    assert sorted((r.original_file_name, r.v) for r in latest) == [("a.png", 4), ("c.png", 5)]


def test_deleted_newest_record_hides_name_even_if_older_is_live():
    records = [_record("a.png", 1), _record("a.png", 3, deleted_at=4)]

    assert visible_at(records) == []
    assert [r.v for r in visible_at(records, 3)] == [3]


def test_resolve_current_prefers_the_later_record_of_a_version():
    records = [_record("a.png", 3, key="first"), _record("a.png", 3, key="second")]

    assert [r.file_name for r in resolve_current(records)] == ["second"]
