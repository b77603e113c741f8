"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: test_resolver.py
@DateTime: 2026-02-09
@Docs: Tests for ConflictResolver.
ConflictResolver 测试。
"""

from catalog_import_export.records import Change, ChangeKind, Failed, Skipped
from catalog_import_export.resolver import UPDATES_DISABLED_REASON, ConflictResolver
from tests.conftest import MemoryStore, item


async def test_new_key_is_insert(store: MemoryStore) -> None:
    resolver = ConflictResolver(store, allow_updates=True, key_columns=("sku",))
    (change,) = await resolver.resolve_window([(1, item("A1"))])
    assert isinstance(change, Change)
    assert change.kind is ChangeKind.INSERT


async def test_existing_key_is_update_with_surrogate(store: MemoryStore) -> None:
    stored = store.seed(item("A1", price="5"))
    resolver = ConflictResolver(store, allow_updates=True, key_columns=("sku",))
    (change,) = await resolver.resolve_window([(1, item("A1", price="7"))])
    assert isinstance(change, Change)
    assert change.kind is ChangeKind.UPDATE
    assert change.surrogate_id == stored.surrogate_id
    assert change.changed is True


async def test_identical_update_is_unchanged(store: MemoryStore) -> None:
    store.seed(item("A1", price="5.00"))
    resolver = ConflictResolver(store, allow_updates=True, key_columns=("sku",))
    (change,) = await resolver.resolve_window([(1, item("A1", price="5"))])
    assert isinstance(change, Change)
    assert change.changed is False


async def test_updates_disabled_skips(store: MemoryStore) -> None:
    store.seed(item("A1"))
    resolver = ConflictResolver(store, allow_updates=False, key_columns=("sku",))
    (result,) = await resolver.resolve_window([(1, item("A1"))])
    assert isinstance(result, Skipped)
    assert result.reason == UPDATES_DISABLED_REASON


async def test_in_file_duplicate_fails_second(store: MemoryStore) -> None:
    """Second occurrence fails and cites the first / 第二次出现失败并指向首次出现。"""
    resolver = ConflictResolver(store, allow_updates=True, key_columns=("sku",))
    results = await resolver.resolve_window([(1, item("A1")), (2, item("A1", name="Sock Deluxe"))])
    assert isinstance(results[0], Change)
    assert isinstance(results[1], Failed)
    (error,) = results[1].errors
    assert error.rule == "duplicate"
    assert "row 1" in error.message


async def test_duplicate_across_windows(store: MemoryStore) -> None:
    resolver = ConflictResolver(store, allow_updates=True, key_columns=("sku",))
    await resolver.resolve_window([(1, item("A1"))])
    (result,) = await resolver.resolve_window([(5, item("A1"))])
    assert isinstance(result, Failed)
    assert resolver.first_row_for(("A1",)) == 1


async def test_one_lookup_per_window_for_unseen_keys(store: MemoryStore) -> None:
    resolver = ConflictResolver(store, allow_updates=True, key_columns=("sku",))
    await resolver.resolve_window([(1, item("A1")), (2, item("B2")), (3, item("A1"))])
    await resolver.resolve_window([(4, item("A1")), (5, item("C3"))])
    assert store.fetch_calls == [[("A1",), ("B2",)], [("C3",)]]
    assert resolver.seen_count == 3


async def test_window_of_seen_keys_skips_lookup(store: MemoryStore) -> None:
    resolver = ConflictResolver(store, allow_updates=True, key_columns=("sku",))
    await resolver.resolve_window([(1, item("A1"))])
    await resolver.resolve_window([(2, item("A1"))])
    assert len(store.fetch_calls) == 1


async def test_noted_key_makes_later_row_duplicate(store: MemoryStore) -> None:
    """A key noted from a failed row still counts as seen / 失败行登记的键仍视为已出现。"""
    resolver = ConflictResolver(store, allow_updates=True, key_columns=("sku",))
    resolver.note_key(("A1",), 1)
    resolver.note_key(("A1",), 5)
    assert resolver.first_row_for(("A1",)) == 1
    (result,) = await resolver.resolve_window([(2, item("A1"))])
    assert isinstance(result, Failed)
    assert "row 1" in result.errors[0].message
