"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: resolver.py
@DateTime: 2026-02-09
@Docs: Natural-key conflict resolution for one import.
单次导入的自然键冲突解析。
"""

import logging
from collections.abc import Sequence

from catalog_import_export.exceptions import DuplicateKeyError
from catalog_import_export.records import (
    Change,
    ChangeKind,
    DomainEntity,
    Failed,
    FieldError,
    NaturalKey,
    Skipped,
)
from catalog_import_export.typing import EntityStore

logger = logging.getLogger(__name__)

UPDATES_DISABLED_REASON = "exists, updates disabled"

type Resolution = Change | Skipped | Failed


class ConflictResolver:
    """
    Classifies mapped entities as insert, update, skip or in-file duplicate.
    将映射后的实体分类为插入、更新、跳过或文件内重复。

    Keys are compared exactly (case-sensitive, on normalized typed values).
    A key is registered as seen before its change is handed to the committer.
    键按精确值比较（区分大小写，基于归一化后的类型化值）；
    键在变更交给提交器之前即被登记。
    """

    def __init__(self, store: EntityStore, *, allow_updates: bool, key_columns: Sequence[str]) -> None:
        self._store = store
        self._allow_updates = allow_updates
        self._key_columns = tuple(key_columns)
        self._seen: dict[NaturalKey, int] = {}

    @property
    def seen_count(self) -> int:
        return len(self._seen)

    def first_row_for(self, key: NaturalKey) -> int | None:
        return self._seen.get(key)

    def note_key(self, key: NaturalKey, row_index: int) -> None:
        """Register the key of a row that failed before resolution; the first row keeps it.
        登记在解析前失败的行的键；以首次出现的行为准。
        """
        self._seen.setdefault(key, row_index)

    def duplicate_error(self, key: NaturalKey, first_row_index: int) -> FieldError:
        exc = DuplicateKeyError(natural_key=key, first_row_index=first_row_index, columns=self._key_columns)
        return FieldError.from_row_error(exc)

    async def resolve_window(self, candidates: Sequence[tuple[int, DomainEntity]]) -> list[Resolution]:
        """Resolve a window of candidates in input order.

        按输入顺序解析一个候选窗口。

        Storage is consulted once per window, for keys not seen earlier.
        每个窗口只查询一次存储，且只查询此前未见过的键。

        Args:
            candidates: (row_index, entity) pairs in input order.
                按输入顺序排列的 (行序号, 实体)。

        Returns:
            list[Resolution]: One Change, Skipped or Failed per candidate, same order.
                每个候选对应一个 Change、Skipped 或 Failed，顺序一致。
        """
        fresh: list[NaturalKey] = []
        pending: set[NaturalKey] = set()
        for _, entity in candidates:
            key = entity.natural_key
            if key not in self._seen and key not in pending:
                pending.add(key)
                fresh.append(key)
        existing = await self._store.fetch_existing(fresh) if fresh else {}

        results: list[Resolution] = []
        for row_index, entity in candidates:
            key = entity.natural_key
            first = self._seen.get(key)
            if first is not None:
                error = self.duplicate_error(key, first)
                results.append(Failed(row_index=row_index, errors=(error,), natural_key=key))
                continue
            self._seen[key] = row_index
            stored = existing.get(key)
            if stored is None:
                results.append(Change(row_index=row_index, kind=ChangeKind.INSERT, entity=entity))
            elif not self._allow_updates:
                results.append(Skipped(row_index=row_index, reason=UPDATES_DISABLED_REASON, natural_key=key))
            else:
                results.append(
                    Change(
                        row_index=row_index,
                        kind=ChangeKind.UPDATE,
                        entity=entity,
                        surrogate_id=stored.surrogate_id,
                        changed=entity.differs_from(stored.entity),
                    )
                )
        logger.debug("Resolved window of %d rows (%d looked up)", len(candidates), len(fresh))
        return results
