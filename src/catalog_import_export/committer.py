"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: committer.py
@DateTime: 2026-02-09
@Docs: Bounded transactional batch commits with contained failures.
有界的事务批量提交，失败仅影响所在批次。
"""

import asyncio
import logging
from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager, nullcontext

from catalog_import_export.constraint_parser import describe_storage_error
from catalog_import_export.exceptions import ImportExportError
from catalog_import_export.locks import KeyLock
from catalog_import_export.options import ImportOptions
from catalog_import_export.records import (
    Change,
    ChangeKind,
    Failed,
    FieldError,
    Inserted,
    RowOutcome,
    Updated,
)
from catalog_import_export.typing import EntityStore

logger = logging.getLogger(__name__)


def _succeeded(change: Change) -> RowOutcome:
    key = change.entity.natural_key
    if change.kind is ChangeKind.INSERT:
        return Inserted(row_index=change.row_index, natural_key=key)
    return Updated(row_index=change.row_index, natural_key=key, changed=change.changed)


def _failed(change: Change, reason: str) -> RowOutcome:
    return Failed(
        row_index=change.row_index,
        errors=(FieldError(column=None, value=None, rule="storage", message=reason),),
        natural_key=change.entity.natural_key,
    )


class BatchCommitter:
    """
    Commits changes to an EntityStore, one transaction per batch.
    向 EntityStore 提交变更，每个批次一个事务。

    A batch either commits fully or every row in it fails with the storage
    error. With `retry_individually_on_batch_failure`, the rows of a failed
    batch are then re-attempted one per transaction.
    批次要么整体提交，要么其中所有行以存储错误失败；开启逐行重试时，
    失败批次中的行会再逐个以独立事务重试。
    """

    def __init__(self, store: EntityStore, *, options: ImportOptions, lock: KeyLock | None = None) -> None:
        self._store = store
        self._options = options
        self._lock = lock
        self.batches_committed = 0
        self.batches_failed = 0

    async def commit_batch(self, batch: Sequence[Change]) -> list[RowOutcome]:
        """Commit one batch and return one outcome per change, in order.

        提交单个批次，并按顺序为每个变更返回一个结果。

        Args:
            batch: Changes of one batch (at most max_batch_size).
                单个批次的变更（不超过 max_batch_size）。

        Returns:
            list[RowOutcome]: Inserted/Updated on success, Failed otherwise.
                成功时为 Inserted/Updated，否则为 Failed。
        """
        if not batch:
            return []
        first, last = batch[0].row_index, batch[-1].row_index
        try:
            async with self._locked(batch):
                try:
                    await self._apply(batch)
                except Exception as exc:
                    reason = self._log_failure(exc, first, last)
                    self.batches_failed += 1
                    if self._options.retry_individually_on_batch_failure and len(batch) > 1:
                        return await self._retry_individually(batch)
                    return [_failed(change, reason) for change in batch]
        except ImportExportError as exc:
            # Lock not acquired: nothing was attempted.
            self.batches_failed += 1
            return [_failed(change, exc.message) for change in batch]

        self.batches_committed += 1
        logger.info("Committed batch rows %d-%d (%d changes)", first, last, len(batch))
        return [_succeeded(change) for change in batch]

    async def _apply(self, batch: Sequence[Change]) -> None:
        # A timeout cannot undo a COMMIT already sent; such rows report Failed but may be stored.
        await asyncio.wait_for(self._store.apply_batch(batch), timeout=self._options.commit_timeout_seconds)

    async def _retry_individually(self, batch: Sequence[Change]) -> list[RowOutcome]:
        outcomes: list[RowOutcome] = []
        for change in batch:
            try:
                await self._apply([change])
            except Exception as exc:
                reason = self._log_failure(exc, change.row_index, change.row_index)
                outcomes.append(_failed(change, reason))
            else:
                outcomes.append(_succeeded(change))
        return outcomes

    def _locked(self, batch: Sequence[Change]) -> AbstractAsyncContextManager[None]:
        if self._lock is None:
            return nullcontext()
        return self._lock.hold(change.entity.natural_key for change in batch)

    @staticmethod
    def _log_failure(exc: Exception, first: int, last: int) -> str:
        reason = describe_storage_error(exc)
        if isinstance(exc, (ImportExportError, TimeoutError)) or hasattr(exc, "orig"):
            logger.warning("Batch rows %d-%d failed: %s", first, last, reason)
        else:
            logger.exception("Unexpected storage error for batch rows %d-%d", first, last)
        return reason
