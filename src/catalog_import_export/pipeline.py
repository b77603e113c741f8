"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: pipeline.py
@DateTime: 2026-02-09
@Docs: Streaming import pipeline: parse -> validate -> map -> resolve -> commit -> report.
流式导入流水线：解析 → 校验 → 映射 → 冲突解析 → 提交 → 报告。

The source is scanned for structural errors before any row is processed, so a
malformed file never produces outcomes or writes. Rows then flow one at a
time; at most one resolution window and one pending batch are held in memory.
处理任何行之前先做结构扫描，因此格式错误的文件不会产生结果或写入；
之后逐行流转，内存中最多保留一个解析窗口和一个待提交批次。
"""

import asyncio
import logging
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from typing import BinaryIO

from catalog_import_export.committer import BatchCommitter
from catalog_import_export.exceptions import ImportAbortedError, ImportCancelledError, RowError
from catalog_import_export.locks import KeyLock
from catalog_import_export.mapper import EntityMapper
from catalog_import_export.options import ImportOptions
from catalog_import_export.parse import open_row_stream, scan_structure
from catalog_import_export.records import Change, DomainEntity, Failed, FieldError, NaturalKey, RawRow, Skipped
from catalog_import_export.report import ImportReport, ReportBuilder
from catalog_import_export.resolver import ConflictResolver
from catalog_import_export.schema import HeaderMap, ImportSchema
from catalog_import_export.typing import EntityStore
from catalog_import_export.validation import natural_key_of, validate_row

logger = logging.getLogger(__name__)

CANCELLED_REASON = "import cancelled"
ABORTED_REASON = "import aborted"
_SPOOL_CHUNK = 1024 * 1024


class CancellationToken:
    """Cooperative cancellation flag, checked between batches.
    协作式取消标志，在批次之间检查。
    """

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class _Cancelled(Exception):
    pass


@contextmanager
def _seekable(source: BinaryIO) -> Iterator[BinaryIO]:
    """Yield a seekable view of `source`, spooling to a temp file when needed.
    返回 `source` 的可 seek 视图，必要时落盘到临时文件。
    """
    if source.seekable():
        yield source
        return
    with tempfile.TemporaryFile() as spool:
        shutil.copyfileobj(source, spool, _SPOOL_CHUNK)
        spool.seek(0)
        yield spool


class ImportPipeline:
    """
    Runs one import of a delimited file against an EntityStore.
    针对 EntityStore 执行一次分隔文件导入。

    Examples:
        >>> pipeline = ImportPipeline(schema=schema, mapper=mapper, store=store)
        >>> # report = await pipeline.run(open("items.csv", "rb"))
    """

    def __init__(
        self,
        *,
        schema: ImportSchema,
        mapper: EntityMapper,
        store: EntityStore,
        options: ImportOptions | None = None,
        lock: KeyLock | None = None,
    ) -> None:
        self.schema = schema
        self.mapper = mapper
        self.store = store
        self.options = options or ImportOptions()
        self.lock = lock

    async def run(
        self,
        source: BinaryIO,
        *,
        cancel: CancellationToken | None = None,
        builder: ReportBuilder | None = None,
    ) -> ImportReport:
        """Import every data row of `source`.

        导入 `source` 的所有数据行。

        Args:
            source: Binary stream of the delimited file.
                分隔文件的二进制流。
            cancel: Optional cancellation token.
                可选的取消令牌。
            builder: Optional report builder, for progress polling.
                可选的报告构建器，用于进度轮询。

        Returns:
            ImportReport: Exactly one outcome per data row.
                每个数据行恰好一个结果。

        Raises:
            MalformedInputError: Before any row is processed, when the file is unreadable.
                文件不可读时在处理任何行之前抛出。
            ImportCancelledError: When cancelled; carries the partial report.
                被取消时抛出，携带部分报告。
            ImportAbortedError: When an unexpected error stops the import after rows were
                committed; carries the partial report.
                已有行提交后因意外错误中止时抛出，携带部分报告。
        """
        builder = builder or ReportBuilder()
        token = cancel or CancellationToken()
        with _seekable(source) as stream:
            start = stream.tell()
            total = scan_structure(stream, self.schema)
            stream.seek(start)
            builder.expect(total)
            logger.info("Import started: %d data rows, batch size %d", total, self.options.max_batch_size)
            try:
                await self._process(stream, token, builder)
            except _Cancelled:
                report = builder.build()
                logger.warning("Import cancelled after %d rows", report.rows_processed)
                raise ImportCancelledError(report=report) from None
            except Exception as exc:
                report = builder.build()
                if report.inserted + report.updated == 0:
                    raise
                logger.exception("Import aborted after %d committed rows", report.inserted + report.updated)
                raise ImportAbortedError(report=report, reason=str(exc) or type(exc).__name__) from exc

        report = builder.build()
        logger.info(
            "Import finished: inserted=%d updated=%d skipped=%d failed=%d",
            report.inserted,
            report.updated,
            report.skipped,
            report.failed,
        )
        return report

    async def _process(self, stream: BinaryIO, token: CancellationToken, builder: ReportBuilder) -> None:
        rows = open_row_stream(stream, self.schema)
        resolver = ConflictResolver(
            self.store, allow_updates=self.options.allow_updates, key_columns=self.schema.natural_key
        )
        committer = BatchCommitter(self.store, options=self.options, lock=self.lock)
        size = self.options.max_batch_size
        window: list[tuple[int, DomainEntity]] = []
        window_keys: dict[NaturalKey, int] = {}
        pending: list[Change] = []

        try:
            for raw in rows:
                result = validate_row(raw, self.schema, rows.header)
                if isinstance(result, list):
                    self._record_failed(raw, rows.header, result, resolver, window_keys, builder)
                    continue
                try:
                    entity = await self.mapper.to_entity(result)
                except RowError as exc:
                    errors = [FieldError.from_row_error(exc)]
                    self._record_failed(raw, rows.header, errors, resolver, window_keys, builder)
                    continue
                window.append((raw.index, entity))
                window_keys.setdefault(entity.natural_key, raw.index)
                if len(window) >= size:
                    await self._resolve(resolver, window, pending, builder, token)
                    window, window_keys = [], {}
                    pending = await self._flush(committer, pending, builder, token, final=False)
                    await asyncio.sleep(0)

            if window:
                await self._resolve(resolver, window, pending, builder, token)
                window, window_keys = [], {}
            await self._flush(committer, pending, builder, token, final=True)
        except Exception as exc:
            reason = CANCELLED_REASON if isinstance(exc, _Cancelled) else ABORTED_REASON
            for row_index, entity in window:
                if not builder.has_outcome(row_index):
                    builder.record(Skipped(row_index=row_index, reason=reason, natural_key=entity.natural_key))
            for change in pending:
                if not builder.has_outcome(change.row_index):
                    key = change.entity.natural_key
                    builder.record(Skipped(row_index=change.row_index, reason=reason, natural_key=key))
            raise

    def _record_failed(
        self,
        raw: RawRow,
        header: HeaderMap,
        errors: list[FieldError],
        resolver: ConflictResolver,
        window_keys: dict[NaturalKey, int],
        builder: ReportBuilder,
    ) -> None:
        """Record a row that failed validation or mapping; its key still takes part in duplicate detection.
        记录校验或映射失败的行；其键仍参与重复检测。
        """
        key = natural_key_of(raw, self.schema, header)
        if key is not None:
            first = resolver.first_row_for(key) or window_keys.get(key)
            if first is None:
                resolver.note_key(key, raw.index)
            else:
                errors = [*errors, resolver.duplicate_error(key, first)]
        builder.record(Failed(row_index=raw.index, errors=tuple(errors), natural_key=key))

    async def _resolve(
        self,
        resolver: ConflictResolver,
        window: list[tuple[int, DomainEntity]],
        pending: list[Change],
        builder: ReportBuilder,
        token: CancellationToken,
    ) -> None:
        if token.cancelled:
            raise _Cancelled
        for resolution in await resolver.resolve_window(window):
            if isinstance(resolution, Change):
                pending.append(resolution)
            else:
                builder.record(resolution)

    async def _flush(
        self,
        committer: BatchCommitter,
        pending: list[Change],
        builder: ReportBuilder,
        token: CancellationToken,
        *,
        final: bool,
    ) -> list[Change]:
        """Commit full batches from `pending` (and the remainder when final); return what is left.
        提交 `pending` 中的完整批次（final 时连同剩余部分），返回剩余变更。
        """
        size = self.options.max_batch_size
        while len(pending) >= size or (final and pending):
            if token.cancelled:
                raise _Cancelled
            batch, rest = pending[:size], pending[size:]
            builder.record_all(await committer.commit_batch(batch))
            pending.clear()
            pending.extend(rest)
        return pending
