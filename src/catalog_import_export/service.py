"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: service.py
@DateTime: 2026-02-08
@Docs: Bulk import/export service behind the HTTP boundary.
HTTP 边界之后的批量导入导出服务。

Workflow / 流程:
        - Upload: check extension/MIME, stream to disk with a size cap, checksum, meta.json.
            上传：检查扩展名/MIME，限长流式落盘，计算校验和，写入 meta.json。
        - Small files run inline and return the report.
            小文件同步执行并返回报告。
        - Large files run as background jobs that can be polled and cancelled.
            大文件以后台任务执行，可轮询与取消。
        - Every finished report is stored as report.json (audit record).
            每个完成的报告保存为 report.json（审计记录）。
        - Export streams the catalog in the import format.
            导出以导入格式流式输出目录数据。
"""

import logging
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any
from uuid import UUID

from fastapi import UploadFile

from catalog_import_export.config import ImportExportConfig, resolve_config
from catalog_import_export.exceptions import (
    ExportError,
    ImportAbortedError,
    ImportCancelledError,
    ImportExportError,
    MalformedInputError,
    UploadRejectedError,
)
from catalog_import_export.exporter import Exporter, ExportPayload, export_filename
from catalog_import_export.jobs import ImportJob, ImportJobRegistry
from catalog_import_export.options import ExportOptions, ImportOptions
from catalog_import_export.pipeline import CancellationToken, ImportPipeline
from catalog_import_export.report import ImportReport, ReportBuilder
from catalog_import_export.schemas import ImportReportResponse
from catalog_import_export.storage import (
    ImportPaths,
    cleanup_expired_imports,
    get_import_paths,
    new_import_id,
    now_ts,
    read_meta,
    safe_rmtree,
    sha256_file,
    write_meta,
    write_report,
)

logger = logging.getLogger(__name__)

type PipelineFactory = Callable[[], AbstractAsyncContextManager[ImportPipeline]]
type ExporterFactory = Callable[[], AbstractAsyncContextManager[Exporter]]

_UPLOAD_CHUNK = 1024 * 1024


@dataclass(frozen=True, slots=True)
class ImportSubmission:
    """
    Result of an upload: a finished report (inline) or a job handle (background).
    上传结果：已完成的报告（同步）或任务句柄（后台）。
    """

    import_id: UUID
    checksum: str
    size_bytes: int
    report: ImportReport | None = None
    job: ImportJob | None = None


class BulkImportService:
    """Bulk CSV import/export service.

    批量 CSV 导入导出服务。

    The service owns no database session: `pipeline_factory` and
    `exporter_factory` open whatever per-run resources they need.
    服务本身不持有数据库会话：`pipeline_factory` 与 `exporter_factory`
    负责打开每次运行所需的资源。

    Examples:
        >>> svc = BulkImportService(pipeline_factory=factory, exporter_factory=exp_factory)
        >>> # submission = await svc.import_upload(file)
    """

    def __init__(
        self,
        *,
        pipeline_factory: PipelineFactory,
        exporter_factory: ExporterFactory | None = None,
        options: ImportOptions | None = None,
        export_options: ExportOptions | None = None,
        config: ImportExportConfig | None = None,
        base_dir: str | None = None,
        jobs: ImportJobRegistry | None = None,
    ) -> None:
        """
        Initialize the service.
        初始化服务。

        Args:
            pipeline_factory: Async context manager factory yielding an ImportPipeline.
                生成 ImportPipeline 的异步上下文管理器工厂。
            exporter_factory: Async context manager factory yielding an Exporter.
                生成 Exporter 的异步上下文管理器工厂。
            options: Upload limits and async threshold.
                上传限制与异步阈值。
            export_options: Export filename prefix and media type.
                导出文件名前缀与媒体类型。
            config: Optional workspace config.
                工作区配置（可选）。
            base_dir: Optional base dir override for config.
                工作目录根路径（可选）。
            jobs: Job registry (shared across requests).
                任务注册表（跨请求共享）。
        """
        self.pipeline_factory = pipeline_factory
        self.exporter_factory = exporter_factory
        self.options = options or ImportOptions()
        self.export_options = export_options or ExportOptions(filename_prefix="catalog")
        self.config = config or resolve_config(base_dir=base_dir)
        self.jobs = jobs or ImportJobRegistry()

    def _check_media_type(self, filename: str, content_type: str | None) -> str:
        ext = Path(filename).suffix.lower()
        allowed_exts = {v.strip().lower() for v in self.config.allowed_extensions if str(v).strip()}
        allowed_mimes = {v.strip().lower() for v in self.config.allowed_mime_types if str(v).strip()}
        if allowed_exts and ext not in allowed_exts:
            raise UploadRejectedError(
                message=f"Unsupported file extension: {ext} / 不支持的文件扩展名: {ext}",
                status_code=415,
                error_code="unsupported_media_type",
            )
        content_type_norm = str(content_type or "").split(";")[0].strip().lower()
        if allowed_mimes and content_type_norm and content_type_norm not in allowed_mimes:
            raise UploadRejectedError(
                message=f"Unsupported content type: {content_type_norm} / 不支持的内容类型: {content_type_norm}",
                status_code=415,
                error_code="unsupported_media_type",
            )
        return ext

    async def _store_upload(self, file: UploadFile, paths: ImportPaths, ext: str) -> tuple[Path, int]:
        original_path = paths.original.with_suffix(ext or ".csv")
        limit = int(self.options.max_upload_mb) * 1024 * 1024
        size = 0
        with original_path.open("wb") as out:
            while True:
                chunk = await file.read(_UPLOAD_CHUNK)
                if not chunk:
                    break
                size += len(chunk)
                if size > limit:
                    raise UploadRejectedError(
                        message="File too large / 上传文件过大", status_code=413, error_code="file_too_large"
                    )
                out.write(chunk)
        return original_path, size

    async def import_upload(self, file: UploadFile) -> ImportSubmission:
        """Store an upload and import it inline or as a background job.

        保存上传文件，并同步或以后台任务方式导入。

        Args:
            file: FastAPI UploadFile.
                FastAPI UploadFile。

        Returns:
            ImportSubmission: Report for small files, job handle for large ones.
                小文件返回报告，大文件返回任务句柄。

        Raises:
            UploadRejectedError: 415 on extension/MIME, 413 on size.
                扩展名/MIME 不允许时 415，过大时 413。
            MalformedInputError: When an inline import finds an unreadable file.
                同步导入发现文件不可读时抛出。
        """
        import_id = new_import_id()
        paths = get_import_paths(import_id, config=self.config)
        filename = file.filename or "upload.csv"
        paths.root.mkdir(parents=True, exist_ok=True)
        try:
            ext = self._check_media_type(filename, file.content_type)
            original_path, size = await self._store_upload(file, paths, ext)
        except Exception:
            safe_rmtree(paths.root)
            raise

        checksum = sha256_file(original_path)
        meta: dict[str, Any] = {
            "import_id": str(import_id),
            "filename": filename,
            "content_type": file.content_type,
            "checksum": checksum,
            "size_bytes": size,
            "created_at": now_ts(),
            "status": "uploaded",
        }
        write_meta(paths, meta)
        logger.info("Stored upload %s (%s, %d bytes)", import_id, filename, size)

        if size >= self.options.async_threshold_bytes:
            meta["mode"] = "background"
            write_meta(paths, meta)

            async def runner(token: CancellationToken, builder: ReportBuilder) -> ImportReport:
                return await self._run(paths, original_path, meta, token=token, builder=builder)

            job = self.jobs.start(job_id=import_id, filename=filename, runner=runner)
            return ImportSubmission(import_id=import_id, checksum=checksum, size_bytes=size, job=job)

        meta["mode"] = "inline"
        report = await self._run(paths, original_path, meta)
        return ImportSubmission(import_id=import_id, checksum=checksum, size_bytes=size, report=report)

    async def _run(
        self,
        paths: ImportPaths,
        original_path: Path,
        meta: dict[str, Any],
        *,
        token: CancellationToken | None = None,
        builder: ReportBuilder | None = None,
    ) -> ImportReport:
        import_id = UUID(meta["import_id"])
        meta["status"] = "running"
        meta["started_at"] = now_ts()
        write_meta(paths, meta)
        try:
            async with self.pipeline_factory() as pipeline:
                with original_path.open("rb") as source:
                    report = await pipeline.run(source, cancel=token, builder=builder)
        except MalformedInputError as exc:
            meta.update(status="rejected", finished_at=now_ts(), error=exc.message, error_details=exc.details)
            write_meta(paths, meta)
            raise
        except ImportCancelledError as exc:
            self._record(paths, meta, exc.report, import_id, status="cancelled")
            raise
        except ImportAbortedError as exc:
            self._record(paths, meta, exc.report, import_id, status="aborted")
            raise
        except Exception as exc:
            meta.update(status="failed", finished_at=now_ts(), error=str(exc) or type(exc).__name__)
            write_meta(paths, meta)
            raise
        self._record(paths, meta, report, import_id, status="partial" if report.has_failures else "completed")
        return report

    def _record(
        self, paths: ImportPaths, meta: dict[str, Any], report: ImportReport, import_id: UUID, *, status: str
    ) -> None:
        payload = ImportReportResponse.from_report(report, import_id=import_id, checksum=meta.get("checksum"))
        write_report(paths, payload.model_dump_json(indent=2))
        meta.update(
            status=status,
            finished_at=now_ts(),
            total_rows=report.total_rows,
            inserted=report.inserted,
            updated=report.updated,
            skipped=report.skipped,
            failed=report.failed,
        )
        write_meta(paths, meta)

    def get_import_record(self, import_id: UUID) -> dict[str, Any]:
        """Return the audit record (meta.json) of an import.

        返回导入的审计记录（meta.json）。

        Raises:
            ImportExportError: 404 when the import is unknown or expired.
                导入不存在或已过期时返回 404。
        """
        paths = get_import_paths(import_id, config=self.config)
        if not paths.meta.exists():
            raise ImportExportError(
                message="import_id not found or expired / import_id 不存在或已过期",
                status_code=404,
                error_code="import_not_found",
            )
        return read_meta(paths)

    def get_job(self, job_id: UUID) -> ImportJob:
        return self.jobs.get(job_id)

    def cancel_job(self, job_id: UUID) -> ImportJob:
        return self.jobs.cancel(job_id)

    async def export(self, *, filters: Mapping[str, Any] | None = None, filename: str | None = None) -> ExportPayload:
        """Return a streaming export of the stored entities.

        返回已存储实体的流式导出。

        The first chunk is produced before returning, so invalid filters raise
        here. The exporter (and its session) stays open until the stream ends.
        返回前先生成第一个数据块，因此无效过滤条件在此处抛出；导出器（及其会话）
        在流结束前保持打开。

        Raises:
            ExportError: When no exporter factory is configured, or a filter is invalid.
                未配置导出器工厂或过滤条件无效时抛出。
        """
        factory = self.exporter_factory
        if factory is None:
            raise ExportError(message="Export is not configured / 未配置导出", status_code=501)

        async def produce() -> AsyncIterator[bytes]:
            async with factory() as exporter:
                async for chunk in exporter.iter_bytes(filters=filters):
                    yield chunk

        chunks = produce()
        try:
            first = await anext(chunks)
        except StopAsyncIteration:
            first = b""

        async def stream() -> AsyncIterator[bytes]:
            yield first
            async for chunk in chunks:
                yield chunk

        if filename is None:
            filename = export_filename(self.export_options.filename_prefix)
        return ExportPayload(filename=filename, media_type=self.export_options.media_type, stream=stream())

    def cleanup(self, *, ttl_hours: int) -> int:
        """Remove expired import directories and forget finished jobs past the TTL.
        清理过期的导入目录并移除超过 TTL 的已结束任务；运行中任务的目录保留。

        Returns:
            int: Number of directories removed.
                删除的目录数量。
        """
        self.jobs.prune(older_than=datetime.now(tz=UTC) - timedelta(hours=ttl_hours))
        return cleanup_expired_imports(ttl_hours=ttl_hours, config=self.config, keep=self.jobs.running_ids())
