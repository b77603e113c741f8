"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: options.py
@DateTime: 2026-02-09
@Docs: Immutable options for import pipelines and exports.
导入流水线与导出的不可变选项。
"""

from dataclasses import dataclass

from catalog_import_export.exceptions import ImportExportError


@dataclass(frozen=True, slots=True)
class ImportOptions:
    """Import options, one value passed to every pipeline stage.
    导入选项，作为单一值传递给流水线各阶段。

    Attributes:
        max_batch_size: Max rows per commit transaction.
            每个提交事务的最大行数。
        allow_updates: Update rows whose natural key already exists.
            自然键已存在时是否更新。
        retry_individually_on_batch_failure: Retry each row alone after a failed batch.
            批次失败后是否逐行重试。
        async_threshold_bytes: Uploads at or above this size run as background jobs.
            达到该大小的上传以后台任务方式运行。
        commit_timeout_seconds: Upper bound for one batch commit. The wait is cancelled
            on expiry; if the driver had already sent COMMIT the rows may be stored
            while the batch is still reported Failed.
            单个批次提交的超时上限。超时会取消等待；若驱动已发送 COMMIT，
            数据可能已写入，但该批次仍报告为失败。
        max_upload_mb: Max upload size in MB.
            最大上传大小（MB）。
    """

    max_batch_size: int = 500
    allow_updates: bool = True
    retry_individually_on_batch_failure: bool = False
    async_threshold_bytes: int = 1024 * 1024
    commit_timeout_seconds: float = 30.0
    max_upload_mb: int = 20

    def __post_init__(self) -> None:
        if self.max_batch_size < 1:
            raise ImportExportError(
                message="max_batch_size must be >= 1 / max_batch_size 必须 >= 1", error_code="invalid_options"
            )
        if self.commit_timeout_seconds <= 0:
            raise ImportExportError(
                message="commit_timeout_seconds must be > 0 / commit_timeout_seconds 必须 > 0",
                error_code="invalid_options",
            )
        if self.async_threshold_bytes < 0 or self.max_upload_mb < 1:
            raise ImportExportError(
                message="Invalid upload limits / 上传限制无效", error_code="invalid_options"
            )


@dataclass(frozen=True, slots=True)
class ExportOptions:
    """Export options.
    导出选项。
    """

    filename_prefix: str = "export"
    media_type: str = "text/csv; charset=utf-8"
    include_bom: bool = False
    line_ending: str = "\r\n"
    chunk_size: int = 64 * 1024
