"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: exceptions.py
@DateTime: 2026-02-08
@Docs: Import/export error hierarchy.
导入导出异常体系。

File-level errors abort an import before any row outcome exists, row-level
errors become FieldErrors on a Failed outcome, batch-level errors are contained
to the batch that raised them.
文件级错误在任何行结果产生前终止导入；行级错误转为 Failed 结果上的 FieldError；
批次级错误仅影响所在批次。
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from catalog_import_export.report import ImportReport


class ImportExportError(Exception):
    """
    Import/Export Errors.
    导入导出异常。

    Errors that occur during the import/export process.
    导入导出过程中发生的异常。

    Attributes:
        message: Error message.
        message: 错误消息。
        status_code: HTTP status code.
        status_code: HTTP 状态码。
        details: Error details.
        details: 错误详情。
        error_code: Stable error code.
        error_code: 稳定错误码。
    """

    def __init__(
        self,
        *,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
        error_code: str = "import_export_error",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details
        self.error_code = error_code


class SchemaError(ImportExportError):
    """
    Invalid schema or mapper configuration (a programming error, not bad input).
    Schema 或映射配置无效（属于编程错误，而非输入错误）。
    """

    def __init__(self, *, message: str, details: Any | None = None, error_code: str = "invalid_schema") -> None:
        super().__init__(message=message, status_code=500, details=details, error_code=error_code)


class ParseError(ImportExportError):
    """
    Parse error.
    解析错误。
    """


class MalformedInputError(ParseError):
    """
    The file cannot be read as delimited text; fatal for the whole import.
    文件无法按分隔文本读取；整个导入终止。

    Attributes:
        line_number: Physical line where reading failed, when known.
        line_number: 读取失败的物理行号（若已知）。
    """

    def __init__(
        self,
        *,
        message: str,
        line_number: int | None = None,
        details: Any | None = None,
        error_code: str = "malformed_input",
    ) -> None:
        merged: dict[str, Any] = dict(details or {})
        if line_number is not None:
            merged.setdefault("line_number", line_number)
        super().__init__(message=message, status_code=400, details=merged or None, error_code=error_code)
        self.line_number = line_number


class ValidationError(ImportExportError):
    """
    Validation error.
    校验错误。
    """


class RowError(ValidationError):
    """
    Row-scoped error; never aborts an import.
    行级错误；不会终止导入。

    Attributes:
        column: Offending column (optional).
        column: 出错列（可选）。
        value: Offending value (optional).
        value: 出错值（可选）。
        rule: Name of the violated rule.
        rule: 违反的规则名。
    """

    def __init__(
        self,
        *,
        message: str,
        column: str | None = None,
        value: Any | None = None,
        rule: str = "row",
        details: Any | None = None,
        error_code: str = "row_error",
    ) -> None:
        super().__init__(message=message, status_code=422, details=details, error_code=error_code)
        self.column = column
        self.value = value
        self.rule = rule


class ReferenceNotFoundError(RowError):
    """
    A foreign reference named in a row does not exist.
    行中引用的外部实体不存在。
    """

    def __init__(self, *, column: str, lookup: str, value: Any) -> None:
        super().__init__(
            message=f"Unknown {lookup}: {value} / 未找到{lookup}: {value}",
            column=column,
            value=value,
            rule="reference",
            details={"lookup": lookup},
            error_code="reference_not_found",
        )
        self.lookup = lookup


class DuplicateKeyError(RowError):
    """
    A natural key appears more than once in the same file.
    同一文件中自然键重复出现。

    Attributes:
        natural_key: The repeated key.
        natural_key: 重复的键。
        first_row_index: Row index of the first occurrence.
        first_row_index: 首次出现的行序号。
    """

    def __init__(self, *, natural_key: tuple[Any, ...], first_row_index: int, columns: tuple[str, ...]) -> None:
        shown = ", ".join(f"{c}={v}" for c, v in zip(columns, natural_key, strict=False))
        super().__init__(
            message=(
                f"Duplicate key {shown}, first seen at row {first_row_index} / "
                f"重复键 {shown}，首次出现于第 {first_row_index} 行"
            ),
            column=columns[0] if len(columns) == 1 else None,
            value=natural_key[0] if len(natural_key) == 1 else list(natural_key),
            rule="duplicate",
            details={"first_row_index": first_row_index},
            error_code="duplicate_key",
        )
        self.natural_key = natural_key
        self.first_row_index = first_row_index


class PersistError(ImportExportError):
    """
    Persist error.
    持久化错误。
    """


class BatchCommitError(PersistError):
    """
    A batch could not be committed; every row of the batch fails.
    批次提交失败；批次内所有行均失败。
    """

    def __init__(self, *, message: str, details: Any | None = None, error_code: str = "batch_commit_failed") -> None:
        super().__init__(message=message, status_code=409, details=details, error_code=error_code)


class ImportCancelledError(ImportExportError):
    """
    Import was cancelled cooperatively; carries the partial report.
    导入已被协作取消；携带部分报告。
    """

    def __init__(self, *, report: "ImportReport") -> None:
        super().__init__(
            message="Import cancelled / 导入已取消",
            status_code=409,
            details={"rows_processed": report.rows_processed},
            error_code="import_cancelled",
        )
        self.report = report


class ImportAbortedError(ImportExportError):
    """
    Import stopped by an unexpected error after rows were committed; carries the partial report.
    已有行提交后导入因意外错误中止；携带部分报告。
    """

    def __init__(self, *, report: "ImportReport", reason: str) -> None:
        super().__init__(
            message=f"Import aborted: {reason} / 导入中止: {reason}",
            status_code=500,
            details={"rows_processed": report.rows_processed, "reason": reason},
            error_code="import_aborted",
        )
        self.report = report
        self.reason = reason


class UploadRejectedError(ImportExportError):
    """
    Upload refused before parsing (size or media type).
    上传在解析前被拒绝（大小或媒体类型）。
    """


class JobNotFoundError(ImportExportError):
    """
    Unknown or expired import job.
    导入任务不存在或已过期。
    """

    def __init__(self, *, job_id: Any) -> None:
        super().__init__(
            message=f"Import job not found: {job_id} / 导入任务不存在: {job_id}",
            status_code=404,
            error_code="job_not_found",
        )


class ExportError(ImportExportError):
    """
    Export error.
    导出错误。
    """
