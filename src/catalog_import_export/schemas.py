"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: schemas.py
@DateTime: 2026-02-08
@Docs: Pydantic response models for imports and jobs.
导入与任务的 Pydantic 响应模型。
"""

from datetime import datetime
from typing import Any, assert_never
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from catalog_import_export.jobs import ImportJob, JobStatus
from catalog_import_export.records import Failed, Inserted, OutcomeKind, RowOutcome, Skipped, Updated
from catalog_import_export.report import ImportReport, ReportProgress


class FieldErrorItem(BaseModel):
    """
    Field error item.
    字段错误项。
    """

    column: str | None = None
    value: Any | None = None
    rule: str
    message: str


class RowOutcomeItem(BaseModel):
    """
    Outcome of one data row.
    单个数据行的结果。
    """

    row_index: int
    outcome: OutcomeKind
    natural_key: list[Any] | None = None
    changed: bool | None = None
    reason: str | None = None
    errors: list[FieldErrorItem] = Field(default_factory=list)

    @classmethod
    def from_outcome(cls, outcome: RowOutcome) -> "RowOutcomeItem":
        key = list(outcome.natural_key) if outcome.natural_key is not None else None
        match outcome:
            case Inserted():
                return cls(row_index=outcome.row_index, outcome=outcome.kind, natural_key=key)
            case Updated():
                return cls(row_index=outcome.row_index, outcome=outcome.kind, natural_key=key, changed=outcome.changed)
            case Skipped():
                return cls(row_index=outcome.row_index, outcome=outcome.kind, natural_key=key, reason=outcome.reason)
            case Failed():
                return cls(
                    row_index=outcome.row_index,
                    outcome=outcome.kind,
                    natural_key=key,
                    reason=outcome.reason,
                    errors=[FieldErrorItem(**e.to_dict()) for e in outcome.errors],
                )
            case _:
                assert_never(outcome)


class ImportReportResponse(BaseModel):
    """
    Import report response.
    导入报告响应。
    """

    model_config = ConfigDict(from_attributes=True)

    import_id: UUID | None = None
    checksum: str | None = None
    total_rows: int
    rows_processed: int
    inserted: int
    updated: int
    unchanged: int
    skipped: int
    failed: int
    outcomes: list[RowOutcomeItem] = Field(default_factory=list)

    @classmethod
    def from_report(
        cls, report: ImportReport, *, import_id: UUID | None = None, checksum: str | None = None
    ) -> "ImportReportResponse":
        return cls(
            import_id=import_id,
            checksum=checksum,
            total_rows=report.total_rows,
            rows_processed=report.rows_processed,
            inserted=report.inserted,
            updated=report.updated,
            unchanged=report.unchanged,
            skipped=report.skipped,
            failed=report.failed,
            outcomes=[RowOutcomeItem.from_outcome(o) for o in report.outcomes],
        )


class ImportProgressResponse(BaseModel):
    """
    Live progress of a background import.
    后台导入的实时进度。
    """

    model_config = ConfigDict(from_attributes=True)

    rows_processed: int
    total_rows: int | None = None
    inserted: int
    updated: int
    unchanged: int
    skipped: int
    failed: int

    @classmethod
    def from_progress(cls, progress: ReportProgress) -> "ImportProgressResponse":
        return cls.model_validate(progress)


class ImportJobResponse(BaseModel):
    """
    Background import job handle.
    后台导入任务句柄。
    """

    job_id: UUID
    filename: str
    status: JobStatus
    created_at: datetime
    finished_at: datetime | None = None
    progress: ImportProgressResponse
    report: ImportReportResponse | None = None
    error: dict[str, Any] | None = None

    @classmethod
    def from_job(cls, job: ImportJob) -> "ImportJobResponse":
        report = None
        if job.report is not None:
            report = ImportReportResponse.from_report(job.report, import_id=job.job_id)
        return cls(
            job_id=job.job_id,
            filename=job.filename,
            status=job.status,
            created_at=job.created_at,
            finished_at=job.finished_at,
            progress=ImportProgressResponse.from_progress(job.progress()),
            report=report,
            error=job.error,
        )


class ErrorResponse(BaseModel):
    """
    Error payload returned by the exception handler.
    异常处理器返回的错误载荷。
    """

    message: str
    error_code: str
    details: Any | None = None
