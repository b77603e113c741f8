"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: __init__.py
@DateTime: 2026-02-08
@Docs: Package exports for catalog_import_export.
catalog_import_export 包导出定义。
"""

from catalog_import_export.api import create_import_router, install_exception_handlers
from catalog_import_export.committer import BatchCommitter
from catalog_import_export.config import ImportExportConfig, resolve_config, resolve_import_options
from catalog_import_export.exceptions import (
    BatchCommitError,
    DuplicateKeyError,
    ExportError,
    ImportAbortedError,
    ImportCancelledError,
    ImportExportError,
    JobNotFoundError,
    MalformedInputError,
    ParseError,
    PersistError,
    ReferenceNotFoundError,
    RowError,
    SchemaError,
    UploadRejectedError,
    ValidationError,
)
from catalog_import_export.exporter import Exporter, ExportPayload
from catalog_import_export.jobs import ImportJob, ImportJobRegistry, JobStatus
from catalog_import_export.locks import KeyLock
from catalog_import_export.mapper import EntityMapper, ReferenceSpec
from catalog_import_export.options import ExportOptions, ImportOptions
from catalog_import_export.parse import open_row_stream, scan_structure
from catalog_import_export.pipeline import CancellationToken, ImportPipeline
from catalog_import_export.records import (
    Change,
    ChangeKind,
    DomainEntity,
    ExistingEntity,
    Failed,
    FieldError,
    Inserted,
    NormalizedRecord,
    OutcomeKind,
    RawRow,
    RowOutcome,
    Skipped,
    Updated,
)
from catalog_import_export.report import ImportReport, ReportBuilder, ReportProgress
from catalog_import_export.resolver import ConflictResolver
from catalog_import_export.schema import ColumnSpec, HeaderMap, ImportSchema
from catalog_import_export.schemas import ImportJobResponse, ImportReportResponse
from catalog_import_export.service import BulkImportService, ImportSubmission
from catalog_import_export.storage import cleanup_expired_imports, get_import_paths, read_meta
from catalog_import_export.typing import EntityStore, ReferenceResolver
from catalog_import_export.validation import validate_row

__all__ = [
    "ImportPipeline",
    "CancellationToken",
    "ImportSchema",
    "ColumnSpec",
    "HeaderMap",
    "open_row_stream",
    "scan_structure",
    "validate_row",
    "EntityMapper",
    "ReferenceSpec",
    "ConflictResolver",
    "BatchCommitter",
    "KeyLock",
    "ReportBuilder",
    "ImportReport",
    "ReportProgress",
    "Exporter",
    "ExportPayload",
    "EntityStore",
    "ReferenceResolver",
    "RawRow",
    "FieldError",
    "NormalizedRecord",
    "DomainEntity",
    "ExistingEntity",
    "Change",
    "ChangeKind",
    "OutcomeKind",
    "Inserted",
    "Updated",
    "Skipped",
    "Failed",
    "RowOutcome",
    "ImportOptions",
    "ExportOptions",
    "ImportExportConfig",
    "resolve_config",
    "resolve_import_options",
    "ImportExportError",
    "SchemaError",
    "ParseError",
    "MalformedInputError",
    "ValidationError",
    "RowError",
    "ReferenceNotFoundError",
    "DuplicateKeyError",
    "PersistError",
    "BatchCommitError",
    "ImportAbortedError",
    "ImportCancelledError",
    "UploadRejectedError",
    "JobNotFoundError",
    "ExportError",
    "BulkImportService",
    "ImportSubmission",
    "ImportJob",
    "ImportJobRegistry",
    "JobStatus",
    "ImportJobResponse",
    "ImportReportResponse",
    "create_import_router",
    "install_exception_handlers",
    "cleanup_expired_imports",
    "get_import_paths",
    "read_meta",
]
