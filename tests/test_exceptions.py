"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: test_exceptions.py
@DateTime: 2026-02-08
@Docs: Tests for exceptions.py module.
exceptions.py 模块测试。
"""

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
    ValidationError,
)
from catalog_import_export.records import Inserted
from catalog_import_export.report import ReportBuilder


class TestImportExportError:
    """Tests for ImportExportError.
    ImportExportError 测试。
    """

    def test_attributes(self) -> None:
        """All attributes assigned correctly / 所有属性正确赋值。"""
        exc = ImportExportError(
            message="test error",
            status_code=422,
            details={"key": "val"},
            error_code="custom_error",
        )
        assert exc.message == "test error"
        assert exc.status_code == 422
        assert exc.details == {"key": "val"}
        assert exc.error_code == "custom_error"

    def test_defaults(self) -> None:
        """Default status_code and error_code / 默认 status_code 和 error_code。"""
        exc = ImportExportError(message="msg")
        assert exc.status_code == 400
        assert exc.error_code == "import_export_error"
        assert exc.details is None

    def test_str_returns_message(self) -> None:
        exc = ImportExportError(message="hello world")
        assert str(exc) == "hello world"


class TestHierarchy:
    """Tests for the error hierarchy.
    异常层级测试。
    """

    def test_file_level_errors_are_parse_errors(self) -> None:
        assert issubclass(MalformedInputError, ParseError)
        assert issubclass(ParseError, ImportExportError)

    def test_row_level_errors_are_validation_errors(self) -> None:
        assert issubclass(RowError, ValidationError)
        assert issubclass(DuplicateKeyError, RowError)
        assert issubclass(ReferenceNotFoundError, RowError)

    def test_batch_errors_are_persist_errors(self) -> None:
        assert issubclass(BatchCommitError, PersistError)

    def test_export_error_is_subclass(self) -> None:
        assert issubclass(ExportError, ImportExportError)

    def test_schema_error_is_server_side(self) -> None:
        assert SchemaError(message="bad").status_code == 500


class TestMalformedInputError:
    def test_line_number_goes_into_details(self) -> None:
        """line_number is merged into details / line_number 合并到 details。"""
        exc = MalformedInputError(message="bad quote", line_number=7, details={"error": "x"})
        assert exc.status_code == 400
        assert exc.error_code == "malformed_input"
        assert exc.line_number == 7
        assert exc.details == {"error": "x", "line_number": 7}

    def test_without_line_number(self) -> None:
        exc = MalformedInputError(message="empty", error_code="empty_file")
        assert exc.details is None
        assert exc.error_code == "empty_file"


class TestRowErrors:
    def test_duplicate_key_message_names_first_row(self) -> None:
        """Message references the first occurrence / 消息指向首次出现的行。"""
        exc = DuplicateKeyError(natural_key=("A1",), first_row_index=1, columns=("sku",))
        assert "sku=A1" in exc.message
        assert "first seen at row 1" in exc.message
        assert exc.rule == "duplicate"
        assert exc.column == "sku"
        assert exc.value == "A1"
        assert exc.first_row_index == 1

    def test_duplicate_composite_key(self) -> None:
        exc = DuplicateKeyError(natural_key=("A1", "EU"), first_row_index=4, columns=("sku", "region"))
        assert exc.column is None
        assert exc.value == ["A1", "EU"]
        assert "sku=A1, region=EU" in exc.message

    def test_reference_not_found(self) -> None:
        exc = ReferenceNotFoundError(column="category", lookup="category", value="Gloves")
        assert exc.rule == "reference"
        assert exc.column == "category"
        assert exc.value == "Gloves"
        assert exc.status_code == 422


class TestServiceErrors:
    def test_cancelled_carries_partial_report(self) -> None:
        report = ReportBuilder().build()
        exc = ImportCancelledError(report=report)
        assert exc.report is report
        assert exc.status_code == 409
        assert exc.details == {"rows_processed": 0}

    def test_aborted_carries_partial_report(self) -> None:
        builder = ReportBuilder()
        builder.record(Inserted(row_index=1, natural_key=("A1",)))
        exc = ImportAbortedError(report=builder.build(), reason="connection reset")
        assert exc.report.inserted == 1
        assert exc.status_code == 500
        assert exc.error_code == "import_aborted"
        assert exc.details == {"rows_processed": 1, "reason": "connection reset"}
        assert "connection reset" in exc.message

    def test_job_not_found(self) -> None:
        exc = JobNotFoundError(job_id="abc")
        assert exc.status_code == 404
        assert "abc" in exc.message
