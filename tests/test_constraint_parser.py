"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: test_constraint_parser.py
@DateTime: 2026-02-08
@Docs: Tests for unique constraint parsing and storage error descriptions.
唯一约束解析与存储错误描述测试。
"""

from catalog_import_export.constraint_parser import (
    describe_storage_error,
    is_unique_constraint_error,
    parse_unique_constraint_error,
)
from catalog_import_export.exceptions import BatchCommitError


class TestParsePostgreSQL:
    """PostgreSQL unique constraint error parsing tests.

    PostgreSQL 唯一约束错误解析测试。
    """

    def test_pg_key_detail(self) -> None:
        """Parse PG error with Key detail / 解析带 Key detail 的 PG 错误。"""
        text = 'duplicate key value violates unique constraint "uq_catalog_items_sku"'
        detail = "Key (sku)=(A1) already exists."
        result = parse_unique_constraint_error(text, detail_text=detail)
        assert result is not None
        assert result.db_type == "postgresql"
        assert result.columns == ["sku"]
        assert result.values == ["A1"]
        assert result.constraint_name == "uq_catalog_items_sku"

    def test_pg_composite_key(self) -> None:
        detail = "Key (sku, region)=(A1, EU) already exists."
        result = parse_unique_constraint_error("duplicate key value", detail_text=detail)
        assert result is not None
        assert result.columns == ["sku", "region"]
        assert result.values == ["A1", "EU"]

    def test_no_match(self) -> None:
        assert parse_unique_constraint_error("some other error") is None


class TestParseMySQL:
    def test_mysql_single_value(self) -> None:
        text = "Duplicate entry 'A1' for key 'catalog_items.sku'"
        result = parse_unique_constraint_error(text)
        assert result is not None
        assert result.db_type == "mysql"
        assert result.values == ["A1"]
        assert result.constraint_name == "catalog_items.sku"


class TestParseSQLite:
    def test_sqlite_single_column(self) -> None:
        result = parse_unique_constraint_error("UNIQUE constraint failed: catalog_items.sku")
        assert result is not None
        assert result.db_type == "sqlite"
        assert result.columns == ["sku"]

    def test_sqlite_composite_columns(self) -> None:
        result = parse_unique_constraint_error("UNIQUE constraint failed: items.sku, items.region")
        assert result is not None
        assert result.columns == ["sku", "region"]


class TestIsUniqueConstraintError:
    def test_keywords(self) -> None:
        assert is_unique_constraint_error("UNIQUE constraint failed: items.sku")
        assert is_unique_constraint_error("Duplicate entry 'x' for key 'y'")
        assert not is_unique_constraint_error("disk I/O error")


class _DriverError(Exception):
    def __init__(self, message: str, detail: str = "") -> None:
        super().__init__(message)
        self.detail = detail


class _WrappedError(Exception):
    """Mimics SQLAlchemy's DBAPIError wrapping / 模拟 SQLAlchemy 的 DBAPIError 包装。"""

    def __init__(self, orig: Exception) -> None:
        super().__init__(f"(IntegrityError) {orig}")
        self.orig = orig


class TestDescribeStorageError:
    """Reasons attached to failed batch rows.
    附加到失败批次行的原因。
    """

    def test_timeout(self) -> None:
        assert "timed out" in describe_storage_error(TimeoutError())

    def test_import_export_error_uses_message(self) -> None:
        assert describe_storage_error(BatchCommitError(message="busy")) == "busy"

    def test_unique_violation_with_values(self) -> None:
        driver = _DriverError("duplicate key value violates unique constraint", "Key (sku)=(A1) already exists.")
        exc = _WrappedError(driver)
        assert describe_storage_error(exc).startswith("Unique constraint violated: sku=A1")

    def test_unique_violation_columns_only(self) -> None:
        exc = _WrappedError(_DriverError("UNIQUE constraint failed: catalog_items.sku"))
        assert describe_storage_error(exc).startswith("Unique constraint violated: sku")

    def test_generic_error_first_line(self) -> None:
        reason = describe_storage_error(RuntimeError("connection reset\ntraceback noise"))
        assert reason.startswith("Storage error: connection reset")
        assert "noise" not in reason

    def test_empty_message_uses_type_name(self) -> None:
        assert describe_storage_error(RuntimeError()).startswith("Storage error: RuntimeError")
