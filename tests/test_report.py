"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: test_report.py
@DateTime: 2026-02-09
@Docs: Tests for outcomes and the report builder.
行结果与报告构建器测试。
"""

import pytest

from catalog_import_export.records import Failed, FieldError, Inserted, OutcomeKind, Skipped, Updated
from catalog_import_export.report import ReportBuilder

ERROR = FieldError(column="price", value="abc", rule="type", message="price: expected decimal")


class TestOutcomes:
    def test_kinds(self) -> None:
        assert Inserted(row_index=1, natural_key=("A1",)).kind is OutcomeKind.INSERTED
        assert Failed(row_index=1, errors=(ERROR,)).kind is OutcomeKind.FAILED

    def test_failed_requires_errors(self) -> None:
        with pytest.raises(ValueError):
            Failed(row_index=1, errors=())

    def test_skipped_requires_reason(self) -> None:
        with pytest.raises(ValueError):
            Skipped(row_index=1, reason="")

    def test_failed_reason_joins_messages(self) -> None:
        other = FieldError(column="sku", value="", rule="required", message="sku is required")
        assert Failed(row_index=1, errors=(ERROR, other)).reason == "price: expected decimal; sku is required"


class TestReportBuilder:
    """Tests for ReportBuilder.
    ReportBuilder 测试。
    """

    def test_counts_and_order(self) -> None:
        builder = ReportBuilder()
        builder.expect(5)
        builder.record(Failed(row_index=3, errors=(ERROR,)))
        builder.record(Inserted(row_index=1, natural_key=("A1",)))
        builder.record(Updated(row_index=2, natural_key=("B2",), changed=False))
        builder.record(Updated(row_index=5, natural_key=("E5",)))
        builder.record(Skipped(row_index=4, reason="exists, updates disabled"))
        report = builder.build()
        assert [o.row_index for o in report.outcomes] == [1, 2, 3, 4, 5]
        assert (report.inserted, report.updated, report.unchanged, report.skipped, report.failed) == (1, 2, 1, 1, 1)
        assert report.total_rows == 5
        assert report.rows_processed == 5

    def test_one_outcome_per_row(self) -> None:
        builder = ReportBuilder()
        builder.record(Inserted(row_index=1, natural_key=("A1",)))
        with pytest.raises(ValueError):
            builder.record(Failed(row_index=1, errors=(ERROR,)))
        assert builder.has_outcome(1)
        assert not builder.has_outcome(2)

    def test_status_code(self) -> None:
        """Skips are not failures / 跳过不算失败。"""
        builder = ReportBuilder()
        builder.record(Skipped(row_index=1, reason="exists, updates disabled"))
        assert builder.build().status_code == 200
        builder.record(Failed(row_index=2, errors=(ERROR,)))
        assert builder.build().status_code == 207

    def test_empty_report(self) -> None:
        report = ReportBuilder().build()
        assert report.total_rows == 0
        assert report.outcomes == ()
        assert report.status_code == 200

    def test_snapshot_tracks_progress(self) -> None:
        builder = ReportBuilder()
        builder.expect(3)
        builder.record_all([Inserted(row_index=1, natural_key=("A1",)), Failed(row_index=2, errors=(ERROR,))])
        progress = builder.snapshot()
        assert progress.rows_processed == 2
        assert progress.total_rows == 3
        assert progress.failed == 1
