"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: report.py
@DateTime: 2026-02-09
@Docs: Per-row outcome aggregation and the import report.
逐行结果汇总与导入报告。
"""

from dataclasses import dataclass
from typing import assert_never

from catalog_import_export.records import Failed, Inserted, RowOutcome, Skipped, Updated


@dataclass(frozen=True, slots=True)
class ReportProgress:
    """
    Snapshot of a running import, safe to poll.
    运行中导入的快照，可轮询。
    """

    rows_processed: int
    total_rows: int | None
    inserted: int
    updated: int
    unchanged: int
    skipped: int
    failed: int


@dataclass(frozen=True, slots=True)
class ImportReport:
    """
    Final result of one import: one outcome per data row, ordered by row index.
    单次导入的最终结果：每个数据行一个结果，按行序号排序。

    Attributes:
        total_rows: Number of data rows seen.
        total_rows: 已读取的数据行数。
        inserted: Inserted rows.
        inserted: 插入行数。
        updated: Updated rows (including unchanged ones).
        updated: 更新行数（含未变化的行）。
        unchanged: Updated rows whose attributes did not change.
        unchanged: 属性未变化的更新行数。
        skipped: Skipped rows.
        skipped: 跳过行数。
        failed: Failed rows.
        failed: 失败行数。
        outcomes: Row outcomes ordered by row index.
        outcomes: 按行序号排序的行结果。
    """

    total_rows: int
    inserted: int
    updated: int
    unchanged: int
    skipped: int
    failed: int
    outcomes: tuple[RowOutcome, ...]

    @property
    def rows_processed(self) -> int:
        return len(self.outcomes)

    @property
    def has_failures(self) -> bool:
        return self.failed > 0

    @property
    def status_code(self) -> int:
        """200 when no row failed (skips are not failures), 207 otherwise.
        无失败行时为 200（跳过不算失败），否则为 207。
        """
        return 207 if self.has_failures else 200


class ReportBuilder:
    """
    Accumulates exactly one outcome per row.
    为每个数据行累积且仅累积一个结果。

    Examples:
        >>> builder = ReportBuilder()
        >>> builder.record(Inserted(row_index=1, natural_key=("A1",)))
        >>> builder.build().inserted
        1
    """

    def __init__(self) -> None:
        self._outcomes: dict[int, RowOutcome] = {}
        self._total_rows: int | None = None
        self._inserted = 0
        self._updated = 0
        self._unchanged = 0
        self._skipped = 0
        self._failed = 0

    def expect(self, total_rows: int) -> None:
        """Record the number of data rows found by the structural pre-scan.
        记录结构预扫描得到的数据行数。
        """
        self._total_rows = total_rows

    @property
    def rows_processed(self) -> int:
        return len(self._outcomes)

    def has_outcome(self, row_index: int) -> bool:
        return row_index in self._outcomes

    def record(self, outcome: RowOutcome) -> None:
        """Record the outcome of one row.

        记录单行结果。

        Raises:
            ValueError: When the row already has an outcome.
                该行已有结果时抛出。
        """
        if outcome.row_index in self._outcomes:
            raise ValueError(f"Row {outcome.row_index} already has an outcome")
        self._outcomes[outcome.row_index] = outcome
        match outcome:
            case Inserted():
                self._inserted += 1
            case Updated(changed=changed):
                self._updated += 1
                if not changed:
                    self._unchanged += 1
            case Skipped():
                self._skipped += 1
            case Failed():
                self._failed += 1
            case _:
                assert_never(outcome)

    def record_all(self, outcomes: list[RowOutcome]) -> None:
        for outcome in outcomes:
            self.record(outcome)

    def snapshot(self) -> ReportProgress:
        return ReportProgress(
            rows_processed=self.rows_processed,
            total_rows=self._total_rows,
            inserted=self._inserted,
            updated=self._updated,
            unchanged=self._unchanged,
            skipped=self._skipped,
            failed=self._failed,
        )

    def build(self) -> ImportReport:
        outcomes = tuple(self._outcomes[i] for i in sorted(self._outcomes))
        return ImportReport(
            total_rows=self._total_rows if self._total_rows is not None else len(outcomes),
            inserted=self._inserted,
            updated=self._updated,
            unchanged=self._unchanged,
            skipped=self._skipped,
            failed=self._failed,
            outcomes=outcomes,
        )
