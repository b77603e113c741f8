"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: constraint_parser.py
@DateTime: 2026-02-08
@Docs: Storage error description for failed batches.
失败批次的存储错误描述。

Parses PostgreSQL, MySQL/MariaDB and SQLite unique constraint messages into
structured details, and turns any storage exception into a non-empty,
human readable reason attached to each failed row.
将 PostgreSQL、MySQL/MariaDB、SQLite 的唯一约束错误解析为结构化信息，并将任意存储
异常转为附加在失败行上的非空可读原因。
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field

from catalog_import_export.exceptions import ImportExportError


@dataclass(frozen=True, slots=True)
class ConstraintDetail:
    """Parsed unique constraint violation detail.

    解析后的唯一约束冲突详情。

    Attributes:
        columns: Column names involved in the constraint.
            约束涉及的列名列表。
        values: Conflicting values corresponding to columns.
            与列名对应的冲突值列表。
        constraint_name: Name of the violated constraint (if available).
            违反的约束名称（如果可用）。
        db_type: Database type identifier.
            数据库类型标识符。
    """

    columns: list[str] = field(default_factory=list)
    values: list[str] = field(default_factory=list)
    constraint_name: str | None = None
    db_type: str = "unknown"


_ConstraintParser = Callable[[str, str], ConstraintDetail | None]


def _parse_pg(text: str, detail_text: str) -> ConstraintDetail | None:
    """Parse ``Key (col)=(val) already exists.`` (PostgreSQL).

    解析 PostgreSQL 唯一约束错误。
    """
    for source in (detail_text, text):
        if not source:
            continue
        m = re.search(r"Key\s+\((?P<cols>[^)]+)\)=\((?P<vals>[^)]+)\)\s+already exists\.", source)
        if m:
            cols = [c.strip() for c in str(m.group("cols")).split(",") if c.strip()]
            vals = [v.strip() for v in str(m.group("vals")).split(",") if v.strip()]
            cname = None
            cm = re.search(r'unique constraint "(?P<name>[^"]+)"', text)
            if cm:
                cname = cm.group("name")
            return ConstraintDetail(columns=cols, values=vals, constraint_name=cname, db_type="postgresql")
    return None


def _parse_mysql(text: str, detail_text: str) -> ConstraintDetail | None:
    """Parse ``Duplicate entry 'val' for key 'name'`` (MySQL/MariaDB).

    解析 MySQL/MariaDB 唯一约束错误。
    """
    combined = f"{text} {detail_text}"
    m = re.search(r"Duplicate entry '(?P<val>[^']+)' for key '(?P<key>[^']+)'", combined, re.IGNORECASE)
    if not m:
        return None
    return ConstraintDetail(columns=[], values=[m.group("val")], constraint_name=m.group("key"), db_type="mysql")


def _parse_sqlite(text: str, detail_text: str) -> ConstraintDetail | None:
    """Parse ``UNIQUE constraint failed: table.col`` (SQLite).

    解析 SQLite 唯一约束错误。
    """
    combined = f"{text} {detail_text}"
    m = re.search(r"UNIQUE constraint failed:\s*(?P<cols>[^\n\[]+)", combined, re.IGNORECASE)
    if not m:
        return None
    columns = []
    for part in m.group("cols").split(","):
        part = part.strip()
        if "." in part:
            columns.append(part.split(".")[-1].strip())
        elif part:
            columns.append(part)
    return ConstraintDetail(columns=columns, values=[], constraint_name=None, db_type="sqlite")


_PARSERS: tuple[_ConstraintParser, ...] = (_parse_pg, _parse_mysql, _parse_sqlite)

_UNIQUE_KEYWORDS = (
    "duplicate key value violates unique constraint",  # PostgreSQL
    "duplicate entry",  # MySQL / MariaDB
    "unique constraint failed",  # SQLite
)


def parse_unique_constraint_error(text: str, *, detail_text: str = "") -> ConstraintDetail | None:
    """Try all registered parsers in order until one matches.

    按顺序尝试所有已注册的解析器，直到匹配为止。

    Args:
        text: Primary error message text.
            主错误信息文本。
        detail_text: Optional detail text (e.g. from PG orig.detail).
            可选的详细错误文本（如 PG orig.detail）。

    Returns:
        ConstraintDetail if any parser matched, None otherwise.
        若有解析器匹配则返回 ConstraintDetail，否则返回 None。
    """
    for parser in _PARSERS:
        result = parser(text, detail_text)
        if result is not None:
            return result
    return None


def is_unique_constraint_error(text: str, *, detail_text: str = "") -> bool:
    combined = f"{text} {detail_text}".lower()
    return any(kw in combined for kw in _UNIQUE_KEYWORDS)


def describe_storage_error(exc: BaseException) -> str:
    """Return a non-empty, human readable reason for a failed commit.

    返回提交失败的非空可读原因。

    Args:
        exc: The exception raised while committing.
            提交时抛出的异常。

    Returns:
        str: Reason attached to every failed row of the batch.
            附加到批次中每个失败行的原因。
    """
    if isinstance(exc, TimeoutError):
        return "Batch commit timed out / 批次提交超时"
    if isinstance(exc, ImportExportError):
        return exc.message

    # ORM-agnostic: driver errors are usually wrapped with `.orig`.
    orig = getattr(exc, "orig", None)
    text = str(orig if orig is not None else exc)
    detail_text = str(getattr(orig, "detail", "") or "")
    if is_unique_constraint_error(text, detail_text=detail_text):
        parsed = parse_unique_constraint_error(text, detail_text=detail_text)
        if parsed is not None and parsed.columns and parsed.values:
            conflict = ", ".join(f"{c}={v}" for c, v in zip(parsed.columns, parsed.values, strict=False))
        elif parsed is not None and (parsed.columns or parsed.values):
            conflict = ", ".join(parsed.columns or parsed.values)
        else:
            conflict = ""
        if conflict:
            return f"Unique constraint violated: {conflict} / 唯一约束冲突: {conflict}"
        return "Unique constraint violated / 唯一约束冲突"

    first_line = text.strip().splitlines()[0].strip() if text.strip() else ""
    return f"Storage error: {first_line or type(exc).__name__} / 存储错误"
