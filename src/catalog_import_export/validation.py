"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: validation.py
@DateTime: 2026-02-08
@Docs: Pure per-row validation and normalization.
纯函数式的逐行校验与归一化。

Every column is checked; errors never short-circuit across columns. Inside a
column a failed type coercion skips only the checks that need the typed value.
逐列检查，列之间不会短路；同一列中类型转换失败只跳过依赖类型化值的检查。
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from catalog_import_export.records import FieldError, NaturalKey, NormalizedRecord, RawRow
from catalog_import_export.schema import ColumnSpec, HeaderMap, ImportSchema

_INVALID = object()


@dataclass(slots=True)
class ErrorCollector:
    """Collect field errors for one row.
    收集单行的字段错误。
    """

    errors: list[FieldError] = field(default_factory=list)

    def add(self, *, column: str | None, value: Any, rule: str, message: str) -> None:
        """Add an error item.
        添加一个错误项。

        Args:
            column: Column name (optional).
                列名（可选）。
            value: Related value.
                相关值。
            rule: Violated rule.
                违反的规则。
            message: Error message.
                错误消息。
        """
        self.errors.append(FieldError(column=column, value=value, rule=rule, message=message))


@dataclass(slots=True)
class RowContext:
    """Per-row helper to read cells and emit errors.
    每行校验助手，用于读取单元格和发射错误。
    """

    collector: ErrorCollector
    row: RawRow
    header: HeaderMap

    def get_str(self, column: str) -> str:
        """Get the trimmed cell text (empty string when missing).
        获取去空白的单元格文本（缺失时返回空字符串）。
        """
        return self.header.cell(self.row, column).strip()

    def add(self, *, column: str | None, value: Any, rule: str, message: str) -> None:
        self.collector.add(column=column, value=value, rule=rule, message=message)


def _check_column(ctx: RowContext, column: ColumnSpec) -> Any:
    name = column.name
    text = ctx.get_str(name)
    if not text:
        if column.required:
            ctx.add(column=name, value=text, rule="required", message=f"{name} is required / {name} 不能为空")
            return _INVALID
        return column.default

    if column.max_length is not None and len(text) > column.max_length:
        ctx.add(
            column=name,
            value=text,
            rule="max_length",
            message=(
                f"{name} exceeds {column.max_length} characters / {name} 超过 {column.max_length} 个字符"
            ),
        )
    if column.pattern is not None and re.fullmatch(column.pattern, text) is None:
        ctx.add(column=name, value=text, rule="pattern", message=f"{name} has an invalid format / {name} 格式不正确")

    try:
        value = column.codec.parse(text)
    except (ValueError, ArithmeticError) as exc:
        label = getattr(column.codec, "label", "value")
        ctx.add(
            column=name,
            value=text,
            rule="type",
            message=f"{name}: expected {label}, got {text!r} / {name} 类型无效: {exc}",
        )
        return _INVALID

    if column.min_value is not None and value < column.min_value:
        ctx.add(
            column=name,
            value=text,
            rule="min",
            message=f"{name} must be >= {column.min_value} / {name} 必须 >= {column.min_value}",
        )
    if column.max_value is not None and value > column.max_value:
        ctx.add(
            column=name,
            value=text,
            rule="max",
            message=f"{name} must be <= {column.max_value} / {name} 必须 <= {column.max_value}",
        )
    if column.allowed is not None and value not in column.allowed:
        ctx.add(column=name, value=text, rule="allowed", message=f"{name} is not an allowed value / {name} 取值不允许")
    return value


def validate_row(row: RawRow, schema: ImportSchema, header: HeaderMap) -> NormalizedRecord | list[FieldError]:
    """Validate one raw row against the schema.

    按 Schema 校验单个原始行。

    Args:
        row: Raw row.
            原始行。
        schema: Import schema.
            导入 Schema。
        header: Header map of the current file.
            当前文件的表头映射。

    Returns:
        NormalizedRecord when every rule passes, otherwise the non-empty error list.
            所有规则通过时返回 NormalizedRecord，否则返回非空错误列表。
    """
    ctx = RowContext(collector=ErrorCollector(), row=row, header=header)
    values: dict[str, Any] = {}
    for column in schema.columns:
        value = _check_column(ctx, column)
        if value is not _INVALID:
            values[column.target] = value
    if ctx.collector.errors:
        return ctx.collector.errors
    return NormalizedRecord(row_index=row.index, values=MappingProxyType(values))


def natural_key_of(row: RawRow, schema: ImportSchema, header: HeaderMap) -> NaturalKey | None:
    """Return the typed natural key of a row, or None when any key column is invalid.

    返回行的类型化自然键；任一键列无效时返回 None。

    Used for rows that fail validation elsewhere, so their key still counts
    as seen for duplicate detection.
    用于在其他列校验失败的行，使其键仍参与重复检测。
    """
    by_target = {c.target: c for c in schema.columns}
    ctx = RowContext(collector=ErrorCollector(), row=row, header=header)
    key: list[Any] = []
    for attr in schema.natural_key:
        value = _check_column(ctx, by_target[attr])
        if value is _INVALID or value is None or ctx.collector.errors:
            return None
        key.append(value)
    return tuple(key)
