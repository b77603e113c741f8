"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: schema.py
@DateTime: 2026-02-09
@Docs: Declarative column schema and header mapping.
声明式列 Schema 与表头映射。
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from catalog_import_export.codecs import Codec, StringCodec
from catalog_import_export.exceptions import MalformedInputError, SchemaError
from catalog_import_export.records import RawRow


def _normalize_header(text: str) -> str:
    return text.strip().lstrip("\ufeff").strip().casefold()


@dataclass(frozen=True, slots=True)
class ColumnSpec:
    """
    Declaration of one file column and its rules.
    单个文件列及其规则的声明。

    Attributes:
        name: Header name written on export and matched on import.
        name: 导出时写入、导入时匹配的表头名。
        codec: Codec used to coerce and format values.
        codec: 用于转换与格式化的编解码器。
        required: Blank cells fail the row.
        required: 空单元格使该行失败。
        attribute: Record/entity attribute name (defaults to `name`).
        attribute: 记录/实体属性名（默认与 `name` 相同）。
        aliases: Extra accepted header names.
        aliases: 额外接受的表头名。
        pattern: Regex the trimmed text must fully match.
        pattern: 去空白文本需完整匹配的正则。
        min_value: Inclusive lower bound on the typed value.
        min_value: 类型化值的下界（含）。
        max_value: Inclusive upper bound on the typed value.
        max_value: 类型化值的上界（含）。
        allowed: Allowed typed values.
        allowed: 允许的类型化值集合。
        max_length: Max length of the trimmed text.
        max_length: 去空白文本的最大长度。
        default: Value used when an optional cell is blank.
        default: 可选列为空时使用的值。
    """

    name: str
    codec: Codec[Any] = field(default_factory=StringCodec)
    required: bool = False
    attribute: str | None = None
    aliases: tuple[str, ...] = ()
    pattern: str | None = None
    min_value: Any | None = None
    max_value: Any | None = None
    allowed: frozenset[Any] | None = None
    max_length: int | None = None
    default: Any | None = None

    @property
    def target(self) -> str:
        return self.attribute or self.name

    def header_names(self) -> tuple[str, ...]:
        return (self.name, *self.aliases)


@dataclass(frozen=True, slots=True)
class HeaderMap:
    """
    Column name -> cell position for one file; None when the column is absent.
    单个文件的列名 → 单元格位置；列缺失时为 None。
    """

    positions: Mapping[str, int | None]

    def cell(self, row: RawRow, column: str) -> str:
        """Return the cell text for `column`, empty when missing or ragged.
        返回 `column` 的单元格文本；缺失或行不齐时为空字符串。
        """
        pos = self.positions.get(column)
        if pos is None or pos >= len(row.cells):
            return ""
        return row.cells[pos]


@dataclass(frozen=True, slots=True)
class ImportSchema:
    """
    File layout and per-column rules of one import type.
    某类导入的文件布局与逐列规则。

    Attributes:
        columns: Declared columns in export order.
        columns: 按导出顺序声明的列。
        natural_key: Attribute names forming the natural key.
        natural_key: 组成自然键的属性名。
        delimiter: Field delimiter.
        delimiter: 字段分隔符。
        quotechar: Quote character.
        quotechar: 引号字符。
        has_header: Whether the first non-blank row is a header.
        has_header: 第一个非空行是否为表头。
        encoding: Text encoding (ASCII-compatible; BOM tolerated).
        encoding: 文本编码（需兼容 ASCII；容忍 BOM）。
    """

    columns: tuple[ColumnSpec, ...]
    natural_key: tuple[str, ...]
    delimiter: str = ","
    quotechar: str = '"'
    has_header: bool = True
    encoding: str = "utf-8-sig"

    def __post_init__(self) -> None:
        names = [c.name for c in self.columns]
        if not names:
            raise SchemaError(message="Schema has no columns / Schema 未声明任何列")
        if len(set(names)) != len(names):
            raise SchemaError(message="Duplicate column names / 列名重复", details={"columns": names})
        if not self.natural_key:
            raise SchemaError(message="Natural key is empty / 自然键为空")
        by_target = {c.target: c for c in self.columns}
        for attr in self.natural_key:
            spec = by_target.get(attr)
            if spec is None or not spec.required:
                raise SchemaError(
                    message=f"Natural key {attr} must be a required column / 自然键 {attr} 必须为必填列",
                    details={"natural_key": list(self.natural_key)},
                )
        if len(self.delimiter) != 1 or len(self.quotechar) != 1:
            raise SchemaError(message="delimiter and quotechar must be single characters / 分隔符与引号须为单字符")

    @property
    def header(self) -> list[str]:
        return [c.name for c in self.columns]

    @property
    def required_columns(self) -> list[str]:
        return [c.name for c in self.columns if c.required]

    def positional_header(self) -> HeaderMap:
        """Map columns by declaration order (headerless files).
        按声明顺序映射列（无表头文件）。
        """
        return HeaderMap(positions={c.name: i for i, c in enumerate(self.columns)})

    def resolve_header(self, cells: Sequence[str]) -> HeaderMap:
        """Map declared columns onto the positions of a header row.

        将声明的列映射到表头行的位置。

        Matching trims whitespace and ignores case. Extra header cells are
        ignored. The first matching cell wins.
        匹配时去除空白并忽略大小写；多余的表头单元格被忽略；首个匹配者生效。

        Args:
            cells: Header cells.
                表头单元格。

        Returns:
            HeaderMap: Resolved positions.
                解析后的位置映射。

        Raises:
            MalformedInputError: When a required column is missing.
                缺少必填列时抛出。
        """
        index: dict[str, int] = {}
        for pos, cell in enumerate(cells):
            index.setdefault(_normalize_header(cell), pos)

        positions: dict[str, int | None] = {}
        missing: list[str] = []
        for column in self.columns:
            pos = _first_match(index, column.header_names())
            positions[column.name] = pos
            if pos is None and column.required:
                missing.append(column.name)
        if missing:
            raise MalformedInputError(
                message=f"Missing required columns: {', '.join(missing)} / 缺少必填列: {', '.join(missing)}",
                details={"missing_columns": missing},
                error_code="missing_columns",
            )
        return HeaderMap(positions=positions)


def _first_match(index: Mapping[str, int], names: Iterable[str]) -> int | None:
    for name in names:
        pos = index.get(_normalize_header(name))
        if pos is not None:
            return pos
    return None
