"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: records.py
@DateTime: 2026-02-08
@Docs: Row, entity, change and outcome types flowing through the pipeline.
流水线中流转的行、实体、变更与结果类型。
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, ClassVar

from catalog_import_export.exceptions import RowError

type NaturalKey = tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class RawRow:
    """
    One data row as read from the file, before any validation.
    从文件读取的单个数据行（未校验）。

    Attributes:
        index: 1-based position among data rows (header excluded).
        index: 数据行中的序号（从 1 开始，不含表头）。
        cells: Cell texts in file order.
        cells: 按文件顺序排列的单元格文本。
        line_number: Physical source line, for diagnostics.
        line_number: 源文件物理行号，用于诊断。
    """

    index: int
    cells: tuple[str, ...]
    line_number: int


@dataclass(frozen=True, slots=True)
class FieldError:
    """
    A single rule violation on a row.
    行上的单个规则违反。

    Attributes:
        column: Column name (None for row-level errors).
        column: 列名（行级错误为 None）。
        value: Offending value.
        value: 出错值。
        rule: Violated rule, e.g. required / type / pattern / duplicate / storage.
        rule: 违反的规则，例如 required / type / pattern / duplicate / storage。
        message: Human readable message.
        message: 可读错误消息。
    """

    column: str | None
    value: Any
    rule: str
    message: str

    @classmethod
    def from_row_error(cls, exc: RowError) -> "FieldError":
        return cls(column=exc.column, value=exc.value, rule=exc.rule, message=exc.message)

    def to_dict(self) -> dict[str, Any]:
        return {"column": self.column, "value": self.value, "rule": self.rule, "message": self.message}


@dataclass(frozen=True, slots=True)
class NormalizedRecord:
    """
    A row that passed validation; values are typed.
    通过校验的行；值已类型化。
    """

    row_index: int
    values: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class DomainEntity:
    """
    Mapped entity keyed by its natural key; carries no surrogate id.
    以自然键标识的映射实体；不包含代理主键。
    """

    natural_key: NaturalKey
    attributes: Mapping[str, Any]

    def differs_from(self, other: "DomainEntity") -> bool:
        """Return True when any attribute of self differs from `other`.
        当任一属性与 `other` 不同时返回 True。
        """
        return any(other.attributes.get(name) != value for name, value in self.attributes.items())


@dataclass(frozen=True, slots=True)
class ExistingEntity:
    """
    An entity already persisted, with its storage id.
    已持久化的实体及其存储 ID。
    """

    surrogate_id: Any
    entity: DomainEntity


class ChangeKind(StrEnum):
    INSERT = "insert"
    UPDATE = "update"


@dataclass(frozen=True, slots=True)
class Change:
    """
    A pending write for one row.
    单行的待写入变更。
    """

    row_index: int
    kind: ChangeKind
    entity: DomainEntity
    surrogate_id: Any | None = None
    changed: bool = True


class OutcomeKind(StrEnum):
    INSERTED = "inserted"
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Inserted:
    row_index: int
    natural_key: NaturalKey
    kind: ClassVar[OutcomeKind] = OutcomeKind.INSERTED


@dataclass(frozen=True, slots=True)
class Updated:
    row_index: int
    natural_key: NaturalKey
    changed: bool = True
    kind: ClassVar[OutcomeKind] = OutcomeKind.UPDATED


@dataclass(frozen=True, slots=True)
class Skipped:
    row_index: int
    reason: str
    natural_key: NaturalKey | None = None
    kind: ClassVar[OutcomeKind] = OutcomeKind.SKIPPED

    def __post_init__(self) -> None:
        if not self.reason:
            raise ValueError("Skipped outcome requires a reason")


@dataclass(frozen=True, slots=True)
class Failed:
    row_index: int
    errors: tuple[FieldError, ...] = field(default_factory=tuple)
    natural_key: NaturalKey | None = None
    kind: ClassVar[OutcomeKind] = OutcomeKind.FAILED

    def __post_init__(self) -> None:
        if not self.errors:
            raise ValueError("Failed outcome requires at least one FieldError")

    @property
    def reason(self) -> str:
        return "; ".join(e.message for e in self.errors)


type RowOutcome = Inserted | Updated | Skipped | Failed
