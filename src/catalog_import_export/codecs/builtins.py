"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: builtins.py
@DateTime: 2026-02-09
@Docs: Built-in codecs for common column types.
内置常用列类型编解码器。
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum

from catalog_import_export.codecs.base import Codec


def _blank(value: object | None) -> bool:
    if value is None:
        return True
    return not str(value).strip()


class StringCodec(Codec[str]):
    """Codec for trimmed text.
    去除首尾空白的文本编解码器。
    """

    label = "text"

    def parse(self, value: str | None) -> str | None:
        if _blank(value):
            return None
        return str(value).strip()

    def format(self, value: str | None) -> str:
        if value is None:
            return ""
        return str(value)


class IntegerCodec(Codec[int]):
    """Codec for integers.
    整数编解码器。
    """

    label = "integer"

    def parse(self, value: str | None) -> int | None:
        if _blank(value):
            return None
        return int(str(value).strip())

    def format(self, value: int | None) -> str:
        if value is None:
            return ""
        return str(int(value))


class DecimalCodec(Codec[Decimal]):
    """Codec for Decimal values.
    Decimal 类型编解码器。

    Args:
        places: Max digits after the decimal point (None = unbounded).
            小数点后最多位数（None 表示不限）。
    """

    label = "decimal"

    def __init__(self, places: int | None = None) -> None:
        self.places = places

    def parse(self, value: str | None) -> Decimal | None:
        if _blank(value):
            return None
        raw = str(value).strip()
        try:
            parsed = Decimal(raw)
        except InvalidOperation as exc:
            raise ValueError(f"Invalid decimal value: {raw}") from exc
        if not parsed.is_finite():
            raise ValueError(f"Invalid decimal value: {raw}")
        exponent = parsed.as_tuple().exponent
        if self.places is not None and isinstance(exponent, int) and -exponent > self.places:
            raise ValueError(f"At most {self.places} decimal places: {raw}")
        return parsed

    def format(self, value: Decimal | None) -> str:
        if value is None:
            return ""
        if not value.is_finite():
            return str(value)
        exponent = value.as_tuple().exponent
        if isinstance(exponent, int) and exponent < 0:
            return format(value, "f").rstrip("0").rstrip(".")
        return format(value, "f")


class DateCodec(Codec[date]):
    """Codec for ISO dates.
    ISO 日期编解码器。
    """

    label = "date"

    def parse(self, value: str | None) -> date | None:
        if _blank(value):
            return None
        return date.fromisoformat(str(value).strip())

    def format(self, value: date | None) -> str:
        if value is None:
            return ""
        return value.isoformat()


class BoolCodec(Codec[bool]):
    """Codec for bool values.
    布尔类型编解码器。
    """

    label = "boolean"
    _truthy = {"1", "true", "yes", "y", "t", "on"}
    _falsy = {"0", "false", "no", "n", "f", "off"}

    def parse(self, value: str | None) -> bool | None:
        if _blank(value):
            return None
        raw = str(value).strip().lower()
        if raw in self._truthy:
            return True
        if raw in self._falsy:
            return False
        raise ValueError(f"Invalid bool value: {value}")

    def format(self, value: bool | None) -> str:
        if value is None:
            return ""
        return "true" if value else "false"


class EnumCodec[TEnum: Enum](Codec[TEnum]):
    """Codec for Enum members, matched by name or value, case-insensitively.
    枚举编解码器，按名称或值匹配（不区分大小写）。
    """

    label = "enum"

    def __init__(self, enum_type: type[TEnum]) -> None:
        self.enum_type = enum_type
        self._lookup: dict[str, TEnum] = {}
        for member in enum_type:
            self._lookup.setdefault(member.name.lower(), member)
            self._lookup.setdefault(str(member.value).lower(), member)

    @property
    def choices(self) -> list[str]:
        return [str(member.value) for member in self.enum_type]

    def parse(self, value: str | None) -> TEnum | None:
        if _blank(value):
            return None
        raw = str(value).strip()
        member = self._lookup.get(raw.lower())
        if member is None:
            raise ValueError(f"Invalid enum value: {raw}")
        return member

    def format(self, value: TEnum | None) -> str:
        if value is None:
            return ""
        return str(value.value)
