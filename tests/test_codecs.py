"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: test_codecs.py
@DateTime: 2026-02-09
@Docs: Tests for built-in codecs.
内置 codecs 测试。
"""

from datetime import date
from decimal import Decimal
from enum import Enum

import pytest

from catalog_import_export.catalog.models import Color
from catalog_import_export.codecs import BoolCodec, DateCodec, DecimalCodec, EnumCodec, IntegerCodec, StringCodec


class Status(Enum):
    NEW = "new"
    DONE = "done"


class ZhStatus(Enum):
    AVAILABLE = "可借阅"
    UNAVAILABLE = "已下架"


def test_string_codec_trims_and_blanks() -> None:
    codec = StringCodec()
    assert codec.parse("  Sock ") == "Sock"
    assert codec.parse("   ") is None
    assert codec.format(None) == ""


def test_integer_codec() -> None:
    codec = IntegerCodec()
    assert codec.parse(" 42 ") == 42
    assert codec.format(7) == "7"
    with pytest.raises(ValueError):
        codec.parse("4.5")


def test_enum_codec_parse_and_format() -> None:
    codec = EnumCodec(Status)
    assert codec.parse("new") == Status.NEW
    assert codec.parse("DONE") == Status.DONE
    assert codec.format(Status.NEW) == "new"
    assert codec.choices == ["new", "done"]


def test_enum_codec_chinese_values() -> None:
    codec = EnumCodec(ZhStatus)
    assert codec.parse("可借阅") == ZhStatus.AVAILABLE
    assert codec.format(ZhStatus.UNAVAILABLE) == "已下架"


def test_enum_codec_rejects_unknown() -> None:
    codec = EnumCodec(Color)
    assert codec.parse("pink") is Color.PINK
    with pytest.raises(ValueError):
        codec.parse("ORANGE")


def test_date_codec() -> None:
    codec = DateCodec()
    value = codec.parse("2026-02-09")
    assert value == date(2026, 2, 9)
    assert codec.format(value) == "2026-02-09"
    with pytest.raises(ValueError):
        codec.parse("09/02/2026")


def test_decimal_codec() -> None:
    codec = DecimalCodec()
    value = codec.parse("12.30")
    assert value == Decimal("12.30")
    assert codec.format(Decimal("12.30")) == "12.3"
    assert codec.format(Decimal("10.00")) == "10"
    assert codec.format(Decimal("100")) == "100"


def test_decimal_codec_rejects_garbage() -> None:
    codec = DecimalCodec()
    for raw in ("abc", "NaN", "Infinity", "1,5"):
        with pytest.raises(ValueError):
            codec.parse(raw)


def test_decimal_codec_places() -> None:
    codec = DecimalCodec(places=2)
    assert codec.parse("5.25") == Decimal("5.25")
    with pytest.raises(ValueError):
        codec.parse("5.255")


def test_bool_codec() -> None:
    codec = BoolCodec()
    assert codec.parse("yes") is True
    assert codec.parse("0") is False
    assert codec.parse("") is None
    assert codec.format(True) == "true"
    with pytest.raises(ValueError):
        codec.parse("maybe")
