"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: __init__.py
@DateTime: 2026-02-09
@Docs: Codecs for parsing/formatting field values.
字段值编解码器。
"""

from catalog_import_export.codecs.base import Codec
from catalog_import_export.codecs.builtins import (
    BoolCodec,
    DateCodec,
    DecimalCodec,
    EnumCodec,
    IntegerCodec,
    StringCodec,
)

__all__ = [
    "BoolCodec",
    "Codec",
    "DateCodec",
    "DecimalCodec",
    "EnumCodec",
    "IntegerCodec",
    "StringCodec",
]
