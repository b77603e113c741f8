"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: parse.py
@DateTime: 2026-02-08
@Docs: Streaming delimited-text row parser.
流式分隔文本行解析器。

Rows are produced lazily, one at a time, from a binary stream. Nothing beyond
the current record is held in memory.
从二进制流惰性地逐行产出；内存中只保留当前记录。
"""

import codecs
import csv
from collections.abc import Iterator
from dataclasses import dataclass
from typing import BinaryIO

from catalog_import_export.exceptions import MalformedInputError
from catalog_import_export.records import RawRow
from catalog_import_export.schema import HeaderMap, ImportSchema


def _is_blank(cells: list[str]) -> bool:
    return not any(cell.strip() for cell in cells)


def _iter_records(stream: BinaryIO, schema: ImportSchema) -> Iterator[tuple[int, list[str]]]:
    """Yield (line_number, cells) for every non-blank record.

    为每个非空记录产出 (物理行号, 单元格)。

    Raises:
        MalformedInputError: On undecodable bytes or broken quoting.
            遇到无法解码的字节或引号错误时抛出。
    """
    reader = csv.reader(
        codecs.iterdecode(stream, schema.encoding),
        delimiter=schema.delimiter,
        quotechar=schema.quotechar,
        strict=True,
    )
    while True:
        try:
            cells = next(reader)
        except StopIteration:
            return
        except UnicodeDecodeError as exc:
            line = reader.line_num + 1
            raise MalformedInputError(
                message=(
                    f"File is not valid {schema.encoding} text (line {line}) / "
                    f"文件不是有效的 {schema.encoding} 文本（第 {line} 行）"
                ),
                line_number=line,
                details={"error": str(exc)},
                error_code="invalid_encoding",
            ) from exc
        except csv.Error as exc:
            line = reader.line_num
            raise MalformedInputError(
                message=f"Malformed CSV at line {line}: {exc} / 第 {line} 行 CSV 格式错误: {exc}",
                line_number=line,
                details={"error": str(exc)},
            ) from exc
        if _is_blank(cells):
            continue
        yield reader.line_num, cells


@dataclass(slots=True)
class RowStream:
    """
    Parsed header plus a lazy, single-pass iterator over data rows.
    已解析的表头与单次遍历的惰性数据行迭代器。
    """

    header: HeaderMap
    records: Iterator[tuple[int, list[str]]]

    def __iter__(self) -> Iterator[RawRow]:
        for index, (line_number, cells) in enumerate(self.records, start=1):
            yield RawRow(index=index, cells=tuple(cells), line_number=line_number)


def open_row_stream(stream: BinaryIO, schema: ImportSchema) -> RowStream:
    """Consume the header (if any) and return the data row stream.

    读取表头（若有）并返回数据行流。

    Args:
        stream: Binary stream positioned at the start of the file.
            位于文件起始位置的二进制流。
        schema: Import schema.
            导入 Schema。

    Returns:
        RowStream: Header map and lazy rows.
            表头映射与惰性行。

    Raises:
        MalformedInputError: Empty file, missing required columns, or bad text.
            文件为空、缺少必填列或文本错误时抛出。
    """
    records = _iter_records(stream, schema)
    if not schema.has_header:
        return RowStream(header=schema.positional_header(), records=records)
    first = next(records, None)
    if first is None:
        raise MalformedInputError(message="File is empty / 文件为空", error_code="empty_file")
    return RowStream(header=schema.resolve_header(first[1]), records=records)


def scan_structure(stream: BinaryIO, schema: ImportSchema) -> int:
    """Read the whole stream once, checking structure only.

    完整读取一次流，仅检查结构。

    Rows are not validated. The caller rewinds the stream afterwards.
    不校验行内容；调用方随后需要回绕流。

    Returns:
        int: Number of data rows.
            数据行数量。

    Raises:
        MalformedInputError: As `open_row_stream`, for any position in the file.
            同 `open_row_stream`，覆盖文件任意位置。
    """
    rows = open_row_stream(stream, schema)
    return sum(1 for _ in rows.records)
