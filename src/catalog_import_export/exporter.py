"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: exporter.py
@DateTime: 2026-02-08
@Docs: Streaming CSV exporter in the import format.
以导入格式输出的流式 CSV 导出器。
"""

import csv
import io
import logging
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from catalog_import_export.mapper import EntityMapper
from catalog_import_export.options import ExportOptions
from catalog_import_export.schema import ImportSchema
from catalog_import_export.typing import ByteStream, EntityStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExportPayload:
    """
    Export payload.
    导出载荷。

    Attributes:
        filename: Suggested file name.
        filename: 建议文件名。
        media_type: HTTP media type.
        media_type: HTTP 媒体类型。
        stream: Byte stream.
        stream: 字节流。
    """

    filename: str
    media_type: str
    stream: ByteStream


def export_filename(prefix: str) -> str:
    """Return `<prefix>_<UTC timestamp>.csv` / 返回 `<前缀>_<UTC 时间戳>.csv`。"""
    ts = datetime.now(tz=UTC).strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{ts}.csv"


class Exporter:
    """
    Streams stored entities as a delimited file that re-imports cleanly.
    将存储的实体流式导出为可无损重新导入的分隔文件。

    The header, delimiter, quoting and value formats are those of the schema,
    so exporting and re-importing with updates allowed changes nothing.
    表头、分隔符、引号与值格式均来自 Schema，因此导出后在允许更新的情况下
    重新导入不会产生任何变化。
    """

    def __init__(
        self,
        *,
        schema: ImportSchema,
        mapper: EntityMapper,
        store: EntityStore,
        options: ExportOptions | None = None,
    ) -> None:
        self.schema = schema
        self.mapper = mapper
        self.store = store
        self.options = options or ExportOptions()

    def _writer(self, buffer: io.StringIO) -> Any:
        return csv.writer(
            buffer,
            delimiter=self.schema.delimiter,
            quotechar=self.schema.quotechar,
            lineterminator=self.options.line_ending,
            quoting=csv.QUOTE_MINIMAL,
        )

    async def iter_bytes(self, *, filters: Mapping[str, Any] | None = None) -> AsyncIterator[bytes]:
        """Yield the encoded file in chunks of roughly `chunk_size` bytes.

        以约 `chunk_size` 字节的块产出编码后的文件。

        Args:
            filters: Optional equality filters passed to the store.
                传给存储的可选等值过滤条件。

        Yields:
            bytes: UTF-8 encoded chunks.
                UTF-8 编码块。
        """
        buffer = io.StringIO()
        writer = self._writer(buffer)
        if self.options.include_bom:
            buffer.write("\ufeff")
        if self.schema.has_header:
            writer.writerow(self.schema.header)
        count = 0
        async for entity in self.store.iter_entities(filters):
            values = await self.mapper.to_record(entity)
            writer.writerow([column.codec.format(values.get(column.target)) for column in self.schema.columns])
            count += 1
            if buffer.tell() >= self.options.chunk_size:
                yield buffer.getvalue().encode("utf-8")
                buffer.seek(0)
                buffer.truncate(0)
        tail = buffer.getvalue()
        if tail:
            yield tail.encode("utf-8")
        logger.info("Exported %d rows", count)
