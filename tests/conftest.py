"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: conftest.py
@DateTime: 2026-02-08
@Docs: Shared test fixtures for the catalog-import-export test suite.
测试套件的公共 fixtures。
"""

import asyncio
import io
from collections.abc import AsyncGenerator, AsyncIterator, Mapping, Sequence
from decimal import Decimal
from pathlib import Path
from types import MappingProxyType
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from catalog_import_export.catalog.models import Base, Category
from catalog_import_export.codecs import DecimalCodec
from catalog_import_export.config import ImportExportConfig
from catalog_import_export.mapper import EntityMapper
from catalog_import_export.options import ImportOptions
from catalog_import_export.pipeline import ImportPipeline
from catalog_import_export.records import Change, ChangeKind, DomainEntity, ExistingEntity, NaturalKey
from catalog_import_export.schema import ColumnSpec, ImportSchema

ITEM_SCHEMA = ImportSchema(
    columns=(
        ColumnSpec("sku", required=True),
        ColumnSpec("name", required=True),
        ColumnSpec("price", codec=DecimalCodec(places=2), required=True, min_value=Decimal("0")),
    ),
    natural_key=("sku",),
)


def csv_source(text: str) -> io.BytesIO:
    """Wrap CSV text as a binary stream / 将 CSV 文本包装为二进制流。"""
    return io.BytesIO(text.encode("utf-8"))


def item(sku: str, name: str = "Sock", price: str = "5") -> DomainEntity:
    """Build an ITEM_SCHEMA entity / 构造 ITEM_SCHEMA 实体。"""
    return DomainEntity(
        natural_key=(sku,), attributes=MappingProxyType({"sku": sku, "name": name, "price": Decimal(price)})
    )


class MemoryStore:
    """In-memory EntityStore with injectable batch failures.
    可注入批次失败的内存 EntityStore。

    A batch containing any key of `fail_keys` raises and writes nothing.
    批次中包含 `fail_keys` 中任意键时抛出异常且不写入任何内容。
    """

    def __init__(self, *, fail_keys: Sequence[str] = (), delay: float = 0.0) -> None:
        self.rows: dict[NaturalKey, ExistingEntity] = {}
        self.fail_keys = {(k,) for k in fail_keys}
        self.delay = delay
        self.fetch_calls: list[list[NaturalKey]] = []
        self.batches: list[list[int]] = []
        self._next_id = 1

    def seed(self, entity: DomainEntity) -> ExistingEntity:
        existing = ExistingEntity(surrogate_id=self._next_id, entity=entity)
        self.rows[entity.natural_key] = existing
        self._next_id += 1
        return existing

    async def fetch_existing(self, keys: Sequence[NaturalKey]) -> Mapping[NaturalKey, ExistingEntity]:
        self.fetch_calls.append(list(keys))
        return {key: self.rows[key] for key in keys if key in self.rows}

    async def apply_batch(self, changes: Sequence[Change]) -> None:
        self.batches.append([change.row_index for change in changes])
        if self.delay:
            await asyncio.sleep(self.delay)
        for change in changes:
            if change.entity.natural_key in self.fail_keys:
                raise RuntimeError(f"storage rejected {change.entity.natural_key[0]}")
        for change in changes:
            if change.kind is ChangeKind.INSERT:
                self.seed(change.entity)
            else:
                self.rows[change.entity.natural_key] = ExistingEntity(
                    surrogate_id=change.surrogate_id, entity=change.entity
                )

    async def iter_entities(self, filters: Mapping[str, Any] | None = None) -> AsyncIterator[DomainEntity]:
        for existing in sorted(self.rows.values(), key=lambda e: e.surrogate_id):
            attrs = existing.entity.attributes
            if filters and any(attrs.get(k) != v for k, v in filters.items()):
                continue
            yield existing.entity


class FlakyStore(MemoryStore):
    """Second lookup raises a connection error / 第二次查询抛出连接错误。"""

    async def fetch_existing(self, keys: Sequence[NaturalKey]) -> Mapping[NaturalKey, ExistingEntity]:
        if self.fetch_calls:
            raise ConnectionError("connection reset")
        return await super().fetch_existing(keys)


def make_pipeline(store: MemoryStore, **options: Any) -> ImportPipeline:
    """ITEM_SCHEMA pipeline over `store` / 基于 `store` 的 ITEM_SCHEMA 流水线。"""
    return ImportPipeline(
        schema=ITEM_SCHEMA,
        mapper=EntityMapper(natural_key=("sku",)),
        store=store,
        options=ImportOptions(**options),
    )


def make_upload_file(filename: str, content: bytes, content_type: str = "text/csv") -> UploadFile:
    """Create a mock UploadFile from bytes.
    从字节内容创建模拟 UploadFile。

    Args:
        filename: File name / 文件名。
        content: File content bytes / 文件内容字节。
        content_type: MIME type / MIME 类型。

    Returns:
        UploadFile: Mock upload file / 模拟上传文件。
    """
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        size=len(content),
        headers=MagicMock(get=lambda k, d=None: content_type if k == "content-type" else d),
    )


@pytest.fixture
def tmp_config(tmp_path: Path) -> ImportExportConfig:
    """Return an ImportExportConfig rooted at tmp_path.
    返回以 tmp_path 为根的 ImportExportConfig。
    """
    return ImportExportConfig(base_dir=tmp_path)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def mock_redis() -> Any:
    """A mock object implementing the RedisLike protocol.
    实现 RedisLike 协议的 mock 对象。
    """
    redis = MagicMock()
    redis.set = MagicMock(return_value=True)
    redis.get = MagicMock(return_value=None)
    redis.delete = MagicMock(return_value=1)
    return redis


@pytest.fixture
async def session_factory(tmp_path: Path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """SQLite catalog database with categories "Socks" and "Hats".
    包含分类 "Socks" 与 "Hats" 的 SQLite 目录数据库。
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session, session.begin():
        session.add_all([Category(name="Socks"), Category(name="Hats")])
    yield factory
    await engine.dispose()
