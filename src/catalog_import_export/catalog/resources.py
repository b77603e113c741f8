"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: resources.py
@DateTime: 2026-02-10
@Docs: Catalog import schema and pipeline/exporter wiring.
目录导入 Schema 以及流水线/导出器装配。

File layout / 文件格式::

    sku,name,price,quantity,color,cotton_part,category
    A1,Wool sock,10.50,3,RED,80,Socks
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog_import_export.catalog.models import CatalogItem, Category, Color
from catalog_import_export.codecs import DecimalCodec, EnumCodec, IntegerCodec
from catalog_import_export.contrib.sqlalchemy import LookupSpec, SqlAlchemyEntityStore, SqlAlchemyReferenceResolver
from catalog_import_export.exporter import Exporter
from catalog_import_export.locks import KeyLock
from catalog_import_export.mapper import EntityMapper, ReferenceSpec
from catalog_import_export.options import ExportOptions, ImportOptions
from catalog_import_export.pipeline import ImportPipeline
from catalog_import_export.schema import ColumnSpec, ImportSchema
from catalog_import_export.service import ExporterFactory, PipelineFactory

CATALOG_SCHEMA = ImportSchema(
    columns=(
        ColumnSpec("sku", required=True, max_length=64, pattern=r"[A-Za-z0-9][A-Za-z0-9._-]*"),
        ColumnSpec("name", required=True, max_length=200),
        ColumnSpec("price", codec=DecimalCodec(places=2), required=True, min_value=Decimal("0")),
        ColumnSpec("quantity", codec=IntegerCodec(), aliases=("qty",), min_value=0, default=0),
        ColumnSpec("color", codec=EnumCodec(Color), aliases=("colour",)),
        ColumnSpec("cotton_part", codec=IntegerCodec(), aliases=("cotton",), min_value=0, max_value=100),
        ColumnSpec("category", max_length=100),
    ),
    natural_key=("sku",),
)

CATEGORY_REFERENCE = ReferenceSpec(field="category", target="category_id", lookup="category")


def build_catalog_mapper(session: AsyncSession) -> EntityMapper:
    resolver = SqlAlchemyReferenceResolver(session, {"category": LookupSpec(model=Category, natural="name")})
    return EntityMapper(natural_key=CATALOG_SCHEMA.natural_key, references=(CATEGORY_REFERENCE,), resolver=resolver)


def build_catalog_store(session: AsyncSession) -> SqlAlchemyEntityStore:
    return SqlAlchemyEntityStore(session, CatalogItem, natural_key=CATALOG_SCHEMA.natural_key)


def build_catalog_pipeline(
    session: AsyncSession, *, options: ImportOptions | None = None, lock: KeyLock | None = None
) -> ImportPipeline:
    """Build a catalog import pipeline bound to one session.

    构建绑定到单个会话的目录导入流水线。

    Args:
        session: Async session owned by this run.
            本次运行独占的异步会话。
        options: Import options.
            导入选项。
        lock: Optional advisory lock shared by concurrent imports.
            并发导入共享的可选协作锁。

    Returns:
        ImportPipeline: Ready-to-run pipeline.
            可直接运行的流水线。
    """
    return ImportPipeline(
        schema=CATALOG_SCHEMA,
        mapper=build_catalog_mapper(session),
        store=build_catalog_store(session),
        options=options,
        lock=lock,
    )


def build_catalog_exporter(session: AsyncSession, *, options: ExportOptions | None = None) -> Exporter:
    return Exporter(
        schema=CATALOG_SCHEMA,
        mapper=build_catalog_mapper(session),
        store=build_catalog_store(session),
        options=options,
    )


def catalog_pipeline_factory(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    options: ImportOptions | None = None,
    lock: KeyLock | None = None,
) -> PipelineFactory:
    """Return a factory opening one session per import run.
    返回每次导入运行打开一个会话的工厂。
    """

    @asynccontextmanager
    async def factory() -> AsyncIterator[ImportPipeline]:
        async with session_factory() as session:
            yield build_catalog_pipeline(session, options=options, lock=lock)

    return factory


def catalog_exporter_factory(
    session_factory: async_sessionmaker[AsyncSession], *, options: ExportOptions | None = None
) -> ExporterFactory:
    @asynccontextmanager
    async def factory() -> AsyncIterator[Exporter]:
        async with session_factory() as session:
            yield build_catalog_exporter(session, options=options)

    return factory
