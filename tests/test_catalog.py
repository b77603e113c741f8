"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: test_catalog.py
@DateTime: 2026-02-11
@Docs: End-to-end catalog import/export over SQLite.
基于 SQLite 的目录导入导出端到端测试。
"""

import io
from decimal import Decimal

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog_import_export.catalog import CatalogItem, Color, build_catalog_exporter, build_catalog_pipeline
from catalog_import_export.options import ImportOptions
from catalog_import_export.records import Failed, Inserted, Skipped, Updated
from tests.conftest import csv_source

_UPLOAD = (
    "sku,name,price,qty,colour,cotton,category\n"
    "A1,Sock,5.00,3,red,80,Socks\n"
    "B2,Hat,12.5,,BLACK,,Hats\n"
    "C3,Scarf,7,1,,,Gloves\n"
    "D4,Glove,-1,1,,,\n"
)


async def _export(session_factory: async_sessionmaker[AsyncSession]) -> bytes:
    async with session_factory() as session:
        exporter = build_catalog_exporter(session)
        return b"".join([chunk async for chunk in exporter.iter_bytes()])


async def test_import_resolves_categories(session_factory: async_sessionmaker[AsyncSession]) -> None:
    async with session_factory() as session:
        report = await build_catalog_pipeline(session).run(csv_source(_UPLOAD))

    assert [type(o) for o in report.outcomes] == [Inserted, Inserted, Failed, Failed]
    assert report.status_code == 207
    unknown = report.outcomes[2]
    assert isinstance(unknown, Failed)
    assert unknown.errors[0].column == "category"
    assert unknown.errors[0].rule == "reference"

    async with session_factory() as session:
        rows = (await session.scalars(sa.select(CatalogItem).order_by(CatalogItem.sku))).all()
    assert [r.sku for r in rows] == ["A1", "B2"]
    assert rows[0].color is Color.RED
    assert rows[0].cotton_part == 80
    assert rows[1].quantity == 0
    assert rows[1].price == Decimal("12.50")
    assert rows[1].category_id is not None


async def test_export_then_reimport_changes_nothing(session_factory: async_sessionmaker[AsyncSession]) -> None:
    async with session_factory() as session:
        await build_catalog_pipeline(session).run(csv_source(_UPLOAD))

    exported = await _export(session_factory)
    assert exported.decode() == (
        "sku,name,price,quantity,color,cotton_part,category\r\n"
        "A1,Sock,5,3,RED,80,Socks\r\n"
        "B2,Hat,12.5,0,BLACK,,Hats\r\n"
    )

    async with session_factory() as session:
        report = await build_catalog_pipeline(session).run(io.BytesIO(exported))
    assert [type(o) for o in report.outcomes] == [Updated, Updated]
    assert report.unchanged == 2
    assert report.status_code == 200
    assert await _export(session_factory) == exported


async def test_updates_and_skips(session_factory: async_sessionmaker[AsyncSession]) -> None:
    async with session_factory() as session:
        await build_catalog_pipeline(session).run(csv_source("sku,name,price\nA1,Sock,5\n"))

    async with session_factory() as session:
        report = await build_catalog_pipeline(session).run(csv_source("sku,name,price\nA1,Wool sock,6\nB2,Hat,7\n"))
    assert [type(o) for o in report.outcomes] == [Updated, Inserted]

    options = ImportOptions(allow_updates=False)
    async with session_factory() as session:
        report = await build_catalog_pipeline(session, options=options).run(csv_source("sku,name,price\nA1,X,1\n"))
    assert [type(o) for o in report.outcomes] == [Skipped]
    assert report.status_code == 200

    async with session_factory() as session:
        name = await session.scalar(sa.select(CatalogItem.name).where(CatalogItem.sku == "A1"))
    assert name == "Wool sock"
