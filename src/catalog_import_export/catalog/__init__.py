"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: __init__.py
@DateTime: 2026-02-10
@Docs: Catalog items: models, import schema and app.
目录条目：模型、导入 Schema 与应用。
"""

from catalog_import_export.catalog.app import create_app
from catalog_import_export.catalog.models import Base, CatalogItem, Category, Color
from catalog_import_export.catalog.resources import (
    CATALOG_SCHEMA,
    build_catalog_exporter,
    build_catalog_pipeline,
    catalog_exporter_factory,
    catalog_pipeline_factory,
)

__all__ = [
    "CATALOG_SCHEMA",
    "Base",
    "CatalogItem",
    "Category",
    "Color",
    "build_catalog_exporter",
    "build_catalog_pipeline",
    "catalog_exporter_factory",
    "catalog_pipeline_factory",
    "create_app",
]
