"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: __init__.py
@DateTime: 2026-02-10
@Docs: SQLAlchemy async integration.
SQLAlchemy 异步集成。
"""

from catalog_import_export.contrib.sqlalchemy.store import (
    LookupSpec,
    SqlAlchemyEntityStore,
    SqlAlchemyReferenceResolver,
)

__all__ = ["LookupSpec", "SqlAlchemyEntityStore", "SqlAlchemyReferenceResolver"]
