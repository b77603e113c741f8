"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: app.py
@DateTime: 2026-02-10
@Docs: FastAPI app serving catalog import/export.
提供目录导入导出的 FastAPI 应用。
"""

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog_import_export.api import create_import_router, install_exception_handlers
from catalog_import_export.catalog.resources import catalog_exporter_factory, catalog_pipeline_factory
from catalog_import_export.config import resolve_import_options
from catalog_import_export.locks import KeyLock
from catalog_import_export.options import ExportOptions, ImportOptions
from catalog_import_export.service import BulkImportService
from catalog_import_export.typing import RedisLike


def create_app(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    base_dir: str | None = None,
    options: ImportOptions | None = None,
    redis_client: RedisLike | None = None,
) -> FastAPI:
    """Create a FastAPI app for catalog import/export.
    创建目录导入导出的 FastAPI 应用。

    Args:
        session_factory: Async session factory / 异步会话工厂。
        base_dir: Override base_dir for uploads and audit records / 上传与审计记录的 base_dir 覆盖。
        options: Import options; resolved from the environment when omitted / 导入选项，省略时从环境变量解析。
        redis_client: Enables advisory key locks across concurrent imports / 启用并发导入间的键协作锁。

    Returns:
        FastAPI app instance / FastAPI 应用实例。
    """
    resolved = options or resolve_import_options()
    lock = KeyLock(redis_client) if redis_client is not None else None
    service = BulkImportService(
        pipeline_factory=catalog_pipeline_factory(session_factory, options=resolved, lock=lock),
        exporter_factory=catalog_exporter_factory(session_factory, options=ExportOptions(filename_prefix="catalog")),
        options=resolved,
        base_dir=base_dir,
    )
    app = FastAPI(title="Catalog Import/Export")
    install_exception_handlers(app)
    app.include_router(create_import_router(service))
    app.state.import_service = service
    return app
