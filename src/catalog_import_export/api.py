"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: api.py
@DateTime: 2026-02-10
@Docs: FastAPI router for bulk import/export.
批量导入导出的 FastAPI 路由。

Endpoints / 端点:
        - POST   /imports                  upload; 200/207 report or 202 job.
        - GET    /imports/{import_id}      audit record (meta.json).
        - GET    /imports/jobs/{job_id}    job status and progress.
        - DELETE /imports/jobs/{job_id}    request cancellation (202).
        - GET    /exports                  streaming CSV download.
"""

from typing import Any
from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, FastAPI, File, Request, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse

from catalog_import_export.exceptions import ImportExportError
from catalog_import_export.schemas import ErrorResponse, ImportJobResponse, ImportReportResponse
from catalog_import_export.service import BulkImportService


def install_exception_handlers(app: FastAPI) -> None:
    """Render every ImportExportError as `{message, error_code, details}`.
    将所有 ImportExportError 渲染为 `{message, error_code, details}`。
    """

    @app.exception_handler(ImportExportError)
    async def _import_export_error_handler(request: Request, exc: ImportExportError) -> JSONResponse:
        body = ErrorResponse(message=exc.message, error_code=exc.error_code, details=exc.details)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


def _content_disposition(filename: str) -> str:
    return f"attachment; filename*=UTF-8''{quote(filename)}"


def create_import_router(service: BulkImportService, *, prefix: str = "") -> APIRouter:
    """Create the import/export router bound to `service`.

    创建绑定到 `service` 的导入导出路由。

    Args:
        service: Shared service instance (owns the job registry).
            共享的服务实例（持有任务注册表）。
        prefix: Optional URL prefix.
            可选 URL 前缀。

    Returns:
        APIRouter: Router to include in an app; pair it with `install_exception_handlers`.
            可挂载到应用的路由；需配合 `install_exception_handlers` 使用。
    """
    router = APIRouter(prefix=prefix, tags=["import-export"])

    @router.post("/imports")
    async def upload(file: UploadFile = File(...)) -> JSONResponse:
        """Upload and import a file / 上传并导入文件。"""
        submission = await service.import_upload(file)
        if submission.job is not None:
            job = ImportJobResponse.from_job(submission.job)
            return JSONResponse(status_code=202, content=job.model_dump(mode="json"))
        assert submission.report is not None
        report = ImportReportResponse.from_report(
            submission.report, import_id=submission.import_id, checksum=submission.checksum
        )
        return JSONResponse(status_code=submission.report.status_code, content=report.model_dump(mode="json"))

    @router.get("/imports/jobs/{job_id}")
    async def get_job(job_id: UUID) -> dict[str, Any]:
        """Poll a background import / 轮询后台导入。"""
        return ImportJobResponse.from_job(service.get_job(job_id)).model_dump(mode="json")

    @router.delete("/imports/jobs/{job_id}", status_code=202)
    async def cancel_job(job_id: UUID) -> dict[str, Any]:
        """Request cancellation of a background import / 请求取消后台导入。"""
        return ImportJobResponse.from_job(service.cancel_job(job_id)).model_dump(mode="json")

    @router.get("/imports/{import_id}")
    async def get_import(import_id: UUID) -> dict[str, Any]:
        """Audit record of an import / 导入的审计记录。"""
        return service.get_import_record(import_id)

    @router.get("/exports")
    async def export(request: Request) -> StreamingResponse:
        """Stream the catalog as CSV; query parameters are equality filters / 以 CSV 流式导出，查询参数作为等值过滤。"""
        filters = dict(request.query_params) or None
        payload = await service.export(filters=filters)
        return StreamingResponse(
            payload.stream,
            media_type=payload.media_type,
            headers={"Content-Disposition": _content_disposition(payload.filename)},
        )

    return router
