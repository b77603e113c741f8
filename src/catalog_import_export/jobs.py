"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: jobs.py
@DateTime: 2026-02-10
@Docs: In-process registry of background imports.
进程内后台导入任务注册表。
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from catalog_import_export.exceptions import (
    ImportAbortedError,
    ImportCancelledError,
    ImportExportError,
    JobNotFoundError,
)
from catalog_import_export.pipeline import CancellationToken
from catalog_import_export.report import ImportReport, ReportBuilder, ReportProgress

logger = logging.getLogger(__name__)

type JobRunner = Callable[[CancellationToken, ReportBuilder], Awaitable[ImportReport]]


class JobStatus(StrEnum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class ImportJob:
    """
    A background import and its live progress.
    后台导入及其实时进度。
    """

    job_id: UUID
    filename: str
    token: CancellationToken = field(default_factory=CancellationToken)
    builder: ReportBuilder = field(default_factory=ReportBuilder)
    status: JobStatus = JobStatus.RUNNING
    report: ImportReport | None = None
    error: dict[str, Any] | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    finished_at: datetime | None = None
    task: asyncio.Task[None] | None = None

    @property
    def done(self) -> bool:
        return self.status is not JobStatus.RUNNING

    def progress(self) -> ReportProgress:
        return self.builder.snapshot()


class ImportJobRegistry:
    """
    Tracks background imports by id so they can be polled and cancelled.
    按 ID 跟踪后台导入，以便轮询与取消。

    Jobs live in this process only; a restart forgets them (their audit
    records stay on disk).
    任务只存在于当前进程；重启后丢失（审计记录仍保留在磁盘上）。
    """

    def __init__(self) -> None:
        self._jobs: dict[UUID, ImportJob] = {}

    def __len__(self) -> int:
        return len(self._jobs)

    def start(self, *, job_id: UUID, filename: str, runner: JobRunner) -> ImportJob:
        """Start `runner` as an asyncio task and register it.

        以 asyncio 任务启动 `runner` 并登记。

        Args:
            job_id: Job identifier (the import id).
                任务 ID（即导入 ID）。
            filename: Uploaded filename.
                上传文件名。
            runner: Coroutine factory receiving the job's token and builder.
                接收任务令牌与构建器的协程工厂。

        Returns:
            ImportJob: The registered job.
                已登记的任务。
        """
        job = ImportJob(job_id=job_id, filename=filename)
        self._jobs[job_id] = job
        job.task = asyncio.create_task(self._run(job, runner), name=f"import-{job_id}")
        logger.info("Import job %s started (%s)", job_id, filename)
        return job

    async def _run(self, job: ImportJob, runner: JobRunner) -> None:
        try:
            job.report = await runner(job.token, job.builder)
            job.status = JobStatus.SUCCEEDED
        except ImportCancelledError as exc:
            job.report = exc.report
            job.status = JobStatus.CANCELLED
        except ImportAbortedError as exc:
            job.report = exc.report
            job.status = JobStatus.FAILED
            job.error = {"message": exc.message, "error_code": exc.error_code, "details": exc.details}
            logger.warning("Import job %s aborted: %s", job.job_id, exc.reason)
        except ImportExportError as exc:
            job.status = JobStatus.FAILED
            job.error = {"message": exc.message, "error_code": exc.error_code, "details": exc.details}
            logger.warning("Import job %s failed: %s", job.job_id, exc.message)
        except Exception as exc:
            job.status = JobStatus.FAILED
            job.error = {"message": str(exc) or type(exc).__name__, "error_code": "internal_error", "details": None}
            logger.exception("Import job %s crashed", job.job_id)
        finally:
            job.finished_at = datetime.now(tz=UTC)
            logger.info("Import job %s finished: %s", job.job_id, job.status)

    def get(self, job_id: UUID) -> ImportJob:
        """Return a job.

        返回任务。

        Raises:
            JobNotFoundError: Unknown id.
                未知 ID。
        """
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id=job_id)
        return job

    def cancel(self, job_id: UUID) -> ImportJob:
        """Request cooperative cancellation; a running batch completes first.
        请求协作取消；正在提交的批次会先完成。
        """
        job = self.get(job_id)
        if not job.done:
            job.token.cancel()
            logger.info("Import job %s cancellation requested", job_id)
        return job

    async def wait(self, job_id: UUID) -> ImportJob:
        job = self.get(job_id)
        if job.task is not None:
            await asyncio.shield(job.task)
        return job

    def running_ids(self) -> list[UUID]:
        return [job_id for job_id, job in self._jobs.items() if not job.done]

    def prune(self, *, older_than: datetime) -> int:
        """Forget finished jobs that ended before `older_than`; running jobs are kept.
        移除在 `older_than` 之前结束的任务；运行中的任务保留。
        """
        expired = [
            job_id
            for job_id, job in self._jobs.items()
            if job.done and job.finished_at is not None and job.finished_at < older_than
        ]
        for job_id in expired:
            del self._jobs[job_id]
        if expired:
            logger.info("Pruned %d finished import jobs", len(expired))
        return len(expired)
