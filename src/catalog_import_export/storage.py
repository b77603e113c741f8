"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: storage.py
@DateTime: 2026-02-08
@Docs: Filesystem workspace for uploads and their audit records.
上传文件及其审计记录的文件系统工作区。

Layout / 目录布局::

    <base_dir>/imports/<import_id>/original.csv
    <base_dir>/imports/<import_id>/meta.json
    <base_dir>/imports/<import_id>/report.json
"""

import hashlib
import json
import logging
import os
import shutil
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from uuid import UUID

import uuid6

from catalog_import_export.config import ImportExportConfig, resolve_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ImportPaths:
    """
    Resolved paths for a single import.
    单次导入的文件系统路径。

    Attributes:
        root: Root directory for this import.
        root: 本次导入的根目录。
        original: Path prefix for the uploaded file (suffix appended later).
        original: 上传文件路径前缀（后续会加上扩展名）。
        meta: Path to meta.json.
        meta: meta.json 路径。
        report: Path to report.json (audit record of outcomes).
        report: report.json 路径（结果审计记录）。
    """

    root: Path
    original: Path
    meta: Path
    report: Path


def new_import_id() -> UUID:
    """
    Create a new import id.
    创建新的导入 ID。

    Returns:
        UUID: Generated UUIDv7.
        UUID: 生成的 UUIDv7。
    """
    return uuid6.uuid7()


def now_ts() -> int:
    return int(time.time())


def get_import_paths(
    import_id: UUID, *, config: ImportExportConfig | None = None, base_dir: str | os.PathLike[str] | None = None
) -> ImportPaths:
    """
    Resolve all filesystem paths for a given import_id.
    为给定的导入 ID 解析所有文件系统路径。

    Args:
        import_id: Import identifier.
        import_id: 导入 ID。
        config: Optional pre-resolved config.
        config: 可选：已解析好的配置。
        base_dir: Optional base directory override when config is not provided.
        base_dir: 可选：base_dir 覆盖（当 config 未提供时使用）。

    Returns:
        ImportPaths: Resolved paths.
        ImportPaths: 导入路径集合。
    """
    cfg = config or resolve_config(base_dir=base_dir)
    root = cfg.imports_dir / str(import_id)
    return ImportPaths(root=root, original=root / "original", meta=root / "meta.json", report=root / "report.json")


def write_meta(paths: ImportPaths, meta: dict[str, Any]) -> None:
    paths.root.mkdir(parents=True, exist_ok=True)
    paths.meta.write_text(json.dumps(meta, ensure_ascii=False, indent=2), encoding="utf-8")


def read_meta(paths: ImportPaths) -> dict[str, Any]:
    return json.loads(paths.meta.read_text(encoding="utf-8"))


def write_report(paths: ImportPaths, report_json: str) -> None:
    """
    Persist the serialized report next to meta.json.
    将序列化后的报告保存在 meta.json 旁边。
    """
    paths.root.mkdir(parents=True, exist_ok=True)
    paths.report.write_text(report_json, encoding="utf-8")


def sha256_file(file_path: Path) -> str:
    """
    Compute sha256 checksum of a file.
    计算文件的 sha256 校验和。

    Args:
        file_path: Path to the file.
        file_path: 文件路径。

    Returns:
        str: Hex string sha256 digest.
        str: sha256 十六进制摘要字符串。
    """
    h = hashlib.sha256()
    with file_path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def safe_rmtree(path: Path) -> None:
    shutil.rmtree(path, ignore_errors=True)


def cleanup_expired_imports(
    *,
    ttl_hours: int,
    config: ImportExportConfig | None = None,
    base_dir: str | os.PathLike[str] | None = None,
    keep: Iterable[UUID] = (),
) -> int:
    """
    Cleanup expired import directories.
    清理过期的导入目录。

    The function uses `meta.json.created_at` as the primary signal; directories
    without a readable meta.json are treated as expired.
    函数使用 `meta.json.created_at` 作为主要信号；无法读取 meta.json 的目录视为过期。

    Args:
        ttl_hours: TTL in hours.
        ttl_hours: 过期时间（小时）。
        config: Optional config override.
        config: 可选：配置覆盖。
        base_dir: Optional base_dir override when config is not provided.
        base_dir: 可选：base_dir 覆盖（当 config 未提供时使用）。
        keep: Import ids never removed (e.g. running jobs).
        keep: 永不删除的导入 ID（例如运行中的任务）。

    Returns:
        int: Number of directories cleaned.
        int: 清理的目录数量。
    """
    cfg = config or resolve_config(base_dir=base_dir)
    imports_dir = cfg.imports_dir
    if not imports_dir.exists():
        return 0
    cutoff = now_ts() - int(ttl_hours) * 3600
    kept = {str(k) for k in keep}
    cleaned = 0
    for item in imports_dir.iterdir():
        if not item.is_dir() or item.name in kept:
            continue
        created_at = 0
        meta_path = item / "meta.json"
        if meta_path.exists():
            try:
                meta = json.loads(meta_path.read_text(encoding="utf-8"))
                created_at = int(meta.get("created_at") or 0)
            except (OSError, ValueError) as exc:
                logger.warning("Unreadable meta.json in %s: %s", item, exc)
        if created_at and created_at >= cutoff:
            continue
        safe_rmtree(item)
        cleaned += 1
    return cleaned
