"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: config.py
@DateTime: 2026-02-08
@Docs: Workspace and import option resolution.
工作区与导入选项解析。

Configuration is resolved from explicit parameters first, then environment
variables, then defaults.
配置解析顺序：显式参数 → 环境变量 → 默认值。

Environment variables / 环境变量:
        - CATALOG_IMPORT_EXPORT_BASE_DIR / CATALOG_IMPORT_EXPORT_TMP_DIR:
            Base directory of the upload workspace.
            上传工作区根路径。
        - CATALOG_IMPORT_EXPORT_IMPORTS_DIRNAME:
            Uploads subdirectory name (default: imports).
            上传子目录名称（默认 imports）。
        - CATALOG_IMPORT_EXPORT_ALLOWED_EXTENSIONS / CATALOG_IMPORT_EXPORT_ALLOWED_MIME_TYPES:
            Comma-separated upload allowlists.
            逗号分隔的上传白名单。
        - CATALOG_IMPORT_MAX_BATCH_SIZE, CATALOG_IMPORT_ALLOW_UPDATES,
          CATALOG_IMPORT_RETRY_INDIVIDUALLY, CATALOG_IMPORT_ASYNC_THRESHOLD_BYTES,
          CATALOG_IMPORT_COMMIT_TIMEOUT_SECONDS, CATALOG_IMPORT_MAX_UPLOAD_MB:
            ImportOptions overrides.
            ImportOptions 覆盖项。

Examples:
        >>> from catalog_import_export.config import resolve_config
        >>> cfg = resolve_config()
        >>> cfg.imports_dir.name
        'imports'
"""

import os
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from catalog_import_export.exceptions import ImportExportError
from catalog_import_export.options import ImportOptions

DEFAULT_ALLOWED_EXTENSIONS = (".csv", ".tsv", ".txt")
DEFAULT_ALLOWED_MIME_TYPES = (
    "text/csv",
    "application/csv",
    "text/plain",
    "text/tab-separated-values",
    "application/vnd.ms-excel",
)

_TRUTHY = {"1", "true", "yes", "y", "on"}
_FALSY = {"0", "false", "no", "n", "off"}


@dataclass(frozen=True, slots=True)
class ImportExportConfig:
    """Import/export workspace configuration.

    导入导出工作区配置.

    Attributes:
        base_dir: Base directory of the workspace.
            工作区根目录。
        imports_dirname: Imports subdirectory name.
            imports 子目录名称。
        allowed_extensions: Allowed upload file extensions.
            允许上传的文件扩展名。
        allowed_mime_types: Allowed upload MIME types.
            允许上传的 MIME 类型。
    """

    base_dir: Path
    imports_dirname: str = "imports"
    allowed_extensions: tuple[str, ...] = DEFAULT_ALLOWED_EXTENSIONS
    allowed_mime_types: tuple[str, ...] = DEFAULT_ALLOWED_MIME_TYPES

    @property
    def imports_dir(self) -> Path:
        """Return the imports directory.

        返回 imports 目录路径。
        """
        return self.base_dir / self.imports_dirname


def _env_get(*names: str) -> str | None:
    """Get the first non-empty environment variable value.

    获取第一个非空环境变量值。

    Args:
        *names: Candidate environment variable names in priority order.
            候选环境变量名（按优先级顺序）。

    Returns:
        The first non-empty value, or None.
            返回第一个非空值；若都为空则返回 None。
    """
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip():
            return v.strip()
    return None


def _split_csv(value: str | None) -> list[str]:
    if value is None:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def _normalize_extensions(values: Iterable[str]) -> tuple[str, ...]:
    normalized = []
    for v in values:
        item = str(v).strip().lower()
        if not item:
            continue
        if not item.startswith("."):
            item = f".{item}"
        normalized.append(item)
    return tuple(sorted(set(normalized)))


def _normalize_mime_types(values: Iterable[str]) -> tuple[str, ...]:
    normalized = [str(v).strip().lower() for v in values if str(v).strip()]
    return tuple(sorted(set(normalized)))


def resolve_config(
    *,
    base_dir: str | os.PathLike[str] | None = None,
    imports_dirname: str = "imports",
    allowed_extensions: Iterable[str] | None = None,
    allowed_mime_types: Iterable[str] | None = None,
    env_prefix: str = "CATALOG_IMPORT_EXPORT",
) -> ImportExportConfig:
    """Resolve workspace configuration from parameters and environment variables.

    从参数和环境变量解析工作区配置。

     Resolution order / 解析优先级:
        1) `base_dir` parameter / 函数参数 base_dir
        2) env: `{env_prefix}_BASE_DIR` or `{env_prefix}_TMP_DIR`
           环境变量：`{env_prefix}_BASE_DIR` 或 `{env_prefix}_TMP_DIR`
        3) system temp directory: `<temp>/catalog_import_export`
           系统临时目录：`<temp>/catalog_import_export`

    Args:
        base_dir: Base directory for the workspace.
            工作区根目录。
        imports_dirname: Imports subdirectory name.
            imports 子目录名称。
        allowed_extensions: Allowed upload file extensions.
            允许上传的文件扩展名。
        allowed_mime_types: Allowed upload MIME types.
            允许上传的 MIME 类型。
        env_prefix: Prefix for environment variables.
            环境变量前缀。

    Returns:
        An ImportExportConfig instance.
            返回 ImportExportConfig 配置实例。
    """
    env_base_dir = _env_get(f"{env_prefix}_BASE_DIR", f"{env_prefix}_TMP_DIR")
    resolved_base = Path(base_dir) if base_dir is not None else (Path(env_base_dir) if env_base_dir else None)

    if resolved_base is None:
        resolved_base = Path(tempfile.gettempdir()) / "catalog_import_export"

    env_imports = _env_get(f"{env_prefix}_IMPORTS_DIRNAME")
    env_allowed_exts = _env_get(f"{env_prefix}_ALLOWED_EXTENSIONS")
    env_allowed_mimes = _env_get(f"{env_prefix}_ALLOWED_MIME_TYPES")
    resolved_exts = _normalize_extensions(
        allowed_extensions
        if allowed_extensions is not None
        else (_split_csv(env_allowed_exts) or DEFAULT_ALLOWED_EXTENSIONS)
    )
    resolved_mimes = _normalize_mime_types(
        allowed_mime_types
        if allowed_mime_types is not None
        else (_split_csv(env_allowed_mimes) or DEFAULT_ALLOWED_MIME_TYPES)
    )
    return ImportExportConfig(
        base_dir=resolved_base,
        imports_dirname=env_imports or imports_dirname,
        allowed_extensions=resolved_exts,
        allowed_mime_types=resolved_mimes,
    )


def _env_int(name: str) -> int | None:
    raw = _env_get(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ImportExportError(
            message=f"{name} must be an integer / {name} 必须为整数",
            details={"value": raw},
            error_code="invalid_options",
        ) from exc


def _env_float(name: str) -> float | None:
    raw = _env_get(name)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ImportExportError(
            message=f"{name} must be a number / {name} 必须为数字",
            details={"value": raw},
            error_code="invalid_options",
        ) from exc


def _env_bool(name: str) -> bool | None:
    raw = _env_get(name)
    if raw is None:
        return None
    lowered = raw.lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ImportExportError(
        message=f"{name} must be a boolean / {name} 必须为布尔值",
        details={"value": raw},
        error_code="invalid_options",
    )


def resolve_import_options(
    *,
    max_batch_size: int | None = None,
    allow_updates: bool | None = None,
    retry_individually_on_batch_failure: bool | None = None,
    async_threshold_bytes: int | None = None,
    commit_timeout_seconds: float | None = None,
    max_upload_mb: int | None = None,
    env_prefix: str = "CATALOG_IMPORT",
) -> ImportOptions:
    """Resolve ImportOptions from parameters, then environment, then defaults.

    按 参数 → 环境变量 → 默认值 的顺序解析 ImportOptions。

    Args:
        max_batch_size: Max rows per batch.
            每批最大行数。
        allow_updates: Whether existing keys are updated.
            已存在的键是否更新。
        retry_individually_on_batch_failure: Retry rows one by one after a failed batch.
            批次失败后是否逐行重试。
        async_threshold_bytes: Size threshold for background imports.
            后台导入的大小阈值。
        commit_timeout_seconds: Per-batch commit timeout.
            单批提交超时。
        max_upload_mb: Max upload size in MB.
            最大上传大小（MB）。
        env_prefix: Prefix for environment variables.
            环境变量前缀。

    Returns:
        ImportOptions: Resolved immutable options.
            解析后的不可变选项。

    Raises:
        ImportExportError: When an environment value cannot be parsed.
            环境变量值无法解析时抛出。
    """
    defaults = ImportOptions()

    def pick[T](explicit: T | None, env_value: T | None, default: T) -> T:
        if explicit is not None:
            return explicit
        if env_value is not None:
            return env_value
        return default

    return ImportOptions(
        max_batch_size=pick(max_batch_size, _env_int(f"{env_prefix}_MAX_BATCH_SIZE"), defaults.max_batch_size),
        allow_updates=pick(allow_updates, _env_bool(f"{env_prefix}_ALLOW_UPDATES"), defaults.allow_updates),
        retry_individually_on_batch_failure=pick(
            retry_individually_on_batch_failure,
            _env_bool(f"{env_prefix}_RETRY_INDIVIDUALLY"),
            defaults.retry_individually_on_batch_failure,
        ),
        async_threshold_bytes=pick(
            async_threshold_bytes,
            _env_int(f"{env_prefix}_ASYNC_THRESHOLD_BYTES"),
            defaults.async_threshold_bytes,
        ),
        commit_timeout_seconds=pick(
            commit_timeout_seconds,
            _env_float(f"{env_prefix}_COMMIT_TIMEOUT_SECONDS"),
            defaults.commit_timeout_seconds,
        ),
        max_upload_mb=pick(max_upload_mb, _env_int(f"{env_prefix}_MAX_UPLOAD_MB"), defaults.max_upload_mb),
    )
