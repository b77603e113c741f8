"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: test_storage.py
@DateTime: 2026-02-08
@Docs: Tests for the upload workspace and audit records.
上传工作区与审计记录测试。
"""

import json
from pathlib import Path
from uuid import UUID

from catalog_import_export.config import ImportExportConfig
from catalog_import_export.storage import (
    cleanup_expired_imports,
    get_import_paths,
    new_import_id,
    now_ts,
    read_meta,
    sha256_file,
    write_meta,
    write_report,
)


def test_new_import_id_is_uuid7() -> None:
    assert new_import_id().version == 7


def test_paths_layout(tmp_config: ImportExportConfig) -> None:
    import_id = new_import_id()
    paths = get_import_paths(import_id, config=tmp_config)
    assert paths.root == tmp_config.imports_dir / str(import_id)
    assert paths.meta.name == "meta.json"
    assert paths.report.name == "report.json"


def test_meta_and_report_roundtrip(tmp_config: ImportExportConfig) -> None:
    paths = get_import_paths(new_import_id(), config=tmp_config)
    write_meta(paths, {"status": "uploaded", "filename": "货品.csv"})
    assert read_meta(paths) == {"status": "uploaded", "filename": "货品.csv"}
    write_report(paths, json.dumps({"inserted": 1}))
    assert json.loads(paths.report.read_text(encoding="utf-8")) == {"inserted": 1}


def test_sha256_file(tmp_path: Path) -> None:
    path = tmp_path / "a.csv"
    path.write_bytes(b"abc")
    assert sha256_file(path) == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


class TestCleanup:
    """Tests for cleanup_expired_imports.
    cleanup_expired_imports 测试。
    """

    def _make(self, config: ImportExportConfig, created_at: int | None) -> Path:
        paths = get_import_paths(new_import_id(), config=config)
        if created_at is None:
            paths.root.mkdir(parents=True)
        else:
            write_meta(paths, {"created_at": created_at})
        return paths.root

    def test_nothing_to_clean(self, tmp_config: ImportExportConfig) -> None:
        assert cleanup_expired_imports(ttl_hours=1, config=tmp_config) == 0

    def test_removes_expired_and_metaless(self, tmp_config: ImportExportConfig) -> None:
        fresh = self._make(tmp_config, now_ts())
        old = self._make(tmp_config, now_ts() - 3 * 3600)
        orphan = self._make(tmp_config, None)
        assert cleanup_expired_imports(ttl_hours=1, config=tmp_config) == 2
        assert fresh.exists()
        assert not old.exists()
        assert not orphan.exists()

    def test_keep_protects_running_imports(self, tmp_config: ImportExportConfig) -> None:
        old = self._make(tmp_config, now_ts() - 3 * 3600)
        assert cleanup_expired_imports(ttl_hours=1, config=tmp_config, keep=[UUID(old.name)]) == 0
        assert old.exists()
