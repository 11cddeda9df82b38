"""配方加载测试"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from dashy_installer.core.exceptions import ConfigError
from dashy_installer.core.formula import DASHY, SUPPORTED_TRIPLES, load_formula


def _write(tmp_path: Path, data: dict) -> Path:
    p = tmp_path / "dashy.yml"
    p.write_text(yaml.dump(data, allow_unicode=True), encoding="utf-8")
    return p


def _valid() -> dict:
    return {
        "name": "dashy",
        "desc": "Fast, lightweight terminal system monitor",
        "version": "0.2.0",
        "license": "MIT",
        "release_host": "https://mirror.example.com/dashy/",
        "checksums": {t: "AB" * 32 for t in SUPPORTED_TRIPLES},
    }


class TestBuiltin:
    def test_metadata(self) -> None:
        assert DASHY.name == "dashy"
        assert DASHY.version == "0.1.0"
        assert DASHY.license == "MIT"
        assert set(DASHY.checksums) == set(SUPPORTED_TRIPLES)

    def test_artifact_url(self) -> None:
        assert DASHY.artifact_url("x86_64-unknown-linux-gnu", "1.2.3") == (
            "https://github.com/mshaaban0/dashy/releases/download/"
            "v1.2.3/dashy-x86_64-unknown-linux-gnu.tar.gz"
        )


class TestLoadFormula:
    def test_load(self, tmp_path: Path) -> None:
        f = load_formula(_write(tmp_path, _valid()))
        assert f.version == "0.2.0"
        # 校验和统一转小写
        assert all(v == "ab" * 32 for v in f.checksums.values())
        assert f.artifact_url("aarch64-apple-darwin") == (
            "https://mirror.example.com/dashy/v0.2.0/dashy-aarch64-apple-darwin.tar.gz"
        )

    def test_custom_tag_prefix(self, tmp_path: Path) -> None:
        data = _valid()
        data["tag_prefix"] = ""
        f = load_formula(_write(tmp_path, data))
        assert "/0.2.0/dashy-" in f.artifact_url("aarch64-apple-darwin")

    def test_partial_table_allowed(self, tmp_path: Path) -> None:
        data = _valid()
        data["checksums"] = {"x86_64-apple-darwin": "c" * 64}
        f = load_formula(_write(tmp_path, data))
        assert list(f.checksums) == ["x86_64-apple-darwin"]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="不存在"):
            load_formula(tmp_path / "nope.yml")

    def test_missing_fields(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="release_host"):
            load_formula(_write(tmp_path, {"name": "dashy", "version": "1"}))

    def test_placeholder_checksum_rejected(self, tmp_path: Path) -> None:
        data = _valid()
        data["checksums"]["aarch64-apple-darwin"] = "PLACEHOLDER_SHA256_ARM_MACOS"
        with pytest.raises(ConfigError, match="aarch64-apple-darwin"):
            load_formula(_write(tmp_path, data))

    def test_unknown_triple_rejected(self, tmp_path: Path) -> None:
        data = _valid()
        data["checksums"]["i686-pc-windows-msvc"] = "d" * 64
        with pytest.raises(ConfigError, match="i686-pc-windows-msvc"):
            load_formula(_write(tmp_path, data))

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        p = tmp_path / "bad.yml"
        p.write_text("name: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigError, match="配方文件无效"):
            load_formula(p)
