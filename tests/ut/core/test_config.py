"""配置加载测试"""

from __future__ import annotations

from pathlib import Path

import pytest

import dashy_installer.core.config as cfgmod
from dashy_installer.core.config import Config, get_config, init_config
from dashy_installer.core.exceptions import ConfigError


class TestConfig:
    def test_defaults_when_missing(self, tmp_path: Path) -> None:
        cfg = Config.from_file(str(tmp_path / "missing.yml"))
        assert cfg.bin_dir == "~/.local/bin"
        assert cfg.download_timeout == 60.0
        assert cfg.tmp_path() is None

    def test_load_with_extra(self, tmp_path: Path) -> None:
        p = tmp_path / "cfg.yml"
        p.write_text(
            "bin_dir: /opt/dashy/bin\ndownload_timeout: 5\nmirror: internal\n",
            encoding="utf-8",
        )
        cfg = Config.from_file(str(p))
        assert cfg.bin_path() == Path("/opt/dashy/bin")
        assert cfg.download_timeout == 5
        assert cfg.extra == {"mirror": "internal"}

    def test_bin_dir_expands_user(self) -> None:
        assert "~" not in str(Config().bin_path())

    @pytest.mark.parametrize("value", [0, -1, "fast"])
    def test_invalid_timeout(self, tmp_path: Path, value: object) -> None:
        p = tmp_path / "cfg.yml"
        p.write_text(f"smoke_timeout: {value}\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="smoke_timeout"):
            Config.from_file(str(p))

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        p = tmp_path / "cfg.yml"
        p.write_text("bin_dir: [", encoding="utf-8")
        with pytest.raises(ConfigError, match="配置文件无效"):
            Config.from_file(str(p))


class TestGlobalConfig:
    def test_get_config_default(self) -> None:
        assert get_config() is get_config()

    def test_init_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        p = tmp_path / "cfg.yml"
        p.write_text("bin_dir: /srv/bin\n", encoding="utf-8")
        monkeypatch.setenv(cfgmod.CONFIG_ENV_VAR, str(p))
        cfg = init_config()
        assert cfg.bin_dir == "/srv/bin"
        assert get_config() is cfg
