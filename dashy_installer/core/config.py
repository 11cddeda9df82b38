"""集中配置管理

提供统一的配置入口，支持从 YAML 文件加载 + CLI 参数覆盖。
配置文件不存在时使用默认值。
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path

import yaml

from dashy_installer.core.exceptions import ConfigError
from dashy_installer.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "configs/default.yml"
CONFIG_ENV_VAR = "DASHY_INSTALLER_CONFIG"


@dataclass
class Config:
    """安装器全局配置"""

    # 配方文件，空则使用内置 dashy 配方
    formula_file: str = ""

    # 目录
    bin_dir: str = "~/.local/bin"
    tmp_dir: str = ""  # 下载临时目录的父目录，空则使用系统临时目录

    # 超时（秒）
    download_timeout: float = 60.0
    smoke_timeout: float = 30.0

    # 放不到字段里的配置项
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_PATH) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        try:
            data = load_yaml(path)
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"配置文件无效: {path} - {e}") from e
        if not data:
            return cls()
        known = {f for f in cls.__dataclass_fields__ if f != "extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        cfg.validate()
        return cfg

    def validate(self) -> None:
        for name in ("download_timeout", "smoke_timeout"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or value <= 0:
                raise ConfigError(f"{name} 必须为正数，当前值: {value!r}")

    def bin_path(self) -> Path:
        return Path(self.bin_dir).expanduser()

    def tmp_path(self) -> Path | None:
        return Path(self.tmp_dir).expanduser() if self.tmp_dir else None

    def to_dict(self) -> dict:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str | None = None) -> Config:
    """从文件初始化全局配置，路径缺省时读取环境变量 DASHY_INSTALLER_CONFIG"""
    global _current  # noqa: PLW0603
    path = path or os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    _current = Config.from_file(path)
    logger.debug("配置已加载: %s", path)
    return _current
