"""核心数据模型

平台键与制品描述集中定义，platform / resolver / fetcher / installer 统一从此处导入。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class OSFamily(str, Enum):
    """受支持的操作系统"""

    MACOS = "macos"
    LINUX = "linux"


class Arch(str, Enum):
    """受支持的 CPU 架构"""

    ARM64 = "arm64"
    X86_64 = "x86_64"


@dataclass(frozen=True)
class PlatformKey:
    """(操作系统, 架构) 二元组，每次运行只计算一次"""

    os: OSFamily
    arch: Arch

    def __str__(self) -> str:
        os_name = getattr(self.os, "value", self.os)
        arch_name = getattr(self.arch, "value", self.arch)
        return f"{os_name}/{arch_name}"


@dataclass(frozen=True)
class ArtifactDescriptor:
    """单个平台的制品描述（只读）"""

    platform: PlatformKey
    triple: str
    url: str
    expected_checksum: str
    provisional: bool = False  # 校验和为发版占位值

    @property
    def filename(self) -> str:
        return self.url.rstrip("/").rsplit("/", 1)[-1]
