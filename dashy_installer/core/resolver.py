"""制品解析器

职责:
- 按 PlatformKey 查静态架构三元组表
- 拼接下载 URL，取出期望校验和
- 纯查找，无副作用；查不到时显式报错，不回退到默认平台
"""

from __future__ import annotations

import logging
import re

from dashy_installer.core.exceptions import (
    UnresolvableArtifactError,
    ValidationError,
)
from dashy_installer.core.formula import FormulaSpec
from dashy_installer.core.models import (
    Arch,
    ArtifactDescriptor,
    OSFamily,
    PlatformKey,
)

logger = logging.getLogger(__name__)

ARCH_TRIPLES: dict[PlatformKey, str] = {
    PlatformKey(OSFamily.MACOS, Arch.ARM64): "aarch64-apple-darwin",
    PlatformKey(OSFamily.MACOS, Arch.X86_64): "x86_64-apple-darwin",
    PlatformKey(OSFamily.LINUX, Arch.ARM64): "aarch64-unknown-linux-gnu",
    PlatformKey(OSFamily.LINUX, Arch.X86_64): "x86_64-unknown-linux-gnu",
}

_VERSION_RE = re.compile(r"^[0-9A-Za-z][0-9A-Za-z.+_-]*$")


def validate_version(version: str) -> str:
    if not _VERSION_RE.match(version or ""):
        raise ValidationError(f"非法版本号: '{version}'")
    return version


class ArtifactResolver:
    """PlatformKey + 版本 -> ArtifactDescriptor"""

    def __init__(self, formula: FormulaSpec) -> None:
        self.formula = formula

    def resolve(
        self, key: PlatformKey, version: str | None = None,
    ) -> ArtifactDescriptor:
        ver = validate_version(version or self.formula.version)

        triple = ARCH_TRIPLES.get(key)
        if triple is None:
            raise UnresolvableArtifactError(
                f"平台 {key} 没有对应的制品条目。"
                f"可用: {', '.join(str(k) for k in ARCH_TRIPLES)}"
            )
        checksum = self.formula.checksums.get(triple)
        if not checksum:
            raise UnresolvableArtifactError(
                f"配方 {self.formula.name} 未提供 {triple} 的制品校验和"
            )

        descriptor = ArtifactDescriptor(
            platform=key,
            triple=triple,
            url=self.formula.artifact_url(triple, ver),
            expected_checksum=checksum,
            provisional=self.formula.provisional_checksums,
        )
        logger.info("制品: %s -> %s", key, descriptor.url)
        return descriptor

    def resolve_all(self, version: str | None = None) -> list[ArtifactDescriptor]:
        """解析全部受支持平台；配方缺失的平台同样抛错"""
        return [self.resolve(key, version) for key in ARCH_TRIPLES]
