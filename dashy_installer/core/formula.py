"""安装配方

配方 = 元信息 + 版本 + 发布地址 + 每个架构三元组的 SHA-256。
内置 DASHY 配方覆盖全部四个平台；也可以从 YAML 文件加载同结构的配方，
用于发版时更新校验和而不改代码。

YAML 格式:
    name: dashy
    desc: Fast, lightweight terminal system monitor
    homepage: https://github.com/mshaaban0/dashy
    version: 0.1.0
    license: MIT
    release_host: https://github.com/mshaaban0/dashy/releases/download
    tag_prefix: v
    checksums:
      aarch64-apple-darwin: <64 位十六进制>
      x86_64-apple-darwin: ...
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from dashy_installer.core.exceptions import ConfigError
from dashy_installer.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

SUPPORTED_TRIPLES = (
    "aarch64-apple-darwin",
    "x86_64-apple-darwin",
    "aarch64-unknown-linux-gnu",
    "x86_64-unknown-linux-gnu",
)

_SHA256_RE = re.compile(r"^[0-9a-f]{64}$")


def is_sha256(value: str) -> bool:
    return bool(_SHA256_RE.match(value))


@dataclass(frozen=True)
class FormulaSpec:
    """单个工具的安装配方"""

    name: str
    version: str
    release_host: str
    checksums: dict[str, str] = field(default_factory=dict)
    desc: str = ""
    homepage: str = ""
    license: str = ""
    tag_prefix: str = "v"
    # 校验和尚未替换为真实发布包摘要，安装必然校验失败
    provisional_checksums: bool = False

    def artifact_url(self, triple: str, version: str | None = None) -> str:
        """<release_host>/<tag><version>/<name>-<triple>.tar.gz"""
        ver = version or self.version
        host = self.release_host.rstrip("/")
        return f"{host}/{self.tag_prefix}{ver}/{self.name}-{triple}.tar.gz"


# 以下校验和是格式合法的发版占位值，不是真实发布包的摘要。
# 发版时替换为 release 附带的 sha256，并去掉 provisional_checksums；
# 在此之前请用 --formula 指定发版配方安装。
DASHY = FormulaSpec(
    name="dashy",
    desc="Fast, lightweight terminal system monitor",
    homepage="https://github.com/mshaaban0/dashy",
    version="0.1.0",
    license="MIT",
    release_host="https://github.com/mshaaban0/dashy/releases/download",
    provisional_checksums=True,
    checksums={
        "aarch64-apple-darwin":
            "881c37bf8fc8880fc8d623d2d1b8a378890f57beb518153148b7bb817dac694a",
        "x86_64-apple-darwin":
            "a9a7b84aede327c8e4bc4e261fb306a2085784624785a40e988bd9b28b10c00e",
        "aarch64-unknown-linux-gnu":
            "c857cfd8f4f00614da213496b1cd9039abdb4d1bc3ff97e9868c50e5dcea0b7b",
        "x86_64-unknown-linux-gnu":
            "3154bd1ce72e1a5bf81ab229d0bdacc13dbd2e6ef7f84842042ec9716824b770",
    },
)


def load_formula(path: str | Path) -> FormulaSpec:
    """从 YAML 文件加载配方，字段缺失或校验和格式错误抛 ConfigError"""
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"配方文件不存在: {p}")
    try:
        data = load_yaml(p)
    except (yaml.YAMLError, ValueError) as e:
        raise ConfigError(f"配方文件无效: {p} - {e}") from e

    missing = [k for k in ("name", "version", "release_host") if not data.get(k)]
    if missing:
        raise ConfigError(f"配方 {p} 缺少字段: {', '.join(missing)}")

    raw = data.get("checksums") or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"配方 {p} 的 checksums 必须是 <三元组>: <sha256> 映射")

    checksums: dict[str, str] = {}
    errors: list[str] = []
    for triple, digest in raw.items():
        if triple not in SUPPORTED_TRIPLES:
            errors.append(f"未知架构三元组 '{triple}'")
            continue
        digest = str(digest).strip().lower()
        if not is_sha256(digest):
            errors.append(f"{triple}: 校验和不是 64 位十六进制 SHA-256")
            continue
        checksums[triple] = digest
    if errors:
        raise ConfigError(f"配方 {p} 校验失败: " + "; ".join(errors))

    formula = FormulaSpec(
        name=str(data["name"]),
        version=str(data["version"]),
        release_host=str(data["release_host"]),
        checksums=checksums,
        desc=str(data.get("desc", "")),
        homepage=str(data.get("homepage", "")),
        license=str(data.get("license", "")),
        tag_prefix=str(data.get("tag_prefix", "v")),
    )
    absent = [t for t in SUPPORTED_TRIPLES if t not in checksums]
    if absent:
        logger.warning("配方 %s 未覆盖平台: %s", formula.name, ", ".join(absent))
    logger.info("已加载配方: %s@%s (%s)", formula.name, formula.version, p)
    return formula
