"""安装流水线

步骤顺序（严格串行，不可重入）：
1. detect_platform - 探测平台
2. resolve - 解析制品 URL 与校验和
3. fetch - 下载并校验
4. install - 解包并放入 bin 目录
5. smoke_test - 冒烟测试

任一步骤抛出 InstallerError 时，补充 step / platform 后原样向上传播，
后续步骤不再执行。

用法:
    from dashy_installer.services.install_service import InstallService

    svc = InstallService(DASHY, bin_dir=Path("/usr/local/bin"))
    report = svc.install()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dashy_installer.core.exceptions import InstallerError
from dashy_installer.core.fetcher import ArtifactFetcher
from dashy_installer.core.formula import FormulaSpec
from dashy_installer.core.installer import Installer
from dashy_installer.core.models import ArtifactDescriptor, PlatformKey
from dashy_installer.core.platform import detect_platform
from dashy_installer.core.resolver import ArtifactResolver
from dashy_installer.core.smoke import SmokeTester

logger = logging.getLogger(__name__)


@dataclass
class InstallReport:
    """安装执行报告"""

    formula: str
    version: str
    platform: PlatformKey | None = None
    artifact: ArtifactDescriptor | None = None
    installed_path: Path | None = None
    smoke_output: str = ""
    steps: list[dict[str, Any]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return bool(self.steps) and all(s["status"] != "failed" for s in self.steps)


class InstallService:
    """单个配方的安装 / 测试入口"""

    def __init__(
        self,
        formula: FormulaSpec,
        *,
        bin_dir: Path,
        version: str | None = None,
        detector: Callable[[], PlatformKey] = detect_platform,
        fetcher: ArtifactFetcher | None = None,
        installer: Installer | None = None,
        smoke: SmokeTester | None = None,
    ) -> None:
        self.formula = formula
        self.bin_dir = bin_dir
        self.version = version or formula.version
        self.detector = detector
        self.resolver = ArtifactResolver(formula)
        self.fetcher = fetcher or ArtifactFetcher()
        self.installer = installer or Installer(formula.name)
        self.smoke = smoke or SmokeTester(formula.name)

    @property
    def target(self) -> Path:
        return self.bin_dir / self.formula.name

    def install(self, *, run_smoke: bool = True) -> InstallReport:
        """完整安装流程，返回报告；失败时抛出对应 InstallerError"""
        report = InstallReport(formula=self.formula.name, version=self.version)
        logger.info("开始安装 %s@%s -> %s", self.formula.name, self.version, self.bin_dir)

        with self._step("detect_platform", report):
            report.platform = self.detector()
            report.steps.append({
                "step": "detect_platform", "status": "done",
                "platform": str(report.platform),
            })
            logger.info("[Step 1] 平台: %s", report.platform)

        with self._step("resolve", report):
            artifact = self.resolver.resolve(report.platform, self.version)
            report.artifact = artifact
            report.steps.append({
                "step": "resolve", "status": "done",
                "url": artifact.url, "sha256": artifact.expected_checksum,
            })
            logger.info("[Step 2] 制品: %s", artifact.url)

        # 临时文件的生命周期只覆盖 fetch + install 两步
        with self._step("fetch", report), self.fetcher.fetch(artifact) as archive:
            report.steps.append({
                "step": "fetch", "status": "done", "file": archive.name,
            })
            logger.info("[Step 3] 下载并校验完成: %s", archive.name)

            with self._step("install", report):
                report.installed_path = self.installer.install(archive, self.bin_dir)
                report.steps.append({
                    "step": "install", "status": "done",
                    "path": str(report.installed_path),
                })
                logger.info("[Step 4] 已安装: %s", report.installed_path)

        if run_smoke:
            self._smoke_test(report, report.installed_path, step_no=5)
        else:
            report.steps.append({"step": "smoke_test", "status": "skipped"})

        logger.info("安装完成: %s@%s (%s)", self.formula.name, self.version, report.platform)
        return report

    def test(self) -> InstallReport:
        """只对已安装的可执行文件执行冒烟测试"""
        report = InstallReport(formula=self.formula.name, version=self.version)
        report.installed_path = self.target
        self._smoke_test(report, self.target, step_no=1)
        return report

    def _smoke_test(self, report: InstallReport, binary: Path, step_no: int) -> None:
        with self._step("smoke_test", report):
            report.smoke_output = self.smoke.run(binary)
            report.steps.append({"step": "smoke_test", "status": "done"})
            logger.info("[Step %d] 冒烟测试通过", step_no)

    @contextmanager
    def _step(self, name: str, report: InstallReport) -> Iterator[None]:
        """步骤边界：为异常补充 step / platform，记录失败后继续传播"""
        try:
            yield
        except InstallerError as e:
            if not e.step:
                e.step = name
                e.platform = str(report.platform) if report.platform else ""
                report.steps.append({
                    "step": name, "status": "failed", "code": e.code, "error": str(e),
                })
                logger.error(
                    "步骤 %s 失败 [%s] (platform=%s): %s",
                    name, e.code, e.platform or "未知", e,
                    extra={"step": name},
                )
            raise
