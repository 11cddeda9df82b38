"""CLI - 安装与测试命令"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from dashy_installer.cli import _fail, _load_formula
from dashy_installer.core.config import get_config
from dashy_installer.core.exceptions import InstallerError
from dashy_installer.core.fetcher import ArtifactFetcher
from dashy_installer.core.smoke import SmokeTester
from dashy_installer.services.install_service import InstallService

logger = logging.getLogger(__name__)


def register(group: click.Group) -> None:
    group.add_command(install)
    group.add_command(test)


def _service(
    formula_file: str | None, bin_dir: str | None, version: str | None = None,
) -> InstallService:
    cfg = get_config()
    formula = _load_formula(formula_file)
    return InstallService(
        formula,
        bin_dir=Path(bin_dir).expanduser() if bin_dir else cfg.bin_path(),
        version=version,
        fetcher=ArtifactFetcher(timeout=cfg.download_timeout, tmp_root=cfg.tmp_path()),
        smoke=SmokeTester(formula.name, timeout=cfg.smoke_timeout),
    )


@click.command()
@click.option("--bin-dir", default=None, help="安装目标目录（覆盖配置 bin_dir）")
@click.option("--version", default=None, help="指定版本（覆盖配方默认版本）")
@click.option("--formula", "formula_file", default=None, help="配方 YAML 文件")
@click.option("--skip-test", is_flag=True, help="安装后不执行冒烟测试")
def install(
    bin_dir: str | None, version: str | None,
    formula_file: str | None, skip_test: bool,
) -> None:
    """探测平台、下载校验制品并安装到 bin 目录"""
    svc = _service(formula_file, bin_dir, version)
    if svc.formula.provisional_checksums:
        logger.warning("配方 %s 的校验和为发版占位值，下载的发布包将无法通过校验", svc.formula.name)
    try:
        report = svc.install(run_smoke=not skip_test)
    except InstallerError as e:
        raise _fail(e) from e
    click.echo(f"已安装: {report.formula} {report.version} ({report.platform}) -> {report.installed_path}")


@click.command()
@click.option("--bin-dir", default=None, help="已安装目录（覆盖配置 bin_dir）")
@click.option("--formula", "formula_file", default=None, help="配方 YAML 文件")
def test(bin_dir: str | None, formula_file: str | None) -> None:
    """对已安装的可执行文件执行冒烟测试"""
    svc = _service(formula_file, bin_dir)
    try:
        report = svc.test()
    except InstallerError as e:
        raise _fail(e) from e
    click.echo(f"冒烟测试通过: {report.installed_path}")
    click.echo(report.smoke_output.strip())
