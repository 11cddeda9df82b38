"""dashy-installer 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from dashy_installer import __version__
from dashy_installer.core.config import get_config, init_config
from dashy_installer.core.exceptions import InstallerError
from dashy_installer.core.formula import DASHY, FormulaSpec, load_formula
from dashy_installer.utils.logger import setup_logging


def _load_formula(formula_file: str | None) -> FormulaSpec:
    """命令行 --formula 优先，其次配置文件，最后内置 dashy 配方"""
    path = formula_file or get_config().formula_file
    if not path:
        return DASHY
    try:
        return load_formula(Path(path).expanduser())
    except InstallerError as e:
        raise _fail(e) from e


def _fail(exc: InstallerError) -> click.ClickException:
    """把 InstallerError 转成带步骤与平台信息的 CLI 错误"""
    where = []
    if exc.step:
        where.append(f"step={exc.step}")
    if exc.platform:
        where.append(f"platform={exc.platform}")
    prefix = f"[{' '.join(where)}] " if where else ""
    return click.ClickException(f"{prefix}{exc.code}: {exc}")


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "-c", "config_path", default=None,
    help="配置文件路径（默认读取 DASHY_INSTALLER_CONFIG 或 configs/default.yml）",
)
def main(config_path: str | None) -> None:
    """dashy-installer - dashy 预编译二进制安装器"""
    setup_logging(
        level=os.getenv("DASHY_INSTALLER_LOG_LEVEL", "INFO"),
        json_output=os.getenv("DASHY_INSTALLER_LOG_JSON", "") == "1",
    )
    try:
        init_config(config_path)
    except InstallerError as e:
        raise _fail(e) from e


# 注册各领域子命令
from dashy_installer.cli.cmd_install import register as _reg_install  # noqa: E402
from dashy_installer.cli.cmd_formula import register as _reg_formula  # noqa: E402

_reg_install(main)
_reg_formula(main)
