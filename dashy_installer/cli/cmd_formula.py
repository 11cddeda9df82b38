"""CLI - 配方查询命令（info, platform, resolve）"""

from __future__ import annotations

import click

from dashy_installer.cli import _fail, _load_formula
from dashy_installer.core.exceptions import InstallerError
from dashy_installer.core.models import Arch, OSFamily, PlatformKey
from dashy_installer.core.platform import detect_platform
from dashy_installer.core.resolver import ARCH_TRIPLES, ArtifactResolver


def register(group: click.Group) -> None:
    group.add_command(info)
    group.add_command(show_platform)
    group.add_command(resolve)


@click.command()
@click.option("--formula", "formula_file", default=None, help="配方 YAML 文件")
def info(formula_file: str | None) -> None:
    """显示配方信息与各平台制品"""
    formula = _load_formula(formula_file)
    click.echo(f"{formula.name}: {formula.desc}")
    click.echo(f"  主页:   {formula.homepage}")
    click.echo(f"  版本:   {formula.version}")
    click.echo(f"  许可证: {formula.license}")
    if formula.provisional_checksums:
        click.echo("  警告:   内置校验和为发版占位值，真实发布包将无法通过校验；请用 --formula 指定发版配方")
    click.echo("  制品:")
    for key, triple in ARCH_TRIPLES.items():
        mark = "OK" if triple in formula.checksums else "缺失"
        click.echo(f"    [{mark:2s}] {str(key):14s} {formula.artifact_url(triple)}")


@click.command(name="platform")
def show_platform() -> None:
    """显示当前探测到的平台"""
    try:
        key = detect_platform()
    except InstallerError as e:
        e.step = "detect_platform"
        raise _fail(e) from e
    click.echo(f"{key} ({ARCH_TRIPLES[key]})")


@click.command()
@click.option("--os", "os_name", type=click.Choice([o.value for o in OSFamily]),
              default=None, help="目标操作系统（默认当前平台）")
@click.option("--arch", type=click.Choice([a.value for a in Arch]),
              default=None, help="目标架构（默认当前平台）")
@click.option("--all", "all_platforms", is_flag=True, help="列出全部平台")
@click.option("--version", default=None, help="指定版本")
@click.option("--formula", "formula_file", default=None, help="配方 YAML 文件")
def resolve(
    os_name: str | None, arch: str | None, all_platforms: bool,
    version: str | None, formula_file: str | None,
) -> None:
    """解析制品下载地址与校验和（不下载）"""
    resolver = ArtifactResolver(_load_formula(formula_file))
    try:
        if all_platforms:
            artifacts = resolver.resolve_all(version)
        else:
            key = _target_key(os_name, arch)
            artifacts = [resolver.resolve(key, version)]
    except InstallerError as e:
        e.step = e.step or "resolve"
        raise _fail(e) from e

    for a in artifacts:
        click.echo(f"{a.platform}  {a.url}")
        click.echo(f"  sha256 {a.expected_checksum}")


def _target_key(os_name: str | None, arch: str | None) -> PlatformKey:
    """未指定的维度取当前平台"""
    if os_name and arch:
        return PlatformKey(OSFamily(os_name), Arch(arch))
    try:
        host = detect_platform()
    except InstallerError as e:
        e.step = "detect_platform"
        raise
    return PlatformKey(
        OSFamily(os_name) if os_name else host.os,
        Arch(arch) if arch else host.arch,
    )
