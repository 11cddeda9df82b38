"""平台探测

把宿主的 platform.system() / platform.machine() 归一为 PlatformKey。
只接受 macOS / Linux 与 ARM64 / x86_64 的组合，其余一律报错，不做默认回退。
"""

from __future__ import annotations

import logging
import platform
import subprocess

from dashy_installer.core.exceptions import UnsupportedPlatformError
from dashy_installer.core.models import Arch, OSFamily, PlatformKey
from dashy_installer.utils.shell import CommandExecutor, get_executor

logger = logging.getLogger(__name__)

_OS_ALIASES = {
    "darwin": OSFamily.MACOS,
    "macos": OSFamily.MACOS,
    "linux": OSFamily.LINUX,
}

_ARCH_ALIASES = {
    "arm64": Arch.ARM64,
    "aarch64": Arch.ARM64,
    "armv8": Arch.ARM64,
    "x86_64": Arch.X86_64,
    "amd64": Arch.X86_64,
    "x64": Arch.X86_64,
}


def normalize_os(system: str) -> OSFamily:
    os_family = _OS_ALIASES.get(system.strip().lower())
    if os_family is None:
        raise UnsupportedPlatformError(
            f"不支持的操作系统: '{system or '未知'}'（仅支持 macOS / Linux）",
            system=system,
        )
    return os_family


def normalize_arch(machine: str, *, system: str = "") -> Arch:
    arch = _ARCH_ALIASES.get(machine.strip().lower())
    if arch is None:
        raise UnsupportedPlatformError(
            f"不支持的 CPU 架构: '{machine or '未知'}' (os={system or '未知'})，"
            "仅支持 arm64 / x86_64",
            system=system, machine=machine,
        )
    return arch


def _rosetta_translated(executor: CommandExecutor) -> bool:
    """x86_64 进程是否运行在 Apple Silicon 的 Rosetta 转译下

    制品按硬件架构选择，转译进程同样应拿到 arm64 制品。查询失败时按未转译处理。
    """
    try:
        r = executor.execute(
            ["sysctl", "-n", "sysctl.proc_translated"], timeout=5,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("sysctl 查询失败，按原生架构处理: %s", e)
        return False
    return r.success and r.stdout.strip() == "1"


def detect_platform(
    system: str | None = None,
    machine: str | None = None,
    *,
    executor: CommandExecutor | None = None,
) -> PlatformKey:
    """探测当前平台

    参数:
        system: 操作系统名，None 表示读取宿主 platform.system()
        machine: 架构名，None 表示读取宿主 platform.machine()
        executor: Rosetta 探测使用的命令执行器

    异常:
        UnsupportedPlatformError: 操作系统或架构无法归类
    """
    live = system is None and machine is None
    system = platform.system() if system is None else system
    machine = platform.machine() if machine is None else machine

    os_family = normalize_os(system)
    arch = normalize_arch(machine, system=system)

    if live and os_family is OSFamily.MACOS and arch is Arch.X86_64:
        if _rosetta_translated(executor or get_executor()):
            logger.info("检测到 Rosetta 转译，按 arm64 硬件选择制品")
            arch = Arch.ARM64

    key = PlatformKey(os_family, arch)
    logger.info("平台: %s (system=%s machine=%s)", key, system, machine)
    return key
