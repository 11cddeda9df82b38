"""平台探测测试"""

from __future__ import annotations

import subprocess

import pytest

import dashy_installer.core.platform as platmod
from dashy_installer.core.exceptions import UnsupportedPlatformError
from dashy_installer.core.models import Arch, OSFamily, PlatformKey
from dashy_installer.core.platform import detect_platform
from dashy_installer.utils.shell import CommandResult


class FakeExecutor:
    def __init__(self, stdout: str = "", returncode: int = 0, error: Exception | None = None) -> None:
        self.stdout = stdout
        self.returncode = returncode
        self.error = error
        self.calls: list[list[str]] = []

    def execute(self, cmd, *, cwd=".", env=None, timeout=None) -> CommandResult:
        self.calls.append(list(cmd))
        if self.error is not None:
            raise self.error
        return CommandResult(returncode=self.returncode, stdout=self.stdout, stderr="")


class TestDetectPlatform:
    @pytest.mark.parametrize(("system", "machine", "expected"), [
        ("Darwin", "arm64", PlatformKey(OSFamily.MACOS, Arch.ARM64)),
        ("Darwin", "x86_64", PlatformKey(OSFamily.MACOS, Arch.X86_64)),
        ("Linux", "aarch64", PlatformKey(OSFamily.LINUX, Arch.ARM64)),
        ("Linux", "x86_64", PlatformKey(OSFamily.LINUX, Arch.X86_64)),
        ("linux", "AMD64", PlatformKey(OSFamily.LINUX, Arch.X86_64)),
    ])
    def test_supported(self, system: str, machine: str, expected: PlatformKey) -> None:
        assert detect_platform(system, machine) == expected

    def test_windows_rejected(self) -> None:
        with pytest.raises(UnsupportedPlatformError, match="Windows") as exc:
            detect_platform("Windows", "AMD64")
        assert exc.value.system == "Windows"

    @pytest.mark.parametrize("machine", ["i686", "i386", "armv7l", "armv6l", "armv8l", "x86"])
    def test_32bit_rejected(self, machine: str) -> None:
        with pytest.raises(UnsupportedPlatformError, match=machine) as exc:
            detect_platform("Linux", machine)
        assert exc.value.machine == machine
        assert "Linux" in str(exc.value)

    def test_empty_values_rejected(self) -> None:
        with pytest.raises(UnsupportedPlatformError, match="未知"):
            detect_platform("", "")

    def test_reads_host_when_not_given(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(platmod.platform, "system", lambda: "Linux")
        monkeypatch.setattr(platmod.platform, "machine", lambda: "aarch64")
        assert detect_platform() == PlatformKey(OSFamily.LINUX, Arch.ARM64)


class TestRosetta:
    @pytest.fixture(autouse=True)
    def _mac_intel(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(platmod.platform, "system", lambda: "Darwin")
        monkeypatch.setattr(platmod.platform, "machine", lambda: "x86_64")

    def test_translated_process_gets_arm64(self) -> None:
        ex = FakeExecutor(stdout="1\n")
        assert detect_platform(executor=ex).arch is Arch.ARM64
        assert ex.calls == [["sysctl", "-n", "sysctl.proc_translated"]]

    def test_native_intel(self) -> None:
        assert detect_platform(executor=FakeExecutor(stdout="0\n")).arch is Arch.X86_64

    def test_sysctl_missing_falls_back(self) -> None:
        ex = FakeExecutor(error=FileNotFoundError("sysctl"))
        assert detect_platform(executor=ex).arch is Arch.X86_64

    def test_sysctl_timeout_falls_back(self) -> None:
        ex = FakeExecutor(error=subprocess.TimeoutExpired("sysctl", 5))
        assert detect_platform(executor=ex).arch is Arch.X86_64

    def test_explicit_values_skip_probe(self) -> None:
        ex = FakeExecutor(stdout="1\n")
        assert detect_platform("Darwin", "x86_64", executor=ex).arch is Arch.X86_64
        assert ex.calls == []
