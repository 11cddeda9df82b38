"""统一异常体系

所有安装流程异常继承 InstallerError，替代散落的 ValueError / RuntimeError。
流水线在异常向上传播前补充 step / platform，CLI 层据此输出可定位的提示。
所有异常均为致命错误，框架内部不做自动重试。
"""

from __future__ import annotations


class InstallerError(Exception):
    """安装器基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.step = ""
        self.platform = ""


class ConfigError(InstallerError):
    """配置文件或配方文件缺失、内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(InstallerError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class UnsupportedPlatformError(InstallerError):
    """当前操作系统或 CPU 架构不在支持范围内"""

    code = "UNSUPPORTED_PLATFORM"

    def __init__(self, message: str, system: str = "", machine: str = "") -> None:
        super().__init__(message)
        self.system = system
        self.machine = machine


class UnresolvableArtifactError(InstallerError):
    """平台在制品表中没有对应条目"""

    code = "UNRESOLVABLE_ARTIFACT"


class NetworkError(InstallerError):
    """下载传输失败（连接、DNS、超时、非 2xx 状态），调用方可整体重跑"""

    code = "NETWORK_ERROR"

    def __init__(
        self, message: str, *, url: str = "",
        status: int | None = None, timeout: bool = False,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status = status
        self.timeout = timeout


class ChecksumMismatchError(InstallerError):
    """下载内容的 SHA-256 与期望值不一致，禁止自动重试"""

    code = "CHECKSUM_MISMATCH"

    def __init__(
        self, message: str, *, expected: str, actual: str,
        size: int, advertised_size: int | None = None,
    ) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual
        self.size = size
        self.advertised_size = advertised_size

    @property
    def truncated(self) -> bool:
        """实际字节数与服务端声明不符，更像是传输损坏而非篡改"""
        return self.advertised_size is not None and self.size != self.advertised_size


class ArchiveCorruptError(InstallerError):
    """校验通过但内容不是合法的 tar.gz 包（打包错误）"""

    code = "ARCHIVE_CORRUPT"


class MissingExecutableError(InstallerError):
    """压缩包中找不到预期的可执行文件"""

    code = "MISSING_EXECUTABLE"

    def __init__(self, message: str, members: list[str] | None = None) -> None:
        super().__init__(message)
        self.members = members or []


class SmokeTestFailedError(InstallerError):
    """安装后的冒烟测试未输出预期标识"""

    code = "SMOKE_TEST_FAILED"

    def __init__(
        self, message: str, *, output: str = "", returncode: int | None = None,
    ) -> None:
        super().__init__(message)
        self.output = output
        self.returncode = returncode
