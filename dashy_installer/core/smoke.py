"""安装后冒烟测试

执行 `<binary> --version`，合并 stdout/stderr，检查是否包含工具名。
退出码不作为判定依据，部分 CLI 查询版本时会故意返回非零。
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from dashy_installer.core.exceptions import SmokeTestFailedError
from dashy_installer.utils.shell import CommandExecutor, get_executor

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
VERSION_FLAG = "--version"


class SmokeTester:
    """冒烟测试器"""

    def __init__(
        self,
        tool_name: str,
        executor: CommandExecutor | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        marker: str | None = None,
    ) -> None:
        self.tool_name = tool_name
        self.executor = executor
        self.timeout = timeout
        self.marker = marker or tool_name

    def run(self, binary: Path) -> str:
        """执行冒烟测试，返回捕获的输出"""
        executor = self.executor or get_executor()
        cmd = [str(binary), VERSION_FLAG]
        try:
            result = executor.execute(cmd, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise SmokeTestFailedError(
                f"{binary} {VERSION_FLAG} 超时 ({self.timeout:g}s)",
            ) from e
        except OSError as e:
            raise SmokeTestFailedError(f"无法执行 {binary}: {e}") from e

        output = result.combined
        if result.returncode != 0:
            logger.info("%s %s 退出码 %d（忽略）", binary, VERSION_FLAG, result.returncode)

        if self.marker not in output:
            excerpt = output.strip()[:200] or "(无输出)"
            raise SmokeTestFailedError(
                f"{binary} {VERSION_FLAG} 的输出不包含 '{self.marker}' "
                f"(rc={result.returncode}): {excerpt}",
                output=output, returncode=result.returncode,
            )

        logger.info("冒烟测试通过: %s", output.strip().splitlines()[0])
        return output
