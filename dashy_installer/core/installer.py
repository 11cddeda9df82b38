"""制品安装

职责:
- 解开 tar.gz，定位与工具同名的可执行文件
- 先写入目标目录下的私有临时文件，再原子替换到 <bin_dir>/<tool>
- 保留压缩包内的权限位

不访问网络，不做校验和检查，输入应已通过 ArtifactFetcher 校验。
"""

from __future__ import annotations

import gzip
import logging
import os
import shutil
import tarfile
import tempfile
import zlib
from pathlib import Path, PurePosixPath

from dashy_installer.core.exceptions import (
    ArchiveCorruptError,
    MissingExecutableError,
)

logger = logging.getLogger(__name__)

# 截断或损坏的 gzip 流在读取阶段才会暴露
_CORRUPT_ERRORS = (tarfile.TarError, EOFError, zlib.error, gzip.BadGzipFile)


class Installer:
    """把压缩包中的单个可执行文件放进目标 bin 目录"""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name

    def install(self, archive: Path, bin_dir: Path) -> Path:
        """安装并返回最终路径

        异常:
            ArchiveCorruptError: 不是合法的 tar.gz
            MissingExecutableError: 包内没有同名普通文件，目标目录保持不变
        """
        target = bin_dir / self.tool_name
        try:
            with tarfile.open(archive, "r:gz") as tf:
                member = self._locate(tf)
                src = tf.extractfile(member)
                if src is None:
                    raise MissingExecutableError(
                        f"无法读取包内文件: {member.name}", members=[member.name],
                    )
                self._place(src, member, target)
        except _CORRUPT_ERRORS as e:
            raise ArchiveCorruptError(
                f"压缩包损坏或格式不对 {archive.name}: {e}"
                "（校验和已通过，属于打包错误）"
            ) from e

        logger.info("已安装: %s", target)
        return target

    def _locate(self, tf: tarfile.TarFile) -> tarfile.TarInfo:
        """在包内查找与工具同名的普通文件，层级最浅者优先"""
        members = tf.getmembers()
        candidates = [
            m for m in members
            if m.isfile() and PurePosixPath(m.name).name == self.tool_name
        ]
        if not candidates:
            names = [m.name for m in members]
            shown = ", ".join(names[:10]) + (" ..." if len(names) > 10 else "")
            raise MissingExecutableError(
                f"压缩包中找不到可执行文件 '{self.tool_name}'。"
                f"包内容: {shown or '(空)'}",
                members=names,
            )
        return min(candidates, key=lambda m: len(PurePosixPath(m.name).parts))

    def _place(self, src, member: tarfile.TarInfo, target: Path) -> None:
        """写临时文件 + chmod + os.replace，中途失败不留半成品"""
        target.parent.mkdir(parents=True, exist_ok=True)
        mode = member.mode & 0o777
        if not mode & 0o111:
            logger.warning("包内 %s 缺少可执行权限位，按 0755 安装", member.name)
            mode = 0o755

        fd, tmp = tempfile.mkstemp(
            dir=str(target.parent), prefix=f".{self.tool_name}.", suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as out:
                shutil.copyfileobj(src, out)
            os.chmod(tmp, mode)
            os.replace(tmp, target)
        except Exception:
            # 只捕获普通异常，不拦截 KeyboardInterrupt/SystemExit
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise
