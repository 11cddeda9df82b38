"""制品拉取与校验

职责:
- 通过 HTTP(S) 下载制品到私有临时目录
- 边下载边计算 SHA-256，完整读完后再与期望值比较
- 临时目录随上下文退出删除（成功、校验失败、网络失败都一样）

不做任何重试: 网络错误由宿主决定是否整体重跑，校验和错误必须人工介入。
本地写盘失败（磁盘满、目录不可写）按原始 OSError 抛出，不归为网络错误。
"""

from __future__ import annotations

import hashlib
import http.client
import logging
import socket
import tempfile
import urllib.error
import urllib.request
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from urllib.parse import urlparse

from dashy_installer import __version__
from dashy_installer.core.exceptions import (
    ChecksumMismatchError,
    NetworkError,
    ValidationError,
)
from dashy_installer.core.models import ArtifactDescriptor

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0
CHUNK_SIZE = 64 * 1024

# 传输层异常: urllib 的 URLError/HTTPError 与 socket 超时都是 OSError，
# 畸形响应（BadStatusLine、IncompleteRead）是 HTTPException
_TRANSPORT_ERRORS = (OSError, http.client.HTTPException)

# 制品只允许从发布服务器下载，拒绝 file:// 等本地协议
_ALLOWED_SCHEMES = frozenset(("http", "https"))


def check_artifact_url(artifact: ArtifactDescriptor) -> None:
    """校验制品 URL 的协议

    Raises:
        ValidationError: 协议不是 http/https
    """
    scheme = urlparse(artifact.url).scheme
    if scheme not in _ALLOWED_SCHEMES:
        raise ValidationError(
            f"不允许的 URL 协议 '{scheme}' ({artifact.triple})，"
            f"制品仅支持 http/https 下载: {artifact.url}"
        )


class ArtifactFetcher:
    """制品下载器 - 只交出已通过校验的完整文件"""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        tmp_root: Path | None = None,
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        self.timeout = timeout
        self.tmp_root = tmp_root
        self.chunk_size = chunk_size

    @contextmanager
    def fetch(self, artifact: ArtifactDescriptor) -> Iterator[Path]:
        """下载并校验制品，yield 校验通过的本地路径

        用法:
            with fetcher.fetch(descriptor) as archive:
                installer.install(archive, bin_dir)
        """
        check_artifact_url(artifact)
        if self.tmp_root is not None:
            self.tmp_root.mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(
            prefix="dashy-fetch-",
            dir=str(self.tmp_root) if self.tmp_root else None,
        ) as tmp:
            dest = Path(tmp) / artifact.filename
            actual, size, advertised = self._download(artifact.url, dest)
            self._verify(artifact, actual, size, advertised)
            yield dest
        logger.debug("临时目录已清理: %s", tmp)

    def _download(self, url: str, dest: Path) -> tuple[str, int, int | None]:
        """流式下载到 dest，返回 (sha256, 实际字节数, 服务端声明字节数)"""
        logger.info("下载: %s", url)
        sha256 = hashlib.sha256()
        size = 0
        with open(dest, "wb") as f:
            resp = self._open(url)
            with resp:
                advertised = _content_length(resp.headers.get("Content-Length"))
                for chunk in self._chunks(resp, url):
                    sha256.update(chunk)
                    f.write(chunk)
                    size += len(chunk)

        logger.info("已下载 %d 字节: %s", size, dest.name)
        return sha256.hexdigest(), size, advertised

    def _open(self, url: str):
        """发起请求，传输层异常统一转为 NetworkError"""
        req = urllib.request.Request(
            url, headers={"User-Agent": f"dashy-installer/{__version__}"},
        )
        try:
            resp = urllib.request.urlopen(req, timeout=self.timeout)  # nosec B310
        except _TRANSPORT_ERRORS as e:
            raise self._network_error(url, e) from e

        status = getattr(resp, "status", 200)
        if not 200 <= status < 300:
            resp.close()
            raise NetworkError(
                f"下载失败: {url} - HTTP {status}", url=url, status=status,
            )
        return resp

    def _chunks(self, resp, url: str) -> Iterator[bytes]:
        """分块读取响应体；读取中途的传输异常同样转为 NetworkError"""
        while True:
            try:
                chunk = resp.read(self.chunk_size)
            except _TRANSPORT_ERRORS as e:
                raise self._network_error(url, e) from e
            if not chunk:
                return
            yield chunk

    def _network_error(self, url: str, exc: Exception) -> NetworkError:
        """把 urllib / http.client / socket 异常映射为 NetworkError"""
        if isinstance(exc, urllib.error.HTTPError):
            return NetworkError(
                f"下载失败: {url} - HTTP {exc.code} {exc.reason}",
                url=url, status=exc.code,
            )
        if isinstance(exc, urllib.error.URLError):
            if isinstance(exc.reason, (socket.timeout, TimeoutError)):
                return self._timeout_error(url)
            return NetworkError(f"下载失败: {url} - {exc.reason}", url=url)
        if isinstance(exc, (socket.timeout, TimeoutError)):
            return self._timeout_error(url)
        if isinstance(exc, http.client.HTTPException):
            return NetworkError(f"下载失败: {url} - {exc!r}", url=url)
        return NetworkError(f"下载失败: {url} - {exc}", url=url)

    def _timeout_error(self, url: str) -> NetworkError:
        return NetworkError(
            f"下载超时 ({self.timeout:g}s): {url}", url=url, timeout=True,
        )

    @staticmethod
    def _verify(
        artifact: ArtifactDescriptor, actual: str, size: int, advertised: int | None,
    ) -> None:
        expected = artifact.expected_checksum.strip().lower()
        if actual.lower() == expected:
            logger.info("校验和通过: %s", artifact.filename)
            return

        if artifact.provisional:
            hint = (
                "内置配方的校验和是发版前的占位值，尚未更新为真实发布包的摘要，"
                "请使用 --formula 提供发版配方"
            )
        elif advertised is not None and size != advertised:
            hint = (
                f"实际收到 {size} 字节，服务端声明 {advertised} 字节，"
                "更像是传输中断或损坏，可重新下载"
            )
        else:
            hint = (
                f"文件完整 ({size} 字节) 但摘要不同，"
                "制品可能被篡改或配方校验和已过期，请人工核实后再安装"
            )
        raise ChecksumMismatchError(
            f"校验和不匹配 {artifact.filename}: 期望 {expected}, 实际 {actual}。{hint}",
            expected=expected, actual=actual,
            size=size, advertised_size=advertised,
        )


def _content_length(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        length = int(value)
    except ValueError:
        return None
    return length if length >= 0 else None
