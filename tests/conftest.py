"""共享 fixture - 构造 tar.gz 制品 + 假 HTTP 响应

测试不访问真实网络: urllib.request.urlopen 被替换为返回内存字节流的假响应。
"""

from __future__ import annotations

import io
import tarfile
import urllib.request
from collections.abc import Callable
from pathlib import Path

import pytest

import dashy_installer.core.config as cfgmod
from dashy_installer.core.formula import FormulaSpec
from dashy_installer.utils.logger import reset_logging

# 查询版本时故意返回非零退出码，与真实 dashy 行为一致
DASHY_SCRIPT = b'#!/bin/sh\necho "dashy 0.1.0"\nexit 1\n'


def build_archive(members: dict[str, tuple[bytes, int]]) -> bytes:
    """{包内路径: (内容, 权限位)} -> tar.gz 字节"""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tf:
        for name, (data, mode) in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = mode
            tf.addfile(info, io.BytesIO(data))
    return buf.getvalue()


class FakeResponse:
    """模拟 urlopen 返回值（支持 with 语句与分块读取）"""

    def __init__(
        self, body: bytes, status: int = 200, headers: dict[str, str] | None = None,
    ) -> None:
        self._buf = io.BytesIO(body)
        self.status = status
        self.headers = (
            headers if headers is not None else {"Content-Length": str(len(body))}
        )

    def read(self, size: int = -1) -> bytes:
        return self._buf.read(size)

    def close(self) -> None:
        self._buf.close()

    def __enter__(self) -> FakeResponse:
        return self

    def __exit__(self, *exc: object) -> bool:
        return False


@pytest.fixture(autouse=True)
def _isolated_state(monkeypatch: pytest.MonkeyPatch):
    """每个测试使用默认配置，结束后清理 CLI 注册的日志 handler"""
    monkeypatch.setattr(cfgmod, "_current", None)
    monkeypatch.delenv(cfgmod.CONFIG_ENV_VAR, raising=False)
    yield
    reset_logging()


@pytest.fixture()
def make_archive() -> Callable[[dict[str, tuple[bytes, int]]], bytes]:
    return build_archive


@pytest.fixture()
def dashy_archive() -> bytes:
    return build_archive({"dashy": (DASHY_SCRIPT, 0o755)})


@pytest.fixture()
def dashy_script() -> bytes:
    return DASHY_SCRIPT


@pytest.fixture()
def make_formula() -> Callable[..., FormulaSpec]:
    """构造测试配方，默认四个平台都指向同一个 checksum"""

    def _make(checksum: str = "0" * 64, **overrides: object) -> FormulaSpec:
        fields: dict = {
            "name": "dashy",
            "version": "0.1.0",
            "release_host": "https://releases.example.com/dashy",
            "checksums": {
                "aarch64-apple-darwin": checksum,
                "x86_64-apple-darwin": checksum,
                "aarch64-unknown-linux-gnu": checksum,
                "x86_64-unknown-linux-gnu": checksum,
            },
        }
        fields.update(overrides)
        return FormulaSpec(**fields)

    return _make


@pytest.fixture()
def serve(monkeypatch: pytest.MonkeyPatch):
    """替换 urlopen，返回固定响应；返回值记录所有请求的 URL"""
    requests: list[str] = []

    def _serve(
        body: bytes = b"", *, status: int = 200,
        headers: dict[str, str] | None = None, error: BaseException | None = None,
    ) -> list[str]:
        def fake_urlopen(req, timeout=None):
            requests.append(req.full_url)
            if error is not None:
                raise error
            return FakeResponse(body, status=status, headers=headers)

        monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
        return requests

    return _serve


@pytest.fixture()
def tmp_root(tmp_path: Path) -> Path:
    """下载临时目录的父目录，便于断言无残留"""
    root = tmp_path / "fetch-tmp"
    root.mkdir()
    return root
