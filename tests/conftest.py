"""Shared pytest fixtures."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def reset_vaultpush_logger() -> Generator[None, None, None]:
    """Drop handlers the CLI installs so later tests don't log to closed streams."""
    yield
    vaultpush_logger = logging.getLogger("vaultpush")
    for handler in vaultpush_logger.handlers[:]:
        vaultpush_logger.removeHandler(handler)
    vaultpush_logger.propagate = True
    vaultpush_logger.setLevel(logging.NOTSET)


@pytest.fixture
def source_files(tmp_path: Path) -> list[Path]:
    """Create three small source files."""
    src = tmp_path / "src"
    src.mkdir()
    contents = {
        "a.txt": b"0123456789",
        "b.bin": bytes(range(256)),
        "c.md": b"# notes\n",
    }
    files = []
    for name, content in contents.items():
        path = src / name
        path.write_bytes(content)
        files.append(path)
    return files


@pytest.fixture
def remote_dir(tmp_path: Path) -> Path:
    """Create an empty directory acting as the remote target."""
    remote = tmp_path / "remote"
    remote.mkdir()
    return remote
