"""Pytest configuration and shared fixtures for protostage tests."""

import io
import zipfile
from pathlib import Path
from typing import Callable, Dict, Union

import pytest

from protostage import output


@pytest.fixture(autouse=True)
def _isolate_output():  # noqa: PT004
    """Send timestamped progress output to a throwaway buffer for each test.

    The output module keeps its stream in module state, which would otherwise
    keep pointing at whatever sys.stdout was when it was first imported.
    """
    output.init_timer(io.StringIO())
    output.set_verbose(False)
    yield
    output.set_verbose(False)


@pytest.fixture
def make_archive(tmp_path: Path) -> Callable[..., Path]:
    """Factory fixture writing a zip archive from a name -> content mapping.

    Names ending in "/" are written as explicit directory entries.
    """

    def _make(entries: Dict[str, Union[str, bytes]], name: str = "protos.jar", directory: Union[Path, None] = None) -> Path:
        target_dir = directory if directory is not None else tmp_path / "archives"
        target_dir.mkdir(parents=True, exist_ok=True)
        archive_path = target_dir / name
        with zipfile.ZipFile(archive_path, "w") as zf:
            for entry_name, content in entries.items():
                zf.writestr(entry_name, content)
        return archive_path

    return _make


@pytest.fixture
def fake_protoc(tmp_path: Path) -> Path:
    """An executable file standing in for protoc; never actually run."""
    protoc = tmp_path / "bin" / "protoc"
    protoc.parent.mkdir(parents=True, exist_ok=True)
    protoc.write_text("#!/bin/sh\nexit 0\n")
    protoc.chmod(0o755)
    return protoc


@pytest.fixture
def corrupt_entry_data() -> Callable[[Path, str], None]:
    """Flip one byte of an entry's stored data, leaving the zip index intact."""

    def _corrupt(archive_path: Path, entry_name: str) -> None:
        with zipfile.ZipFile(archive_path) as zf:
            info = zf.getinfo(entry_name)
        data = bytearray(archive_path.read_bytes())
        header = info.header_offset
        name_length = int.from_bytes(data[header + 26 : header + 28], "little")
        extra_length = int.from_bytes(data[header + 28 : header + 30], "little")
        data[header + 30 + name_length + extra_length] ^= 0xFF
        archive_path.write_bytes(bytes(data))

    return _corrupt
