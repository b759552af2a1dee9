"""
Pytest configuration and shared fixtures for uefi-run tests.

This module provides common fixtures and utilities used across all test modules.
"""

import stat
from pathlib import Path
from typing import Callable, List

import pytest

from uefi_run import logging as logging_module
from uefi_run.config import settings


# ==============================================================================
# Isolation Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep the user's settings file and environment out of every test."""
    monkeypatch.setattr(
        "uefi_run.config.settings.SETTINGS_PATH",
        tmp_path / ".config" / "uefi-run" / "settings.json",
    )
    monkeypatch.delenv(settings.ENV_BIOS_PATH, raising=False)
    monkeypatch.delenv(settings.ENV_QEMU_PATH, raising=False)
    settings.settings_store.values = dict(settings.DEFAULT_SETTINGS)
    yield
    settings.settings_store.values = dict(settings.DEFAULT_SETTINGS)


@pytest.fixture
def log_records() -> List[dict]:
    """Capture loguru records emitted during the test."""
    records: List[dict] = []
    handler_id = logging_module.logger.add(
        lambda message: records.append(message.record), level="TRACE"
    )
    yield records
    logging_module.logger.remove(handler_id)


# ==============================================================================
# File System Fixtures
# ==============================================================================


@pytest.fixture
def efi_binary(tmp_path) -> Path:
    """
    Fixture providing a fake UEFI executable.

    Contains a PE "MZ" header followed by every byte value so that any
    transformation during the copy would be detected.
    """
    path = tmp_path / "app.efi"
    path.write_bytes(b"MZ" + bytes(range(256)) * 16 + b"\x00\r\n\x1a")
    return path


@pytest.fixture
def firmware_image(tmp_path) -> Path:
    """Fixture providing a fake OVMF firmware image."""
    path = tmp_path / "OVMF.fd"
    path.write_bytes(b"\xff" * 1024)
    return path


@pytest.fixture
def temp_root(tmp_path) -> Path:
    """Dedicated parent directory for boot images, so leaks are visible."""
    root = tmp_path / "boot-images"
    root.mkdir()
    return root


# ==============================================================================
# Fake Emulator Fixtures
# ==============================================================================


FAKE_QEMU_TEMPLATE = """#!/bin/sh
: > "{capture}/argv"
for arg in "$@"; do
    printf '%s\\n' "$arg" >> "{capture}/argv"
    case "$arg" in
        format=raw,file=fat:rw:*)
            esp="${{arg#format=raw,file=fat:rw:}}"
            printf '%s' "$esp" > "{capture}/esp_root"
            find "$esp" -type f > "{capture}/esp_files"
            cp "$esp/EFI/BOOT/{boot_filename}" "{capture}/boot.efi"
            ;;
    esac
done
exit {exit_code}
"""


class FakeQemu:
    """A shell script standing in for qemu-system-*.

    Records its arguments, the ESP root it was given, the files in the ESP
    and a copy of the boot executable, then exits with a fixed code.
    """

    def __init__(self, path: Path, capture_dir: Path):
        self.path = path
        self.capture_dir = capture_dir

    @property
    def argv(self) -> List[str]:
        return (self.capture_dir / "argv").read_text().splitlines()

    @property
    def esp_root(self) -> Path:
        return Path((self.capture_dir / "esp_root").read_text())

    @property
    def esp_files(self) -> List[Path]:
        lines = (self.capture_dir / "esp_files").read_text().splitlines()
        return [Path(line) for line in lines]

    @property
    def boot_bytes(self) -> bytes:
        return (self.capture_dir / "boot.efi").read_bytes()


@pytest.fixture
def make_fake_qemu(tmp_path) -> Callable[..., FakeQemu]:
    """Factory fixture creating fake emulator scripts."""
    counter = {"n": 0}

    def factory(exit_code: int = 0, boot_filename: str = "BOOTX64.EFI") -> FakeQemu:
        counter["n"] += 1
        capture_dir = tmp_path / f"fake-qemu-{counter['n']}"
        capture_dir.mkdir()
        script = capture_dir / "qemu-system-x86_64"
        script.write_text(
            FAKE_QEMU_TEMPLATE.format(
                capture=capture_dir, boot_filename=boot_filename, exit_code=exit_code
            )
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return FakeQemu(script, capture_dir)

    return factory
