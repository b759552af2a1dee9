"""Domain model for booting a UEFI executable under QEMU.

The pipeline passes these immutable objects between the image builder and
the emulator launcher instead of loose paths and lists.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from uefi_run.exceptions import UefiRunError


# Exit code used when nothing could be launched. Mirrors the convention of
# env(1) and container runtimes, where 125 means the wrapper itself failed.
TOOLING_FAILURE_EXIT_CODE = 125

ESP_BOOT_DIR = Path("EFI") / "BOOT"


# ==============================================================================
# Architecture Domain
# ==============================================================================


class Architecture(Enum):
    """Target architecture of the UEFI executable."""

    X86_64 = "x86_64"
    AARCH64 = "aarch64"

    @property
    def boot_filename(self) -> str:
        """Removable-media default boot file name (e.g., BOOTX64.EFI)."""
        return _BOOT_FILENAMES[self]

    @property
    def qemu_executable(self) -> str:
        """Default QEMU system emulator for this architecture."""
        return _QEMU_EXECUTABLES[self]

    @property
    def machine_flags(self) -> tuple[str, ...]:
        """Fixed flags appended after the firmware and drive flags."""
        return _MACHINE_FLAGS[self]

    @classmethod
    def parse(cls, value: str | Architecture) -> Architecture:
        """Convert a user supplied name or alias to an Architecture.

        Raises:
            ValueError: If the name is not a supported architecture
        """
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower()
        name = _ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            supported = ", ".join(member.value for member in cls)
            raise ValueError(
                f"Unsupported architecture: {value} (expected one of {supported})"
            ) from None


_ALIASES = {
    "x64": "x86_64",
    "amd64": "x86_64",
    "x86-64": "x86_64",
    "arm64": "aarch64",
    "aa64": "aarch64",
}

_BOOT_FILENAMES = {
    Architecture.X86_64: "BOOTX64.EFI",
    Architecture.AARCH64: "BOOTAA64.EFI",
}

_QEMU_EXECUTABLES = {
    Architecture.X86_64: "qemu-system-x86_64",
    Architecture.AARCH64: "qemu-system-aarch64",
}

_MACHINE_FLAGS = {
    Architecture.X86_64: (
        # QEMU enables a lot of default devices which slow down boot.
        "-nodefaults",
        "-machine", "q35,accel=kvm:tcg",
        "-vga", "std",
        # OVMF connects the UEFI console to the first serial port.
        "-serial", "stdio",
    ),
    Architecture.AARCH64: (
        "-nodefaults",
        "-machine", "virt",
        "-cpu", "cortex-a72",
        "-device", "ramfb",
        "-serial", "stdio",
    ),
}


# ==============================================================================
# Boot Image Domain
# ==============================================================================


@dataclass(frozen=True)
class BootImageHandle:
    """A temporary ESP directory owned by a single run.

    The directory is exposed to QEMU as a virtual FAT drive; QEMU does the
    FAT formatting on the fly.
    """

    root_path: Path
    architecture: Architecture = Architecture.X86_64

    @property
    def boot_relative_path(self) -> Path:
        """ESP-relative boot path (e.g., EFI/BOOT/BOOTX64.EFI)."""
        return ESP_BOOT_DIR / self.architecture.boot_filename

    @property
    def boot_path(self) -> Path:
        """Absolute host path of the boot executable inside the tree."""
        return self.root_path / self.boot_relative_path

    @property
    def drive_spec(self) -> str:
        """QEMU -drive value mounting the tree as a writable FAT partition."""
        return f"format=raw,file=fat:rw:{self.root_path}"


# ==============================================================================
# Emulator Domain
# ==============================================================================


@dataclass(frozen=True)
class EmulatorInvocation:
    """Fully assembled emulator command line."""

    executable: str
    arguments: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Accept any sequence but always store a tuple
        object.__setattr__(self, "arguments", tuple(str(a) for a in self.arguments))

    @property
    def argv(self) -> tuple[str, ...]:
        return (self.executable, *self.arguments)

    def command_line(self) -> str:
        """Shell-quoted command line, for logs and error messages."""
        return shlex.join(self.argv)


@dataclass(frozen=True)
class RunResult:
    """Terminal outcome of one run.

    Exactly one of ``exit_code`` and ``error`` is set. ``exit_code`` is the
    emulator's own status, passed through unchanged; ``error`` means the run
    could not be launched at all.
    """

    exit_code: int | None = None
    error: UefiRunError | None = None

    def __post_init__(self) -> None:
        if (self.exit_code is None) == (self.error is None):
            raise ValueError("RunResult needs exactly one of exit_code or error")

    @classmethod
    def exited(cls, exit_code: int) -> RunResult:
        return cls(exit_code=exit_code)

    @classmethod
    def failure(cls, error: UefiRunError) -> RunResult:
        return cls(error=error)

    @property
    def launched(self) -> bool:
        """True if the emulator ran and reported an exit status."""
        return self.error is None

    @property
    def process_exit_code(self) -> int:
        """Exit code for the uefi-run process itself."""
        if self.exit_code is not None:
            return self.exit_code
        return TOOLING_FAILURE_EXIT_CODE
