"""Locate a UEFI firmware image for QEMU's -bios flag."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from uefi_run.domain import Architecture
from uefi_run.exceptions import FirmwareNotFoundError
from uefi_run.logging import LoggerFactory


log = LoggerFactory.for_system()

FIRMWARE_CANDIDATES: dict[Architecture, tuple[str, ...]] = {
    Architecture.X86_64: (
        # Debian / Ubuntu
        "/usr/share/OVMF/OVMF.fd",
        # Arch Linux
        "/usr/share/ovmf/x64/OVMF_CODE.fd",
        "/usr/share/edk2-ovmf/x64/OVMF_CODE.fd",
        # Debian (split code/vars)
        "/usr/share/OVMF/OVMF_CODE.fd",
        # Fedora
        "/usr/share/edk2/ovmf/OVMF_CODE.fd",
    ),
    Architecture.AARCH64: (
        # Debian / Ubuntu
        "/usr/share/qemu-efi-aarch64/QEMU_EFI.fd",
        # Fedora
        "/usr/share/edk2/aarch64/QEMU_EFI.fd",
    ),
}

# Looked up in the working directory after the system locations
LOCAL_FIRMWARE_NAMES: dict[Architecture, str] = {
    Architecture.X86_64: "OVMF.fd",
    Architecture.AARCH64: "QEMU_EFI.fd",
}


def firmware_candidates(
    architecture: Architecture, search_dirs: Iterable[Path] | None = None
) -> list[Path]:
    """Ordered list of locations searched for the architecture's firmware."""
    candidates = [Path(p) for p in FIRMWARE_CANDIDATES[architecture]]
    local_name = LOCAL_FIRMWARE_NAMES[architecture]
    if search_dirs is None:
        candidates.append(Path(local_name))
    else:
        candidates.extend(Path(d) / local_name for d in search_dirs)
    return candidates


def find_firmware(
    architecture: Architecture = Architecture.X86_64,
    explicit: Path | str | None = None,
    *,
    search_dirs: Iterable[Path] | None = None,
    candidates: Iterable[Path] | None = None,
) -> Path:
    """Return the firmware image to boot with.

    Args:
        architecture: Target architecture
        explicit: Path given by the user; must exist when set
        search_dirs: Directories searched for the local firmware name
            instead of the working directory
        candidates: Replaces the full search list (used by tests)

    Raises:
        FirmwareNotFoundError: If no firmware image exists
    """
    if explicit is not None:
        path = Path(explicit)
        if not path.is_file():
            raise FirmwareNotFoundError(path=path)
        log.debug(f"Using firmware {path}")
        return path

    if candidates is None:
        searched = firmware_candidates(architecture, search_dirs)
    else:
        searched = [Path(c) for c in candidates]
    for candidate in searched:
        if candidate.is_file():
            log.debug(f"Found firmware {candidate}")
            return candidate
    raise FirmwareNotFoundError(searched=searched)
