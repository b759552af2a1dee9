"""Custom exceptions for boot image and emulator operations.

Every failure that stops a run before the guest could report an exit code
is raised as a subclass of ``UefiRunError``. The ``kind`` attribute names
the error category shown to the user.

Exception Hierarchy:
    UefiRunError (base)
        ├── InvalidInputError
        ├── ConfigurationError
        ├── FirmwareNotFoundError
        ├── ImageIoError
        └── LaunchError

Usage:
    from uefi_run.exceptions import InvalidInputError

    if not binary_path.is_file():
        raise InvalidInputError(binary_path, "not a regular file")
"""

from __future__ import annotations

from pathlib import Path


class UefiRunError(Exception):
    """Base exception for all uefi-run failures."""

    kind = "Error"


class InvalidInputError(UefiRunError):
    """The UEFI binary path does not exist or is not a regular file."""

    kind = "InvalidInput"

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class ConfigurationError(UefiRunError):
    """A setting (e.g., the architecture name) has an invalid value."""

    kind = "InvalidInput"


class FirmwareNotFoundError(UefiRunError):
    """No usable firmware image was given or found on the host."""

    kind = "InvalidInput"

    def __init__(self, searched: list[Path] | None = None, path: Path | str | None = None):
        self.searched = list(searched or [])
        self.path = Path(path) if path is not None else None
        if self.path is not None:
            msg = f"Firmware image not found: {self.path}"
        else:
            locations = ", ".join(str(candidate) for candidate in self.searched)
            msg = "Unable to find a firmware image"
            if locations:
                msg += f" (searched: {locations})"
        super().__init__(msg)


class ImageIoError(UefiRunError):
    """Creating or populating the temporary ESP tree failed."""

    kind = "IoError"

    def __init__(self, message: str, path: Path | str | None = None):
        self.path = Path(path) if path is not None else None
        super().__init__(message)


class LaunchError(UefiRunError):
    """The emulator could not be started or waited on."""

    kind = "LaunchError"

    def __init__(self, executable: str, reason: str):
        self.executable = executable
        self.reason = reason
        super().__init__(f"Failed to run {executable}: {reason}")
