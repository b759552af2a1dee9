"""Temporary EFI System Partition trees.

The tree is a plain host directory laid out like an ESP. QEMU's virtual FAT
driver formats it on the fly when it is attached with ``file=fat:rw:<dir>``,
so no FAT image is ever written here.

Functions:
    - build_boot_image(): Create the tree and copy the executable into it
    - remove_boot_image(): Delete the tree, logging instead of raising
    - boot_image(): Context manager pairing the two
"""

from __future__ import annotations

import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from uefi_run.domain import Architecture, BootImageHandle
from uefi_run.exceptions import ImageIoError, InvalidInputError
from uefi_run.logging import LoggerFactory


TEMP_DIR_PREFIX = "uefi-run-"

log = LoggerFactory.for_image()


def validate_binary_path(binary_path: Path | str) -> Path:
    """Check that the executable exists and is a regular file.

    Raises:
        InvalidInputError: If the path is missing or not a regular file
    """
    path = Path(binary_path)
    if not path.exists():
        raise InvalidInputError(path, "no such file")
    if not path.is_file():
        raise InvalidInputError(path, "not a regular file")
    return path


def build_boot_image(
    binary_path: Path | str,
    architecture: Architecture = Architecture.X86_64,
    *,
    temp_root: Path | str | None = None,
) -> BootImageHandle:
    """Create a temporary ESP tree containing the executable.

    Args:
        binary_path: UEFI executable to boot
        architecture: Selects the boot file name (e.g., BOOTX64.EFI)
        temp_root: Parent directory for the tree (defaults to the system temp dir)

    Returns:
        Handle owning the new directory. The caller must release it with
        remove_boot_image(), or use boot_image() instead.

    Raises:
        InvalidInputError: If binary_path is not an existing regular file
        ImageIoError: If the tree cannot be created or the copy fails
    """
    source = validate_binary_path(binary_path)

    try:
        root = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX, dir=temp_root))
    except OSError as error:
        raise ImageIoError(
            f"Unable to create temporary directory: {error}", path=temp_root
        ) from error

    handle = BootImageHandle(root_path=root, architecture=architecture)
    log.trace(f"Created temporary directory {root}")

    try:
        boot_dir = handle.boot_path.parent
        try:
            boot_dir.mkdir(parents=True)
        except OSError as error:
            raise ImageIoError(
                f"Unable to create {handle.boot_relative_path.parent} directory: {error}",
                path=boot_dir,
            ) from error

        try:
            shutil.copyfile(source, handle.boot_path)
        except OSError as error:
            raise ImageIoError(
                f"Unable to copy {source} to {handle.boot_relative_path}: {error}",
                path=handle.boot_path,
            ) from error
    except ImageIoError:
        remove_boot_image(handle)
        raise

    log.debug(f"Copied {source} to {handle.boot_path}")
    return handle


def remove_boot_image(handle: BootImageHandle) -> None:
    """Delete the tree. Failures are logged, never raised."""
    try:
        shutil.rmtree(handle.root_path)
    except FileNotFoundError:
        log.warning(f"Boot image {handle.root_path} was already removed")
    except OSError as error:
        log.warning(f"Failed to remove boot image {handle.root_path}: {error}")
    else:
        log.trace(f"Removed boot image {handle.root_path}")


@contextmanager
def boot_image(
    binary_path: Path | str,
    architecture: Architecture = Architecture.X86_64,
    *,
    temp_root: Path | str | None = None,
) -> Iterator[BootImageHandle]:
    """Build a boot image for the duration of a ``with`` block.

    The tree is removed exactly once when the block exits, whether it
    returns normally, raises or is interrupted.

    Example:
        with boot_image("hello.efi") as handle:
            print(handle.boot_path)
    """
    handle = build_boot_image(binary_path, architecture, temp_root=temp_root)
    try:
        yield handle
    finally:
        remove_boot_image(handle)
