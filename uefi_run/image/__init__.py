"""Boot image construction."""

from .builder import (
    TEMP_DIR_PREFIX,
    boot_image,
    build_boot_image,
    remove_boot_image,
    validate_binary_path,
)


__all__ = [
    "TEMP_DIR_PREFIX",
    "boot_image",
    "build_boot_image",
    "remove_boot_image",
    "validate_binary_path",
]
