"""Emulator command line, firmware lookup and process handling."""

from .firmware import FIRMWARE_CANDIDATES, find_firmware, firmware_candidates
from .launcher import (
    TERMINATE_GRACE_SECONDS,
    build_invocation,
    exit_code_from_returncode,
    resolve_executable,
    run_emulator,
)


__all__ = [
    "FIRMWARE_CANDIDATES",
    "TERMINATE_GRACE_SECONDS",
    "build_invocation",
    "exit_code_from_returncode",
    "find_firmware",
    "firmware_candidates",
    "resolve_executable",
    "run_emulator",
]
