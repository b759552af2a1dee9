"""Domain models for building boot images and running the emulator."""

from __future__ import annotations

from .models import (
    ESP_BOOT_DIR,
    TOOLING_FAILURE_EXIT_CODE,
    Architecture,
    BootImageHandle,
    EmulatorInvocation,
    RunResult,
)


__all__ = [
    "ESP_BOOT_DIR",
    "TOOLING_FAILURE_EXIT_CODE",
    "Architecture",
    "BootImageHandle",
    "EmulatorInvocation",
    "RunResult",
]
