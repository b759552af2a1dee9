"""Settings storage for uefi-run defaults."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence


SETTINGS_PATH = Path(
    os.environ.get(
        "UEFI_RUN_SETTINGS_PATH",
        Path.home() / ".config" / "uefi-run" / "settings.json",
    )
)

# Environment variables consulted by resolve_run_settings()
ENV_BIOS_PATH = "UEFI_RUN_BIOS"
ENV_QEMU_PATH = "UEFI_RUN_QEMU"

DEFAULT_ARCHITECTURE = "x86_64"

DEFAULT_SETTINGS: dict[str, Any] = {
    "architecture": DEFAULT_ARCHITECTURE,
    "bios_path": None,
    "qemu_path": None,
    "qemu_args": [],
}


@dataclass
class SettingsStore:
    values: dict[str, Any] = field(default_factory=dict)


settings_store = SettingsStore()


@dataclass(frozen=True)
class ResolvedSettings:
    """Settings after applying command line, environment and file precedence."""

    architecture: str = DEFAULT_ARCHITECTURE
    bios_path: Path | None = None
    qemu_path: str | None = None
    qemu_args: tuple[str, ...] = ()


def load_settings() -> None:
    settings_store.values = dict(DEFAULT_SETTINGS)
    if not SETTINGS_PATH.exists():
        return
    try:
        data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return
    if isinstance(data, dict):
        settings_store.values.update(data)


def save_settings() -> None:
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    SETTINGS_PATH.write_text(
        json.dumps(settings_store.values, indent=2, sort_keys=True),
        encoding="utf-8",
    )


def get_setting(key: str, default: Any | None = None) -> Any:
    return settings_store.values.get(key, default)


def set_setting(key: str, value: Any) -> None:
    settings_store.values[key] = value
    save_settings()


def get_str_list(key: str) -> list[str]:
    """Return a list setting, ignoring values that are not a list of strings."""
    value = get_setting(key)
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def get_str(key: str) -> str | None:
    """Return a string setting, ignoring empty or non-string values."""
    value = get_setting(key)
    if isinstance(value, str) and value:
        return value
    return None


def resolve_run_settings(
    *,
    architecture: str | None = None,
    bios_path: str | Path | None = None,
    qemu_path: str | None = None,
    qemu_args: Sequence[str] = (),
    environ: Mapping[str, str] | None = None,
) -> ResolvedSettings:
    """Merge command line values over environment, settings file and defaults.

    Args:
        architecture: Architecture from the command line
        bios_path: Firmware image from the command line
        qemu_path: QEMU executable from the command line
        qemu_args: Pass-through QEMU flags from the command line. These are
            appended after any ``qemu_args`` stored in the settings file so
            they win under QEMU's last-flag-wins rule.
        environ: Environment mapping (defaults to ``os.environ``)
    """
    env = os.environ if environ is None else environ

    resolved_bios = bios_path or env.get(ENV_BIOS_PATH) or get_str("bios_path")
    resolved_qemu = qemu_path or env.get(ENV_QEMU_PATH) or get_str("qemu_path")
    resolved_arch = architecture or get_str("architecture") or DEFAULT_ARCHITECTURE

    return ResolvedSettings(
        architecture=str(resolved_arch),
        bios_path=Path(resolved_bios) if resolved_bios else None,
        qemu_path=str(resolved_qemu) if resolved_qemu else None,
        qemu_args=(*get_str_list("qemu_args"), *qemu_args),
    )


load_settings()
