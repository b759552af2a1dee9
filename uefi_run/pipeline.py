"""Build a boot image, run the emulator on it, clean up."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from uefi_run.domain import Architecture, RunResult
from uefi_run.emulator import build_invocation, run_emulator
from uefi_run.exceptions import UefiRunError
from uefi_run.image import boot_image
from uefi_run.logging import new_job_id, operation_context


@dataclass(frozen=True)
class RunConfig:
    """Everything a run needs besides the executable.

    Firmware and emulator lookups happen before a RunConfig is built, so the
    pipeline never reads the host environment.
    """

    firmware_path: Path
    architecture: Architecture = Architecture.X86_64
    qemu_path: str | None = None
    extra_args: Sequence[str] = field(default_factory=tuple)
    temp_root: Path | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "extra_args", tuple(self.extra_args))


def run_uefi(binary_path: Path | str, config: RunConfig) -> RunResult:
    """Boot ``binary_path`` in the emulator and return the outcome.

    Tooling failures (invalid input, image I/O, launch errors) come back as
    a failed RunResult rather than an exception. The temporary boot image is
    removed before this function returns or raises.
    """
    with operation_context(
        "boot", job_id=new_job_id(), binary=str(binary_path)
    ) as log:
        try:
            with boot_image(
                binary_path, config.architecture, temp_root=config.temp_root
            ) as handle:
                invocation = build_invocation(
                    handle,
                    config.firmware_path,
                    config.extra_args,
                    executable=config.qemu_path,
                )
                log.info(
                    f"Booting {Path(binary_path).name} as {handle.boot_relative_path.as_posix()}"
                )
                result = run_emulator(invocation)
        except UefiRunError as error:
            log.error(f"{error.kind}: {error}")
            return RunResult.failure(error)
    return result
