"""Assemble the QEMU command line and run it to completion.

The argument vector is always built in the same order so that QEMU's
last-flag-wins rule lets callers override anything:

    1. -bios <firmware>
    2. -drive format=raw,file=fat:rw:<esp tree>
    3. the architecture's fixed machine flags
    4. caller supplied flags, verbatim
"""

from __future__ import annotations

import os
import shutil
import signal
import subprocess
from pathlib import Path
from typing import Sequence

from uefi_run.domain import BootImageHandle, EmulatorInvocation, RunResult
from uefi_run.exceptions import LaunchError
from uefi_run.logging import LoggerFactory


# Seconds the emulator gets to exit on its own after an interrupt
TERMINATE_GRACE_SECONDS = 1.0

log = LoggerFactory.for_emulator()


def build_invocation(
    handle: BootImageHandle,
    firmware_path: Path | str,
    extra_args: Sequence[str] = (),
    executable: str | None = None,
) -> EmulatorInvocation:
    """Build the emulator command line for a boot image.

    Args:
        handle: Boot image attached as the only drive
        firmware_path: Firmware image passed to -bios
        extra_args: Flags appended verbatim after the generated ones
        executable: Emulator to run (defaults to the architecture's QEMU)
    """
    arguments = [
        "-bios", str(firmware_path),
        "-drive", handle.drive_spec,
        *handle.architecture.machine_flags,
        *extra_args,
    ]
    return EmulatorInvocation(
        executable=executable or handle.architecture.qemu_executable,
        arguments=tuple(arguments),
    )


def resolve_executable(executable: str) -> str:
    """Find the emulator on PATH, or check an explicit path.

    Raises:
        LaunchError: If the executable is missing or not executable
    """
    if os.sep in executable or (os.altsep and os.altsep in executable):
        if not os.path.isfile(executable):
            raise LaunchError(executable, "no such file")
        if not os.access(executable, os.X_OK):
            raise LaunchError(executable, "permission denied")
        return executable
    resolved = shutil.which(executable)
    if resolved is None:
        raise LaunchError(executable, "not found in PATH")
    return resolved


def exit_code_from_returncode(returncode: int) -> int:
    """Map Popen.returncode to a process exit code.

    A child killed by signal N has a negative returncode; report it as
    128 + N like a POSIX shell does.
    """
    if returncode < 0:
        return 128 - returncode
    return returncode


def _stop_after_interrupt(process: subprocess.Popen, name: str) -> None:
    # The terminal delivers SIGINT to the whole process group, so the
    # emulator normally exits on its own.
    try:
        process.wait(timeout=TERMINATE_GRACE_SECONDS)
        return
    except subprocess.TimeoutExpired:
        pass
    log.warning(f"{name} still running, killing it")
    try:
        process.kill()
    except ProcessLookupError:
        pass
    process.wait()


def run_emulator(invocation: EmulatorInvocation) -> RunResult:
    """Run the emulator, inheriting stdio, and wait for it to exit.

    Returns:
        RunResult carrying the emulator's exit code unchanged

    Raises:
        LaunchError: If the emulator cannot be started or waited on
        KeyboardInterrupt: After the emulator has been stopped and reaped
    """
    executable = resolve_executable(invocation.executable)
    argv = [executable, *invocation.arguments]

    log.debug(f"Running: {invocation.command_line()}")
    try:
        process = subprocess.Popen(argv)
    except OSError as error:
        raise LaunchError(invocation.executable, error.strerror or str(error)) from error

    try:
        returncode = process.wait()
    except KeyboardInterrupt:
        log.info("Interrupted, waiting for the emulator to exit")
        _stop_after_interrupt(process, Path(executable).name)
        raise
    except OSError as error:
        raise LaunchError(
            invocation.executable, f"wait failed: {error.strerror or error}"
        ) from error

    exit_code = exit_code_from_returncode(returncode)
    if returncode < 0:
        try:
            name = signal.Signals(-returncode).name
        except ValueError:
            name = str(-returncode)
        log.info(f"Emulator terminated by {name}")
    elif returncode != 0:
        log.info(f"Emulator exited with status {returncode}")
    else:
        log.debug("Emulator exited with status 0")
    return RunResult.exited(exit_code)
