import argparse
import signal
import sys
from pathlib import Path

from uefi_run.__version__ import __version__
from uefi_run.config import settings
from uefi_run.domain import Architecture, RunResult
from uefi_run.emulator import find_firmware
from uefi_run.exceptions import ConfigurationError, UefiRunError
from uefi_run.image import validate_binary_path
from uefi_run.logging import LoggerFactory, setup_logging
from uefi_run.pipeline import RunConfig, run_uefi


INTERRUPTED_EXIT_CODE = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="uefi-run",
        description="Runs UEFI executables in qemu.",
        epilog=(
            "Arguments after FILE are passed to qemu unchanged, after the "
            "generated ones, so they can override them."
        ),
    )
    parser.add_argument("efi_exe", metavar="FILE", type=Path, help="EFI executable")
    parser.add_argument(
        "-b",
        "--bios",
        dest="bios_path",
        metavar="BIOS_PATH",
        help=(
            "BIOS image (default per architecture: x86_64 searches "
            "/usr/share/OVMF/OVMF.fd and similar, then ./OVMF.fd; aarch64 "
            "searches /usr/share/qemu-efi-aarch64/QEMU_EFI.fd and similar, "
            "then ./QEMU_EFI.fd)"
        ),
    )
    parser.add_argument(
        "-q",
        "--qemu",
        dest="qemu_path",
        metavar="QEMU_PATH",
        help=(
            "Path to qemu executable (default per architecture: "
            "qemu-system-x86_64 or qemu-system-aarch64)"
        ),
    )
    parser.add_argument(
        "-a",
        "--arch",
        dest="architecture",
        choices=[member.value for member in Architecture],
        help="Target architecture (default = x86_64)",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable verbose debug output")
    parser.add_argument("--trace", action="store_true", help="Enable trace output")
    parser.add_argument("--log-file", type=Path, help="Also write debug logs to this file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "qemu_args",
        nargs=argparse.REMAINDER,
        metavar="QEMU_ARGS",
        help="Additional arguments for qemu",
    )
    return parser


def _raise_interrupt(signum, _frame):
    raise KeyboardInterrupt(f"received signal {signum}")


def run(args: argparse.Namespace) -> RunResult:
    """Resolve configuration for the parsed arguments and run the pipeline."""
    log = LoggerFactory.for_system()
    qemu_args = list(args.qemu_args)
    if qemu_args[:1] == ["--"]:
        qemu_args = qemu_args[1:]

    resolved = settings.resolve_run_settings(
        architecture=args.architecture,
        bios_path=args.bios_path,
        qemu_path=args.qemu_path,
        qemu_args=qemu_args,
    )
    try:
        validate_binary_path(args.efi_exe)
        architecture = Architecture.parse(resolved.architecture)
        firmware_path = find_firmware(architecture, resolved.bios_path)
    except ValueError as error:
        failure = ConfigurationError(str(error))
        log.error(f"{failure.kind}: {failure}")
        return RunResult.failure(failure)
    except UefiRunError as error:
        log.error(f"{error.kind}: {error}")
        return RunResult.failure(error)

    config = RunConfig(
        firmware_path=firmware_path,
        architecture=architecture,
        qemu_path=resolved.qemu_path,
        extra_args=resolved.qemu_args,
    )
    return run_uefi(args.efi_exe, config)


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(debug=args.debug, trace=args.trace, log_file=args.log_file)

    # An external SIGTERM unwinds through the same cleanup path as Ctrl-C.
    previous_handler = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        result = run(args)
    except KeyboardInterrupt:
        LoggerFactory.for_system().warning("uefi-run terminating...")
        return INTERRUPTED_EXIT_CODE
    finally:
        signal.signal(signal.SIGTERM, previous_handler)

    return result.process_exit_code


if __name__ == "__main__":
    sys.exit(main())
