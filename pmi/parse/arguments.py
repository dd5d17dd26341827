# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
import argparse
from pathlib import Path
import pmi.config
from pmi.core.config import Config


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pmos-init",
        description="Find, unlock, resize and mount the postmarketOS root"
        " filesystem from inside the initramfs.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="write even more to the log"
    )
    parser.add_argument(
        "--details-to-stdout",
        dest="details_to_stdout",
        action="store_true",
        help="print the log to the console as well (same as PMOS_NO_OUTPUT_REDIRECT)",
    )
    parser.add_argument(
        "--cmdline",
        type=Path,
        default=pmi.config.proc_cmdline,
        help="read the kernel command line from this file",
    )
    parser.add_argument(
        "--deviceinfo",
        type=Path,
        action="append",
        help="deviceinfo file (default: first one of"
        f" {', '.join(str(p) for p in pmi.config.deviceinfo_paths)})",
    )
    parser.add_argument(
        "--log", type=Path, default=pmi.config.logfile, help="path to the log file"
    )
    parser.add_argument(
        "--no-kmsg",
        dest="kmsg",
        action="store_false",
        help="don't write the log into the kernel log buffer",
    )

    sub = parser.add_subparsers(title="action", dest="action")
    sub.add_parser("boot", help="run the whole pipeline, print the init to hand off to")
    sub.add_parser("find-boot", help="print the boot partition")
    sub.add_parser("find-root", help="print the root partition")
    return parser


def config(args: argparse.Namespace) -> Config:
    """Paths for this run, from the parsed arguments."""
    ret = Config(
        cmdline=args.cmdline,
        log=args.log,
        kmsg=pmi.config.kmsg if args.kmsg else None,
        verbose=args.verbose,
        details_to_stdout=args.details_to_stdout,
    )
    if args.deviceinfo:
        ret.deviceinfo = args.deviceinfo
    return ret


def arguments(argv: list[str] | None = None) -> argparse.Namespace:
    args = get_parser().parse_args(argv)
    if not args.action:
        args.action = "boot"
    return args
