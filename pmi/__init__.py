# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
import sys
import traceback
from typing import NoReturn

from pmi.helpers.exceptions import FatalBootError

from . import pipeline
from .core import BootContext
from .core.clock import SystemClock
from .helpers import logging
from .helpers import mount
from .helpers import other
from .helpers import splash
from .parse import Cmdline, Deviceinfo, arguments
from .parse.arguments import config as arguments_config
from .rootfs.locate import find_boot_partition, find_root_partition

# pmos-init version
__version__ = "0.1.0"

# Python version check
version = sys.version_info
if version < (3, 10):
    print("You need at least Python 3.10 to run pmos-init")
    print("(You are running it with Python " + str(version.major) + "." + str(version.minor) + ")")
    sys.exit()


def halt(ctx: BootContext | None, message: str) -> NoReturn:
    """Show what went wrong and wait for a human. We don't reboot, so the
    message stays on the screen and a debug console can be attached."""
    if ctx:
        try:
            splash.show_splash(ctx, message)
        except Exception as e:
            logging.info(f"WARNING: failed to show the error on the splash screen: {e}")
    logging.info("Halting. Power off the device to try again.")
    other.loop_forever(ctx.clock if ctx else SystemClock())


def main(argv: list[str] | None = None) -> int:
    # Wrap everything to display nice error messages
    args = arguments(argv)
    config = arguments_config(args)
    boot = args.action == "boot"
    ctx: BootContext | None = None

    try:
        # Logging needs /dev and a writable /, so mount failures get logged
        # once it is set up
        mount_failures: list[str] = []
        if boot:
            logging.add_verbose_log_level()
            mount_failures = mount.mount_proc_sys_dev()

        # Set up logging first, reading deviceinfo already logs
        cmdline = Cmdline.from_file(config.cmdline)
        details_to_stdout = config.details_to_stdout or cmdline.no_output_redirect
        logging.init(config.log, config.verbose, details_to_stdout, config.kmsg if boot else None)
        for message in mount_failures:
            logging.info(f"WARNING: {message}")
        ctx = BootContext(config, cmdline, Deviceinfo.from_paths(config.deviceinfo))

        if args.action == "find-boot":
            partition = find_boot_partition(ctx)
        elif args.action == "find-root":
            partition = find_root_partition(ctx)
        else:
            partition = pipeline.run(ctx)
            if partition:
                logging.info(f"DONE! Handing off to {partition}")
                logging.reconfigure()

        if not partition:
            return 1
        print(partition)

    except FatalBootError as exception:
        logging.error(f"ERROR: {exception}")
        if boot:
            halt(ctx, exception.splash_message)
        return 2

    except Exception as e:
        logging.info("ERROR: " + str(e))
        logging.info("See also: <https://postmarketos.org/troubleshooting>")
        logging.debug(traceback.format_exc())
        if boot:
            halt(ctx, f"ERROR: {e}\nhttps://postmarketos.org/troubleshooting")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
