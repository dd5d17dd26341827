# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
from pathlib import Path
import pmi.config
from pmi.core.context import BootContext
from pmi.core.poll import poll_until
from pmi.helpers import logging


def set_framebuffer_mode(sysfs: Path = pmi.config.framebuffer_sysfs) -> str | None:
    """Set the first mode from fb0/modes, unless a mode is set already.

    :returns: the mode that was set
    """
    modes = sysfs / "modes"
    mode = sysfs / "mode"
    if not modes.exists():
        return None
    if mode.exists() and mode.read_text().strip():
        return None

    new_mode = modes.read_text().strip()
    logging.info(f"Setting framebuffer mode to: {new_mode}")
    mode.write_text(f"{new_mode}\n")
    return new_mode


def setup_framebuffer(
    ctx: BootContext,
    dev: Path = pmi.config.framebuffer_dev,
    sysfs: Path = pmi.config.framebuffer_sysfs,
) -> bool:
    """
    Wait for /dev/fb0 and set its mode, so the splash screen can be shown.

    :returns: True if the framebuffer showed up
    """
    # Skip for non-framebuffer devices
    if ctx.deviceinfo.is_true("no_framebuffer"):
        logging.info("NOTE: Skipping framebuffer setup (deviceinfo_no_framebuffer)")
        return False

    timeout = pmi.config.framebuffer_timeout
    logging.info(f"NOTE: Waiting {timeout} seconds for the framebuffer {dev}.")
    logging.info("If your device does not have a framebuffer, disable this with:")
    logging.info("no_framebuffer=true in <https://postmarketos.org/deviceinfo>")
    if not poll_until(dev.exists, timeout, pmi.config.framebuffer_interval, ctx.clock):
        logging.info(f"ERROR: {dev} did not appear!")
        return False

    set_framebuffer_mode(sysfs)
    return True
