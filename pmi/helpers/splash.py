# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
import os
from pmi.helpers import logging
import pmi.config
import pmi.helpers.run
from pmi.core.context import BootContext
from pmi.core.poll import retry_forever


def is_running() -> bool:
    return pmi.helpers.run.succeeds(["pgrep", "pbsplash"], output="null")


def kill_splash(ctx: BootContext) -> None:
    """Stop pbsplash and wait until it is gone, so it doesn't draw over
    whatever comes next (a new splash or the password prompt)."""
    pmi.helpers.run.user(["killall", "pbsplash"], output="null", check=False)
    retry_forever(lambda: not is_running(), pmi.config.splash_exit_interval, ctx.clock)


def show_splash(ctx: BootContext, message: str) -> None:
    """
    Show the postmarketOS logo with a status message.

    :param message: may contain newlines, e.g. an error and the
                    troubleshooting URL below it
    """
    # Skip for non-framebuffer devices
    if ctx.deviceinfo.is_true("no_framebuffer"):
        logging.info("NOTE: Skipping framebuffer splashscreen (deviceinfo_no_framebuffer)")
        return

    # Disable splash
    if ctx.cmdline.nosplash:
        return

    kill_splash(ctx)

    banner = f"Linux {os.uname().release} | {ctx.deviceinfo.codename}"
    pmi.helpers.run.background(
        [pmi.config.splash_binary, "-s", pmi.config.splash_logo, "-b", banner, "-m", message]
    )
