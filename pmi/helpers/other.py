# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
from typing import NoReturn
import pmi.config
from pmi.core.clock import Clock, SystemClock


def loop_forever(clock: Clock = SystemClock()) -> NoReturn:
    """Idle until someone powers off the device or attaches a debug console.

    PID 1 must never exit (the kernel would panic and the error message on
    the screen would be gone), so this is what we do after a fatal error.
    """
    while True:
        clock.sleep(pmi.config.loop_forever_interval)
