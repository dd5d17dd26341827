# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later

import time
from typing import Protocol


class Clock(Protocol):
    """Time source for everything that waits. The test suite swaps this out
    for a simulated clock, so waiting for a device doesn't take 10 seconds."""

    def monotonic(self) -> float: ...

    def sleep(self, seconds: float) -> None: ...


class SystemClock:
    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)
