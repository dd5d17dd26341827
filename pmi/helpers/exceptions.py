# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
import pmi.config


class FatalBootError(Exception):
    """The boot can't continue without a human looking at the device. This is
    not a bug in the initramfs code, e.g. there is no partition to boot from.
    The message is short enough to fit on the splash screen."""

    @property
    def splash_message(self) -> str:
        return f"ERROR: {self}\n{pmi.config.troubleshooting_url}"
