# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
import re
import threading
import pmi.config
from pmi.core.context import BootContext
from pmi.core.poll import retry_forever
from pmi.helpers import logging
import pmi.helpers.run
import pmi.helpers.splash
from pmi.rootfs.locate import find_root_partition


def is_luks(partition: str) -> bool:
    """Check for the LUKS header, not the name or label of the partition."""
    return pmi.helpers.run.succeeds(["cryptsetup", "isLuks", partition])


def is_unlocked(name: str = pmi.config.crypt_mapping_name) -> bool:
    """
    :param name: device-mapper name of the decrypted volume
    :returns: True if /dev/mapper/<name> is active
    """
    out = pmi.helpers.run.user_output(["cryptsetup", "status", name], output="null", check=False)
    return re.search(r"\bactive\b", out, re.IGNORECASE) is not None


def unlock_root_partition(ctx: BootContext, cancel: threading.Event | None = None) -> bool:
    """
    Let the user unlock the root partition, if it is encrypted.

    There is no timeout and no limit of attempts: fde-unlock asks for the
    password again until it is right, and we can't boot without it.

    :param cancel: stop asking when this gets set (testsuite)
    :returns: True if the root partition was unlocked
    """
    partition = find_root_partition(ctx)
    if not partition or not is_luks(partition):
        return False

    logging.info(f"Unlock root partition ({partition})")
    # Make sure the splash doesn't interfere
    pmi.helpers.splash.kill_splash(ctx)

    tried = 0

    def unlocked() -> bool:
        nonlocal tried
        if is_unlocked():
            return True
        pmi.helpers.run.user(["fde-unlock", partition, str(tried)], output="stdout", check=False)
        tried += 1
        return False

    # fde-unlock blocks while waiting for the password, so don't sleep
    if not retry_forever(unlocked, 0, ctx.clock, cancel):
        return False

    ctx.state.root_unlocked = True
    # Show again the loading splashscreen
    pmi.helpers.splash.show_splash(ctx, "Loading...")
    return True
