# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later

"""Polling loops for things that show up asynchronously (device nodes created
by mdev/udev, partitions appearing after kpartx, the user typing in the full
disk encryption password)."""

import threading
from collections.abc import Callable
from pmi.core.clock import Clock


def poll_until(
    predicate: Callable[[], bool],
    timeout: float,
    interval: float,
    clock: Clock,
) -> bool:
    """
    Evaluate predicate until it returns True or the timeout is reached.

    The time spent inside predicate counts towards the timeout, since we
    compare against the time we started at and not the number of attempts.

    :param timeout: seconds after which we give up
    :param interval: seconds to sleep between two attempts
    :returns: True if predicate returned True, False on timeout
    """
    start = clock.monotonic()
    while True:
        if predicate():
            return True
        if clock.monotonic() - start >= timeout:
            return False
        clock.sleep(interval)


def retry_forever(
    predicate: Callable[[], bool],
    interval: float,
    clock: Clock,
    cancel: threading.Event | None = None,
    on_retry: Callable[[int], None] | None = None,
) -> bool:
    """
    Evaluate predicate until it returns True, without a timeout.

    :param on_retry: called with the number of failed attempts so far, before
                     sleeping (e.g. to show "insert the sdcard" on the splash)
    :param cancel: stop waiting once this event is set
    :returns: True if predicate returned True, False if cancelled
    """
    attempts = 0
    while not predicate():
        attempts += 1
        if on_retry:
            on_retry(attempts)
        if cancel is not None and cancel.is_set():
            return False
        clock.sleep(interval)
    return True
