# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later

"""Make partitions inside partitions available as block devices: Android
dynamic partitions ("super" partitions) and pmOS_boot + pmOS_root inside a
partition table that was flashed to an Android partition."""

import glob
import os
from pathlib import Path
import stat
import pmi.config
from pmi.core.context import BootContext
from pmi.core.poll import poll_until
from pmi.helpers import logging
import pmi.helpers.run
from pmi.rootfs.locate import find_boot_partition


def is_block_device(path: str) -> bool:
    try:
        return stat.S_ISBLK(os.stat(path).st_mode)
    except OSError:
        return False


def setup_dynamic_partitions(ctx: BootContext, super_partitions: list[str]) -> int:
    """
    Map the logical partitions of each super partition with
    make-dynpart-mappings. The slot number counts up for each super partition.

    :param super_partitions: e.g. ["/dev/disk/by-partlabel/super"]
    :returns: number of super partitions that got mapped
    """
    if not super_partitions:
        return 0
    if not pmi.helpers.run.which("make-dynpart-mappings"):
        logging.verbose("make-dynpart-mappings not installed, skipping dynamic partitions")
        return 0

    slot_number = 0
    for super_partition in super_partitions:
        # Wait for mdev
        logging.info(f"Waiting for super partition {super_partition}...")
        if not poll_until(
            lambda: is_block_device(super_partition),
            pmi.config.super_partition_timeout,
            pmi.config.super_partition_interval,
            ctx.clock,
        ):
            logging.info(f"ERROR: Super partition {super_partition} failed to show up!")
            break
        pmi.helpers.run.user(
            ["make-dynpart-mappings", super_partition, str(slot_number)], check=False
        )
        slot_number += 1
    return slot_number


def diskstats_devices(path: Path = pmi.config.proc_diskstats) -> list[str]:
    """Block devices the kernel knows about, without loop and ram devices.

    :param path: /proc/diskstats, columns: major minor name stats...
    """
    ret = []
    try:
        with open(path) as handle:
            lines = handle.readlines()
    except OSError:
        return ret
    for line in lines:
        words = line.split()
        if len(words) < 3:
            continue
        if any(ignore in line for ignore in pmi.config.diskstats_ignore):
            continue
        ret.append(f"/dev/{words[2]}")
    return ret


def android_partitions() -> list[str]:
    ret = []
    for pattern in pmi.config.subpartition_candidates:
        ret += sorted(glob.glob(pattern))
    return ret


def count_subpartitions(partition: str) -> int:
    """Number of partitions kpartx finds in the partition table inside
    partition (0 if there is none)."""
    out = pmi.helpers.run.user_output(["kpartx", "-l", partition], output="null", check=False)
    return len(out.splitlines())


def try_subpartitions(ctx: BootContext, candidates: list[str]) -> bool:
    """
    Map the subpartitions of the first candidate that holds our boot
    partition.

    Some devices have mmc partitions that appear to have subpartitions, but
    aren't our subpartition. So after mapping, we check that the boot
    partition shows up and unmap them again if it doesn't.

    :returns: True if the boot partition is available now
    """
    for partition in candidates:
        if count_subpartitions(partition) != pmi.config.subpartition_count:
            continue

        logging.info(f"Mount subpartitions of {partition}")
        pmi.helpers.run.user(["kpartx", "-afs", partition], check=False)
        if find_boot_partition(ctx):
            return True
        pmi.helpers.run.user(["kpartx", "-d", partition], check=False)
    return False


def mount_subpartitions(ctx: BootContext) -> bool:
    """
    Look for pmOS_boot and pmOS_root inside other partitions until the boot
    partition can be found, or the timeout is reached.

    :returns: True if the boot partition was found
    """
    android_parts = android_partitions()
    timeout = pmi.config.subpartitions_timeout
    logging.info(f"Trying to mount subpartitions for {timeout} seconds...")

    def attempt() -> bool:
        if find_boot_partition(ctx):
            return True
        candidates = android_parts + diskstats_devices(ctx.config.diskstats)
        return try_subpartitions(ctx, candidates)

    if not poll_until(attempt, timeout, pmi.config.subpartitions_interval, ctx.clock):
        logging.info("ERROR: failed to mount subpartitions!")
        return False
    return True
