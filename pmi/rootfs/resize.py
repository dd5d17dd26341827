# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
import os
from pathlib import Path
import re
import tempfile
import pmi.config
from pmi.core.blockdevice import BlockDevice
from pmi.core.context import BootContext
from pmi.core.filesystem import Filesystem
from pmi.core.partition import PartitionAddress
from pmi.helpers import logging
import pmi.helpers.mount
import pmi.helpers.run
import pmi.helpers.splash
import pmi.parse.blkid
from pmi.rootfs.locate import find_root_partition


def has_unallocated_space(device: str) -> bool:
    """
    Check if there is unallocated space at the end of the device.

    :param device: whole disk, e.g. /dev/mmcblk0
    """
    out = pmi.helpers.run.user_output(["parted", "-s", device, "print", "free"], check=False)
    lines = [line for line in out.splitlines() if line.strip()]
    if not lines:
        return False
    return "free space" in lines[-1].lower()


def physical_device(partition: str) -> str | None:
    """
    Find the partition a device-mapper node is stored in.

    :param partition: e.g. /dev/mapper/userdata2
    :returns: e.g. /dev/mmcblk0p20, None if dmsetup doesn't know it
    """
    out = pmi.helpers.run.user_output(
        ["dmsetup", "deps", "-o", "blkdevname", partition], check=False
    )
    # 1 dependencies  : (mmcblk0p20)
    match = re.search(r"\(([^)]+)\)", out)
    if not match:
        return None
    return f"/dev/{match.group(1)}"


def resize_subpartition(partition: str) -> bool:
    """Resize the root subpartition to use all the unused space of the
    partition it is stored in."""
    partition_dev = physical_device(partition)
    if not partition_dev or not has_unallocated_space(partition_dev):
        return False

    logging.info(f"Resize root partition ({partition})")
    # unmount subpartition, resize and remount it
    pmi.helpers.run.user(["kpartx", "-d", partition], check=False)
    ok = pmi.helpers.run.succeeds(["parted", "-f", "-s", partition_dev, "resizepart", "2", "100%"])
    pmi.helpers.run.user(["kpartx", "-afs", partition_dev], check=False)
    if not ok:
        logging.info(f"WARNING: Failed to resize {partition_dev}")
    return ok


def resize_partition(partition: str, ordinal: int) -> bool:
    """
    Resize a partition of the disk's own partition table to the end of the
    disk.

    :param partition: e.g. /dev/mmcblk0p2
    :param ordinal: which partition number the root partition must have for
                    this layout, we don't resize anything else
    """
    address = PartitionAddress.parse(partition)
    if not address or address.ordinal != ordinal:
        logging.info(
            f"Resize root partition: skipped ({partition} is not partition {ordinal} of a disk)"
        )
        return False
    if not has_unallocated_space(address.disk):
        return False

    logging.info(f"Resize root partition ({partition})")
    if not pmi.helpers.run.succeeds(
        ["parted", "-f", "-s", address.disk, "resizepart", str(ordinal), "100%"]
    ):
        logging.info(f"WARNING: Failed to resize {partition}")
        return False
    pmi.helpers.run.user(["partprobe"], check=False)
    return True


def resize_root_partition(ctx: BootContext) -> bool:
    """
    Grow the root partition, if there is free space behind it.

    :returns: True if the root partition was resized
    """
    partition = find_root_partition(ctx)
    if not partition:
        return False

    # Do not resize the installer partition
    device = pmi.parse.blkid.lookup(partition) or BlockDevice(partition)
    if device.label == pmi.config.label_install:
        logging.info("Resize root partition: skipped (on-device installer)")
        return False

    resized = False

    # Only resize the partition if it's inside the device-mapper, which means
    # that the partition is stored as a subpartition inside another one.
    if device.is_device_mapper:
        resized = resize_subpartition(partition) or resized

    # Resize the root partition (non-subpartitions). Usually we do not want
    # this, except for QEMU devices and non-android devices (e.g.
    # PinePhone). For them, it is fine to use the whole storage device and
    # so we pass PMOS_FORCE_PARTITION_RESIZE as kernel parameter.
    if ctx.cmdline.force_partition_resize:
        resized = resize_partition(partition, 2) or resized

    # Resize the root partition (non-subpartitions) on Chrome OS devices.
    # deviceinfo_cgpt_kpart is used instead of the cmdline, as all these
    # devices use the same partitioning. The root partition is the third one,
    # these devices have an additional kernel partition at the start.
    if ctx.deviceinfo.cgpt_kpart:
        resized = resize_partition(partition, 3) or resized

    if resized:
        ctx.state.root_resized = True
    return resized


def resize_btrfs(partition: str) -> None:
    """btrfs can only be resized while it is mounted."""
    mountpoint = tempfile.mkdtemp()
    try:
        if not pmi.helpers.mount.mount(partition, mountpoint, "btrfs"):
            logging.info(f"WARNING: Can not mount '{partition}' to resize it.")
            return
        try:
            pmi.helpers.run.user(
                ["btrfs", "filesystem", "resize", "max", mountpoint], check=False
            )
        finally:
            pmi.helpers.mount.umount(mountpoint)
    finally:
        # Keep the mount point if umount failed
        if not pmi.helpers.mount.ismount(Path(mountpoint)):
            os.rmdir(mountpoint)


def resize_root_filesystem(ctx: BootContext) -> bool:
    """
    Grow the root filesystem, after the root partition got resized.

    :returns: True if a resize tool was run
    """
    if not ctx.state.root_resized:
        return False

    pmi.helpers.splash.show_splash(ctx, "Resizing filesystem during initial boot...")
    partition = find_root_partition(ctx)
    if not partition:
        logging.info("WARNING: Can not resize the root filesystem, root partition is gone.")
        return False

    # See https://bugs.debian.org/cgi-bin/bugreport.cgi?bug=673323
    if not pmi.config.mtab.exists():
        pmi.config.mtab.touch()
    fstype = pmi.parse.blkid.fstype(partition)
    ran = True
    match fstype:
        case Filesystem.ext4:
            logging.info(f"Resize 'ext4' root filesystem ({partition})")
            pmi.helpers.run.user(["modprobe", str(fstype.kernel_module())], check=False)
            pmi.helpers.run.user(["resize2fs", "-f", partition], check=False)
        case Filesystem.f2fs:
            logging.info(f"Resize 'f2fs' root filesystem ({partition})")
            pmi.helpers.run.user(["modprobe", str(fstype.kernel_module())], check=False)
            pmi.helpers.run.user(["resize.f2fs", partition], check=False)
        case Filesystem.btrfs:
            logging.info(f"Resize 'btrfs' root filesystem ({partition})")
            pmi.helpers.run.user(["modprobe", str(fstype.kernel_module())], check=False)
            resize_btrfs(partition)
        case _:
            logging.info(f"WARNING: Can not resize '{fstype}' filesystem ({partition}).")
            ran = False

    pmi.helpers.splash.show_splash(ctx, "Loading...")
    return ran


def delete_old_install_partition(ctx: BootContext) -> bool:
    """
    The on-device installer leaves a "pmOS_deleteme" (p3) partition after
    successful installation, located after "pmOS_root" (p2). Delete it,
    so we can use the space.

    :returns: True if the partition was deleted
    """
    root = find_root_partition(ctx)
    address = PartitionAddress.parse(root) if root else None
    if not address or address.ordinal != 2:
        return False

    partition = address.next()
    device = pmi.parse.blkid.lookup(partition.path)
    if not device or device.label != pmi.config.label_deleteme:
        return False

    logging.info(
        "First boot after running on-device installer - deleting old"
        f" install partition: {partition}"
    )
    return pmi.helpers.run.succeeds(["parted", "-s", partition.disk, "rm", str(partition.ordinal)])
