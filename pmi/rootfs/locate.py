# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later

"""Find the boot and root partitions.

The partition layout is one of the following:
a) boot, root partitions on sdcard
b) boot, root partition on the "system" partition (which has its
   own partition header! so we have partitions on partitions!)

mount_subpartitions() must get executed before calling
find_root_partition(), so partitions from b) also get found.

Nothing here caches anything: every call asks blkid again, since device
nodes show up while we are booting."""

import threading
import pmi.config
from pmi.core.context import BootContext
from pmi.core.partition import PartitionAddress
from pmi.core.poll import retry_forever
from pmi.helpers import logging
import pmi.helpers.splash
import pmi.parse.blkid


def _installer_partition(device: str) -> str | None:
    """
    On-device installer: before postmarketOS is installed, we want to use the
    installer partition as root. It is the partition behind pmos_root.
    pmos_root will either point to reserved space, or to an unfinished
    installation.

    p1: boot
    p2: (reserved space) <--- pmos_root
    p3: pmOS_install

    Details: https://postmarketos.org/on-device-installer

    :returns: path to the partition after device, if it is labeled
              pmOS_install (and not pmOS_deleteme, that would mean
              postmarketOS is installed)
    """
    address = PartitionAddress.parse(device)
    if not address:
        return None

    installer = pmi.parse.blkid.lookup(address.next().path)
    if installer and installer.label == pmi.config.label_install:
        return installer.path
    return None


def _cmdline_root(ctx: BootContext) -> str | None:
    """pmos_root= or pmos_root_uuid= from the kernel cmdline, redirected to the
    installer partition if there is an unfinished installation."""
    device = None
    if ctx.cmdline.root_uuid:
        device = pmi.parse.blkid.findfs("UUID", ctx.cmdline.root_uuid)
    # An explicit path wins over the UUID
    if ctx.cmdline.root:
        device = ctx.cmdline.root
    if not device:
        return None

    installer = _installer_partition(device)
    if installer:
        logging.verbose(f"{device}: postmarketOS not installed yet, using {installer}")
        device = installer

    ctx.state.override_device = device
    return device


def _scan_by_label(device_mapper_only: bool) -> str | None:
    devices = pmi.parse.blkid.all_devices()
    if device_mapper_only:
        # Same order as before: the identifier is more important than the
        # kind of device-mapper node it was found on
        for identifier in pmi.config.root_identifiers:
            for prefix in pmi.config.device_mapper_prefixes:
                for device in devices:
                    if device.path.startswith(prefix) and device.matches(identifier):
                        return device.path
        return None

    for identifier in pmi.config.root_identifiers:
        for device in devices:
            if device.matches(identifier):
                return device.path
    return None


def find_root_partition(ctx: BootContext) -> str | None:
    """
    :returns: path to the root partition (or the LUKS container holding it),
              None if it is not there (yet)
    """
    # Short circuit all autodetection logic if pmos_root= or pmos_root_uuid=
    # is supplied on the kernel cmdline. After unlocking, pmos_root points to
    # the LUKS container, but we want the decrypted volume.
    if not ctx.state.root_unlocked:
        device = _cmdline_root(ctx)
        if device:
            return device

    # Try partitions in /dev/mapper and /dev/dm-* first, then all devices
    return _scan_by_label(device_mapper_only=True) or _scan_by_label(device_mapper_only=False)


def find_boot_partition(ctx: BootContext) -> str | None:
    """
    :returns: path to the boot partition, None if it is not there (yet)
    """
    if ctx.cmdline.boot_uuid:
        return pmi.parse.blkid.findfs("UUID", ctx.cmdline.boot_uuid)

    if ctx.cmdline.boot:
        return ctx.cmdline.boot

    for label in pmi.config.boot_labels:
        device = pmi.parse.blkid.findfs("LABEL", label)
        if device:
            return device
    return None


def wait_root_partition(ctx: BootContext, cancel: threading.Event | None = None) -> str | None:
    """
    Wait until the root partition shows up. There is no timeout: if it isn't
    there, the user may need to insert the sdcard.

    :param cancel: stop waiting when this gets set (testsuite)
    :returns: path to the root partition, None if cancelled
    """

    def not_found(attempts: int) -> None:
        if attempts == 1:
            pmi.helpers.splash.show_splash(
                ctx, f"ERROR: root partition not found\n{pmi.config.troubleshooting_url}"
            )
        logging.info("Could not find the rootfs.")
        logging.info("Maybe you need to insert the sdcard, if your device has")
        logging.info("any? Trying again in one second...")

    found = retry_forever(
        lambda: find_root_partition(ctx) is not None,
        pmi.config.root_wait_interval,
        ctx.clock,
        cancel,
        not_found,
    )
    if not found:
        return None
    return find_root_partition(ctx)
