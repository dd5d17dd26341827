# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later

"""The order in which the initramfs does things. Everything from pseudo
filesystems to having the root partition mounted at /sysroot, the
switch_root is done by whoever called us."""

import threading
import pmi.config
from pmi.core.context import BootContext
from pmi.helpers import logging
import pmi.helpers.mount
import pmi.helpers.splash
import pmi.init.framebuffer
import pmi.init.other
import pmi.init.usb
import pmi.rootfs.locate
import pmi.rootfs.mount
import pmi.rootfs.resize
import pmi.rootfs.subpartitions
import pmi.rootfs.unlock
from pmi.rootfs.mount import MountMode


def setup_early(ctx: BootContext) -> None:
    """Kernel and userspace setup needed before looking for partitions."""
    pmi.init.other.setup_firmware_path()
    modules = pmi.config.modules_default + ctx.deviceinfo.modules_initfs.split()
    pmi.init.other.load_modules(pmi.config.modules_load_file, modules)
    pmi.init.other.setup_mdev()
    pmi.init.framebuffer.setup_framebuffer(ctx)
    pmi.helpers.splash.show_splash(ctx, "Loading...")

    pmi.init.other.run_hooks(ctx.config.hooks)
    pmi.init.usb.setup_usb_network(ctx)
    pmi.init.usb.start_unudhcpd(ctx)


def find_partitions(ctx: BootContext) -> None:
    """Make the boot partition visible, mount it and get what we need from it."""
    pmi.rootfs.subpartitions.setup_dynamic_partitions(
        ctx, ctx.deviceinfo.super_partition_list
    )
    pmi.rootfs.subpartitions.mount_subpartitions(ctx)

    pmi.rootfs.mount.mount_boot_partition(ctx, ctx.config.boot, MountMode.RO)
    pmi.init.other.extract_initramfs_extra(ctx.config.initramfs_extra)
    pmi.init.other.setup_udev()
    pmi.init.other.run_hooks(ctx.config.hooks_extra)


def prepare_root(ctx: BootContext, cancel: threading.Event | None = None) -> bool:
    """
    Wait for the root partition, grow it and unlock it.

    :returns: False if cancelled while waiting
    """
    if not pmi.rootfs.locate.wait_root_partition(ctx, cancel):
        return False
    pmi.rootfs.resize.delete_old_install_partition(ctx)
    pmi.rootfs.resize.resize_root_partition(ctx)
    pmi.rootfs.unlock.unlock_root_partition(ctx, cancel)
    if cancel is not None and cancel.is_set():
        return False
    pmi.rootfs.resize.resize_root_filesystem(ctx)
    return True


def mount_root(ctx: BootContext) -> None:
    """Mount root at /sysroot and move the boot partition below it."""
    pmi.rootfs.mount.mount_root_partition(ctx)
    pmi.helpers.mount.umount(ctx.config.boot)
    pmi.rootfs.mount.mount_boot_partition(ctx, ctx.config.sysroot / "boot", MountMode.RW)


def run(ctx: BootContext, cancel: threading.Event | None = None) -> str | None:
    """
    Boot until the root filesystem is mounted.

    :param cancel: stop the endless loops (waiting for root, asking for the
                   password) when this gets set
    :returns: the init to switch_root to, None if cancelled
    :raises FatalBootError: when there is no way to continue booting
    """
    setup_early(ctx)
    find_partitions(ctx)
    if not prepare_root(ctx, cancel):
        logging.info("NOTE: cancelled before the root partition was ready")
        return None
    mount_root(ctx)
    return pmi.init.other.setup_bootchart2(ctx)
