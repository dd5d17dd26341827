# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
from dataclasses import dataclass
import enum
from pathlib import Path
import pmi.config
from pmi.core.context import BootContext
from pmi.core.filesystem import Filesystem
from pmi.helpers import logging
from pmi.helpers.exceptions import FatalBootError
import pmi.helpers.mount
import pmi.helpers.run
import pmi.parse.blkid
from pmi.rootfs.locate import find_boot_partition, find_root_partition


class MountMode(enum.Enum):
    RO = "ro"
    RW = "rw"

    def __str__(self) -> str:
        return "read-only" if self == MountMode.RO else "read-write"


@dataclass(frozen=True)
class MountSpec:
    source: str
    target: Path
    mode: MountMode
    # None lets mount detect the filesystem
    fstype: str | None = None
    options: str = ""

    @property
    def mount_options(self) -> str | None:
        opts = []
        if self.mode == MountMode.RO:
            opts.append("ro")
        if self.options:
            opts.append(self.options)
        return ",".join(opts) or None

    def mount(self) -> bool:
        return pmi.helpers.mount.mount(self.source, self.target, self.fstype, self.mount_options)


def boot_mount_spec(partition: str, target: Path, mode: MountMode) -> MountSpec:
    fstype = pmi.parse.blkid.fstype(partition)
    if fstype.is_ext():
        logging.info("Detected ext filesystem")
        pmi.helpers.run.user(["modprobe", str(fstype.kernel_module())], check=False)
        # ext2 might be handled by the ext2 or ext4 kernel module
        # so let mount detect that automatically by omitting -t
        return MountSpec(partition, target, mode)
    if fstype == Filesystem.vfat:
        logging.info("Detected vfat filesystem")
        pmi.helpers.run.user(["modprobe", str(fstype.kernel_module())], check=False)
        return MountSpec(partition, target, mode, "vfat")

    logging.info(f"WARNING: Detected unsupported '{fstype}' filesystem ({partition}).")
    return MountSpec(partition, target, mode)


def mount_boot_partition(
    ctx: BootContext, target: Path, mode: MountMode = MountMode.RO
) -> MountSpec | None:
    """
    Mount the boot partition. It gets mounted twice, first at /boot (ro), then
    at /sysroot/boot (rw), after root has been mounted at /sysroot, so we can
    switch_root to /sysroot and have the boot partition properly mounted.

    :param target: mount point, e.g. /boot
    :returns: what got mounted, None if target was mounted already
    :raises FatalBootError: if there is no boot partition
    """
    partition = find_boot_partition(ctx)
    if not partition:
        logging.info("ERROR: boot partition not found!")
        raise FatalBootError("Boot partition not found")

    # Remounting is a separate step (umount, then mount again)
    if pmi.helpers.mount.ismount(target):
        logging.info(f"WARNING: {target} is already mounted, not mounting {partition} there")
        return None

    logging.info(f"Mount boot partition ({partition}) to {target} ({mode})")
    spec = boot_mount_spec(partition, target, mode)
    target.mkdir(parents=True, exist_ok=True)
    if not spec.mount():
        logging.info(f"ERROR: unable to mount boot partition to {target}!")
    return spec


def mount_root_partition(ctx: BootContext, target: Path | None = None) -> MountSpec:
    """
    Mount the root partition read-only.

    :param target: mount point, defaults to /sysroot
    :raises FatalBootError: if the root partition is missing, has an
                            unsupported filesystem, can't be mounted, or
                            doesn't look like a root filesystem
    """
    target = target or ctx.config.sysroot
    partition = find_root_partition(ctx)
    if not partition:
        logging.info("ERROR: root partition not found!")
        raise FatalBootError("root partition not found")

    rootfsopts = ctx.cmdline.rootfsopts or ""
    logging.info(
        f"Mount root partition ({partition}) to {target} (read-only) with options {rootfsopts}"
    )
    fstype = pmi.parse.blkid.fstype(partition)
    logging.info(f"Detected {fstype} filesystem")

    if not fstype.is_root_filesystem():
        logging.info(f"ERROR: Detected unsupported '{fstype}' filesystem ({partition}).")
        raise FatalBootError(f"unsupported '{fstype}' filesystem ({partition})")

    module = str(fstype.kernel_module())
    if not pmi.helpers.run.succeeds(["modprobe", module]):
        logging.info(f"INFO: unable to load module '{module}' - maybe it's built in")

    spec = MountSpec(partition, target, MountMode.RO, str(fstype), rootfsopts)
    target.mkdir(parents=True, exist_ok=True)
    if not spec.mount():
        logging.info("ERROR: unable to mount root partition!")
        raise FatalBootError("unable to mount root partition")

    if not (target / pmi.config.rootfs_marker).exists():
        logging.info(
            "ERROR: root partition appeared to mount but does not contain a root filesystem!"
        )
        raise FatalBootError("root partition does not contain a root filesystem")
    return spec
