# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
import os
from pathlib import Path
import pmi.config
from pmi.core.context import BootContext
from pmi.helpers import logging
from pmi.helpers.exceptions import FatalBootError
import pmi.helpers.mount
import pmi.helpers.run
import pmi.helpers.run_core


def setup_firmware_path(sysfs: Path = pmi.config.firmware_class_path) -> bool:
    """
    Add the postmarketOS-specific path to the firmware search paths.
    This should be sufficient on kernel 3.10+, before that we need
    the kernel calling udev (and in our case /usr/lib/firmwareload.sh)
    to load the firmware for the kernel.
    """
    logging.info("Configuring kernel firmware image search path")
    if not sysfs.exists():
        logging.info("Kernel does not support setting the firmware image search path. Skipping.")
        return False
    sysfs.write_text(pmi.config.firmware_search_path)
    return True


def load_modules(path: Path, modules: list[str]) -> bool:
    """
    :param path: file with more module names, e.g. /lib/modules/initramfs.load
    :param modules: modules to load in any case
    """
    if path.is_file():
        modules = modules + path.read_text().split()
    if not modules:
        return True
    return pmi.helpers.run.succeeds(["modprobe", "-a", *modules])


def setup_mdev() -> None:
    """Start the mdev daemon."""
    pmi.helpers.run.user(["mdev", "-d"], check=False)


def setup_udev() -> bool:
    """
    Use udev to coldplug all devices so that they can be used via libinput
    (e.g. by unl0kr). This is the same series of steps performed by the udev,
    udev-trigger and udev-settle RC services. See also:
    - https://git.alpinelinux.org/aports/tree/main/eudev/setup-udev
    - https://git.alpinelinux.org/aports/tree/main/udev-init-scripts/APKBUILD
    """
    if not pmi.helpers.run.which("udevd") or not pmi.helpers.run.which("udevadm"):
        return False
    pmi.helpers.run.user(["udevd", "-d"], check=False)
    pmi.helpers.run.user(["udevadm", "trigger", "--type=devices", "--action=add"], check=False)
    pmi.helpers.run.user(["udevadm", "settle"], check=False)
    return True


def run_hooks(scriptsdir: Path) -> list[Path]:
    """
    Run every *.sh script in scriptsdir, in alphabetical order. A failing hook
    doesn't stop the boot.

    :returns: the hooks that were run
    """
    if not scriptsdir.is_dir():
        return []

    hooks = sorted(scriptsdir.glob("*.sh"))
    for hook in hooks:
        logging.info(f"Running initramfs hook: {hook}")
        pmi.helpers.run.user(["sh", hook], check=False)
    return hooks


def extract_initramfs_extra(path: Path) -> None:
    """
    Extract initramfs-extra from the boot partition into the ramdisk. It has
    everything that is too big for the initramfs (e.g. the password prompt).

    :param path: e.g. /boot/initramfs-extra
    :raises FatalBootError: if it doesn't exist
    """
    if not path.exists():
        logging.info("ERROR: initramfs-extra not found!")
        raise FatalBootError("initramfs-extra not found")

    logging.info(f"Extract {path}")
    flat = pmi.helpers.run_core.flat_cmd(["gzip", "-d", "-c", os.fspath(path)])
    if pmi.helpers.run.user(["sh", "-c", f"{flat} | cpio -i"], working_dir=Path("/"), check=False):
        logging.info(f"WARNING: failed to extract {path}")


def setup_bootchart2(ctx: BootContext) -> str:
    """
    Boot through bootchartd if PMOS_BOOTCHART2 is on the kernel cmdline.

    :returns: init to hand off to
    """
    if not ctx.cmdline.bootchart2:
        return pmi.config.init_default

    sysroot = ctx.config.sysroot
    if not (sysroot / pmi.config.init_bootchart2.lstrip("/")).is_file():
        logging.info("WARNING: bootchart2 is not installed.")
        return pmi.config.init_default

    logging.info(f"remounting {sysroot} as rw for {pmi.config.init_bootchart2}")
    pmi.helpers.mount.mount(sysroot, sysroot, options="remount,rw")

    # /dev/null may not exist at the first boot after
    # the root filesystem has been created.
    null = sysroot / "dev/null"
    if not null.is_char_device():
        logging.info(f"creating {null} for {pmi.config.init_bootchart2}")
        pmi.helpers.run.user(["mknod", "-m", "666", null, "c", "1", "3"], check=False)
    return pmi.config.init_bootchart2
