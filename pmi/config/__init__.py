# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
import os
from pathlib import Path
from typing import Final


#
# Exported variables (internal configuration)
#

# Shown on the splash screen and in the log next to every fatal error
troubleshooting_url: Final[str] = "https://postmarketos.org/troubleshooting"

#
# Partition labels
#
# Filesystem labels used to find the boot partition, in order of priority:
# * "pmOS_i_boot" installer boot partition (fits 11 chars for fat32)
# * "pmOS_inst_boot" old installer boot partition (backwards compat)
# * "pmOS_boot" boot partition after installation
boot_labels: Final[list[str]] = ["pmOS_i_boot", "pmOS_inst_boot", "pmOS_boot"]

# Identifiers (filesystem label or type) of the root partition, in order of
# priority. An unfinished on-device installation is preferred over the
# installed system, and a LUKS container is the last resort.
label_install: Final[str] = "pmOS_install"
label_root: Final[str] = "pmOS_root"
label_deleteme: Final[str] = "pmOS_deleteme"
root_identifiers: Final[list[str]] = [label_install, label_root, "crypto_LUKS"]

# Device-mapper paths are tried before all other block devices
device_mapper_prefixes: Final[list[str]] = ["/dev/mapper/", "/dev/dm-"]

# Name of the decrypted root mapping created by fde-unlock
crypt_mapping_name: Final[str] = "root"

#
# Subpartitions
#
# Android partitions that may hold a partition table with pmOS_boot and
# pmOS_root inside, checked before the block devices from /proc/diskstats
subpartition_candidates: Final[list[str]] = [
    "/dev/disk/by-partlabel/userdata",
    "/dev/disk/by-partlabel/system*",
    "/dev/mapper/system*",
]
# A container partition holds exactly boot and root
subpartition_count: Final[int] = 2
diskstats_ignore: Final[list[str]] = ["loop", "ram"]

#
# Timeouts (seconds)
#
subpartitions_timeout: Final[float] = 10
subpartitions_interval: Final[float] = 0.1
super_partition_timeout: Final[float] = 10
super_partition_interval: Final[float] = 0.1
framebuffer_timeout: Final[float] = 10
framebuffer_interval: Final[float] = 0.1
root_wait_interval: Final[float] = 1
splash_exit_interval: Final[float] = 0.01
loop_forever_interval: Final[float] = 1

#
# Filesystems
#
# Top-level directory that must exist on a mounted root filesystem
rootfs_marker: Final[str] = "usr"

#
# Well-known paths
#
proc_cmdline: Final[Path] = Path("/proc/cmdline")
proc_diskstats: Final[Path] = Path("/proc/diskstats")
deviceinfo_paths: Final[list[Path]] = [
    Path("/usr/share/deviceinfo/deviceinfo"),
    Path("/etc/deviceinfo"),
]
logfile: Final[Path] = Path("/pmOS_init.log")
kmsg: Final[Path] = Path("/dev/kmsg")
mtab: Path = Path("/etc/mtab")
sysroot: Final[Path] = Path("/sysroot")
boot_mountpoint: Final[Path] = Path("/boot")
initramfs_extra: Final[Path] = Path("/boot/initramfs-extra")
hooks_dir: Final[Path] = Path("/hooks")
hooks_extra_dir: Final[Path] = Path("/hooks-extra")
modules_load_file: Final[Path] = Path("/lib/modules/initramfs.load")
modules_default: Final[list[str]] = ["ext4", "usb_f_rndis"]
init_default: Final[str] = "/sbin/init"
init_bootchart2: Final[str] = "/sbin/bootchartd"

firmware_class_path: Final[Path] = Path("/sys/module/firmware_class/parameters/path")
firmware_search_path: Final[str] = "/lib/firmware/postmarketos"

framebuffer_dev: Final[Path] = Path("/dev/fb0")
framebuffer_sysfs: Final[Path] = Path("/sys/class/graphics/fb0")

splash_binary: Final[str] = "/usr/bin/pbsplash"
splash_logo: Final[str] = "/usr/share/pbsplash/pmos-logo-text.svg"

#
# USB network
#
usb_android_sysfs: Final[Path] = Path("/sys/class/android_usb/android0")
usb_configfs: Final[Path] = Path("/config/usb_gadget")
usb_udc_sysfs: Final[Path] = Path("/sys/class/udc")
usb_network_marker: Final[Path] = Path("/tmp/_setup_usb_network")
usb_defaults: Final[dict[str, str]] = {
    "idVendor": "0x18D1",  # Google Inc.
    "idProduct": "0xD001",  # Nexus 4 (fastboot)
    "serialnumber": "postmarketOS",
    "network_function": "rndis.usb0",
}
usb_network_ip: Final[str] = "172.16.42.1"
usb_network_client_ip: Final[str] = "172.16.42.2"
usb_network_interfaces: Final[list[str]] = ["rndis0", "usb0", "eth0"]

#
# Pseudo filesystems: (type, options, source, target)
#
pseudo_filesystems: Final[list[tuple[str, str, str, str]]] = [
    ("proc", "nodev,noexec,nosuid", "proc", "/proc"),
    ("sysfs", "nodev,noexec,nosuid", "sysfs", "/sys"),
    ("devtmpfs", "mode=0755,nosuid", "dev", "/dev"),
    ("tmpfs", "nosuid,nodev,mode=0755", "run", "/run"),
    ("configfs", "nodev,noexec,nosuid", "configfs", "/config"),
    ("devpts", "", "devpts", "/dev/pts"),
]
fd_symlinks: Final[dict[str, str]] = {
    "/dev/fd": "/proc/self/fd",
    "/dev/stdin": "/proc/self/fd/0",
    "/dev/stdout": "/proc/self/fd/1",
    "/dev/stderr": "/proc/self/fd/2",
}

# Colors used in the console output (the kernel log never gets them)
styles = {
    "BLUE": "\033[94m",
    "BOLD": "\033[1m",
    "GREEN": "\033[92m",
    "RED": "\033[91m",
    "YELLOW": "\033[93m",
    "END": "\033[0m",
}

if "NO_COLOR" in os.environ:
    for style in styles.keys():
        styles[style] = ""
