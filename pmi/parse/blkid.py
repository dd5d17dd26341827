# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
import re
from pmi.core.blockdevice import BlockDevice
from pmi.core.filesystem import Filesystem
import pmi.helpers.run

# KEY="value" pairs of one blkid line, e.g.:
# /dev/mmcblk0p1: LABEL="pmOS_boot" UUID="a4b2-..." TYPE="ext2" PARTUUID="..."
_PAIR = re.compile(r'([A-Z_]+)="([^"]*)"')


def parse_line(line: str) -> BlockDevice | None:
    """
    :param line: one line of blkid output
    :returns: the parsed block device, or None for lines that don't look like
              blkid output
    """
    if ":" not in line:
        return None
    path, attrs = line.split(":", 1)
    path = path.strip()
    if not path.startswith("/"):
        return None

    values = dict(_PAIR.findall(attrs))
    return BlockDevice(
        path=path,
        fstype=Filesystem.from_str(values.get("TYPE")),
        label=values.get("LABEL", ""),
        uuid=values.get("UUID", ""),
        partlabel=values.get("PARTLABEL", ""),
    )


def parse(output: str) -> list[BlockDevice]:
    """Parse blkid output, keeping the order blkid printed the devices in."""
    ret = []
    for line in output.splitlines():
        device = parse_line(line)
        if device:
            ret.append(device)
    return ret


def all_devices() -> list[BlockDevice]:
    """All block devices with a known signature, freshly scanned."""
    return parse(pmi.helpers.run.user_output(["blkid"], check=False))


def lookup(path: str) -> BlockDevice | None:
    """
    Identify the filesystem on one block device.

    :param path: e.g. /dev/mmcblk0p2
    :returns: the block device, or None if it doesn't exist or has no
              known signature
    """
    for device in parse(pmi.helpers.run.user_output(["blkid", path], check=False)):
        if device.path == path:
            return device
    return None


def fstype(path: str) -> Filesystem:
    device = lookup(path)
    return device.fstype if device else Filesystem.unknown


def findfs(key: str, value: str) -> str | None:
    """
    Find a block device by filesystem label or UUID.

    :param key: "LABEL" or "UUID"
    :returns: path to the block device, or None if not found
    """
    ret = pmi.helpers.run.user_output(["findfs", f"{key}={value}"], check=False).strip()
    return ret or None
