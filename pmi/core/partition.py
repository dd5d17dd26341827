# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

from dataclasses import dataclass
import re

# Disks whose name ends in a digit get a "p" before the partition number:
# /dev/mmcblk0p2, /dev/nvme0n1p2, /dev/loop0p2, /dev/mapper/loop0p2
_WITH_SEPARATOR = re.compile(r"^(?P<disk>.*\d)p(?P<ordinal>\d+)$")
# The classic ones don't: /dev/sda2, /dev/vdb3, /dev/xvda1
_WITHOUT_SEPARATOR = re.compile(r"^(?P<disk>.*/(?:sd|vd|hd|xvd|ubd)[a-z]+)(?P<ordinal>\d+)$")


@dataclass(frozen=True)
class PartitionAddress:
    """A partition identified by the disk it is on and its number in the
    disk's partition table, e.g. /dev/mmcblk0p2 is ("/dev/mmcblk0", 2, "p").

    Device-mapper nodes like /dev/mapper/root or /dev/dm-0 have no address,
    they need to be resolved with dmsetup first."""

    disk: str
    ordinal: int
    separator: str = ""

    def __str__(self) -> str:
        return self.path

    @property
    def path(self) -> str:
        return f"{self.disk}{self.separator}{self.ordinal}"

    def with_ordinal(self, ordinal: int) -> PartitionAddress:
        """Another partition on the same disk."""
        if ordinal < 1:
            raise ValueError(f"Invalid partition number: {ordinal}")
        return PartitionAddress(self.disk, ordinal, self.separator)

    def next(self) -> PartitionAddress:
        """The partition after this one, e.g. the on-device installer's
        pmOS_install (p3) behind the reserved space for pmOS_root (p2)."""
        return self.with_ordinal(self.ordinal + 1)

    @staticmethod
    def parse(path: str) -> PartitionAddress | None:
        """
        :param path: partition block device, e.g. /dev/mmcblk0p2
        :returns: the address, or None if path is not a numbered partition
                  (whole disks, device-mapper nodes, by-label symlinks, ...)
        """
        for pattern, separator in [(_WITH_SEPARATOR, "p"), (_WITHOUT_SEPARATOR, "")]:
            match = pattern.match(path)
            if match:
                ordinal = int(match.group("ordinal"))
                if ordinal < 1:
                    return None
                return PartitionAddress(match.group("disk"), ordinal, separator)
        return None
