# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import enum


class Filesystem(enum.Enum):
    """Filesystem types as reported by blkid's TYPE= field."""

    ext2 = "ext2"
    ext3 = "ext3"
    ext4 = "ext4"
    vfat = "vfat"
    f2fs = "f2fs"
    btrfs = "btrfs"
    crypto_LUKS = "crypto_LUKS"
    unknown = "unknown"

    def __str__(self) -> str:
        return self.value

    @staticmethod
    def from_str(fstype: str | None) -> Filesystem:
        """This never fails: an unexpected filesystem is something the caller
        has to decide about (warn for boot, refuse for root)."""
        if not fstype:
            return Filesystem.unknown
        try:
            return Filesystem(fstype)
        except ValueError:
            return Filesystem.unknown

    def is_ext(self) -> bool:
        return self in [Filesystem.ext2, Filesystem.ext3, Filesystem.ext4]

    def kernel_module(self) -> str | None:
        """Module to load before mounting. ext2 and ext3 get handled by the ext4
        module on the kernels we ship."""
        match self:
            case Filesystem.ext2 | Filesystem.ext3 | Filesystem.ext4:
                return "ext4"
            case Filesystem.vfat | Filesystem.f2fs | Filesystem.btrfs:
                return self.value
            case Filesystem.crypto_LUKS | Filesystem.unknown:
                return None

    def is_root_filesystem(self) -> bool:
        """Filesystems the root partition can have. Everything else is most
        likely not a postmarketOS root partition at all."""
        return self in [Filesystem.ext4, Filesystem.f2fs, Filesystem.btrfs]
