# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

from dataclasses import dataclass
import pmi.config
from pmi.core.filesystem import Filesystem
from pmi.core.partition import PartitionAddress


@dataclass(frozen=True)
class BlockDevice:
    """One line of blkid output. We don't keep these around: every lookup runs
    blkid again, since devices come and go while we boot."""

    path: str
    fstype: Filesystem = Filesystem.unknown
    label: str = ""
    uuid: str = ""
    partlabel: str = ""

    def __str__(self) -> str:
        return self.path

    @property
    def is_device_mapper(self) -> bool:
        """Subpartitions (kpartx), dynamic partitions and decrypted LUKS
        volumes all live in the device-mapper."""
        return any(self.path.startswith(p) for p in pmi.config.device_mapper_prefixes)

    @property
    def address(self) -> PartitionAddress | None:
        return PartitionAddress.parse(self.path)

    def matches(self, identifier: str) -> bool:
        """
        :param identifier: filesystem label (e.g. "pmOS_root") or filesystem
                           type (e.g. "crypto_LUKS")
        """
        return identifier in (self.label, self.fstype.value)
