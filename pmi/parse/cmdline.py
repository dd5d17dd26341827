# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

from pathlib import Path
from pmi.helpers import logging
import pmi.config


class Cmdline:
    """Kernel command line. Reference: <https://postmarketos.org/cmdline>

    pmos_root=, pmos_root_uuid=, pmos_boot= and pmos_boot_uuid= exist for
    testing and recovery: they take precedence over finding the partitions
    by label. Presence flags like PMOS_NOSPLASH don't have a value."""

    def __init__(self, line: str = "") -> None:
        self.line = line.strip()
        self.tokens = self.line.split()

    def __repr__(self) -> str:
        return f"Cmdline({self.line!r})"

    def values(self, key: str) -> list[str]:
        """All values of key=value, in the order they were passed."""
        prefix = f"{key}="
        return [t[len(prefix) :] for t in self.tokens if t.startswith(prefix)]

    def first(self, key: str) -> str | None:
        values = self.values(key)
        return values[0] if values else None

    def last(self, key: str) -> str | None:
        values = self.values(key)
        return values[-1] if values else None

    def has_flag(self, flag: str) -> bool:
        return any(t == flag or t.startswith(f"{flag}=") for t in self.tokens)

    # pmos_root= and pmos_root_uuid=: the last one wins, like it does for
    # the kernel's own root=
    @property
    def root(self) -> str | None:
        return self.last("pmos_root")

    @property
    def root_uuid(self) -> str | None:
        return self.last("pmos_root_uuid")

    # pmos_boot= and pmos_boot_uuid=: the first one wins
    @property
    def boot(self) -> str | None:
        return self.first("pmos_boot")

    @property
    def boot_uuid(self) -> str | None:
        return self.first("pmos_boot_uuid")

    @property
    def rootfsopts(self) -> str | None:
        return self.last("pmos_rootfsopts")

    @property
    def force_partition_resize(self) -> bool:
        return self.has_flag("PMOS_FORCE_PARTITION_RESIZE")

    @property
    def nosplash(self) -> bool:
        return self.has_flag("PMOS_NOSPLASH")

    @property
    def no_output_redirect(self) -> bool:
        return self.has_flag("PMOS_NO_OUTPUT_REDIRECT")

    @property
    def bootchart2(self) -> bool:
        return self.has_flag("PMOS_BOOTCHART2")

    @staticmethod
    def from_file(path: Path = pmi.config.proc_cmdline) -> Cmdline:
        """
        :param path: usually /proc/cmdline. A missing file gives an empty
                     command line (e.g. /proc failed to mount), so we fall
                     back to finding everything by label.
        """
        try:
            with open(path) as handle:
                return Cmdline(handle.read())
        except OSError as e:
            logging.info(f"WARNING: failed to read the kernel command line: {e}")
            return Cmdline()
