# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later

from dataclasses import dataclass, field
from pathlib import Path
import pmi.config


@dataclass
class Config:
    """Paths one run of the initramfs operates on. The defaults are the real
    locations inside the initramfs; pmos-init's arguments and the testsuite
    point them elsewhere."""

    cmdline: Path = pmi.config.proc_cmdline
    deviceinfo: list[Path] = field(default_factory=lambda: list(pmi.config.deviceinfo_paths))
    log: Path = pmi.config.logfile
    kmsg: Path | None = pmi.config.kmsg
    sysroot: Path = pmi.config.sysroot
    boot: Path = pmi.config.boot_mountpoint
    initramfs_extra: Path = pmi.config.initramfs_extra
    hooks: Path = pmi.config.hooks_dir
    hooks_extra: Path = pmi.config.hooks_extra_dir
    diskstats: Path = pmi.config.proc_diskstats
    verbose: bool = False
    details_to_stdout: bool = False
