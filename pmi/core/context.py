# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later

"""Runtime context of one boot, passed to every stage of the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field

from pmi.core.clock import Clock, SystemClock
from pmi.core.config import Config
from pmi.parse.cmdline import Cmdline
from pmi.parse.deviceinfo import Deviceinfo


@dataclass
class PipelineState:
    """The only things that change while we boot."""

    # Set after fde-unlock opened the LUKS container. From then on the root
    # partition is the decrypted mapping, so pmos_root= must not be used
    # anymore.
    root_unlocked: bool = False
    # Set when the root partition was grown, so the filesystem gets grown too
    root_resized: bool = False
    # pmos_root= / pmos_root_uuid= after resolving it to a block device
    override_device: str | None = None


@dataclass
class BootContext:
    config: Config
    cmdline: Cmdline
    deviceinfo: Deviceinfo
    state: PipelineState = field(default_factory=PipelineState)
    clock: Clock = field(default_factory=SystemClock)

