# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later

from .blockdevice import BlockDevice as BlockDevice
from .config import Config as Config
from .context import BootContext as BootContext, PipelineState as PipelineState
from .filesystem import Filesystem as Filesystem
from .partition import PartitionAddress as PartitionAddress
