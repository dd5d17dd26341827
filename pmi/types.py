# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later

from pathlib import Path
from typing import Literal

PathString = Path | str

RunOutputType = Literal["log", "stdout", "null", "background"]
