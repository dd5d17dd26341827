# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
from pmi.parse.arguments import arguments as arguments
from pmi.parse.arguments import get_parser as get_parser
from pmi.parse.cmdline import Cmdline as Cmdline
from pmi.parse.deviceinfo import Deviceinfo as Deviceinfo
