#!/usr/bin/env python3
# -*- encoding: UTF-8 -*-
# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later

"""Convenience wrapper for running pmos-init from the git repository. This
script is not part of the python packaging, so don't add more logic here!"""

import sys
import pmi

if __name__ == "__main__":
    sys.exit(pmi.main())
