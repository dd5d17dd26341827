# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
