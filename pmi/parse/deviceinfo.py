# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

from pathlib import Path
from pmi.helpers import logging
import pmi.config


class Deviceinfo:
    """Variables from deviceinfo. Reference: <https://postmarketos.org/deviceinfo>
    Only the variables the initramfs looks at are listed here, the file has
    many more (which we keep as attributes anyway, they're just not typed)."""

    path: Path | None = None
    # general
    name: str = ""
    manufacturer: str = ""
    codename: str = ""

    # initramfs
    modules_initfs: str = ""
    super_partitions: str = ""
    no_framebuffer: str = ""
    disable_dhcpd: str = ""

    # ChromeOS devices have a kernel partition in front of boot and root
    cgpt_kpart: str = ""

    # usb network
    usb_idVendor: str = ""
    usb_idProduct: str = ""
    usb_serialnumber: str = ""
    usb_network_function: str = ""
    usb_network_udc: str = ""

    def __init__(self, path: Path | None = None):
        self.path = path
        if path is None:
            return

        ret = {}
        with open(path) as handle:
            for line in handle:
                if not line.startswith("deviceinfo_"):
                    continue
                if "=" not in line:
                    raise SyntaxError(f"{path}: No '=' found:\n\t{line}")
                split = line.split("=", 1)
                key = split[0][len("deviceinfo_") :]
                value = split[1].replace('"', "").replace("\n", "")
                ret[key] = value

        for key, value in ret.items():
            setattr(self, key, value)

    def is_true(self, key: str) -> bool:
        """deviceinfo booleans are the string "true", anything else is false."""
        return getattr(self, key, "") == "true"

    @property
    def super_partition_list(self) -> list[str]:
        return self.super_partitions.split()

    def usb(self, key: str) -> str:
        """USB gadget variable with the postmarketOS default as fallback.

        :param key: e.g. "idVendor" for deviceinfo_usb_idVendor
        """
        return getattr(self, f"usb_{key}", "") or pmi.config.usb_defaults[key]

    @staticmethod
    def from_paths(paths: list[Path]) -> Deviceinfo:
        """Parse the first deviceinfo file that exists.

        A missing deviceinfo is not fatal, we can still boot generic devices
        that find their partitions by label."""
        for path in paths:
            if path.exists():
                logging.verbose(f"Using deviceinfo: {path}")
                return Deviceinfo(path)
        logging.info(f"WARNING: no deviceinfo found in: {', '.join(str(p) for p in paths)}")
        return Deviceinfo()
