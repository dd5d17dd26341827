# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later

"""USB network gadget and DHCP server, so the initramfs can be debugged over
telnet/ssh: <https://postmarketos.org/usb-internet>"""

import os
from pathlib import Path
import subprocess
import pmi.config
from pmi.core.context import BootContext
from pmi.helpers import logging
import pmi.helpers.run


def _write(path: Path, value: str) -> bool:
    try:
        path.write_text(f"{value}\n")
    except OSError as e:
        logging.info(f"  Couldn't write {path}: {e}")
        return False
    return True


def _mkdir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        logging.info(f"  Couldn't create {path}")


def setup_usb_network_android(
    ctx: BootContext, sysfs: Path = pmi.config.usb_android_sysfs
) -> bool:
    # Only run, when we have the android usb driver
    if not sysfs.exists():
        logging.info("  /sys/class/android_usb does not exist, skipping android_usb")
        return False

    logging.info("  Setting up an USB gadget through android_usb")
    id_vendor = ctx.deviceinfo.usb("idVendor").replace("0x", "")
    id_product = ctx.deviceinfo.usb("idProduct").replace("0x", "")

    # Do the setup
    _write(sysfs / "enable", "0")
    _write(sysfs / "idVendor", id_vendor)
    _write(sysfs / "idProduct", id_product)
    _write(sysfs / "functions", "rndis")
    _write(sysfs / "enable", "1")
    return True


def setup_usb_network_configfs(
    ctx: BootContext,
    configfs: Path = pmi.config.usb_configfs,
    udc_sysfs: Path = pmi.config.usb_udc_sysfs,
) -> bool:
    """See: https://www.kernel.org/doc/Documentation/usb/gadget_configfs.txt

    :returns: True if the gadget got bound to a USB Device Controller
    """
    if not configfs.exists():
        logging.info("  /config/usb_gadget does not exist, skipping configfs usb gadget")
        return False

    info = ctx.deviceinfo
    function = info.usb("network_function")
    gadget = configfs / "g1"

    logging.info("  Setting up an USB gadget through configfs")
    # Create an usb gadet configuration
    _mkdir(gadget)
    _write(gadget / "idVendor", info.usb("idVendor"))
    _write(gadget / "idProduct", info.usb("idProduct"))

    # Create english (0x409) strings
    strings = gadget / "strings/0x409"
    _mkdir(strings)
    _write(strings / "manufacturer", info.manufacturer)
    _write(strings / "serialnumber", info.usb("serialnumber"))
    _write(strings / "product", info.name)

    # Create network function.
    _mkdir(gadget / "functions" / function)

    # Create configuration instance for the gadget
    config = gadget / "configs/c.1"
    _mkdir(config)
    _mkdir(config / "strings/0x409")
    _write(config / "strings/0x409/configuration", "USB network")

    # Link the network instance to the configuration
    try:
        os.symlink(gadget / "functions" / function, config / function)
    except OSError:
        logging.info(f"  Couldn't symlink {function}")

    # Check if there's an USB Device Controller
    udcs = sorted(p.name for p in udc_sysfs.iterdir()) if udc_sysfs.is_dir() else []
    if not udcs:
        logging.info("  No USB Device Controller available")
        return False

    # Link the gadget instance to an USB Device Controller. This activates the gadget.
    # See also: https://github.com/postmarketOS/pmbootstrap/issues/338
    udc = info.usb_network_udc or udcs[0]
    return _write(gadget / "UDC", udc)


def setup_usb_network(ctx: BootContext, marker: Path = pmi.config.usb_network_marker) -> bool:
    """Run all usb network setup functions, only once per boot.

    :returns: False if it ran already
    """
    if marker.exists():
        return False
    marker.parent.mkdir(parents=True, exist_ok=True)
    marker.touch()
    logging.info("Setup usb network")
    setup_usb_network_android(ctx)
    setup_usb_network_configfs(ctx)
    return True


def start_unudhcpd(ctx: BootContext) -> subprocess.Popen | None:
    """
    Start the DHCP server on the first USB network interface that exists.

    :returns: the background process, None if it wasn't started
    """
    # Only run once
    if pmi.helpers.run.succeeds(["pidof", "unudhcpd"], output="null"):
        return None

    # Skip if disabled
    if ctx.deviceinfo.is_true("disable_dhcpd"):
        logging.info("NOTE: start of dhcpd is disabled (deviceinfo_disable_dhcpd)")
        return None

    logging.info("Starting unudhcpd")
    ip = pmi.config.usb_network_ip
    interface = None
    for candidate in pmi.config.usb_network_interfaces:
        if pmi.helpers.run.succeeds(["ifconfig", candidate, ip], output="null"):
            interface = candidate
            break

    if not interface:
        logging.info("  Could not find an interface to run a dhcp server on")
        logging.info("  Interfaces:")
        pmi.helpers.run.user(["ip", "link"], check=False)
        return None

    logging.info(f"  Using interface {interface}")
    logging.info("  Starting the DHCP daemon")
    return pmi.helpers.run.background(
        ["unudhcpd", "-i", interface, "-s", ip, "-c", pmi.config.usb_network_client_ip]
    )
