from .usb import (
    setup_usb_network,
    setup_usb_network_android,
    setup_usb_network_configfs,
    start_unudhcpd,
)


def test_android_usb(ctx, tmp_path):
    sysfs = tmp_path / "android0"
    assert not setup_usb_network_android(ctx, sysfs)

    sysfs.mkdir()
    assert setup_usb_network_android(ctx, sysfs)
    assert (sysfs / "idVendor").read_text() == "18D1\n"
    assert (sysfs / "idProduct").read_text() == "D001\n"
    assert (sysfs / "functions").read_text() == "rndis\n"
    assert (sysfs / "enable").read_text() == "1\n"


def test_configfs(make_ctx, tmp_path):
    ctx = make_ctx(
        deviceinfo={
            "name": "PINE64 PinePhone",
            "manufacturer": "PINE64",
            "usb_network_function": "ncm.usb0",
        }
    )
    configfs = tmp_path / "usb_gadget"
    udc = tmp_path / "udc"
    assert not setup_usb_network_configfs(ctx, configfs, udc)

    # No USB Device Controller
    configfs.mkdir()
    assert not setup_usb_network_configfs(ctx, configfs, udc)

    udc.mkdir()
    (udc / "musb-hdrc.2.auto").mkdir()
    (udc / "a600000.dwc3").mkdir()
    assert setup_usb_network_configfs(ctx, configfs, udc)

    gadget = configfs / "g1"
    assert (gadget / "idVendor").read_text() == "0x18D1\n"
    assert (gadget / "strings/0x409/serialnumber").read_text() == "postmarketOS\n"
    assert (gadget / "strings/0x409/manufacturer").read_text() == "PINE64\n"
    assert (gadget / "strings/0x409/product").read_text() == "PINE64 PinePhone\n"
    assert (gadget / "functions/ncm.usb0").is_dir()
    assert (gadget / "configs/c.1/ncm.usb0").is_symlink()
    assert (gadget / "UDC").read_text() == "a600000.dwc3\n"


def test_configfs_udc(make_ctx, tmp_path):
    ctx = make_ctx(deviceinfo={"usb_network_udc": "musb-hdrc.2.auto"})
    configfs = tmp_path / "usb_gadget"
    configfs.mkdir()
    udc = tmp_path / "udc"
    udc.mkdir()
    (udc / "a600000.dwc3").mkdir()
    assert setup_usb_network_configfs(ctx, configfs, udc)
    assert (configfs / "g1/UDC").read_text() == "musb-hdrc.2.auto\n"


def test_setup_usb_network_once(ctx, tmp_path, monkeypatch):
    import pmi.init.usb

    calls = []
    monkeypatch.setattr(pmi.init.usb, "setup_usb_network_android", calls.append)
    monkeypatch.setattr(pmi.init.usb, "setup_usb_network_configfs", calls.append)

    marker = tmp_path / "tmp/_setup_usb_network"
    assert setup_usb_network(ctx, marker)
    assert not setup_usb_network(ctx, marker)
    assert calls == [ctx, ctx]


def test_unudhcpd(system, ctx):
    system.results[("ifconfig", "rndis0", "172.16.42.1")] = (1, "")
    proc = start_unudhcpd(ctx)
    assert proc is not None
    assert proc.args == ["unudhcpd", "-i", "usb0", "-s", "172.16.42.1", "-c", "172.16.42.2"]


def test_unudhcpd_skipped(system, make_ctx):
    assert start_unudhcpd(make_ctx(deviceinfo={"disable_dhcpd": "true"})) is None
    assert not system.ran("ifconfig")

    # Running already
    system.results[("pidof", "unudhcpd")] = (0, "123")
    assert start_unudhcpd(make_ctx()) is None
    assert not system.ran("ifconfig")


def test_unudhcpd_no_interface(system, ctx):
    for interface in ["rndis0", "usb0", "eth0"]:
        system.results[("ifconfig", interface, "172.16.42.1")] = (1, "")
    assert start_unudhcpd(ctx) is None
    assert system.ran("ip", "link")
