from pathlib import Path
from .deviceinfo import Deviceinfo

import pytest


def test_parse(tmp_file):
    with open(tmp_file, "w") as f:
        f.write("# Reference: <https://postmarketos.org/deviceinfo>\n")
        f.write('deviceinfo_name="QEMU amd64"\n')
        f.write('deviceinfo_codename="qemu-amd64"\n')
        f.write('deviceinfo_super_partitions="/dev/sda /dev/sdb"\n')
        f.write('deviceinfo_no_framebuffer="true"\n')
        f.write('deviceinfo_disable_dhcpd="false"\n')
        f.write('deviceinfo_usb_idVendor="0x1234"\n')
        f.write('deviceinfo_flash_method="none"\n')

    info = Deviceinfo(tmp_file)
    assert info.name == "QEMU amd64"
    assert info.codename == "qemu-amd64"
    assert info.super_partition_list == ["/dev/sda", "/dev/sdb"]
    assert info.is_true("no_framebuffer")
    assert not info.is_true("disable_dhcpd")
    assert not info.is_true("cgpt_kpart")
    # Variables we don't look at are kept anyway
    assert getattr(info, "flash_method") == "none"

    # USB defaults
    assert info.usb("idVendor") == "0x1234"
    assert info.usb("idProduct") == "0xD001"
    assert info.usb("serialnumber") == "postmarketOS"


# Check that lines starting with deviceinfo_ but don't have an
# "=" raise a syntax error
def test_syntax_error(tmp_file):
    with open(tmp_file, "w") as f:
        f.write('deviceinfo_codename="test"\n')
        f.write('deviceinfo_chassis="test"\n')
        f.write('deviceinfo_arch="test"\n')
        f.write("deviceinfo_nothing??\n\n\n")

    with pytest.raises(SyntaxError):
        Deviceinfo(tmp_file)


def test_from_paths(tmp_path):
    second = tmp_path / "deviceinfo"
    second.write_text('deviceinfo_codename="second"\n')

    info = Deviceinfo.from_paths([tmp_path / "missing", second])
    assert info.path == second
    assert info.codename == "second"

    info = Deviceinfo.from_paths([Path(tmp_path / "missing")])
    assert info.path is None
    assert info.codename == ""
    assert info.super_partition_list == []
