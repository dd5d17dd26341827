import threading

from .locate import find_boot_partition, find_root_partition, wait_root_partition


def test_find_root_by_label(system, ctx):
    assert find_root_partition(ctx) is None

    system.add_device("/dev/mmcblk0p1", "ext2", "pmOS_boot")
    system.add_device("/dev/mmcblk0p2", "ext4", "pmOS_root")
    assert find_root_partition(ctx) == "/dev/mmcblk0p2"


def test_find_root_priority(system, ctx):
    # Identifier order: pmOS_install > pmOS_root > crypto_LUKS
    system.add_device("/dev/sda1", "crypto_LUKS")
    system.add_device("/dev/sda2", "ext4", "pmOS_root")
    assert find_root_partition(ctx) == "/dev/sda2"

    system.add_device("/dev/sda3", "ext4", "pmOS_install")
    assert find_root_partition(ctx) == "/dev/sda3"


def test_find_root_device_mapper_first(system, ctx):
    system.add_device("/dev/mmcblk0p2", "ext4", "pmOS_root")
    system.add_device("/dev/dm-3", "ext4", "pmOS_root")
    assert find_root_partition(ctx) == "/dev/dm-3"

    # A better identifier outside of the device-mapper loses as well
    system.add_device("/dev/mmcblk0p3", "ext4", "pmOS_install")
    assert find_root_partition(ctx) == "/dev/dm-3"

    system.add_device("/dev/mapper/userdata2", "ext4", "pmOS_root")
    assert find_root_partition(ctx) == "/dev/mapper/userdata2"


def test_find_root_cmdline(system, make_ctx):
    system.add_device("/dev/sda2", "ext4", "pmOS_root")
    system.add_device("/dev/sdb2", "ext4", "other", "abcd")

    ctx = make_ctx("pmos_root=/dev/sdc2")
    assert find_root_partition(ctx) == "/dev/sdc2"
    assert ctx.state.override_device == "/dev/sdc2"

    ctx = make_ctx("pmos_root_uuid=abcd")
    assert find_root_partition(ctx) == "/dev/sdb2"

    # pmos_root wins over pmos_root_uuid
    ctx = make_ctx("pmos_root_uuid=abcd pmos_root=/dev/sdc2")
    assert find_root_partition(ctx) == "/dev/sdc2"

    # Unknown UUID: fall back to the label
    ctx = make_ctx("pmos_root_uuid=ffff")
    assert find_root_partition(ctx) == "/dev/sda2"


def test_find_root_cmdline_unlocked(system, make_ctx):
    system.add_device("/dev/mmcblk0p2", "crypto_LUKS")
    system.add_device("/dev/mapper/root", "ext4", "pmOS_root")

    ctx = make_ctx("pmos_root=/dev/mmcblk0p2")
    assert find_root_partition(ctx) == "/dev/mmcblk0p2"

    # After unlocking, we want the decrypted volume
    ctx.state.root_unlocked = True
    assert find_root_partition(ctx) == "/dev/mapper/root"


def test_find_root_installer(system, make_ctx):
    system.add_device("/dev/mmcblk0p1", "ext2", "pmOS_i_boot")
    system.add_device("/dev/mmcblk0p3", "ext4", "pmOS_install")
    ctx = make_ctx("pmos_root=/dev/mmcblk0p2")
    assert find_root_partition(ctx) == "/dev/mmcblk0p3"

    # Installation finished
    system.devices[-1] = '/dev/mmcblk0p3: LABEL="pmOS_deleteme" TYPE="ext4"'
    assert find_root_partition(ctx) == "/dev/mmcblk0p2"

    # No installer partition behind pmos_root
    ctx = make_ctx("pmos_root=/dev/mmcblk0p3")
    assert find_root_partition(ctx) == "/dev/mmcblk0p3"

    # Any partition number, not only 2
    system.add_device("/dev/mmcblk0p13", "ext4", "pmOS_install")
    ctx = make_ctx("pmos_root=/dev/mmcblk0p12")
    assert find_root_partition(ctx) == "/dev/mmcblk0p13"


def test_find_root_installer_uuid(system, make_ctx):
    system.add_device("/dev/mmcblk0p4", "ext4", "pmOS_install", "ABCD-1234")
    system.add_device("/dev/mmcblk0p5", "ext4", "pmOS_install")
    ctx = make_ctx("pmos_root_uuid=ABCD-1234")
    assert find_root_partition(ctx) == "/dev/mmcblk0p5"
    assert ctx.state.override_device == "/dev/mmcblk0p5"


def test_find_boot(system, make_ctx):
    ctx = make_ctx()
    assert find_boot_partition(ctx) is None

    system.add_device("/dev/sda1", "ext2", "pmOS_boot", "b007")
    assert find_boot_partition(ctx) == "/dev/sda1"

    # Label priority
    system.add_device("/dev/sdb1", "vfat", "pmOS_inst_boot")
    assert find_boot_partition(ctx) == "/dev/sdb1"
    system.add_device("/dev/sdc1", "vfat", "pmOS_i_boot")
    assert find_boot_partition(ctx) == "/dev/sdc1"

    assert find_boot_partition(make_ctx("pmos_boot=/dev/vda1")) == "/dev/vda1"
    assert find_boot_partition(make_ctx("pmos_boot_uuid=b007")) == "/dev/sda1"
    # The UUID is checked first, even if it isn't found
    assert find_boot_partition(make_ctx("pmos_boot=/dev/vda1 pmos_boot_uuid=0000")) is None


def test_wait_root(system, ctx):
    attempts = []

    def add_root_later(seconds):
        attempts.append(seconds)
        if len(attempts) == 3:
            system.add_device("/dev/sda2", "ext4", "pmOS_root")

    ctx.clock.sleep = add_root_later
    assert wait_root_partition(ctx) == "/dev/sda2"
    assert attempts == [1, 1, 1]
    # The error is only shown once
    splashes = [cmd for cmd in system.commands if cmd[0] == "/usr/bin/pbsplash"]
    assert len(splashes) == 1
    message = "ERROR: root partition not found\nhttps://postmarketos.org/troubleshooting"
    assert message in splashes[0]


def test_wait_root_cancel(system, ctx):
    cancel = threading.Event()

    def cancel_later(seconds):
        ctx.clock.now += seconds
        if ctx.clock.now >= 5:
            cancel.set()

    ctx.clock.sleep = cancel_later
    assert wait_root_partition(ctx, cancel) is None
