from pathlib import Path
import subprocess
import tempfile
from typing import Any

import pytest

import pmi.config
from pmi.core import BootContext, Config
from pmi.parse import Cmdline, Deviceinfo


@pytest.fixture
def tmp_file(tmp_path):
    return Path(tempfile.mkstemp(dir=tmp_path)[1])


@pytest.fixture(autouse=True)
def logfile(tmp_path_factory):
    """Setup logging for all tests."""
    from pmi.helpers import logging

    tmp_path = tmp_path_factory.getbasetemp()
    logfile = tmp_path / "log_testsuite.txt"
    logging.init(logfile, verbose=True)

    return logfile


class FakeClock:
    """Simulated time: sleep() returns immediately and moves the clock."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakePopen(subprocess.Popen):
    """What pmi.helpers.run.background() returns, without starting anything."""

    _child_created = False

    def __init__(self, args: list[str]) -> None:
        self.args = args
        self.pid = 4242
        self.returncode = None


def blkid_line(path: str, fstype: str = "", label: str = "", uuid: str = "") -> str:
    ret = f"{path}:"
    if label:
        ret += f' LABEL="{label}"'
    if uuid:
        ret += f' UUID="{uuid}"'
    if fstype:
        ret += f' TYPE="{fstype}"'
    return ret


class FakeSystem:
    """Answers the commands the initramfs runs, so the code under test sees a
    device with the block devices, partition tables and LUKS containers the
    test sets up. Every command gets recorded in self.commands."""

    def __init__(self) -> None:
        self.commands: list[list[str]] = []
        # blkid output, in the order blkid prints it
        self.devices: list[str] = []
        # kpartx -l output per partition
        self.kpartx: dict[str, list[str]] = {}
        # blkid lines that show up after "kpartx -afs <partition>"
        self.kpartx_devices: dict[str, list[str]] = {}
        # "parted print free" output per disk
        self.parted: dict[str, str] = {}
        # "dmsetup deps" output per device-mapper node
        self.dm_deps: dict[str, str] = {}
        self.luks: set[str] = set()
        self.unlocked = False
        # fde-unlock opens the container on this attempt (1 = first)
        self.unlock_on_attempt = 1
        self.unlock_attempts = 0
        # blkid lines that show up once fde-unlock succeeded
        self.unlock_devices: list[str] = []
        self.mounted: dict[str, str] = {}
        self.mount_fails: set[str] = set()
        # Sources that get a usr/ directory created in their mount point
        self.rootfs: set[str] = set()
        self.installed: set[str] = set()
        # Exact commands with a fixed (code, output)
        self.results: dict[tuple[str, ...], tuple[int, str]] = {}

    def add_device(self, path: str, fstype: str = "", label: str = "", uuid: str = "") -> None:
        self.devices.append(blkid_line(path, fstype, label, uuid))

    def ran(self, *prefix: str) -> bool:
        return any(cmd[: len(prefix)] == list(prefix) for cmd in self.commands)

    def count(self, *prefix: str) -> int:
        return len([cmd for cmd in self.commands if cmd[: len(prefix)] == list(prefix)])

    def _findfs(self, query: str) -> tuple[int, str]:
        key, value = query.split("=", 1)
        for line in self.devices:
            if f'{key}="{value}"' in line:
                return (0, line.split(":", 1)[0] + "\n")
        return (1, "")

    def _mount(self, cmd: list[str]) -> tuple[int, str]:
        source, target = cmd[-2], cmd[-1]
        if "remount,rw" in cmd:
            return (0, "")
        if target in self.mount_fails:
            return (32, "")
        self.mounted[target] = source
        if source in self.rootfs:
            (Path(target) / "usr").mkdir(parents=True, exist_ok=True)
        return (0, "")

    def _fde_unlock(self) -> tuple[int, str]:
        self.unlock_attempts += 1
        if self.unlock_attempts >= self.unlock_on_attempt:
            self.unlocked = True
            self.devices += self.unlock_devices
            return (0, "")
        return (2, "")

    def answer(self, cmd: list[str]) -> tuple[int, str]:
        if tuple(cmd) in self.results:
            return self.results[tuple(cmd)]

        match cmd:
            case ["blkid"]:
                return (0, "\n".join(self.devices) + "\n")
            case ["blkid", path]:
                for line in self.devices:
                    if line.startswith(f"{path}:"):
                        return (0, line + "\n")
                return (2, "")
            case ["findfs", query]:
                return self._findfs(query)
            case ["kpartx", "-l", partition]:
                return (0, "".join(f"{line}\n" for line in self.kpartx.get(partition, [])))
            case ["kpartx", "-afs", partition]:
                for line in self.kpartx_devices.get(partition, []):
                    if line not in self.devices:
                        self.devices.append(line)
                return (0, "")
            case ["kpartx", "-d", _]:
                return (0, "")
            case ["parted", "-s", disk, "print", "free"]:
                return (0, self.parted.get(disk, ""))
            case ["dmsetup", "deps", "-o", "blkdevname", device]:
                return (0, self.dm_deps.get(device, ""))
            case ["cryptsetup", "isLuks", partition]:
                return (0 if partition in self.luks else 1, "")
            case ["cryptsetup", "status", name]:
                if self.unlocked:
                    return (0, f"/dev/mapper/{name} is active.\n")
                return (4, f"/dev/mapper/{name} is inactive.\n")
            case ["fde-unlock", *_]:
                return self._fde_unlock()
            case ["pgrep", *_] | ["pidof", *_]:
                return (1, "")
            case ["mount", *_]:
                return self._mount(cmd)
            case ["umount", target]:
                self.mounted.pop(target, None)
                return (0, "")
        return (0, "")

    def core(
        self,
        log_message: str,
        cmd: list[str],
        working_dir: Path | None = None,
        output: str = "log",
        output_return: bool = False,
        check: bool | None = None,
    ) -> Any:
        self.commands.append(list(cmd))
        if output == "background":
            return FakePopen(list(cmd))

        code, out = self.answer(list(cmd))
        if check is not False and code:
            raise RuntimeError(f"Command failed (exit code {code}): {log_message}")
        if output_return:
            return out
        return code


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def system(monkeypatch, tmp_path) -> FakeSystem:
    """Run all commands against a FakeSystem instead of the host."""
    import pmi.helpers.mount
    import pmi.helpers.run
    import pmi.helpers.run_core

    ret = FakeSystem()
    monkeypatch.setattr(pmi.helpers.run_core, "core", ret.core)

    def which(program: str) -> str | None:
        return f"/usr/bin/{program}" if program in ret.installed else None

    monkeypatch.setattr(pmi.helpers.run, "which", which)
    monkeypatch.setattr(
        pmi.helpers.mount, "ismount", lambda folder, source=None: str(folder) in ret.mounted
    )
    monkeypatch.setattr(pmi.config, "mtab", tmp_path / "etc_mtab")
    return ret


@pytest.fixture
def make_ctx(tmp_path, clock):
    """Create a BootContext operating on tmp_path.

    :param cmdline: kernel command line
    :param deviceinfo: deviceinfo variables without the deviceinfo_ prefix
    """

    def _make_ctx(cmdline: str = "", deviceinfo: dict[str, str] | None = None) -> BootContext:
        info_path = tmp_path / "deviceinfo"
        with open(info_path, "w") as handle:
            handle.write('deviceinfo_codename="qemu-amd64"\n')
            for key, value in (deviceinfo or {}).items():
                handle.write(f'deviceinfo_{key}="{value}"\n')

        config = Config(
            cmdline=tmp_path / "cmdline",
            deviceinfo=[info_path],
            log=tmp_path / "pmOS_init.log",
            kmsg=None,
            sysroot=tmp_path / "sysroot",
            boot=tmp_path / "boot",
            initramfs_extra=tmp_path / "boot/initramfs-extra",
            hooks=tmp_path / "hooks",
            hooks_extra=tmp_path / "hooks-extra",
            diskstats=tmp_path / "diskstats",
        )
        return BootContext(config, Cmdline(cmdline), Deviceinfo(info_path), clock=clock)

    return _make_ctx


@pytest.fixture
def ctx(make_ctx) -> BootContext:
    return make_ctx()
