# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
import os
from pathlib import Path
import pmi.config
import pmi.helpers.run
from pmi.types import PathString


def ismount(folder: Path, source: Path = Path("/proc/mounts")) -> bool:
    """Ismount() implementation that works for mount --bind.

    Workaround for: https://bugs.python.org/issue29707

    :source: can be changed for testcases
    """
    folder = folder.resolve()
    try:
        handle = open(source)
    except FileNotFoundError:
        # /proc is not mounted yet, so nothing else is either
        return False
    with handle:
        for line in handle:
            words = line.split()
            if len(words) >= 2 and Path(words[1]) == folder:
                return True
    return False


def mount(
    source: PathString,
    target: PathString,
    fstype: str | None = None,
    options: str | None = None,
) -> bool:
    """
    Mount a filesystem.

    :param fstype: passed as -t, omit to let mount detect it
    :param options: passed as -o, e.g. "ro,noatime"
    :returns: True on success
    """
    cmd: list[PathString] = ["mount"]
    if fstype:
        cmd += ["-t", fstype]
    if options:
        cmd += ["-o", options]
    cmd += [source, target]
    return pmi.helpers.run.succeeds(cmd)


def umount(target: PathString) -> bool:
    return pmi.helpers.run.succeeds(["umount", target])


def mount_proc_sys_dev() -> list[str]:
    """Mount the pseudo filesystems and create the fd symlinks (needed for I/O
    redirects in hooks). We try to boot anyway if something fails.

    This runs before logging is set up (there is no /dev/kmsg yet), so
    failures are returned instead of logged.

    :returns: what failed, e.g. ["Couldn't mount /config"]
    """
    failed = []
    for fstype, options, source, target in pmi.config.pseudo_filesystems:
        try:
            os.makedirs(target, exist_ok=True)
        except OSError as e:
            failed.append(f"Couldn't create {target}: {e}")
            continue
        if not mount(source, target, fstype, options or None):
            failed.append(f"Couldn't mount {target}")

    for link, target in pmi.config.fd_symlinks.items():
        try:
            if os.path.lexists(link):
                os.unlink(link)
            os.symlink(target, link)
        except OSError as e:
            failed.append(f"Couldn't create {link}: {e}")
    return failed
