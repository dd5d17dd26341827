# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
import os
from pathlib import Path
import shutil
import subprocess
from collections.abc import Sequence
import pmi.helpers.run_core
from pmi.types import PathString, RunOutputType


def user(
    cmd: Sequence[PathString],
    working_dir: Path | None = None,
    output: RunOutputType = "log",
    output_return: bool = False,
    check: bool | None = None,
) -> str | int | subprocess.Popen:
    """
    Run a command inside the initramfs. We are PID 1's child and already
    root, so there is no sudo and no chroot involved.

    See pmi.helpers.run_core.core() for a detailed description of all other
    arguments and the return value.
    """
    cmd_parts = [os.fspath(c) for c in cmd]
    msg = pmi.helpers.run_core.log_message(cmd_parts, working_dir)
    return pmi.helpers.run_core.core(msg, cmd_parts, working_dir, output, output_return, check)


def user_output(
    cmd: Sequence[PathString],
    working_dir: Path | None = None,
    output: RunOutputType = "log",
    check: bool | None = None,
) -> str:
    ret = user(cmd, working_dir, output, output_return=True, check=check)
    if not isinstance(ret, str):
        raise TypeError("Expected str output, got " + str(ret))

    return ret


def succeeds(cmd: Sequence[PathString], output: RunOutputType = "log") -> bool:
    """Run a command that is only used as condition (e.g. "cryptsetup isLuks")."""
    return user(cmd, output=output, check=False) == 0


def background(cmd: Sequence[PathString], working_dir: Path | None = None) -> subprocess.Popen:
    """Start a daemon-like helper (splash screen, DHCP server) without
    waiting for it."""
    ret = user(cmd, working_dir, output="background")
    if not isinstance(ret, subprocess.Popen):
        raise TypeError("Expected a background process, got " + str(ret))
    return ret


def which(program: str) -> str | None:
    """Same as "command -v" in the shell."""
    return shutil.which(program)
