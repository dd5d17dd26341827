# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
import os
from pathlib import Path
import shlex
import subprocess
from collections.abc import Sequence
from pmi.helpers import logging
from pmi.types import RunOutputType

"""For a detailed description of all output modes, read the description of
core() at the bottom. All other functions in this file get (indirectly)
called by core()."""


def flat_cmd(cmd: Sequence[str]) -> str:
    """Convert a shell command passed as list into a flat shell string
    with proper escaping.

    :param cmd: command as list, e.g. ["echo", "string with spaces"]
    :returns: the flat string, e.g. echo 'string with spaces'
    """
    return " ".join(shlex.quote(part) for part in cmd)


def background(cmd: Sequence[str], working_dir: Path | None = None) -> subprocess.Popen:
    """Run a subprocess in background and redirect its output to /dev/null."""
    ret = subprocess.Popen(
        cmd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        cwd=working_dir,
        start_new_session=True,
    )
    logging.debug(f"New background process: pid={ret.pid}, output=background")
    return ret


def foreground(
    cmd: Sequence[str], working_dir: Path | None, output: RunOutputType
) -> tuple[int, str]:
    """Run a subprocess in foreground and wait for it to exit.

    :returns: (code, output) where output is the captured stdout, or an
              empty string if it was not captured
    """
    stdout = subprocess.PIPE
    stderr: int | None = subprocess.PIPE
    if output == "stdout":
        stdout = subprocess.PIPE
        stderr = None
    elif output == "null":
        stderr = subprocess.DEVNULL

    try:
        proc = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=stdout,
            stderr=stderr,
            cwd=working_dir,
            text=True,
            errors="replace",
        )
    except FileNotFoundError:
        # Same exit code the shell would give us
        logging.verbose(f"Command not found: {cmd[0]}")
        return (127, "")

    if output == "log":
        for stream in [proc.stdout, proc.stderr]:
            for line in (stream or "").splitlines():
                logging.verbose(line)
    return (proc.returncode, proc.stdout or "")


def check_return_code(code: int, log_message: str) -> None:
    """Check the return code of a command.

    :param code: exit code to check
    :param log_message: simplified and more readable form of the command, e.g.
                        "(native) % echo test" instead of the full command with
                        entering the chroot and more escaping
    :raises RuntimeError: when the code indicates that the command failed
    """
    if code:
        logging.debug("^" * 70)
        logging.info("NOTE: The failed command's output is above the ^^^ line in the log file")
        raise RuntimeError(f"Command failed (exit code {str(code)}): " + log_message)


def core(
    log_message: str,
    cmd: Sequence[str],
    working_dir: Path | None = None,
    output: RunOutputType = "log",
    output_return: bool = False,
    check: bool | None = None,
) -> int | str | subprocess.Popen:
    """Run a command and create a log entry.

    This is a low level function not meant to be used directly. Use one of the
    following instead: pmi.helpers.run.user(), pmi.helpers.run.background()

    :param log_message: simplified and more readable form of the command, e.g.
                        "% blkid /dev/sda2" instead of the full command
    :param cmd: command as list, e.g. ["echo", "string with spaces"]
    :param working_dir: path in host system where the command should run
    :param output: where to write the output (stdout and stderr) of the
                   process. We almost always write to the log file, which goes
                   to the kernel log buffer as well.

        ============  ======  ==========  ========  ================
        output        stdout  stderr      wait      return value
        ============  ======  ==========  ========  ================
        "log"         log     log         yes       exit code
        "stdout"      log     console     yes       exit code
        "null"        -       -           yes       exit code
        "background"  -       -           no        subprocess.Popen
        ============  ======  ==========  ========  ================

    :param output_return: in addition to writing the program's output to the
        destination set in "output", also return it as string
    :param check: an exception will be raised when the command's return code
        is not 0. Set this to False to disable the check. This parameter can
        not be used when the output is "background".
    :returns: * program's return code (default)
              * subprocess.Popen instance (output is "background")
              * the program's entire output (output_return is True)
    """
    if output == "background" and (check or output_return):
        raise RuntimeError("Can't use check or output_return with output=background")

    logging.verbose(log_message)

    if output == "background":
        return background(cmd, working_dir)

    code, output_after_run = foreground(cmd, working_dir, output)

    if check is not False:
        check_return_code(code, log_message)

    if output_return:
        return output_after_run
    return code


def log_message(cmd: Sequence[str], working_dir: Path | None = None) -> str:
    """Readable log message (without all the escaping)"""
    msg = "% "
    if working_dir is not None:
        msg += f"cd {os.fspath(working_dir)}; "
    return msg + " ".join(cmd)
