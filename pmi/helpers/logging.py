# Copyright 2026 postmarketOS developers
# SPDX-License-Identifier: GPL-3.0-or-later
import logging
from pathlib import Path
import sys
from typing import Any, Final, TextIO

logfds: list[TextIO] = []

VERBOSE: Final[int] = 5

# Every line in the ramdisk log and the kernel log buffer starts with this,
# so "dmesg | grep PMOS" shows everything the initramfs did
PREFIX: Final[str] = "PMOS: "


class log_handler(logging.StreamHandler):
    """Write to stderr (only if requested) and to all opened log targets."""

    def __init__(self, details_to_stdout: bool = False) -> None:
        super().__init__(sys.stderr)
        self.details_to_stdout = details_to_stdout

        import pmi.config

        self.styles = pmi.config.styles

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)

            # INFO or higher: write to the console, if output isn't redirected
            if self.details_to_stdout and record.levelno >= logging.INFO:
                styles = self.styles
                msg_col = (
                    msg.replace("NOTE:", f"{styles['BLUE']}NOTE:{styles['END']}", 1)
                    .replace("WARNING:", f"{styles['YELLOW']}WARNING:{styles['END']}", 1)
                    .replace("ERROR:", f"{styles['RED']}ERROR:{styles['END']}", 1)
                    .replace("DONE!", f"{styles['GREEN']}DONE!{styles['END']}", 1)
                )
                msg_col += styles["END"]

                self.stream.write(msg_col)
                self.stream.write(self.terminator)
                self.flush()

            # Everything: write to the log file and the kernel log buffer.
            # /dev/kmsg takes one record per write(), so write line by line.
            for line in msg.splitlines() or [""]:
                for fd in logfds:
                    fd.write(PREFIX + line + "\n")
                    fd.flush()

        except (KeyboardInterrupt, SystemExit):
            raise
        except BaseException:
            self.handleError(record)


def add_verbose_log_level() -> None:
    """Add a new log level "verbose", which is below "debug".

    Also monkeypatch logging, so it can be used with logging.verbose().

    This function is based on work by Voitek Zylinski and sleepycal:
    https://stackoverflow.com/a/20602183
    All stackoverflow user contributions are licensed as CC-BY-SA:
    https://creativecommons.org/licenses/by-sa/3.0/
    """
    setattr(logging, "VERBOSE", VERBOSE)
    logging.addLevelName(VERBOSE, "VERBOSE")
    setattr(
        logging.Logger,
        "verbose",
        lambda inst, msg, *args, **kwargs: inst.log(VERBOSE, msg, *args, **kwargs),
    )
    setattr(
        logging, "verbose", lambda msg, *args, **kwargs: logging.log(VERBOSE, msg, *args, **kwargs)
    )


def _open_target(path: Path, mode: str) -> TextIO | None:
    # The kernel log buffer may not exist yet (no devtmpfs) or be read-only
    try:
        return open(path, mode, buffering=1)
    except OSError as e:
        print(f"NOTE: not logging to {path}: {e}", file=sys.stderr)
        return None


def init(
    logfile: Path, verbose: bool, details_to_stdout: bool = False, kmsg: Path | None = None
) -> None:
    """Set log format, open the log targets and add the verbose log level.

    :param logfile: the log file inside the ramdisk (e.g. /pmOS_init.log)
    :param kmsg: the kernel log buffer, or None to only log into logfile
    :param details_to_stdout: also print everything to stderr
                              (PMOS_NO_OUTPUT_REDIRECT)
    """
    reconfigure()

    for path, mode in [(logfile, "a"), (kmsg, "w")]:
        if path is None:
            continue
        fd = _open_target(path, mode)
        if fd:
            logfds.append(fd)

    # Set log format
    root_logger = logging.getLogger()
    root_logger.handlers = []
    root_logger.disabled = False
    formatter = logging.Formatter("[%(asctime)s] %(message)s", datefmt="%H:%M:%S")

    # Set log level
    add_verbose_log_level()
    root_logger.setLevel(logging.DEBUG)
    if verbose:
        root_logger.setLevel(VERBOSE)

    # Add a custom log handler
    handler = log_handler(details_to_stdout=details_to_stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    info("### postmarketOS initramfs ###")
    info("NOTE: All output from the initramfs gets redirected to")
    info(f"the kernel log buffer (dmesg) and {logfile} in the ramdisk")


def reconfigure() -> None:
    """Close all log targets. Done right before handing off to the real init,
    since the ramdisk (and with it the log file) goes away."""
    while logfds:
        fd = logfds.pop()
        if fd not in (sys.stdout, sys.stderr):
            fd.close()


# We have our own logging wrappers so we can make mypy happy
# by not calling the (undefined) logging.verbose() function.


def error(msg: object, *args: str, **kwargs: Any) -> None:
    logging.error(msg, *args, **kwargs)


def info(msg: object, *args: str, **kwargs: Any) -> None:
    logging.info(msg, *args, **kwargs)


def debug(msg: object, *args: str, **kwargs: Any) -> None:
    logging.debug(msg, *args, **kwargs)


def verbose(msg: object, *args: str, **kwargs: Any) -> None:
    logging.verbose(msg, *args, **kwargs)  # type: ignore[attr-defined]
