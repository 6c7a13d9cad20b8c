#!/usr/bin/env python3

# Copyright (C) 2022 Luis López <luis@cuarentaydos.com>
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program; if not, write to the Free Software
# Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA  02110-1301,
# USA.


import logging
import os
import sys
import warnings
from typing import TextIO

import colorama

ROOT_PACKAGE = __package__.split(".")[0]
ENV_VARIABLE = ROOT_PACKAGE.upper() + "_LOGGING"

DEFAULT_LEVELS: dict[str, int] = {ROOT_PACKAGE: logging.INFO}

_handler: logging.Handler | None = None


class LogFormatter(logging.Formatter):
    LEVEL_ABBRS = {
        "CRITICAL": "CRT",
        "ERROR": "ERR",
        "WARNING": "WRN",
        "INFO": "NFO",
        "DEBUG": "DBG",
    }

    LEVEL_COLORS = {
        logging.DEBUG: colorama.Fore.CYAN,
        logging.INFO: colorama.Fore.GREEN,
        logging.WARNING: colorama.Fore.YELLOW,
        logging.ERROR: colorama.Fore.RED,
        logging.CRITICAL: colorama.Back.RED,
    }

    def __init__(self, *args, use_color: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.use_color = use_color

    def format(self, record):
        # Work on a copy, other handlers may share the record
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = self.LEVEL_ABBRS.get(record.levelname, record.levelname)

        buff = super().format(record)
        if self.use_color and record.levelno in self.LEVEL_COLORS:
            buff = f"{self.LEVEL_COLORS[record.levelno]}{buff}{colorama.Style.RESET_ALL}"

        return buff


def build_handler(stream: TextIO | None = None) -> logging.Handler:
    stream = stream or sys.stderr
    handler = logging.StreamHandler(stream=stream)
    handler.setFormatter(
        LogFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            use_color=stream.isatty(),
        )
    )

    return handler


def log_level_value(level: str | int) -> int:
    if isinstance(level, int):
        return level

    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(level)

    return value


def parse_log_str(s: str) -> dict[str, int]:
    """
    Parse a `name:level,name:level` string. A bare level applies to the root
    logger, stored under "*". Unknown levels are skipped with a warning.
    """
    ret: dict[str, int] = {}

    for comp in filter(None, (x.strip() for x in s.split(","))):
        name, _, level = comp.rpartition(":")
        name = name.strip() or "*"

        try:
            ret[name] = log_level_value(level)
        except ValueError:
            warnings.warn(f"Unknown level '{level}' for '{name}'")

    return ret


def shift_log_level(name: str, *, verbose: int = 0, quiet: int = 0) -> int:
    logger = logging.getLogger(name)
    level = logger.getEffectiveLevel() + 10 * (quiet - verbose)
    level = max(logging.DEBUG, min(level, logging.CRITICAL))
    logger.setLevel(level)

    return level


def setup_logging(
    *,
    verbose: int = 0,
    quiet: int = 0,
    levels: dict[str, int] | None = None,
) -> None:
    global _handler

    if _handler is None:
        _handler = build_handler()
        logging.getLogger().addHandler(_handler)

    if env_levels := os.environ.get(ENV_VARIABLE, ""):
        levels = parse_log_str(env_levels)
    elif levels is None:
        levels = DEFAULT_LEVELS

    for name, level in levels.items():
        logger = logging.getLogger() if name == "*" else logging.getLogger(name)
        logger.setLevel(level)

    shift_log_level(ROOT_PACKAGE, verbose=verbose, quiet=quiet)
