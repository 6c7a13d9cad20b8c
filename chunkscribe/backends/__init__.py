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

from __future__ import annotations

import importlib
import logging
import os
from abc import abstractmethod

LOGGER = logging.getLogger(__name__)


def BaseBackendFactory(
    backend=None, *, id: str, map: dict[str, str], default: str
) -> type:
    if backend is None:
        envvar = f"CHUNKSCRIBE_{id}_BACKEND"
        backend = os.environ.get(envvar) or default

    try:
        cls_name = map[backend]
    except KeyError as e:
        raise BackendError(f"unknown backend '{backend}'") from e

    try:
        m = importlib.import_module(f"..backends.{backend}", package=__package__)
    except ImportError as e:
        raise BackendError(f"unable to load backend '{backend}'") from e

    if not hasattr(m, cls_name):
        raise BackendError(f"backend '{backend}' has no '{cls_name}'")

    LOGGER.debug(f"using backend {backend}.{cls_name}")
    return getattr(m, cls_name)


class BackendError(Exception):
    pass


class TranscriptionError(Exception):
    pass


#
# Transcriptions
#


class Transcriptor:
    # Maximum accepted input size in bytes, None means unbounded
    max_file_size: int | None = None

    @abstractmethod
    def transcribe_bytes(self, data: bytes, *, filename: str) -> str: ...
