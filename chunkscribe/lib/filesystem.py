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


import contextlib
import logging
import shutil
import sys
import tempfile
from collections.abc import Callable, Iterator
from pathlib import Path

_LOGGER = logging.getLogger(__name__)


def iter_files_in_targets(
    targets,
    *,
    error_handler: Callable[[str], None] | None = None,
) -> Iterator[Path]:
    def _error_handler(msg):
        print(msg, file=sys.stderr)

    error_handler = error_handler or _error_handler

    for item in targets:
        if not item.exists():
            error_handler(f"{item.as_posix()}: no such file or directory")

        elif item.is_file():
            yield item

        elif item.is_dir():
            error_handler(f"{item.as_posix()}: Is a directory")

        else:
            error_handler(f"{item.as_posix()}: unknow type")


def file_mime(filepath: Path) -> str:
    # libmagic is only needed by the CLI checks
    import magic

    return magic.from_file(filepath.as_posix(), mime=True)


def is_media_file(filepath: Path) -> bool:
    mime = file_mime(filepath)
    return mime.startswith("audio/") or mime.startswith("video/")


def temp_dirpath(prefix: str | None = None) -> Path:
    return Path(tempfile.mkdtemp(prefix=prefix))


@contextlib.contextmanager
def temp_dirpath_ctx(*args, **kwargs):
    tmpd = temp_dirpath(*args, **kwargs)
    try:
        yield tmpd
    finally:
        _LOGGER.debug(f"removing temporary directory '{tmpd}'")
        shutil.rmtree(tmpd, ignore_errors=True)


def change_file_extension(file: Path, extension: str) -> Path:
    return file.parent / (file.stem + "." + extension)


def safe_mv(source: Path, destination: Path, *, overwrite: bool = False) -> Path:
    if destination.exists() and not overwrite:
        raise FileExistsError(destination)

    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(source, destination)

    return destination
