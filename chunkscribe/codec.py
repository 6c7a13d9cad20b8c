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

"""
Thin wrappers around ffmpeg (through ffmpeg-python) for the operations the
transcription pipeline needs: probing, cutting a time range into a
transcription friendly file and whole-file conversion.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import ffmpeg

from .lib import filesystem as fs

LOGGER = logging.getLogger(__name__)

FFMPEG_GLOBAL_ARGS = ("-hide_banner", "-loglevel", "warning")


class CodecError(RuntimeError):
    def __init__(self, message: str, *, stderr: str | None = None):
        super().__init__(message)
        self.stderr = stderr


@dataclasses.dataclass(frozen=True)
class ExtractionProfile:
    format: str = "mp3"
    codec: str = "libmp3lame"
    bitrate: str = "128k"
    sample_rate: int = 16000
    channels: int = 1

    @property
    def extension(self) -> str:
        return self.format


DEFAULT_PROFILE = ExtractionProfile()


@dataclasses.dataclass
class AudioInfo:
    format_name: str
    duration: float | None
    bit_rate: int | None
    size: int | None
    codec: str | None = None
    sample_rate: int | None = None
    channels: int | None = None
    bits_per_sample: int | None = None

    @classmethod
    def from_probe(cls, data: dict) -> AudioInfo:
        fmt = data.get("format", {})
        stream = next(
            (x for x in data.get("streams", []) if x.get("codec_type") == "audio"),
            None,
        )

        info = cls(
            format_name=fmt.get("format_name", "unknown"),
            duration=_maybe(float, fmt.get("duration")),
            bit_rate=_maybe(int, fmt.get("bit_rate")),
            size=_maybe(int, fmt.get("size")),
        )
        if stream:
            info.codec = stream.get("codec_name")
            info.sample_rate = _maybe(int, stream.get("sample_rate"))
            info.channels = _maybe(int, stream.get("channels"))
            # ffprobe reports 0 for compressed formats
            info.bits_per_sample = _maybe(int, stream.get("bits_per_sample")) or None

        return info

    @property
    def has_audio(self) -> bool:
        return self.codec is not None


def _maybe(fn, value):
    if value in (None, "", "N/A"):
        return None

    try:
        return fn(value)
    except (TypeError, ValueError):
        return None


def _decode_stderr(e: ffmpeg.Error) -> str:
    return (e.stderr or b"").decode("utf-8", errors="replace").strip()


def probe_audio(file: Path) -> AudioInfo:
    try:
        data = ffmpeg.probe(file.as_posix())
    except ffmpeg.Error as e:
        stderr = _decode_stderr(e)
        raise CodecError(f"Invalid audio file: {stderr or e}", stderr=stderr) from e

    info = AudioInfo.from_probe(data)
    LOGGER.debug(f"{file}: {info!r}")

    return info


def extract_range(
    file: Path,
    start: float,
    end: float | None,
    destination: Path,
    *,
    profile: ExtractionProfile = DEFAULT_PROFILE,
) -> Path:
    input_kwargs: dict[str, float] = {}
    if start > 0:
        input_kwargs["ss"] = start
    if end is not None:
        input_kwargs["t"] = end - start

    stream = ffmpeg.input(file.as_posix(), **input_kwargs).audio.output(
        destination.as_posix(),
        format=profile.format,
        acodec=profile.codec,
        audio_bitrate=profile.bitrate,
        ar=profile.sample_rate,
        ac=profile.channels,
    )

    try:
        stream.overwrite_output().global_args(*FFMPEG_GLOBAL_ARGS).run(
            capture_stdout=True, capture_stderr=True
        )
    except ffmpeg.Error as e:
        stderr = _decode_stderr(e)
        raise CodecError(
            f"unable to extract {start:.2f}-{end if end is not None else 'end'}"
            f" from {file.name}: {stderr or e}",
            stderr=stderr,
        ) from e

    return destination


def to_compatible_format(
    file: Path,
    destdir: Path | None = None,
    *,
    profile: ExtractionProfile = DEFAULT_PROFILE,
) -> Path:
    if file.suffix.lower() == f".{profile.extension}":
        return file

    dest = fs.change_file_extension(file, profile.extension)
    if destdir is not None:
        dest = destdir / dest.name

    LOGGER.info(f"Converting {file.name} to {profile.format}")
    return extract_range(file, 0, None, dest, profile=profile)
