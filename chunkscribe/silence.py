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

import dataclasses
import logging
import os
import re
from collections.abc import Iterable, Iterator
from pathlib import Path

import ffmpeg

from . import codec

LOGGER = logging.getLogger(__name__)

DEFAULT_NOISE_DB = float(os.environ.get("CHUNKSCRIBE_SILENCE_NOISE_DB", "-16"))
DEFAULT_MIN_SILENCE = float(
    os.environ.get("CHUNKSCRIBE_SILENCE_MIN_DURATION", "0.25")
)

_SILENCE_START_RE = re.compile(
    r"silence_start: ([-+]?\d+(?:\.\d*)?(?:[eE][-+]?\d+)?)"
)
_DURATION_RE = re.compile(r"Duration: (\d{2,}):(\d{2}):(\d{2}(?:\.\d+)?)")


class ScanFailure(RuntimeError):
    pass


@dataclasses.dataclass(frozen=True)
class SilenceScan:
    silence_points: tuple[float, ...]
    duration: float


@dataclasses.dataclass(frozen=True)
class SilencePreset:
    noise_db: float
    min_silence: float
    description: str


SILENCE_PRESETS = (
    SilencePreset(-20, 0.1, "Very sensitive (short silences)"),
    SilencePreset(-16, 0.25, "Current setting"),
    SilencePreset(-12, 0.5, "Less sensitive (longer silences)"),
    SilencePreset(-8, 1.0, "Very insensitive (very long silences)"),
)


def parse_silencedetect(text: str) -> tuple[list[float], float | None]:
    """
    Parse ffmpeg's stderr after a `silencedetect` pass.

    Returns the silence onsets in the order ffmpeg reported them and the
    stream duration from the input header, or None if the header lacks one.
    """
    points: list[float] = []
    duration: float | None = None

    for line in text.splitlines():
        if duration is None and (m := _DURATION_RE.search(line)):
            hours, minutes, seconds = m.groups()
            duration = int(hours) * 3600 + int(minutes) * 60 + float(seconds)
            continue

        if m := _SILENCE_START_RE.search(line):
            points.append(max(0.0, float(m.group(1))))

    return points, duration


class SilenceScanner:
    def __init__(
        self,
        *,
        noise_db: float = DEFAULT_NOISE_DB,
        min_silence: float = DEFAULT_MIN_SILENCE,
    ) -> None:
        if min_silence <= 0:
            raise ValueError(f"min_silence must be positive, got {min_silence}")

        self.noise_db = noise_db
        self.min_silence = min_silence

    @property
    def audio_filter(self) -> str:
        return f"silencedetect=noise={self.noise_db:g}dB:d={self.min_silence:g}"

    def run_silencedetect(self, file: Path) -> str:
        LOGGER.debug(f"{file}: running ffmpeg -af {self.audio_filter}")

        try:
            _, stderr = (
                ffmpeg.input(file.as_posix())
                .output("-", format="null", af=self.audio_filter)
                .global_args("-hide_banner", "-nostats")
                .run(capture_stdout=True, capture_stderr=True)
            )
        except ffmpeg.Error as e:
            msg = (e.stderr or b"").decode("utf-8", errors="replace").strip()
            raise ScanFailure(f"{file}: unable to analyze audio: {msg or e}") from e

        return stderr.decode("utf-8", errors="replace")

    def scan(self, file: Path) -> SilenceScan:
        LOGGER.info(f"Analyzing {file.name} for silence points...")

        points, duration = parse_silencedetect(self.run_silencedetect(file))

        if duration is None:
            LOGGER.debug(f"{file}: no duration in ffmpeg header, probing")
            try:
                duration = codec.probe_audio(file).duration
            except codec.CodecError as e:
                raise ScanFailure(str(e)) from e

        if duration is None or duration <= 0:
            raise ScanFailure(f"{file}: unable to determine audio duration")

        LOGGER.info(f"Audio duration: {duration:.1f} seconds")
        LOGGER.info(f"Total silence points found: {len(points)}")
        if not points:
            LOGGER.warning(
                "No silence points detected. Audio may be loud or quiet "
                "throughout, the threshold may be too high or the format "
                "may have issues"
            )

        return SilenceScan(silence_points=tuple(points), duration=duration)


def scan_presets(
    file: Path, presets: Iterable[SilencePreset] = SILENCE_PRESETS
) -> Iterator[tuple[SilencePreset, SilenceScan | None]]:
    for preset in presets:
        scanner = SilenceScanner(
            noise_db=preset.noise_db, min_silence=preset.min_silence
        )
        try:
            scan = scanner.scan(file)
        except ScanFailure as e:
            LOGGER.error(f"{preset.description}: {e}")
            scan = None

        yield preset, scan
