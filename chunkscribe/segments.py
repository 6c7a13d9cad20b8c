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
from collections.abc import Callable, Iterator, Sequence
from pathlib import Path

from . import codec

LOGGER = logging.getLogger(__name__)

ExtractFunction = Callable[..., Path]


@dataclasses.dataclass(frozen=True)
class Segment:
    index: int
    start: float
    end: float | None

    @property
    def is_open_ended(self) -> bool:
        return self.end is None


class SegmentExtractionFailure(Exception):
    def __init__(self, index: int, cause: BaseException | str):
        super().__init__(index, cause)
        self.index = index
        self.cause = cause

    def __str__(self) -> str:
        return f"Error creating chunk {self.index}: {self.cause}"


@dataclasses.dataclass(frozen=True)
class ExtractedSegment:
    segment: Segment
    path: Path | None = None
    failure: SegmentExtractionFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def segments_from_split_points(split_points: Sequence[float]) -> list[Segment]:
    prev = 0.0
    for point in split_points:
        if point <= prev:
            raise ValueError(
                f"split points must be positive and strictly increasing: {split_points!r}"
            )
        prev = point

    bounds: list[float | None] = [0.0, *split_points, None]

    return [
        Segment(index=idx, start=start, end=end)  # type: ignore[arg-type]
        for idx, (start, end) in enumerate(zip(bounds, bounds[1:]))
    ]


class SegmentExtractor:
    def __init__(
        self,
        *,
        profile: codec.ExtractionProfile = codec.DEFAULT_PROFILE,
        extract_fn: ExtractFunction = codec.extract_range,
    ) -> None:
        self.profile = profile
        self.extract_fn = extract_fn

    def chunk_filename(self, file: Path, segment: Segment) -> str:
        return f"{file.stem}_chunk_{segment.index:03d}.{self.profile.extension}"

    def extract_segment(
        self, file: Path, segment: Segment, destdir: Path
    ) -> ExtractedSegment:
        dest = destdir / self.chunk_filename(file, segment)

        try:
            path = self.extract_fn(
                file, segment.start, segment.end, dest, profile=self.profile
            )
        except (codec.CodecError, OSError) as e:
            failure = SegmentExtractionFailure(segment.index, e)
            LOGGER.error(str(failure))
            return ExtractedSegment(segment=segment, failure=failure)

        LOGGER.debug(f"chunk {segment.index} extracted to {path}")
        return ExtractedSegment(segment=segment, path=path)

    def extract(
        self, file: Path, split_points: Sequence[float], destdir: Path
    ) -> Iterator[ExtractedSegment]:
        segments = segments_from_split_points(split_points)
        LOGGER.info(f"Splitting {file.name} into {len(segments)} chunks")

        for segment in segments:
            yield self.extract_segment(file, segment, destdir)
