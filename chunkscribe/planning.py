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

import enum
import logging
from collections.abc import Sequence

from .silence import SilenceScan

LOGGER = logging.getLogger(__name__)

# A silence point can close a chunk once the chunk reaches this share of the
# target length...
OPEN_RATIO = 0.8
# ...and the preferred cut keeps the chunk between these shares of it
MIN_RATIO = 0.5
MAX_RATIO = 1.0


class SplitStrategy(enum.Enum):
    SINGLE = "single"
    SILENCE = "silence"
    UNIFORM = "uniform"


def _check_chunk_seconds(value: float) -> None:
    if value <= 0:
        raise ValueError(f"chunk length must be positive, got {value}")


def plan_split_points(
    silence_points: Sequence[float], duration: float, target_chunk_seconds: float
) -> list[float]:
    """
    Pick cut points among silence onsets so chunks stay close to
    `target_chunk_seconds`.

    Walks the onsets keeping a cursor on the last committed cut. An onset
    opens a candidate region once the pending chunk is at least
    `OPEN_RATIO` of the target; from there the first onset that leaves the
    chunk between `MIN_RATIO` and `MAX_RATIO` of the target wins. The scan
    stops at the first onset past the target, in which case the onset that
    opened the region is used.

    Onsets outside (0, duration) are ignored. An empty list means no cut
    could be placed, callers must fall back to another strategy unless the
    audio is already shorter than the target.
    """
    _check_chunk_seconds(target_chunk_seconds)

    points = [p for p in silence_points if 0 < p < duration]
    open_at = OPEN_RATIO * target_chunk_seconds
    min_len = MIN_RATIO * target_chunk_seconds
    max_len = MAX_RATIO * target_chunk_seconds

    splits: list[float] = []
    cursor = 0.0
    idx = 0

    while idx < len(points):
        candidate = points[idx]
        if candidate - cursor < open_at:
            idx += 1
            continue

        best, best_idx = candidate, idx
        for jdx in range(idx, len(points)):
            chunk_len = points[jdx] - cursor
            if chunk_len > max_len:
                break
            if chunk_len >= min_len:
                best, best_idx = points[jdx], jdx
                break

        splits.append(best)
        cursor = best
        idx = best_idx + 1

    return splits


def plan_uniform_split_points(duration: float, chunk_seconds: float) -> list[float]:
    _check_chunk_seconds(chunk_seconds)

    splits = []
    point = chunk_seconds
    while point < duration:
        splits.append(point)
        point += chunk_seconds

    return splits


def choose_split_points(
    scan: SilenceScan, target_chunk_seconds: float
) -> tuple[list[float], SplitStrategy]:
    _check_chunk_seconds(target_chunk_seconds)

    if scan.duration <= target_chunk_seconds:
        LOGGER.info("Audio fits in a single chunk, no splitting needed")
        return [], SplitStrategy.SINGLE

    LOGGER.info(f"Target chunk duration: {target_chunk_seconds:g} seconds")
    splits = plan_split_points(
        scan.silence_points, scan.duration, target_chunk_seconds
    )
    if splits:
        LOGGER.info(f"Optimal split points calculated: {len(splits)}")
        LOGGER.debug(f"split points: {', '.join(f'{x:.2f}' for x in splits)}")
        return splits, SplitStrategy.SILENCE

    LOGGER.info("No suitable silence points found, using time-based splitting")
    return (
        plan_uniform_split_points(scan.duration, target_chunk_seconds),
        SplitStrategy.UNIFORM,
    )
