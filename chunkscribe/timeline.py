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

import asyncio
import dataclasses
import inspect
import io
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable

import pysrt

from .segments import ExtractedSegment

LOGGER = logging.getLogger(__name__)

TranscribeFunction = Callable[[bytes], "str | Awaitable[str]"]


@dataclasses.dataclass(frozen=True)
class TranscriptEntry:
    start: float
    end: float | None
    text: str
    error: bool = False


def format_timestamp(seconds: float) -> str:
    total = int(max(0.0, seconds))
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)

    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    else:
        return f"{minutes:02d}:{secs:02d}"


def format_span(start: float, end: float | None) -> str:
    endstr = format_timestamp(end) if end is not None else "end"
    return f"[{format_timestamp(start)} - {endstr}]"


def format_header(entry: TranscriptEntry) -> str:
    return format_span(entry.start, entry.end)


def format_entry(entry: TranscriptEntry, *, headers: bool = True) -> str:
    if not headers:
        return entry.text

    return f"{format_header(entry)}\n{entry.text}"


def format_transcript(
    entries: Iterable[TranscriptEntry], *, headers: bool = True
) -> str:
    return "\n\n".join(format_entry(x, headers=headers) for x in entries)


class _OversizedSegment(Exception):
    pass


def error_text(message: object) -> str:
    return f"[ERROR: {message}]"


class TimelineAssembler:
    def __init__(
        self, transcribe_fn: TranscribeFunction, *, max_bytes: int | None = None
    ) -> None:
        self.transcribe_fn = transcribe_fn
        self.max_bytes = max_bytes

    async def _transcribe(self, data: bytes) -> str:
        if inspect.iscoroutinefunction(self.transcribe_fn):
            return await self.transcribe_fn(data)

        # Blocking collaborators run off the event loop
        ret = await asyncio.to_thread(self.transcribe_fn, data)
        if inspect.isawaitable(ret):
            ret = await ret

        return ret

    def _read(self, extracted: ExtractedSegment) -> bytes:
        if extracted.path is None:
            raise ValueError(f"chunk {extracted.segment.index} was not extracted")

        size = extracted.path.stat().st_size
        if self.max_bytes is not None and size > self.max_bytes:
            raise _OversizedSegment(
                f"File too large: {size / 1024 / 1024:.2f} MB"
                f" (max {self.max_bytes / 1024 / 1024:.0f}MB)"
            )

        return extracted.path.read_bytes()

    async def transcribe_segment(self, extracted: ExtractedSegment) -> TranscriptEntry:
        segment = extracted.segment

        if not extracted.ok:
            return TranscriptEntry(
                start=segment.start,
                end=segment.end,
                text=error_text(extracted.failure),
                error=True,
            )

        try:
            text = await self._transcribe(self._read(extracted))
        except Exception as e:
            LOGGER.error(f"Error transcribing chunk {segment.index + 1}: {e}")
            return TranscriptEntry(
                start=segment.start, end=segment.end, text=error_text(e), error=True
            )

        return TranscriptEntry(start=segment.start, end=segment.end, text=text.strip())

    async def assemble(
        self, segments: Iterable[ExtractedSegment]
    ) -> AsyncIterator[TranscriptEntry]:
        it = iter(segments)
        while True:
            # Extraction runs ffmpeg, keep it off the event loop
            extracted = await asyncio.to_thread(next, it, None)
            if extracted is None:
                break

            segment = extracted.segment
            LOGGER.info(
                f"Transcribing chunk {segment.index + 1}"
                f" {format_span(segment.start, segment.end)}"
            )

            entry = await self.transcribe_segment(extracted)
            if not entry.error:
                LOGGER.info(f"Chunk {segment.index + 1} completed")

            yield entry


class SrtFmt:
    @staticmethod
    def dumps(
        entries: Iterable[TranscriptEntry], *, duration: float, start_index: int = 1
    ) -> str:
        srt = pysrt.SubRipFile(
            items=[
                pysrt.SubRipItem(
                    index=idx + start_index,
                    start=pysrt.SubRipTime.from_ordinal(round(x.start * 1000)),
                    end=pysrt.SubRipTime.from_ordinal(
                        round((x.end if x.end is not None else duration) * 1000)
                    ),
                    text=x.text,
                )
                for idx, x in enumerate(entries)
            ]
        )

        buff = io.StringIO()
        srt.write_into(buff)
        ret = buff.getvalue()
        buff.close()

        return ret
