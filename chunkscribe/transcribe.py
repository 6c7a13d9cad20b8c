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
import contextlib
import functools
import logging
import os
from collections.abc import AsyncIterator
from pathlib import Path

import click

from .backends import BackendError, BaseBackendFactory, Transcriptor
from .lib import filesystem as fs
from .planning import SplitStrategy, choose_split_points
from .segments import SegmentExtractor
from .silence import (
    DEFAULT_MIN_SILENCE,
    DEFAULT_NOISE_DB,
    ScanFailure,
    SilenceScan,
    SilenceScanner,
)
from .timeline import SrtFmt, TimelineAssembler, TranscriptEntry, format_entry

LOGGER = logging.getLogger(__name__)


ENVIRON_KEY = "TRANSCRIPTOR"
DEFAULT_BACKEND = "openai"
BACKENDS = {
    "openai": "OpenAI",
}

DEFAULT_CHUNK_SECONDS = float(os.environ.get("CHUNKSCRIBE_CHUNK_SECONDS", "60"))
OUTPUT_FORMATS = ("txt", "srt")


def TranscriptorFactory(backend: str | None = None, **kwargs) -> Transcriptor:
    return BaseBackendFactory(
        backend=backend, id=ENVIRON_KEY, map=BACKENDS, default=DEFAULT_BACKEND
    )(**kwargs)


def default_output_path(file: Path, output_format: str = "txt") -> Path:
    return file.parent / f"{file.stem}_transcription.{output_format}"


def is_whole_stream(entry: TranscriptEntry) -> bool:
    return entry.start == 0 and entry.end is None


class ChunkedTranscription:
    """
    One transcription run over a single file.

    Iterating `entries()` scans the file, plans the cuts and then extracts and
    transcribes one chunk at a time, yielding each entry as soon as its
    chunk is done. Extracted chunks live in a temporary directory that is
    removed when the iteration finishes or the generator is closed.
    """

    def __init__(
        self,
        file: Path,
        target_chunk_seconds: float = DEFAULT_CHUNK_SECONDS,
        *,
        transcriptor: Transcriptor | None = None,
        scanner: SilenceScanner | None = None,
        extractor: SegmentExtractor | None = None,
    ) -> None:
        if target_chunk_seconds <= 0:
            raise ValueError(
                f"target chunk length must be positive, got {target_chunk_seconds}"
            )

        self.file = file
        self.target_chunk_seconds = target_chunk_seconds
        self.transcriptor = transcriptor or TranscriptorFactory()
        self.scanner = scanner or SilenceScanner()
        self.extractor = extractor or SegmentExtractor()

        self.scan: SilenceScan | None = None
        self.split_points: list[float] = []
        self.strategy: SplitStrategy | None = None

    @property
    def duration(self) -> float | None:
        return self.scan.duration if self.scan else None

    def build_assembler(self) -> TimelineAssembler:
        transcribe_fn = functools.partial(
            self.transcriptor.transcribe_bytes,
            filename=f"chunk.{self.extractor.profile.extension}",
        )
        return TimelineAssembler(
            transcribe_fn, max_bytes=self.transcriptor.max_file_size
        )

    async def entries(self) -> AsyncIterator[TranscriptEntry]:
        self.scan = await asyncio.to_thread(self.scanner.scan, self.file)
        self.split_points, self.strategy = choose_split_points(
            self.scan, self.target_chunk_seconds
        )

        assembler = self.build_assembler()
        with fs.temp_dirpath_ctx(prefix="chunkscribe-") as tmpd:
            segments = self.extractor.extract(self.file, self.split_points, tmpd)
            async with contextlib.aclosing(assembler.assemble(segments)) as assembled:
                async for entry in assembled:
                    yield entry

            LOGGER.info("Cleaning up temporary files...")


def run_chunked_transcription(
    file: Path, target_chunk_seconds: float = DEFAULT_CHUNK_SECONDS, **kwargs
) -> AsyncIterator[TranscriptEntry]:
    return ChunkedTranscription(file, target_chunk_seconds, **kwargs).entries()


class TranscriptWriter:
    def __init__(self, destination: Path, *, output_format: str = "txt") -> None:
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"unknown output format '{output_format}'")

        self.destination = destination
        self.output_format = output_format
        self.count = 0

    def reset(self) -> None:
        if self.destination.exists():
            self.destination.unlink()
        self.count = 0

    def render(self, entry: TranscriptEntry, *, duration: float | None) -> str:
        if self.output_format == "srt":
            return SrtFmt.dumps(
                [entry],
                duration=duration if duration is not None else entry.start,
                start_index=self.count + 1,
            )

        return format_entry(entry, headers=not is_whole_stream(entry)) + "\n\n"

    def append(self, entry: TranscriptEntry, *, duration: float | None = None) -> None:
        buff = self.render(entry, duration=duration)
        with open(self.destination, "a", encoding="utf-8") as fh:
            fh.write(buff)
            fh.flush()
            os.fsync(fh.fileno())

        self.count += 1


async def transcribe_file(
    file: Path,
    output: Path | None = None,
    *,
    target_chunk_seconds: float = DEFAULT_CHUNK_SECONDS,
    output_format: str = "txt",
    **kwargs,
) -> Path:
    run = ChunkedTranscription(file, target_chunk_seconds, **kwargs)
    writer = TranscriptWriter(
        output or default_output_path(file, output_format), output_format=output_format
    )

    LOGGER.info(f"Transcription will be saved to: {writer.destination}")
    async with contextlib.aclosing(run.entries()) as entries:
        async for entry in entries:
            # Previous output is kept until the first entry is ready
            if writer.count == 0:
                writer.reset()
            writer.append(entry, duration=run.duration)

    LOGGER.info(f"All chunks processed and saved to: {writer.destination}")
    return writer.destination


@click.command("transcribe")
@click.option("--output", "-o", type=Path, help="Output file")
@click.option(
    "--chunk-seconds",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_CHUNK_SECONDS,
    show_default=True,
    help="Target chunk length",
)
@click.option(
    "--format", "output_format", type=click.Choice(OUTPUT_FORMATS), default="txt"
)
@click.option("--noise-db", type=float, default=DEFAULT_NOISE_DB, show_default=True)
@click.option(
    "--min-silence",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_MIN_SILENCE,
    show_default=True,
)
@click.option("--backend", type=click.Choice(list(BACKENDS)), default=None)
@click.option("--overwrite", "-f", is_flag=True, default=False)
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def transcribe_cmd(
    file: Path,
    output: Path | None = None,
    chunk_seconds: float = DEFAULT_CHUNK_SECONDS,
    output_format: str = "txt",
    noise_db: float = DEFAULT_NOISE_DB,
    min_silence: float = DEFAULT_MIN_SILENCE,
    backend: str | None = None,
    overwrite: bool = False,
):
    file = file.resolve()
    if not fs.is_media_file(file):
        raise click.ClickException(f"{file}: not a media file")

    dest = output or default_output_path(file, output_format)
    if dest.exists() and not overwrite:
        raise click.ClickException(f"{dest}: already exists")

    try:
        transcriptor = TranscriptorFactory(backend=backend)
        scanner = SilenceScanner(noise_db=noise_db, min_silence=min_silence)
        asyncio.run(
            transcribe_file(
                file,
                dest,
                target_chunk_seconds=chunk_seconds,
                output_format=output_format,
                transcriptor=transcriptor,
                scanner=scanner,
            )
        )
    except (BackendError, ScanFailure, ValueError) as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Transcription saved to: {dest}")

