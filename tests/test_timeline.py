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


import asyncio
import tempfile
import time
import unittest
from pathlib import Path

from chunkscribe.segments import (
    ExtractedSegment,
    Segment,
    SegmentExtractionFailure,
    segments_from_split_points,
)
from chunkscribe.timeline import (
    SrtFmt,
    TimelineAssembler,
    TranscriptEntry,
    format_entry,
    format_timestamp,
    format_transcript,
)


class FormatTest(unittest.TestCase):
    def test_format_timestamp(self):
        self.assertEqual(format_timestamp(0), "00:00")
        self.assertEqual(format_timestamp(65.9), "01:05")
        self.assertEqual(format_timestamp(3599.99), "59:59")
        self.assertEqual(format_timestamp(3600), "01:00:00")
        self.assertEqual(format_timestamp(3725), "01:02:05")

    def test_format_entry(self):
        self.assertEqual(
            format_entry(TranscriptEntry(0, 50, "hello")), "[00:00 - 00:50]\nhello"
        )
        self.assertEqual(
            format_entry(TranscriptEntry(100, None, "bye")), "[01:40 - end]\nbye"
        )
        self.assertEqual(
            format_entry(TranscriptEntry(0, None, "all"), headers=False), "all"
        )

    def test_format_transcript(self):
        entries = [TranscriptEntry(0, 50, "a"), TranscriptEntry(50, None, "b")]
        self.assertEqual(
            format_transcript(entries), "[00:00 - 00:50]\na\n\n[00:50 - end]\nb"
        )


class TimelineAssemblerTest(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.tmpd = Path(self._tmpdir.name)

    def tearDown(self):
        self._tmpdir.cleanup()

    def make_segments(self, split_points, payloads=None):
        ret = []
        for segment in segments_from_split_points(split_points):
            path = self.tmpd / f"chunk_{segment.index:03d}.mp3"
            payload = payloads[segment.index] if payloads else f"chunk {segment.index}"
            path.write_bytes(payload.encode())
            ret.append(ExtractedSegment(segment=segment, path=path))

        return ret

    async def collect(self, assembler, segments):
        return [x async for x in assembler.assemble(segments)]

    async def test_sync_transcriber(self):
        def transcribe(data):
            return f"  {data.decode()} text\n"

        entries = await self.collect(
            TimelineAssembler(transcribe), self.make_segments([50, 100])
        )

        self.assertEqual(
            entries,
            [
                TranscriptEntry(0.0, 50, "chunk 0 text"),
                TranscriptEntry(50, 100, "chunk 1 text"),
                TranscriptEntry(100, None, "chunk 2 text"),
            ],
        )

    async def test_async_transcriber(self):
        async def transcribe(data):
            return data.decode().upper()

        entries = await self.collect(
            TimelineAssembler(transcribe), self.make_segments([30])
        )

        self.assertEqual([x.text for x in entries], ["CHUNK 0", "CHUNK 1"])
        self.assertFalse(any(x.error for x in entries))

    async def test_failed_segment_keeps_its_place(self):
        def transcribe(data):
            if data == b"chunk 1":
                raise RuntimeError("service unavailable")
            return data.decode()

        entries = await self.collect(
            TimelineAssembler(transcribe), self.make_segments([50, 100])
        )

        self.assertEqual(len(entries), 3)
        self.assertEqual([x.error for x in entries], [False, True, False])
        self.assertEqual(entries[1].text, "[ERROR: service unavailable]")
        self.assertEqual((entries[1].start, entries[1].end), (50, 100))
        self.assertEqual(entries[2].text, "chunk 2")

    async def test_oversized_segment(self):
        calls = []

        def transcribe(data):
            calls.append(data)
            return data.decode()

        segments = self.make_segments([10], payloads=["x" * 10, "y" * 2 * 1024 * 1024])
        entries = await self.collect(
            TimelineAssembler(transcribe, max_bytes=1024 * 1024), segments
        )

        self.assertEqual(calls, [b"x" * 10])
        self.assertFalse(entries[0].error)
        self.assertTrue(entries[1].error)
        self.assertEqual(entries[1].text, "[ERROR: File too large: 2.00 MB (max 1MB)]")

    async def test_extraction_failure(self):
        def transcribe(data):
            return data.decode()

        segments = self.make_segments([20, 40])
        segments[0] = ExtractedSegment(
            segment=Segment(0, 0.0, 20),
            failure=SegmentExtractionFailure(0, RuntimeError("ffmpeg died")),
        )

        entries = await self.collect(TimelineAssembler(transcribe), segments)

        self.assertEqual(
            entries[0],
            TranscriptEntry(
                0.0, 20, "[ERROR: Error creating chunk 0: ffmpeg died]", error=True
            ),
        )
        self.assertEqual([x.text for x in entries[1:]], ["chunk 1", "chunk 2"])

    async def test_segment_without_file(self):
        def transcribe(data):
            return data.decode()

        segments = [ExtractedSegment(segment=Segment(0, 0.0, None))]
        (entry,) = await self.collect(TimelineAssembler(transcribe), segments)

        self.assertTrue(entry.error)
        self.assertEqual(entry.text, "[ERROR: chunk 0 was not extracted]")

    async def test_slow_extraction_does_not_block_the_loop(self):
        def transcribe(data):
            return data.decode()

        ready = self.make_segments([10, 20])

        def slow_segments():
            for extracted in ready:
                time.sleep(0.3)
                yield extracted

        stalls = []
        running = True

        async def ticker():
            prev = time.monotonic()
            while running:
                await asyncio.sleep(0.01)
                now = time.monotonic()
                stalls.append(now - prev)
                prev = now

        task = asyncio.create_task(ticker())
        entries = await self.collect(TimelineAssembler(transcribe), slow_segments())
        running = False
        await task

        self.assertEqual(len(entries), 3)
        self.assertLess(max(stalls), 0.2)

    async def test_entries_follow_segment_order(self):
        def transcribe(data):
            return data.decode()

        segments = self.make_segments([5, 10, 15, 20, 25])
        entries = await self.collect(TimelineAssembler(transcribe), segments)

        self.assertEqual([x.start for x in entries], [x.segment.start for x in segments])
        for prev, curr in zip(entries, entries[1:]):
            self.assertEqual(prev.end, curr.start)


class SrtFmtTest(unittest.TestCase):
    def test_dumps(self):
        entries = [
            TranscriptEntry(0.0, 50.5, "first"),
            TranscriptEntry(50.5, None, "second"),
        ]
        srt = SrtFmt.dumps(entries, duration=75.0)

        self.assertTrue(srt.startswith("1\n00:00:00,000 --> 00:00:50,500\nfirst\n"))
        self.assertIn("2\n00:00:50,500 --> 00:01:15,000\nsecond\n", srt)

    def test_start_index(self):
        srt = SrtFmt.dumps([TranscriptEntry(60, 120, "x")], duration=0, start_index=7)
        self.assertTrue(srt.startswith("7\n00:01:00,000 --> 00:02:00,000\n"))


if __name__ == "__main__":
    unittest.main()
