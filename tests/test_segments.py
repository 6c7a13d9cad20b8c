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


import tempfile
import unittest
from pathlib import Path

from chunkscribe import codec
from chunkscribe.segments import (
    Segment,
    SegmentExtractionFailure,
    SegmentExtractor,
    segments_from_split_points,
)


def fake_extract(file, start, end, destination, *, profile):
    destination.write_bytes(f"{start}-{end}".encode())
    return destination


class SegmentsFromSplitPointsTest(unittest.TestCase):
    def test_no_split_points(self):
        self.assertEqual(segments_from_split_points([]), [Segment(0, 0.0, None)])

    def test_split_points(self):
        self.assertEqual(
            segments_from_split_points([65, 130]),
            [Segment(0, 0.0, 65), Segment(1, 65, 130), Segment(2, 130, None)],
        )

    def test_partition_is_contiguous(self):
        segments = segments_from_split_points([12.5, 40.0, 61.25, 99.0])

        self.assertEqual(segments[0].start, 0)
        self.assertTrue(segments[-1].is_open_ended)
        self.assertFalse(any(x.is_open_ended for x in segments[:-1]))
        for prev, curr in zip(segments, segments[1:]):
            self.assertEqual(prev.end, curr.start)
            self.assertEqual(prev.index + 1, curr.index)

    def test_invalid_split_points(self):
        for points in ([0, 10], [10, 10], [20, 10], [-1]):
            with self.subTest(points=points):
                with self.assertRaises(ValueError):
                    segments_from_split_points(points)


class SegmentExtractorTest(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.tmpd = Path(self._tmpdir.name)

    def tearDown(self):
        self._tmpdir.cleanup()

    def test_extract(self):
        extractor = SegmentExtractor(extract_fn=fake_extract)
        extracted = list(extractor.extract(Path("/audio/talk.wav"), [60, 120], self.tmpd))

        self.assertEqual(len(extracted), 3)
        self.assertTrue(all(x.ok for x in extracted))
        self.assertEqual(
            [x.path.name for x in extracted],
            ["talk_chunk_000.mp3", "talk_chunk_001.mp3", "talk_chunk_002.mp3"],
        )
        self.assertEqual(
            [x.path.read_bytes() for x in extracted],
            [b"0.0-60", b"60-120", b"120-None"],
        )

    def test_single_segment(self):
        extractor = SegmentExtractor(extract_fn=fake_extract)
        (extracted,) = extractor.extract(Path("short.mp3"), [], self.tmpd)

        self.assertEqual(extracted.segment, Segment(0, 0.0, None))
        self.assertTrue(extracted.ok)

    def test_failure_does_not_stop_extraction(self):
        def flaky_extract(file, start, end, destination, *, profile):
            if start == 60:
                raise codec.CodecError("unable to extract", stderr="boom")
            return fake_extract(file, start, end, destination, profile=profile)

        extractor = SegmentExtractor(extract_fn=flaky_extract)
        extracted = list(extractor.extract(Path("talk.wav"), [60, 120], self.tmpd))

        self.assertEqual([x.ok for x in extracted], [True, False, True])
        self.assertEqual([x.segment.index for x in extracted], [0, 1, 2])

        failure = extracted[1].failure
        self.assertIsInstance(failure, SegmentExtractionFailure)
        self.assertEqual(failure.index, 1)
        self.assertIsInstance(failure.cause, codec.CodecError)
        self.assertIsNone(extracted[1].path)
        self.assertEqual(str(failure), "Error creating chunk 1: unable to extract")

    def test_custom_profile_extension(self):
        profile = codec.ExtractionProfile(format="wav", codec="pcm_s16le")
        extractor = SegmentExtractor(profile=profile, extract_fn=fake_extract)
        (extracted,) = extractor.extract(Path("a.mp3"), [], self.tmpd)

        self.assertEqual(extracted.path.name, "a_chunk_000.wav")


if __name__ == "__main__":
    unittest.main()
