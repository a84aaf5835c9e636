# tests/test_chapters.py
"""Test chapter detection from video descriptions"""

from tune_resolver.youtube.chapters import Chapter, parse_chapters, parse_timestamp


ALBUM_DESCRIPTION = """Full album stream.

Tracklist:
0:00 Intro
3:00 First Song
7:30 Second Song

Thanks for listening!"""


def assert_partition(chapters, duration):
    """Chapters cover [0, duration) without gaps or overlaps"""
    assert chapters[0].offset == 0
    for previous, current in zip(chapters, chapters[1:]):
        assert previous.end == current.offset
    assert chapters[-1].end == duration
    assert all(c.length > 0 for c in chapters)


class TestParseTimestamp:
    """Test timestamp conversion"""

    def test_minutes_seconds(self):
        assert parse_timestamp("1:23") == 83
        assert parse_timestamp("00:00") == 0

    def test_hours(self):
        assert parse_timestamp("1:02:03") == 3723


class TestParseChapters:
    """Test parse_chapters()"""

    def test_album_description(self):
        """Three markers give three chapters partitioning the video"""
        chapters = parse_chapters(ALBUM_DESCRIPTION, 600)

        assert chapters == [
            Chapter(name="Intro", offset=0, length=180),
            Chapter(name="First Song", offset=180, length=270),
            Chapter(name="Second Song", offset=450, length=150),
        ]
        assert_partition(chapters, 600)

    def test_markers_before_start_are_ignored(self):
        """Timestamps mentioned before the first 0:00 are not chapters"""
        description = (
            "Recorded live at 12:30 in Berlin\n"
            "10:00 this is not the start either\n"
            "00:00 Opening\n"
            "1:00 Closing\n"
        )

        chapters = parse_chapters(description, 120)

        assert [c.name for c in chapters] == ["Opening", "Closing"]
        assert_partition(chapters, 120)

    def test_lines_with_several_timestamps_are_ignored(self):
        """A marker line holds exactly one timestamp"""
        description = "0:00 Intro\n1:00 - 2:00 Range line\n2:00 Outro"

        chapters = parse_chapters(description, 180)

        assert [c.name for c in chapters] == ["Intro", "Outro"]
        assert_partition(chapters, 180)

    def test_non_increasing_markers_are_skipped(self):
        """Out-of-order markers are dropped so every length stays positive"""
        description = "0:00 A\n2:00 B\n1:00 C\n2:00 D\n3:00 E"

        chapters = parse_chapters(description, 240)

        assert [(c.name, c.offset, c.length) for c in chapters] == [
            ("A", 0, 120),
            ("B", 120, 60),
            ("E", 180, 60),
        ]

    def test_markers_past_the_end_are_skipped(self):
        """A marker at or after the video end is dropped"""
        description = "0:00 A\n1:00 B\n5:00 Bonus"

        chapters = parse_chapters(description, 120)

        assert [c.name for c in chapters] == ["A", "B"]
        assert_partition(chapters, 120)

    def test_hour_timestamps(self):
        """Long mixes use h:mm:ss markers"""
        description = "0:00 Part 1\n59:00 Part 2\n1:30:00 Part 3"

        chapters = parse_chapters(description, 7200)

        assert [c.offset for c in chapters] == [0, 3540, 5400]
        assert_partition(chapters, 7200)

    def test_hour_format_start_marker(self):
        """Hour-format zero timestamps open the tracklist too"""
        description = "00:00:00 Intro\n00:45:10 Second set\n01:30:00 Closing"

        chapters = parse_chapters(description, 7200)

        assert chapters is not None
        assert [c.offset for c in chapters] == [0, 2710, 5400]
        assert chapters[0].name == "Intro"
        assert_partition(chapters, 7200)
        assert parse_chapters("0:00:00 Intro\n0:10:00 Next", 900)[1].offset == 600

    def test_ten_minutes_is_not_a_start_marker(self):
        assert parse_chapters("10:00 Song\n12:00 Other", 900) is None

    def test_timestamp_anywhere_in_line(self):
        """The name is the line without its timestamp"""
        chapters = parse_chapters("Intro (0:00)\nMain theme - 1:00", 100)

        assert [c.name for c in chapters] == ["Intro ()", "Main theme -"]

    def test_no_markers(self):
        """Descriptions without a 0:00 marker give None"""
        assert parse_chapters("Just a music video", 200) is None
        assert parse_chapters("Starts at 1:00 Song", 200) is None

    def test_empty_description(self):
        assert parse_chapters(None, 200) is None
        assert parse_chapters("", 200) is None
