"""
Chapter detection from YouTube video descriptions.

Long videos (full albums, DJ sets, compilations) often list their
chapters in the description:

    Tracklist:
    0:00 Intro
    3:12 First Song
    7:45 Second Song

parse_chapters() turns such a description into Chapter objects that
exactly partition [0, video duration).

Marker rules:
    - A line is a marker only if it holds exactly one timestamp token
      (digits, then one or more ":digits" groups: "1:23", "12:34:56").
    - Markers before the first zero timestamp ("0:00", "00:00:00") are
      ignored. Descriptions often mention times in prose before the actual tracklist.
    - The chapter name is the line without its timestamp, trimmed.
    - A marker that does not move forward, or points at/after the end of
      the video, is skipped so every chapter has a positive length.
"""

import re
from dataclasses import dataclass


TIMESTAMP_PATTERN = re.compile(r"(?:\d+:)+\d+")


@dataclass(frozen=True)
class Chapter:
    """
    A named segment of a video.

    Attributes:
        name: Chapter label from the description.
        offset: Start of the chapter, in seconds.
        length: Duration of the chapter, in seconds.
    """
    name: str
    offset: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length


def parse_timestamp(timestamp: str) -> int:
    """
    Convert a colon-separated timestamp to seconds.

    Examples:
        parse_timestamp("1:23") -> 83
        parse_timestamp("1:02:03") -> 3723
    """
    seconds = 0
    for part in timestamp.split(":"):
        seconds = seconds * 60 + int(part)
    return seconds


def parse_chapters(description: str | None, video_duration: int) -> list[Chapter] | None:
    """
    Parse chapters from a video description.

    Args:
        description: The video description, or None.
        video_duration: Length of the video in seconds.

    Returns:
        Chapters in description order, or None when no marker was found
        (the caller then keeps the video as a single track).
    """
    if not description:
        return None

    markers: list[tuple[str, int]] = []
    found_first_timestamp = False

    for line in description.splitlines():
        timestamps = TIMESTAMP_PATTERN.findall(line)
        if len(timestamps) != 1:
            continue

        timestamp = timestamps[0]
        if not found_first_timestamp:
            if parse_timestamp(timestamp) != 0:
                continue
            found_first_timestamp = True

        offset = parse_timestamp(timestamp)
        if markers and offset <= markers[-1][1]:
            continue
        if offset >= video_duration:
            continue

        name = line.replace(timestamp, "", 1).strip()
        markers.append((name, offset))

    if not markers:
        return None

    chapters = []
    for i, (name, offset) in enumerate(markers):
        if i == len(markers) - 1:
            length = video_duration - offset
        else:
            length = markers[i + 1][1] - offset
        chapters.append(Chapter(name=name, offset=offset, length=length))

    return chapters
