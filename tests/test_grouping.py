"""
Tests for same-day grouping and overlap detection.
"""

import datetime

from timelog.domain.models import DaySegment, EntryGroup
from timelog.services.grouping import detect_overlaps, group_segments

UTC = datetime.timezone.utc
DAY = datetime.date(2026, 10, 19)


def at(hour, minute=0, second=0):
    return datetime.datetime(2026, 10, 19, hour, minute, second, tzinfo=UTC)


def segment(entry_id, start, end, title="Task", tags=(), active=False):
    return DaySegment(date=DAY, entry_id=entry_id, title=title, tags=list(tags),
                      segment_start=start, segment_end=end, is_active=active)


def test_same_title_and_tags_are_grouped():
    segments = [
        segment(3, at(15), at(16), "Coding", ["b", "a"]),
        segment(2, at(12), at(13), "Meeting"),
        segment(1, at(9), at(10, 30), "Coding", ["a", "b"]),
    ]

    grouped = group_segments(segments)

    assert len(grouped) == 2
    group, single = grouped
    assert isinstance(group, EntryGroup)
    assert group.title == "Coding"
    assert group.tags == ["a", "b"]
    assert [s.entry_id for s in group.segments] == [3, 1]
    assert group.start_time == at(15)
    assert group.earliest_start_time == at(9)
    assert group.end_time == at(16)
    assert group.total_duration == datetime.timedelta(hours=2, minutes=30)
    assert isinstance(single, DaySegment)
    assert single.entry_id == 2


def test_different_tags_are_not_grouped():
    segments = [
        segment(2, at(12), at(13), "Coding", ["a"]),
        segment(1, at(9), at(10), "Coding", ["b"]),
    ]

    grouped = group_segments(segments)

    assert all(isinstance(item, DaySegment) for item in grouped)
    assert [item.entry_id for item in grouped] == [2, 1]


def test_group_with_running_segment():
    segments = [
        segment(2, at(14), at(15), "Coding", active=True),
        segment(1, at(9), at(10), "Coding"),
    ]

    (group,) = group_segments(segments)

    assert group.is_active
    assert group.end_time is None
    assert group.total_duration == datetime.timedelta(hours=1)


def test_groups_sorted_by_latest_start():
    segments = [
        segment(4, at(16), at(17), "Single"),
        segment(3, at(8), at(9), "Grouped"),
        segment(2, at(18), at(19), "Grouped"),
    ]

    grouped = group_segments(segments)

    assert isinstance(grouped[0], EntryGroup)
    assert grouped[1].entry_id == 4


def test_overlapping_entries_are_reported_both_ways():
    segments = [
        segment(2, at(10, 30), at(11, 30), "Task B"),
        segment(1, at(10), at(11), "Task A"),
    ]

    overlaps = detect_overlaps(segments)

    assert overlaps == {2: "Task A", 1: "Task B"}


def test_contained_entry_overlaps():
    segments = [
        segment(1, at(9), at(17), "Long Task"),
        segment(2, at(12), at(13), "Short Task"),
    ]

    assert detect_overlaps(segments) == {1: "Short Task", 2: "Long Task"}


def test_touching_entries_do_not_overlap():
    segments = [
        segment(1, at(10), at(11), "Task A"),
        segment(2, at(11), at(12), "Task B"),
        segment(3, at(12) - datetime.timedelta(seconds=1), at(13), "Task C"),
    ]

    assert detect_overlaps(segments) == {}


def test_running_segment_is_not_checked_for_overlaps():
    segments = [
        segment(1, at(10), at(12), "Task A"),
        segment(2, at(11), at(12), "Task B", active=True),
    ]

    assert detect_overlaps(segments) == {}


def test_first_overlap_wins():
    segments = [
        segment(1, at(9), at(12), "Task A"),
        segment(2, at(10), at(11), "Task B"),
        segment(3, at(10, 30), at(11, 30), "Task C"),
    ]

    overlaps = detect_overlaps(segments)

    assert overlaps[1] == "Task B"
    assert overlaps[2] == "Task A"
    assert overlaps[3] == "Task A"
