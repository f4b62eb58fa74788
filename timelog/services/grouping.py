"""
Same-day grouping and overlap detection for the time log page.
"""

import datetime
from typing import Dict, List, Tuple, Union

from timelog.domain.models import DaySegment, EntryGroup

OVERLAP_THRESHOLD = datetime.timedelta(seconds=1)


def _group_key(segment: DaySegment) -> Tuple[str, Tuple[str, ...]]:
    return segment.title, tuple(sorted(segment.tags))


def group_segments(segments: List[DaySegment]) -> List[Union[DaySegment, EntryGroup]]:
    """
    Merge segments of one day that share title and tag set.

    Tag order does not matter. A title that occurs only once stays a plain
    segment. Groups are positioned by their latest start, most recent first.
    The running segment of a group does not count towards its total.
    """
    buckets: Dict[Tuple[str, Tuple[str, ...]], List[DaySegment]] = {}
    for segment in segments:
        buckets.setdefault(_group_key(segment), []).append(segment)

    result: List[Union[DaySegment, EntryGroup]] = []
    for (title, tags), members in buckets.items():
        if len(members) == 1:
            result.append(members[0])
            continue

        members = sorted(members, key=lambda s: s.segment_start, reverse=True)
        has_active = any(s.is_active for s in members)
        result.append(EntryGroup(
            title=title,
            tags=list(tags),
            segments=members,
            start_time=members[0].segment_start,
            earliest_start_time=members[-1].segment_start,
            end_time=None if has_active else max(s.segment_end for s in members),
            total_duration=sum((s.duration for s in members if not s.is_active), datetime.timedelta(0)),
        ))

    result.sort(key=_position, reverse=True)
    return result


def _position(item: Union[DaySegment, EntryGroup]) -> datetime.datetime:
    if isinstance(item, EntryGroup):
        return item.start_time
    return item.segment_start


def detect_overlaps(segments: List[DaySegment],
                    threshold: datetime.timedelta = OVERLAP_THRESHOLD) -> Dict[int, str]:
    """
    Find closed segments that overlap each other by more than `threshold`.

    Returns:
        Entry id -> title of the first entry it was found to overlap with.
        Touching entries (overlap up to the threshold) are not reported.
    """
    closed = [s for s in segments if not s.is_active]
    overlaps: Dict[int, str] = {}
    for i, first in enumerate(closed):
        for second in closed[i + 1:]:
            overlap = min(first.segment_end, second.segment_end) - max(first.segment_start, second.segment_start)
            if overlap > threshold:
                overlaps.setdefault(first.entry_id, second.title)
                overlaps.setdefault(second.entry_id, first.title)
    return overlaps
