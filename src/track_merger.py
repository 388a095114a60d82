#!/usr/bin/env python3
"""
Track Merger

Merges the monophonic timelines of two voices into a single gap-free,
non-overlapping sequence of MergedSegment, each holding the pitches that
sound together (voice 1 first, then voice 2). Spans where neither voice
sounds become rest segments.

The merge is a sweep over both voices with one cursor per voice. At every
step exactly one of these cases applies at the sweep position t:

1. both voices sounding          -> 2-pitch segment up to the earlier end
2. voice 1 sounding, 2 pending   -> voice 1 up to its end or voice 2's start
3. voice 2 sounding, 1 pending   -> mirror of 2
4. both pending                  -> rest up to the earlier start
5. one finished, other pending   -> rest up to the pending start
6. one sounding, other finished  -> that voice up to its end

A cursor's interval is consumed once the sweep reaches its end.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Union

from timeline_models import MergedSegment, MergeInvariantFault, MonoInterval
from voice_reducer import sounding_intervals

MAX_VOICES = 2

SOUNDING = 'sounding'
PENDING = 'pending'
FINISHED = 'finished'


class _Cursor:
    """Forward-only index into one voice's intervals."""

    def __init__(self, voice: int, intervals: Sequence[MonoInterval]):
        self.voice = voice
        self.intervals = intervals
        self.position = 0

    @property
    def current(self) -> Optional[MonoInterval]:
        if self.position < len(self.intervals):
            return self.intervals[self.position]
        return None

    @property
    def exhausted(self) -> bool:
        return self.position >= len(self.intervals)

    def consume(self) -> None:
        self.position += 1

    def state(self, t: int) -> str:
        interval = self.current
        if interval is None or interval.end <= t:
            return FINISHED
        if interval.start > t:
            return PENDING
        return SOUNDING


def _single_voice_segments(voice: int, intervals: Sequence[MonoInterval]) -> List[MergedSegment]:
    """
    Reshape one voice's intervals into segments, filling gaps with rests.

    Raises:
        MergeInvariantFault: an interval has no length or starts before the
            previous one ended
    """
    segments = []
    t = 0
    for interval in intervals:
        if interval.end <= interval.start:
            raise MergeInvariantFault(f"Interval {interval} has no length", voice=voice, tick=t)
        if interval.start < t:
            raise MergeInvariantFault(
                f"Interval {interval} starts before the previous one ended", voice=voice, tick=t
            )
        if interval.start > t:
            segments.append(MergedSegment(pitches=(), start=t, end=interval.start))
        segments.append(MergedSegment(pitches=(interval.pitch,), start=interval.start, end=interval.end))
        t = interval.end
    return segments


def merge_tracks(voice1: Sequence[MonoInterval],
                 voice2: Sequence[MonoInterval]) -> List[MergedSegment]:
    """
    Merge two voices into one timeline.

    Silent (pitch=None) intervals are dropped first; silence is re-derived
    from the gaps.

    Args:
        voice1: Ordered, non-overlapping intervals of voice 1 (melody)
        voice2: Ordered, non-overlapping intervals of voice 2 (bass)

    Returns:
        Contiguous segments covering [0, last end)

    Raises:
        MergeInvariantFault: the sweep stopped advancing or left sound
            unconsumed (e.g. overlapping intervals inside one voice)
    """
    track1 = sounding_intervals(voice1)
    track2 = sounding_intervals(voice2)

    if not track1 and not track2:
        return []
    if not track2:
        return _single_voice_segments(1, track1)
    if not track1:
        return _single_voice_segments(2, track2)

    cursor1 = _Cursor(1, track1)
    cursor2 = _Cursor(2, track2)
    segments = []
    t = 0

    def emit(pitches, end):
        segments.append(MergedSegment(pitches=tuple(pitches), start=t, end=end))
        return end

    while not (cursor1.exhausted and cursor2.exhausted):
        last_t = t
        state1 = cursor1.state(t)
        state2 = cursor2.state(t)
        note1 = cursor1.current
        note2 = cursor2.current

        if state1 == SOUNDING and state2 == SOUNDING:
            end = min(note1.end, note2.end)
            driver = 1 if note1.end == end else 2
            t = emit((note1.pitch, note2.pitch), end)
            # Equal ends consume both so no zero-length segment follows
            if note1.end == end:
                cursor1.consume()
            if note2.end == end:
                cursor2.consume()

        elif state1 == SOUNDING and state2 == PENDING:
            driver = 1
            end = min(note1.end, note2.start)
            t = emit((note1.pitch,), end)
            if note1.end == end:
                cursor1.consume()

        elif state2 == SOUNDING and state1 == PENDING:
            driver = 2
            end = min(note2.end, note1.start)
            t = emit((note2.pitch,), end)
            if note2.end == end:
                cursor2.consume()

        elif state1 == PENDING and state2 == PENDING:
            driver = 1 if note1.start <= note2.start else 2
            t = emit((), min(note1.start, note2.start))

        elif state1 == PENDING and state2 == FINISHED:
            driver = 1
            t = emit((), note1.start)

        elif state2 == PENDING and state1 == FINISHED:
            driver = 2
            t = emit((), note2.start)

        elif state1 == SOUNDING and state2 == FINISHED:
            driver = 1
            t = emit((note1.pitch,), note1.end)
            cursor1.consume()

        elif state2 == SOUNDING and state1 == FINISHED:
            driver = 2
            t = emit((note2.pitch,), note2.end)
            cursor2.consume()

        else:
            # Both finished but a queue still holds an interval that ended
            # at or before t: the voice overlaps itself or is out of order.
            stale = cursor1 if not cursor1.exhausted else cursor2
            raise MergeInvariantFault(
                f"Interval {stale.current} ends at or before the sweep position",
                voice=stale.voice, tick=t
            )

        check_progress(last_t, t, driver)

    for voice, track in ((1, track1), (2, track2)):
        last_end = max(interval.end for interval in track)
        if last_end > t:
            raise MergeInvariantFault(
                f"Unconsumed sound until tick {last_end}", voice=voice, tick=t
            )

    return segments


def check_progress(last_t: int, t: int, voice: Optional[int]) -> None:
    """Raise if a sweep step did not move the position forward."""
    if t <= last_t:
        raise MergeInvariantFault(
            f"Sweep position did not advance past {last_t}", voice=voice, tick=t
        )


def validate_timeline(segments: Sequence[MergedSegment]) -> None:
    """
    Check that segments are contiguous from tick 0, have positive length and
    hold at most two pitches.

    Raises:
        MergeInvariantFault: on the first violation found
    """
    t = 0
    for segment in segments:
        if segment.start != t:
            raise MergeInvariantFault(
                f"Segment {segment} does not start where the previous one ended", tick=t
            )
        if segment.end <= segment.start:
            raise MergeInvariantFault(f"Segment {segment} has no length", tick=segment.start)
        if len(segment.pitches) > MAX_VOICES:
            raise MergeInvariantFault(
                f"Segment {segment} has more than {MAX_VOICES} pitches", tick=segment.start
            )
        t = segment.end


def sounding_time_by_pitch(items: Iterable[Union[MergedSegment, MonoInterval]]) -> Dict[int, int]:
    """Total ticks each pitch sounds across segments or intervals."""
    totals = defaultdict(int)
    for item in items:
        if isinstance(item, MergedSegment):
            pitches = item.pitches
        else:
            pitches = () if item.pitch is None else (item.pitch,)
        for pitch in pitches:
            totals[pitch] += item.duration
    return dict(totals)
