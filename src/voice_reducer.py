#!/usr/bin/env python3
"""
Voice Reducer

Reduces one voice's note on/off events to a monophonic timeline: at every
point in time only the highest active pitch is kept. Consecutive spans that
resolve to the same pitch are collapsed, so the result is an ordered,
contiguous list of MonoInterval.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from timeline_models import EventKind, MalformedEventFault, MonoInterval, NoteEvent

MIN_PITCH = 0
MAX_PITCH = 127

Snapshot = Tuple[Optional[int], int]  # (highest pitch or None, start tick)


def highest_pitch(active: Iterable[int]) -> Optional[int]:
    """Highest pitch in the active set, or None when nothing is sounding."""
    return max(active, default=None)


def collapse_snapshots(snapshots: Sequence[Snapshot]) -> List[Snapshot]:
    """
    Drop snapshots that repeat the previous snapshot's pitch.

    The earlier start tick is kept. Two adjacent silences (None) collapse too.
    Running this on an already collapsed list returns it unchanged.
    """
    collapsed = []
    for pitch, start in snapshots:
        if collapsed and collapsed[-1][0] == pitch:
            continue
        collapsed.append((pitch, start))
    return collapsed


def collapse_intervals(intervals: Sequence[MonoInterval]) -> List[MonoInterval]:
    """Merge contiguous intervals that carry the same pitch."""
    collapsed = []
    for interval in intervals:
        if collapsed:
            prev = collapsed[-1]
            if prev.pitch == interval.pitch and prev.end == interval.start:
                collapsed[-1] = MonoInterval(prev.pitch, prev.start, interval.end)
                continue
        collapsed.append(interval)
    return collapsed


def sounding_intervals(intervals: Iterable[MonoInterval]) -> List[MonoInterval]:
    """Drop silent (pitch=None) intervals before merging."""
    return [interval for interval in intervals if interval.pitch is not None]


def _check_event(event: NoteEvent, index: int, tick: int) -> None:
    if event.delta_ticks < 0:
        raise MalformedEventFault(
            f"Negative delta time {event.delta_ticks}", index=index, tick=tick
        )
    if not MIN_PITCH <= event.pitch <= MAX_PITCH:
        raise MalformedEventFault(
            f"Pitch {event.pitch} outside {MIN_PITCH}-{MAX_PITCH}", index=index, tick=tick
        )
    if event.kind not in (EventKind.NOTE_ON, EventKind.NOTE_OFF):
        raise MalformedEventFault(f"Unknown event kind {event.kind!r}", index=index, tick=tick)


def take_snapshots(events: Sequence[NoteEvent], strict: bool = False) -> Tuple[List[Snapshot], int]:
    """
    Scan the events and record the highest active pitch for every elapsed span.

    A snapshot is taken before applying an event with a positive delta, so it
    describes the state that was active during the span that just ended, not
    the state after this event.

    Args:
        events: Ordered note events of one voice
        strict: Raise on a note off for a pitch that is not active.
                Otherwise such an event is ignored (it still counts as the
                latest note off).

    Returns:
        (snapshots, last_note_off_tick)
    """
    active = set()
    tick = 0
    last_note_off_tick = 0
    snapshots = []

    for index, event in enumerate(events):
        _check_event(event, index, tick)

        if event.delta_ticks > 0:
            snapshots.append((highest_pitch(active), tick))
            tick += event.delta_ticks

        if event.kind is EventKind.NOTE_OFF:
            if strict and event.pitch not in active:
                raise MalformedEventFault(
                    f"Note off for pitch {event.pitch} which is not active",
                    index=index, tick=tick
                )
            active.discard(event.pitch)
            last_note_off_tick = tick
        else:
            active.add(event.pitch)

    return snapshots, last_note_off_tick


def reduce_voice(events: Sequence[NoteEvent], strict: bool = False) -> List[MonoInterval]:
    """
    Reduce a voice's events to contiguous monophonic intervals.

    Each interval ends where the next one starts. The last interval ends at
    the tick of the last note off in the voice, which cuts short a note that
    is still held when the track ends. If that cut leaves the last interval
    with no length it is dropped.

    Args:
        events: Ordered note events (end_of_track already stripped)
        strict: See take_snapshots

    Returns:
        Ordered list of MonoInterval (silence included as pitch=None)
    """
    snapshots, last_note_off_tick = take_snapshots(events, strict=strict)
    snapshots = collapse_snapshots(snapshots)

    if not snapshots:
        return []

    intervals = []
    for (pitch, start), (_, next_start) in zip(snapshots, snapshots[1:]):
        intervals.append(MonoInterval(pitch=pitch, start=start, end=next_start))

    last_pitch, last_start = snapshots[-1]
    if last_note_off_tick > last_start:
        intervals.append(MonoInterval(pitch=last_pitch, start=last_start, end=last_note_off_tick))

    return intervals
