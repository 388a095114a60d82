#!/usr/bin/env python3
"""
Timeline Models

Value types shared by the MIDI -> PBASIC pipeline:

- NoteEvent: one note on/off event of a voice, with its delta time in ticks
- MonoInterval: a span where one voice's highest active pitch is constant
- MergedSegment: a span of the merged two-voice timeline (0, 1 or 2 pitches)

Also defines the two fault types raised by the core so callers can tell
bad input (MalformedEventFault) apart from an internal merge defect
(MergeInvariantFault).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class EventKind(Enum):
    NOTE_ON = 'note_on'
    NOTE_OFF = 'note_off'


@dataclass(frozen=True)
class NoteEvent:
    """A note on/off event. delta_ticks is relative to the previous event of the same voice."""
    kind: EventKind
    pitch: int
    delta_ticks: int


@dataclass(frozen=True)
class MonoInterval:
    """Highest sounding pitch of a single voice over [start, end). pitch=None is silence."""
    pitch: Optional[int]
    start: int
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class MergedSegment:
    """
    One segment of the merged timeline.

    pitches holds the sounding pitches ordered (voice 1, voice 2); an empty
    tuple is a rest.
    """
    pitches: Tuple[int, ...]
    start: int
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.start

    @property
    def is_rest(self) -> bool:
        return not self.pitches

    def to_dict(self) -> Dict:
        return {
            'pitches': list(self.pitches),
            'start': self.start,
            'end': self.end,
            'duration': self.duration,
            'is_rest': self.is_rest,
        }


class MalformedEventFault(ValueError):
    """An input event violates the event-stream contract."""

    def __init__(self, message: str, index: Optional[int] = None, tick: Optional[int] = None):
        self.index = index
        self.tick = tick
        location = []
        if index is not None:
            location.append(f"event {index}")
        if tick is not None:
            location.append(f"tick {tick}")
        if location:
            message = f"{message} ({', '.join(location)})"
        super().__init__(message)


class MergeInvariantFault(RuntimeError):
    """The track merge reached an inconsistent state."""

    def __init__(self, message: str, voice: Optional[int] = None, tick: Optional[int] = None):
        self.voice = voice
        self.tick = tick
        location = []
        if voice is not None:
            location.append(f"voice {voice}")
        if tick is not None:
            location.append(f"tick {tick}")
        if location:
            message = f"{message} ({', '.join(location)})"
        super().__init__(message)
