#!/usr/bin/env python3
"""
MIDI Event Extraction

Turns a mido track into the ordered NoteEvent stream consumed by the voice
reducer. Only note on/off messages are kept; the delta times of dropped
messages are carried into the next kept event so tick positions survive.
"""

from typing import List

from timeline_models import EventKind, NoteEvent


def is_note_on(msg) -> bool:
    return msg.type == 'note_on' and msg.velocity > 0


def is_note_off(msg) -> bool:
    # note_on with velocity 0 is the running-status form of note_off
    return msg.type == 'note_off' or (msg.type == 'note_on' and msg.velocity == 0)


def track_to_events(track) -> List[NoteEvent]:
    """
    Convert a MIDI track to note events.

    The trailing end_of_track marker is stripped before processing.

    Args:
        track: mido.MidiTrack (or any sequence of mido messages)

    Returns:
        Ordered list of NoteEvent
    """
    messages = list(track)
    if messages and messages[-1].type == 'end_of_track':
        messages = messages[:-1]

    events = []
    pending_ticks = 0

    for msg in messages:
        pending_ticks += msg.time

        if is_note_on(msg):
            kind = EventKind.NOTE_ON
        elif is_note_off(msg):
            kind = EventKind.NOTE_OFF
        else:
            continue

        events.append(NoteEvent(kind=kind, pitch=msg.note, delta_ticks=pending_ticks))
        pending_ticks = 0

    return events


def count_notes(track) -> int:
    """Number of sounding note_on messages in a track."""
    return sum(1 for msg in track if is_note_on(msg))
