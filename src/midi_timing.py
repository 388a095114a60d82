#!/usr/bin/env python3
"""
MIDI Timing Utilities

Tick <-> millisecond conversion for a single-tempo piece, plus tempo lookup
from a loaded mido.MidiFile.
"""

import math
from typing import List, Tuple

import mido

DEFAULT_TEMPO = 500000  # microseconds per beat (120 BPM)


def ticks_to_ms(delta_ticks: int, ticks_per_beat: int, microseconds_per_beat: int) -> float:
    """
    Convert a tick delta to milliseconds.

    Args:
        delta_ticks: Number of ticks
        ticks_per_beat: MIDI resolution (must be > 0)
        microseconds_per_beat: Tempo in microseconds per quarter note

    Returns:
        Duration in milliseconds

    Examples:
        >>> ticks_to_ms(480, 480, 500000)  # quarter note at 120 BPM
        500.0
    """
    # Ticks to beats and then beats to microseconds
    return (delta_ticks / ticks_per_beat) * microseconds_per_beat / 1000


def duration_ms(delta_ticks: int, ticks_per_beat: int, microseconds_per_beat: int) -> int:
    """Milliseconds for a tick delta, rounded up so no sounding span becomes 0 ms."""
    return int(math.ceil(ticks_to_ms(delta_ticks, ticks_per_beat, microseconds_per_beat)))


def collect_tempo_changes(midi_file) -> List[Tuple[int, int]]:
    """
    Collect all set_tempo messages from the MIDI file.

    Returns:
        List of (tick, tempo_microseconds) tuples, sorted by tick
    """
    tempo_changes = []

    for track in midi_file.tracks:
        tick = 0
        for msg in track:
            tick += msg.time
            if msg.type == 'set_tempo':
                tempo_changes.append((tick, msg.tempo))

    tempo_changes.sort(key=lambda x: x[0])
    return tempo_changes


def find_tempo(midi_file) -> int:
    """
    Tempo used for the whole piece: the first set_tempo in the file.

    Later tempo changes are ignored. Falls back to 120 BPM when the file
    has no tempo message.
    """
    tempo_changes = collect_tempo_changes(midi_file)
    if not tempo_changes:
        return DEFAULT_TEMPO
    return tempo_changes[0][1]


def tempo_to_bpm(microseconds_per_beat: int) -> float:
    return mido.tempo2bpm(microseconds_per_beat)
