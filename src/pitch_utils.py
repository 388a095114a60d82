#!/usr/bin/env python3
"""
Pitch Utilities Module

Read-only pitch table for the PBASIC emitter:
- MIDI note number -> frequency in Hz
- MIDI note number -> display name (e.g. 'C#4')
- MIDI note number -> PBASIC constant name (e.g. 'Cs4')
"""

import numpy as np
from typing import Optional, Union


# MIDI note names (C0 = MIDI 12, A4 = MIDI 69 = 440 Hz)
NOTE_NAMES = ['C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#', 'A', 'A#', 'B']


def midi_to_hz(midi_note: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Convert MIDI note number to frequency in Hz.

    Uses the formula: f = 440 * 2^((MIDI - 69) / 12)

    Args:
        midi_note: MIDI note number (0-127)

    Returns:
        Frequency in Hz

    Examples:
        >>> midi_to_hz(69)  # A4
        440.0
        >>> midi_to_hz(60)  # C4
        261.63
    """
    return 440.0 * np.power(2.0, (midi_note - 69) / 12.0)


def midi_to_frequency_constant(midi_note: int) -> int:
    """Frequency rounded half-up to the integer Hz value FREQOUT takes."""
    return int(np.floor(NOTE_FREQUENCIES[midi_note] + 0.5))


def midi_to_note_name(midi_note: int, include_octave: bool = True) -> str:
    """
    Convert MIDI note number to note name (e.g., 'C4', 'A#5').

    Args:
        midi_note: MIDI note number (0-127)
        include_octave: Include octave number in output

    Returns:
        Note name string (e.g., 'C4', 'D#5', 'C-1')

    Examples:
        >>> midi_to_note_name(60)
        'C4'
        >>> midi_to_note_name(61)
        'C#4'
    """
    if not (0 <= midi_note <= 127):
        return "Unknown"

    note_name = NOTE_NAMES[midi_note % 12]

    if include_octave:
        # MIDI octave: C4 (middle C) = MIDI 60
        octave = (midi_note // 12) - 1
        return f"{note_name}{octave}"
    else:
        return note_name


def midi_to_constant_name(midi_note: int) -> str:
    """
    PBASIC identifier for a note.

    '#' is not legal in an identifier so sharps are spelled 's', and the
    minus sign of octave -1 is spelled 'm'.

    Examples:
        >>> midi_to_constant_name(61)
        'Cs4'
        >>> midi_to_constant_name(1)
        'Csm1'
    """
    if not (0 <= midi_note <= 127):
        raise ValueError(f"MIDI note must be 0-127, got {midi_note}")
    return midi_to_note_name(midi_note).replace('#', 's').replace('-', 'm')


def constant_name_to_display(constant_name: str) -> str:
    """Inverse of the identifier spelling: 'Cs4' -> 'C#4', 'Cm1' -> 'C-1'."""
    return constant_name.replace('s', '#').replace('m', '-')


def note_name_to_midi(note_name: str) -> Optional[int]:
    """
    Convert note name to MIDI note number.

    Accepts display names ('C#4', 'C-1'), flats ('Db3') and the PBASIC
    constant spelling ('Cs4', 'Cm1').

    Args:
        note_name: Note name

    Returns:
        MIDI note number, or None if invalid

    Examples:
        >>> note_name_to_midi('C4')
        60
        >>> note_name_to_midi('Cs4')
        61
    """
    # Constant spelling uses lowercase 's'/'m' for '#'/'-'
    note_name = constant_name_to_display(note_name.strip()).upper()

    if len(note_name) < 2:
        return None

    # Handle flats by converting to sharps
    note_name = note_name.replace('DB', 'C#').replace('EB', 'D#').replace('GB', 'F#') \
                         .replace('AB', 'G#').replace('BB', 'A#')

    if note_name[1] == '#':
        note = note_name[:2]
        octave_str = note_name[2:]
    else:
        note = note_name[0]
        octave_str = note_name[1:]

    try:
        octave = int(octave_str)
    except ValueError:
        return None

    if note not in NOTE_NAMES:
        return None

    midi_note = (octave + 1) * 12 + NOTE_NAMES.index(note)

    if 0 <= midi_note <= 127:
        return midi_note
    else:
        return None


NOTE_FREQUENCIES = [float(midi_to_hz(n)) for n in range(128)]
NOTE_CONSTANT_NAMES = [midi_to_constant_name(n) for n in range(128)]
