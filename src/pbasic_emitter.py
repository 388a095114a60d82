#!/usr/bin/env python3
"""
PBASIC Emitter

Renders a merged segment timeline as a BASIC Stamp 2 (PBASIC 2.5) program:
one FREQOUT per sounding segment, one PAUSE per rest, preceded by a
speaker pin declaration and a CON constant for every note used.
"""

from typing import List, Sequence

from midi_timing import duration_ms
from pitch_utils import (
    NOTE_CONSTANT_NAMES, constant_name_to_display, midi_to_frequency_constant
)
from timeline_models import MergedSegment

# FREQOUT and PAUSE take a 16-bit word for the duration
MAX_DURATION_MS = 65535
CONSTANT_COLUMN_WIDTH = 18


class PBASICEmitter:
    """Generates PBASIC source from merged segments."""

    def __init__(self, ticks_per_beat: int, microseconds_per_beat: int, speaker_pin: int = 10):
        """
        Args:
            ticks_per_beat: MIDI resolution of the source file
            microseconds_per_beat: Tempo used for the whole piece
            speaker_pin: BS2 I/O pin the speaker is wired to (0-15)
        """
        if ticks_per_beat <= 0:
            raise ValueError(f"ticks_per_beat must be positive, got {ticks_per_beat}")
        if not 0 <= speaker_pin <= 15:
            raise ValueError(f"Speaker pin must be 0-15, got {speaker_pin}")
        self.ticks_per_beat = ticks_per_beat
        self.microseconds_per_beat = microseconds_per_beat
        self.speaker_pin = speaker_pin

    def segment_duration_ms(self, segment: MergedSegment) -> int:
        return duration_ms(segment.duration, self.ticks_per_beat, self.microseconds_per_beat)

    def instruction_for(self, segment: MergedSegment) -> str:
        """FREQOUT for a sounding segment, PAUSE for a rest."""
        ms = self.segment_duration_ms(segment)
        if segment.is_rest:
            return f"PAUSE {ms}"
        notes = ', '.join(NOTE_CONSTANT_NAMES[pitch] for pitch in segment.pitches)
        return f"FREQOUT speaker, {ms}, {notes}"

    def used_pitches(self, segments: Sequence[MergedSegment]) -> List[int]:
        return sorted({pitch for segment in segments for pitch in segment.pitches})

    def constant_block(self, segments: Sequence[MergedSegment]) -> str:
        """One 'Name CON freq' line per pitch used, lowest pitch first."""
        lines = []
        for pitch in self.used_pitches(segments):
            name = NOTE_CONSTANT_NAMES[pitch]
            declaration = f"{name} CON {midi_to_frequency_constant(pitch)}"
            lines.append(
                declaration.ljust(CONSTANT_COLUMN_WIDTH) + f"' {constant_name_to_display(name)}"
            )
        return '\n'.join(lines)

    def long_segments(self, segments: Sequence[MergedSegment]) -> List[MergedSegment]:
        """Segments whose duration does not fit FREQOUT/PAUSE's 16-bit argument."""
        return [s for s in segments if self.segment_duration_ms(s) > MAX_DURATION_MS]

    def emit(self, segments: Sequence[MergedSegment]) -> str:
        """
        Build the full program text.

        Args:
            segments: Merged timeline, in playback order

        Returns:
            PBASIC source, newline terminated
        """
        code = ''

        code += "' {$STAMP BS2}\n"
        code += "' {$PBASIC 2.5}\n"
        code += '\n'

        code += "' ==== Define Speaker Pin ====\n"
        code += f"speaker PIN {self.speaker_pin}\n"
        code += '\n'

        code += "' ==== Note Frequency Constants (rounded to nearest integer) ====\n"
        code += self.constant_block(segments)
        code += '\n\n'

        code += "' ==== Music Starts Here ====\n"
        code += '\n'.join(self.instruction_for(segment) for segment in segments)
        code += '\n'

        return code
