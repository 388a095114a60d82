#!/usr/bin/env python3
"""
MIDI to PBASIC Converter

Converts a two-track MIDI file (melody + bass) into a BASIC Stamp 2 program
that plays it on a speaker with FREQOUT/PAUSE. Each track is reduced to its
highest sounding note, then both tracks are merged into two-note chords.

Usage:
    python midi_to_pbasic.py --midi song.mid
    python midi_to_pbasic.py --midi song.mid --output song.bs2 --speaker-pin 3
    python midi_to_pbasic.py --midi song.mid --melody-track 1 --bass-track 2
    python midi_to_pbasic.py --midi song.mid --list-tracks
"""

import argparse
import json
from pathlib import Path
from typing import Dict, List, Optional

try:
    import mido
except ImportError:
    print("Error: mido not installed. Install with: pip install mido")
    import sys
    sys.exit(1)

from freqout_player import FreqoutPlayer
from midi_events import count_notes, track_to_events
from midi_timing import collect_tempo_changes, find_tempo, tempo_to_bpm
from pbasic_emitter import MAX_DURATION_MS, PBASICEmitter
from pitch_utils import midi_to_note_name
from timeline_models import MalformedEventFault, MergedSegment, MergeInvariantFault, MonoInterval
from track_merger import merge_tracks, sounding_time_by_pitch, validate_timeline
from voice_reducer import reduce_voice


class MIDIToPBASICConverter:
    """Converts a melody and a bass track into a PBASIC program."""

    def __init__(self, midi_path: str, melody_track: int = 0, bass_track: int = 1,
                 tempo: Optional[int] = None, speaker_pin: int = 10, strict: bool = False):
        """
        Initialize the converter.

        Args:
            midi_path: Path to MIDI file
            melody_track: Index of the melody track (voice 1)
            bass_track: Index of the bass track (voice 2)
            tempo: Microseconds per beat; None uses the file's first tempo
            speaker_pin: BS2 pin driving the speaker (0-15)
            strict: Fail on note off events for notes that are not playing
        """
        if melody_track == bass_track:
            raise ValueError(f"Melody and bass must be different tracks, got {melody_track} twice")
        self.midi_path = Path(midi_path)
        self.melody_track = melody_track
        self.bass_track = bass_track
        self.tempo_override = tempo
        self.speaker_pin = speaker_pin
        self.strict = strict

        self.midi_file = None
        self.ticks_per_beat = 480
        self.tempo = tempo if tempo is not None else 500000

        self.voices = {}     # voice number -> list of MonoInterval
        self.segments = []   # merged timeline
        self.program = ''

    def load_midi(self) -> None:
        """Load and parse MIDI file."""
        print(f"Loading MIDI file: {self.midi_path}")
        self.midi_file = mido.MidiFile(str(self.midi_path))
        self.ticks_per_beat = self.midi_file.ticks_per_beat

        if self.tempo_override is None:
            self.tempo = find_tempo(self.midi_file)
            tempo_changes = collect_tempo_changes(self.midi_file)
            if len(tempo_changes) > 1:
                print(f"Warning: {len(tempo_changes) - 1} later tempo change(s) ignored")

        print(f"  Ticks per beat: {self.ticks_per_beat}")
        print(f"  Number of tracks: {len(self.midi_file.tracks)}")
        print(f"  Tempo: {self.tempo} us/beat ({tempo_to_bpm(self.tempo):.1f} BPM)")

    def _require_midi(self) -> None:
        if self.midi_file is None:
            raise ValueError("MIDI file not loaded. Call load_midi() first.")

    def list_tracks(self) -> Dict[int, Dict]:
        """
        List all tracks with their name and note count.

        Returns:
            Dictionary mapping track index to info dict
        """
        if self.midi_file is None:
            self.load_midi()

        track_info = {}
        for index, track in enumerate(self.midi_file.tracks):
            track_info[index] = {
                'name': track.name or None,
                'note_count': count_notes(track),
                'message_count': len(track),
            }
        return track_info

    def _track_intervals(self, track_index: int, voice: int) -> List[MonoInterval]:
        tracks = self.midi_file.tracks
        if track_index >= len(tracks) or track_index < 0:
            if voice == 2 and len(tracks) == 1:
                print("Warning: only one track in file, bass voice left empty")
                return []
            raise ValueError(
                f"Track {track_index} not found (file has tracks 0-{len(tracks) - 1})"
            )
        return reduce_voice(track_to_events(tracks[track_index]), strict=self.strict)

    def extract_voices(self) -> Dict[int, List[MonoInterval]]:
        """
        Reduce the melody and bass tracks to monophonic intervals.

        Returns:
            {1: melody intervals, 2: bass intervals}
        """
        self._require_midi()

        self.voices = {
            1: self._track_intervals(self.melody_track, voice=1),
            2: self._track_intervals(self.bass_track, voice=2),
        }

        for voice, track_index in ((1, self.melody_track), (2, self.bass_track)):
            notes = [i for i in self.voices[voice] if i.pitch is not None]
            print(f"  Voice {voice} (track {track_index}): {len(notes)} notes")

        return self.voices

    def merge(self) -> List[MergedSegment]:
        """Merge both voices into one timeline."""
        self.segments = merge_tracks(self.voices.get(1, []), self.voices.get(2, []))
        validate_timeline(self.segments)

        rests = sum(1 for s in self.segments if s.is_rest)
        chords = sum(1 for s in self.segments if len(s.pitches) == 2)
        print(f"Merged into {len(self.segments)} segments "
              f"({chords} two-note, {len(self.segments) - chords - rests} single, {rests} rests)")
        return self.segments

    def make_emitter(self) -> PBASICEmitter:
        return PBASICEmitter(self.ticks_per_beat, self.tempo, speaker_pin=self.speaker_pin)

    def generate_program(self) -> str:
        """Render the merged timeline as PBASIC source."""
        emitter = self.make_emitter()

        too_long = emitter.long_segments(self.segments)
        if too_long:
            print(f"Warning: {len(too_long)} segment(s) longer than {MAX_DURATION_MS} ms, "
                  f"the BS2 will wrap their duration")

        self.program = emitter.emit(self.segments)
        return self.program

    def save_program(self, output_path: str) -> Path:
        """Write the generated program to disk."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w') as f:
            f.write(self.program)

        print(f"Program saved: {output_path}")
        return output_path

    def save_segments(self, output_path: str) -> Path:
        """
        Save the merged timeline to JSON.

        Args:
            output_path: Output JSON file path
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        emitter = self.make_emitter()
        segments = []
        for index, segment in enumerate(self.segments):
            entry = segment.to_dict()
            entry['index'] = index
            entry['duration_ms'] = emitter.segment_duration_ms(segment)
            entry['notes'] = [midi_to_note_name(p) for p in segment.pitches]
            segments.append(entry)

        data = {
            'midi_path': str(self.midi_path),
            'ticks_per_beat': self.ticks_per_beat,
            'tempo': self.tempo,
            'melody_track': self.melody_track,
            'bass_track': self.bass_track,
            'num_segments': len(segments),
            'total_ticks': self.segments[-1].end if self.segments else 0,
            'segments': segments,
        }

        with open(output_path, 'w') as f:
            json.dump(data, f, indent=2)

        print(f"Segments saved: {output_path}")
        return output_path

    def generate_audio_preview(self, output_path: str, sample_rate: int = 22050) -> Path:
        """Render a WAV preview of the program."""
        player = FreqoutPlayer(sample_rate=sample_rate)
        return player.save(self.segments, self.make_emitter(), output_path)

    def print_summary(self, limit: int = 20) -> None:
        """Print summary of the merged timeline."""
        emitter = self.make_emitter()
        total_ms = sum(emitter.segment_duration_ms(s) for s in self.segments)

        print(f"\n=== Timeline Summary ===")
        print(f"Total segments: {len(self.segments)}")
        print(f"Program length: {total_ms / 1000:.2f}s")

        totals = sounding_time_by_pitch(self.segments)
        if totals:
            pitches = sorted(totals)
            print(f"Pitch range: {midi_to_note_name(pitches[0])} to {midi_to_note_name(pitches[-1])}")
            print(f"Distinct notes: {len(pitches)}")

        if self.segments:
            print(f"\nFirst {min(limit, len(self.segments))} segments:")
            for segment in self.segments[:limit]:
                notes = ', '.join(midi_to_note_name(p) for p in segment.pitches) or 'REST'
                print(f"  {notes:10s} ticks {segment.start:6d} - {segment.end:6d} "
                      f"({emitter.segment_duration_ms(segment)} ms)")

            if len(self.segments) > limit:
                print(f"  ... and {len(self.segments) - limit} more segments")

    def convert(self) -> str:
        """
        Run the full pipeline: load, reduce, merge, emit.

        Returns:
            Generated PBASIC program
        """
        self.load_midi()
        self.extract_voices()
        self.merge()
        return self.generate_program()


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Convert a two-track MIDI file into a BASIC Stamp 2 FREQOUT program"
    )
    parser.add_argument(
        '--midi', type=str, required=True,
        help='Path to MIDI file'
    )
    parser.add_argument(
        '--output', type=str, default='program.bs2',
        help='Output PBASIC file (default: program.bs2)'
    )
    parser.add_argument(
        '--melody-track', type=int, default=0,
        help='Track index of the melody voice (default: 0)'
    )
    parser.add_argument(
        '--bass-track', type=int, default=1,
        help='Track index of the bass voice (default: 1)'
    )
    parser.add_argument(
        '--speaker-pin', type=int, default=10,
        help='BS2 pin the speaker is connected to (default: 10)'
    )
    parser.add_argument(
        '--tempo', type=int, default=None,
        help='Override tempo in microseconds per beat (default: first tempo in file)'
    )
    parser.add_argument(
        '--strict', action='store_true',
        help='Fail on note off events for notes that are not playing'
    )
    parser.add_argument(
        '--segments-json', type=str, default=None,
        help='Also save the merged timeline as JSON'
    )
    parser.add_argument(
        '--preview', type=str, default=None,
        help='Render a WAV preview of the program to this path'
    )
    parser.add_argument(
        '--sample-rate', type=int, default=22050,
        help='Sample rate for the audio preview (default: 22050)'
    )
    parser.add_argument(
        '--list-tracks', action='store_true',
        help='List tracks with note counts and exit'
    )
    parser.add_argument(
        '--quiet-program', action='store_true',
        help='Do not print the generated program'
    )

    args = parser.parse_args()

    print("=== MIDI to PBASIC Converter ===\n")

    midi_path = Path(args.midi)
    if not midi_path.exists():
        print(f"Error: MIDI file not found: {args.midi}")
        return 1

    if not 0 <= args.speaker_pin <= 15:
        print(f"Error: Speaker pin must be 0-15, got {args.speaker_pin}")
        return 1

    if args.tempo is not None and args.tempo <= 0:
        print(f"Error: Tempo must be positive, got {args.tempo}")
        return 1

    try:
        converter = MIDIToPBASICConverter(
            args.midi,
            melody_track=args.melody_track,
            bass_track=args.bass_track,
            tempo=args.tempo,
            speaker_pin=args.speaker_pin,
            strict=args.strict
        )
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    if args.list_tracks:
        try:
            tracks = converter.list_tracks()
        except (OSError, EOFError) as e:
            print(f"Error: Could not read MIDI file: {e}")
            return 1

        print(f"\nTracks found in {midi_path.name}:")
        print("-" * 50)
        for index in sorted(tracks):
            info = tracks[index]
            name = f" ({info['name']})" if info['name'] else ""
            print(f"  Track {index:2d}: {info['note_count']:5d} notes{name}")
        print("-" * 50)
        return 0

    try:
        program = converter.convert()
    except (OSError, EOFError) as e:
        print(f"Error: Could not read MIDI file: {e}")
        return 1
    except (MalformedEventFault, MergeInvariantFault, ValueError) as e:
        print(f"Error: {e}")
        return 1

    if not converter.segments:
        print("\nWarning: No notes found in the selected tracks")
        print("Use --list-tracks to see available tracks")

    if not args.quiet_program:
        print()
        print(program)

    converter.save_program(args.output)

    if args.segments_json:
        converter.save_segments(args.segments_json)

    if args.preview:
        converter.generate_audio_preview(args.preview, args.sample_rate)

    converter.print_summary()

    print("\n=== Conversion Complete ===")
    return 0


if __name__ == "__main__":
    import sys
    sys.exit(main() or 0)
