"""
Unit tests for midi_to_pbasic.py - MIDI file to PBASIC program conversion.
"""

import pytest
import json
from pathlib import Path
from unittest.mock import patch
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from midi_to_pbasic import MIDIToPBASICConverter, main
from timeline_models import MalformedEventFault, MergedSegment, MonoInterval


class TestMIDIToPBASICConverter:
    """Test converter initialization and loading."""

    def test_initialization(self, temp_dir):
        converter = MIDIToPBASICConverter(temp_dir / "song.mid")
        assert converter.melody_track == 0
        assert converter.bass_track == 1
        assert converter.speaker_pin == 10
        assert converter.segments == []

    def test_same_track_rejected(self, temp_dir):
        with pytest.raises(ValueError):
            MIDIToPBASICConverter(temp_dir / "song.mid", melody_track=1, bass_track=1)

    def test_load_midi(self, two_track_midi):
        converter = MIDIToPBASICConverter(two_track_midi)
        with patch('builtins.print'):
            converter.load_midi()
        assert converter.ticks_per_beat == 480
        assert converter.tempo == 500000

    def test_tempo_override(self, two_track_midi):
        converter = MIDIToPBASICConverter(two_track_midi, tempo=250000)
        with patch('builtins.print'):
            converter.load_midi()
        assert converter.tempo == 250000

    def test_extract_requires_load(self, temp_dir):
        converter = MIDIToPBASICConverter(temp_dir / "song.mid")
        with pytest.raises(ValueError):
            converter.extract_voices()

    def test_list_tracks(self, two_track_midi):
        converter = MIDIToPBASICConverter(two_track_midi)
        with patch('builtins.print'):
            tracks = converter.list_tracks()
        assert sorted(tracks) == [0, 1]
        assert tracks[0]['note_count'] == 2
        assert tracks[1]['note_count'] == 1
        assert tracks[0]['name'] == "Track 0"


class TestConversion:
    """Test the full pipeline on real MIDI files."""

    def test_extract_voices(self, two_track_midi):
        converter = MIDIToPBASICConverter(two_track_midi)
        with patch('builtins.print'):
            converter.load_midi()
            voices = converter.extract_voices()
        assert voices[1] == [MonoInterval(60, 0, 480), MonoInterval(64, 480, 960)]
        assert voices[2] == [MonoInterval(48, 0, 960)]

    def test_convert(self, two_track_midi):
        converter = MIDIToPBASICConverter(two_track_midi)
        with patch('builtins.print'):
            program = converter.convert()
        assert converter.segments == [
            MergedSegment((60, 48), 0, 480),
            MergedSegment((64, 48), 480, 960),
        ]
        assert program.endswith(
            "' ==== Music Starts Here ====\n"
            "FREQOUT speaker, 500, C4, C3\n"
            "FREQOUT speaker, 500, E4, C3\n"
        )

    def test_swapped_tracks(self, two_track_midi):
        converter = MIDIToPBASICConverter(two_track_midi, melody_track=1, bass_track=0)
        with patch('builtins.print'):
            converter.convert()
        assert converter.segments[0].pitches == (48, 60)

    def test_single_track_file(self, temp_dir, midi_builder):
        path = temp_dir / "solo.mid"
        midi_builder([[('on', 60, 240), ('off', 60, 240)]]).save(str(path))
        converter = MIDIToPBASICConverter(path)
        with patch('builtins.print'):
            converter.convert()
        assert converter.segments == [
            MergedSegment((), 0, 240),
            MergedSegment((60,), 240, 480),
        ]

    def test_missing_track(self, two_track_midi):
        converter = MIDIToPBASICConverter(two_track_midi, melody_track=5)
        with patch('builtins.print'):
            converter.load_midi()
            with pytest.raises(ValueError, match="Track 5 not found"):
                converter.extract_voices()

    def test_strict_mode(self, temp_dir, midi_builder):
        path = temp_dir / "bad.mid"
        midi_builder([[('on', 60, 0), ('off', 62, 10), ('off', 60, 10)], []]).save(str(path))
        converter = MIDIToPBASICConverter(path, strict=True)
        with patch('builtins.print'):
            with pytest.raises(MalformedEventFault):
                converter.convert()

    def test_save_program(self, two_track_midi, temp_dir):
        converter = MIDIToPBASICConverter(two_track_midi)
        output = temp_dir / "out" / "program.bs2"
        with patch('builtins.print'):
            converter.convert()
            converter.save_program(str(output))
        assert output.read_text() == converter.program

    def test_save_segments(self, two_track_midi, temp_dir):
        converter = MIDIToPBASICConverter(two_track_midi)
        output = temp_dir / "segments.json"
        with patch('builtins.print'):
            converter.convert()
            converter.save_segments(str(output))

        with open(output) as f:
            data = json.load(f)
        assert data['num_segments'] == 2
        assert data['total_ticks'] == 960
        assert data['segments'][0]['pitches'] == [60, 48]
        assert data['segments'][0]['notes'] == ['C4', 'C3']
        assert data['segments'][0]['duration_ms'] == 500

    def test_print_summary(self, two_track_midi):
        converter = MIDIToPBASICConverter(two_track_midi)
        with patch('builtins.print') as mock_print:
            converter.convert()
            converter.print_summary()
        printed = ' '.join(str(call.args[0]) for call in mock_print.call_args_list if call.args)
        assert "Program length: 1.00s" in printed


class TestMain:
    """Test CLI entry point."""

    def test_main_writes_program(self, two_track_midi, temp_dir):
        output = temp_dir / "program.bs2"
        argv = ['midi_to_pbasic.py', '--midi', str(two_track_midi), '--output', str(output)]
        with patch.object(sys, 'argv', argv), patch('builtins.print'):
            assert main() == 0
        assert output.read_text().startswith("' {$STAMP BS2}\n")

    def test_main_missing_file(self, temp_dir):
        argv = ['midi_to_pbasic.py', '--midi', str(temp_dir / "missing.mid")]
        with patch.object(sys, 'argv', argv), patch('builtins.print'):
            assert main() == 1

    def test_main_bad_pin(self, two_track_midi):
        argv = ['midi_to_pbasic.py', '--midi', str(two_track_midi), '--speaker-pin', '16']
        with patch.object(sys, 'argv', argv), patch('builtins.print'):
            assert main() == 1

    def test_main_list_tracks(self, two_track_midi, temp_dir):
        output = temp_dir / "program.bs2"
        argv = ['midi_to_pbasic.py', '--midi', str(two_track_midi), '--list-tracks',
                '--output', str(output)]
        with patch.object(sys, 'argv', argv), patch('builtins.print'):
            assert main() == 0
        assert not output.exists()

    def test_main_fault_returns_error(self, temp_dir, midi_builder):
        path = temp_dir / "bad.mid"
        midi_builder([[('on', 60, 0), ('off', 62, 10), ('off', 60, 10)], []]).save(str(path))
        argv = ['midi_to_pbasic.py', '--midi', str(path), '--strict',
                '--output', str(temp_dir / "program.bs2")]
        with patch.object(sys, 'argv', argv), patch('builtins.print'):
            assert main() == 1

    def test_main_extra_outputs(self, two_track_midi, temp_dir):
        argv = ['midi_to_pbasic.py', '--midi', str(two_track_midi),
                '--output', str(temp_dir / "program.bs2"),
                '--segments-json', str(temp_dir / "segments.json"),
                '--preview', str(temp_dir / "preview.wav"),
                '--quiet-program']
        with patch.object(sys, 'argv', argv), patch('builtins.print'):
            assert main() == 0
        assert (temp_dir / "segments.json").exists()
        assert (temp_dir / "preview.wav").exists()

    def test_main_corrupt_file(self, temp_dir):
        path = temp_dir / "corrupt.mid"
        path.write_bytes(b"not a midi file at all")
        argv = ['midi_to_pbasic.py', '--midi', str(path), '--output', str(temp_dir / "program.bs2")]
        with patch.object(sys, 'argv', argv), patch('builtins.print') as mock_print:
            assert main() == 1
        assert any("Could not read MIDI file" in str(call) for call in mock_print.call_args_list)
        assert not (temp_dir / "program.bs2").exists()

    def test_main_list_tracks_corrupt_file(self, temp_dir):
        path = temp_dir / "corrupt.mid"
        path.write_bytes(b"MThd")
        argv = ['midi_to_pbasic.py', '--midi', str(path), '--list-tracks']
        with patch.object(sys, 'argv', argv), patch('builtins.print'):
            assert main() == 1
