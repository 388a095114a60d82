"""
Shared fixtures and configuration for midi2pbasic tests.
"""

import pytest
from pathlib import Path
import tempfile
import shutil
import sys

import mido

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from timeline_models import EventKind, MonoInterval, NoteEvent


# ============== Utility Fixtures ==============

@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    tmp = tempfile.mkdtemp()
    yield Path(tmp)
    shutil.rmtree(tmp, ignore_errors=True)


# ============== Event Helpers ==============

def on(pitch, delta=0):
    return NoteEvent(EventKind.NOTE_ON, pitch, delta)


def off(pitch, delta=0):
    return NoteEvent(EventKind.NOTE_OFF, pitch, delta)


@pytest.fixture
def simple_melody_events():
    """C4 for 480 ticks, E4 for 480 ticks, rest 240, G4 for 480."""
    return [
        on(60), off(60, 480),
        on(64), off(64, 480),
        on(67, 240), off(67, 480),
    ]


@pytest.fixture
def melody_intervals():
    return [
        MonoInterval(60, 0, 480),
        MonoInterval(64, 480, 960),
        MonoInterval(None, 960, 1200),
        MonoInterval(67, 1200, 1680),
    ]


@pytest.fixture
def bass_intervals():
    return [
        MonoInterval(48, 0, 960),
        MonoInterval(43, 960, 1920),
    ]


# ============== MIDI File Fixtures ==============

def build_midi_file(tracks, ticks_per_beat=480, tempo=500000):
    """
    Build a real mido.MidiFile.

    Args:
        tracks: list of tracks, each a list of (type, note, delta) tuples
                with type 'on' or 'off'
        ticks_per_beat: MIDI resolution
        tempo: set_tempo placed at the start of the first track (None for none)

    Returns:
        mido.MidiFile
    """
    midi_file = mido.MidiFile(ticks_per_beat=ticks_per_beat)
    for index, notes in enumerate(tracks):
        track = mido.MidiTrack()
        track.append(mido.MetaMessage('track_name', name=f"Track {index}", time=0))
        if index == 0 and tempo is not None:
            track.append(mido.MetaMessage('set_tempo', tempo=tempo, time=0))
        for kind, note, delta in notes:
            if kind == 'on':
                track.append(mido.Message('note_on', note=note, velocity=100, time=delta))
            else:
                track.append(mido.Message('note_off', note=note, velocity=0, time=delta))
        track.append(mido.MetaMessage('end_of_track', time=0))
        midi_file.tracks.append(track)
    return midi_file


@pytest.fixture
def two_track_midi(temp_dir):
    """Melody C4 E4 over a held bass C3, saved to disk."""
    melody = [('on', 60, 0), ('off', 60, 480), ('on', 64, 0), ('off', 64, 480)]
    bass = [('on', 48, 0), ('off', 48, 960)]
    path = temp_dir / "song.mid"
    build_midi_file([melody, bass]).save(str(path))
    return path


@pytest.fixture
def midi_builder():
    """Expose build_midi_file to tests."""
    return build_midi_file
