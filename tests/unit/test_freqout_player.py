"""
Unit tests for freqout_player.py - WAV preview of generated programs.
"""

import pytest
import numpy as np
from pathlib import Path
from unittest.mock import patch
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from freqout_player import FreqoutPlayer
from pbasic_emitter import PBASICEmitter
from timeline_models import MergedSegment


class TestFreqoutPlayer:

    @pytest.fixture
    def player(self):
        return FreqoutPlayer(sample_rate=22050)

    @pytest.fixture
    def emitter(self):
        return PBASICEmitter(ticks_per_beat=480, microseconds_per_beat=500000)

    def test_initialization(self, player):
        assert player.sample_rate == 22050

    def test_tone_length(self, player):
        tone = player.generate_tone([440], 500)
        assert len(tone) == int(0.5 * 22050)

    def test_silence(self, player):
        tone = player.generate_tone([], 100)
        assert len(tone) == 2205
        assert np.max(np.abs(tone)) == 0

    def test_two_tone_not_clipping(self, player):
        tone = player.generate_tone([440, 660], 200)
        assert np.max(np.abs(tone)) <= 0.5 + 1e-6
        assert np.max(np.abs(tone)) > 0

    def test_fade_starts_silent(self, player):
        tone = player.generate_tone([440], 200)
        assert tone[0] == pytest.approx(0.0)

    def test_render_uses_program_durations(self, player, emitter):
        segments = [
            MergedSegment((60, 48), 0, 480),
            MergedSegment((), 480, 720),
        ]
        audio = player.render(segments, emitter)
        assert len(audio) == int(0.5 * 22050) + int(0.25 * 22050)
        # rest section is silent
        assert np.max(np.abs(audio[int(0.5 * 22050):])) == 0

    def test_render_empty(self, player, emitter):
        assert len(player.render([], emitter)) == 0

    def test_save(self, player, emitter, temp_dir):
        output = temp_dir / "preview" / "song.wav"
        with patch('builtins.print'):
            path = player.save([MergedSegment((69,), 0, 480)], emitter, str(output))
        assert path == output
        assert output.exists()
