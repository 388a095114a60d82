#!/usr/bin/env python3
"""
FREQOUT Preview Player

Synthesizes what the generated PBASIC program will sound like: each
FREQOUT becomes one or two summed sine tones, each PAUSE becomes silence.
Durations are the rounded-up millisecond values the program uses, so the
preview drifts from the MIDI file exactly as the device would.
"""

import numpy as np
import soundfile as sf
from pathlib import Path
from typing import Sequence

from pbasic_emitter import PBASICEmitter
from pitch_utils import midi_to_frequency_constant
from timeline_models import MergedSegment


class FreqoutPlayer:
    """Renders merged segments to audio."""

    def __init__(self, sample_rate: int = 22050):
        """
        Initialize the player.

        Args:
            sample_rate: Audio sample rate in Hz
        """
        self.sample_rate = sample_rate

    def generate_tone(self, frequencies: Sequence[int], duration_ms: int,
                      fade: float = 0.002) -> np.ndarray:
        """
        Generate a FREQOUT tone.

        Args:
            frequencies: One or two frequencies in Hz (empty for silence)
            duration_ms: Duration in milliseconds
            fade: Fade in/out time in seconds to avoid clicks

        Returns:
            Audio waveform as numpy array
        """
        num_samples = int(duration_ms * self.sample_rate / 1000)
        if not frequencies:
            return np.zeros(num_samples, dtype=np.float32)

        t = np.arange(num_samples) / self.sample_rate
        waveform = np.zeros(num_samples)
        for freq in frequencies:
            waveform += np.sin(2 * np.pi * freq * t)
        waveform *= 0.5 / len(frequencies)

        waveform *= self._generate_envelope(num_samples, fade)
        return waveform.astype(np.float32)

    def _generate_envelope(self, num_samples: int, fade: float) -> np.ndarray:
        """Linear fade in and out."""
        envelope = np.ones(num_samples)
        fade_samples = min(int(fade * self.sample_rate), num_samples // 2)

        if fade_samples > 0:
            envelope[:fade_samples] = np.linspace(0, 1, fade_samples)
            envelope[-fade_samples:] = np.linspace(1, 0, fade_samples)

        return envelope

    def render(self, segments: Sequence[MergedSegment], emitter: PBASICEmitter) -> np.ndarray:
        """
        Render the whole timeline.

        Args:
            segments: Merged timeline
            emitter: Emitter whose tempo settings give each segment's duration

        Returns:
            Concatenated audio (empty array for an empty timeline)
        """
        audio_segments = []
        for segment in segments:
            frequencies = [midi_to_frequency_constant(p) for p in segment.pitches]
            audio_segments.append(
                self.generate_tone(frequencies, emitter.segment_duration_ms(segment))
            )

        if not audio_segments:
            return np.zeros(0, dtype=np.float32)
        return np.concatenate(audio_segments)

    def save(self, segments: Sequence[MergedSegment], emitter: PBASICEmitter,
             output_path: str) -> Path:
        """Render and write a WAV file."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        audio = self.render(segments, emitter)
        sf.write(str(output_path), audio, self.sample_rate)

        print(f"Audio preview saved: {output_path} ({len(audio) / self.sample_rate:.2f}s)")
        return output_path
