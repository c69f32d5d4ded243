"""
TTS: text-to-speech for whispered corrections.

- elevenlabs: ElevenLabs streaming PCM (22050Hz).
- none: disabled.
"""
from __future__ import annotations

from factwhisper.tts.base import SynthesizedAudio, TTSEngine
from factwhisper.tts.elevenlabs import ElevenLabsTTSEngine
from factwhisper.tts.service import get_tts_engine, synthesize_correction

__all__ = ["SynthesizedAudio", "TTSEngine", "ElevenLabsTTSEngine", "get_tts_engine", "synthesize_correction"]
