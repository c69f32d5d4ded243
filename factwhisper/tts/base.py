"""
TTS engine interface. Implementations: ElevenLabs (streaming PCM).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class SynthesizedAudio:
    """Raw PCM 16-bit mono at sample_rate (fixed by the engine's output format)."""

    audio: bytes
    sample_rate: int


class TTSEngine(ABC):
    """Abstract TTS. synthesize(text) returns the whole utterance or None; never partial audio."""

    @abstractmethod
    async def synthesize(self, text: str) -> SynthesizedAudio | None:
        """Convert text to speech. None on any failure."""
        ...

    @property
    @abstractmethod
    def sample_rate(self) -> int:
        """Sample rate of the PCM this engine returns, e.g. 22050."""
        ...
