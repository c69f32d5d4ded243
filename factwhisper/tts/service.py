"""
TTS service: pick engine from config.
- elevenlabs: ElevenLabs streaming PCM.
- none: disable whispering (corrections are logged, never spoken).
synthesize_correction(engine, text) -> SynthesizedAudio | None.
"""
from __future__ import annotations

import logging

from factwhisper.config import Settings
from factwhisper.tts.base import SynthesizedAudio, TTSEngine
from factwhisper.tts.elevenlabs import ElevenLabsTTSEngine

logger = logging.getLogger(__name__)


def get_tts_engine(settings: Settings) -> TTSEngine | None:
    """Return TTS engine from config (elevenlabs / none)."""
    backend = (settings.TTS_BACKEND or "").strip().lower()
    if backend in ("", "none"):
        return None
    if backend == "elevenlabs":
        return ElevenLabsTTSEngine(
            api_key=settings.ELEVENLABS_API_KEY,
            voice_id=settings.ELEVENLABS_VOICE_ID,
            model_id=settings.ELEVENLABS_MODEL,
            timeout=settings.TTS_TIMEOUT_SEC,
        )
    logger.warning("Unknown TTS_BACKEND=%s; whispering disabled", backend)
    return None


async def synthesize_correction(engine: TTSEngine | None, text: str) -> SynthesizedAudio | None:
    """Synthesize a correction. None if TTS is disabled, text is blank, or the engine fails."""
    if not (text or "").strip():
        return None
    if engine is None:
        logger.info("TTS disabled (TTS_BACKEND=none); not whispering: %r", text)
        return None
    try:
        return await engine.synthesize(text.strip())
    except Exception as e:
        logger.warning("TTS synthesize failed: %s", e)
        return None
