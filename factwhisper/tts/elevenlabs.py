"""
ElevenLabs streaming TTS. Requests raw PCM (pcm_22050) so no decoding is needed
before resampling to telephony rate. Chunks are concatenated in arrival order;
any failure returns None, never a partial buffer.
"""
from __future__ import annotations

import logging
from typing import List

import httpx

from factwhisper.tts.base import SynthesizedAudio, TTSEngine

logger = logging.getLogger(__name__)

ELEVENLABS_API_URL = "https://api.elevenlabs.io/v1/text-to-speech"
OUTPUT_FORMAT = "pcm_22050"
OUTPUT_SAMPLE_RATE = 22050
DEFAULT_MODEL = "eleven_turbo_v2_5"

# Soft, steady delivery for whispered corrections
VOICE_SETTINGS = {
    "stability": 0.7,
    "similarity_boost": 0.8,
    "style": 0.0,
    "use_speaker_boost": False,
}


class ElevenLabsTTSEngine(TTSEngine):
    """TTS via ElevenLabs /stream endpoint. Output: PCM 16-bit mono 22050Hz."""

    def __init__(
        self,
        api_key: str,
        voice_id: str,
        model_id: str = DEFAULT_MODEL,
        timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._voice_id = voice_id
        self._model_id = model_id or DEFAULT_MODEL
        self._timeout = timeout
        self._transport = transport

    @property
    def sample_rate(self) -> int:
        return OUTPUT_SAMPLE_RATE

    async def synthesize(self, text: str) -> SynthesizedAudio | None:
        url = f"{ELEVENLABS_API_URL}/{self._voice_id}/stream"
        body = {"text": text, "model_id": self._model_id, "voice_settings": VOICE_SETTINGS}
        chunks: List[bytes] = []
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                async with client.stream(
                    "POST",
                    url,
                    params={"output_format": OUTPUT_FORMAT},
                    json=body,
                    headers={"xi-api-key": self._api_key, "Accept": "audio/pcm"},
                ) as resp:
                    resp.raise_for_status()
                    async for chunk in resp.aiter_bytes():
                        if chunk:
                            chunks.append(chunk)
        except Exception as e:
            logger.error("ElevenLabs TTS failed: %s", e)
            return None

        audio = b"".join(chunks)
        if not audio:
            logger.warning("ElevenLabs returned no audio for %d chars", len(text))
            return None
        logger.info("Synthesized %d chars -> %d bytes PCM", len(text), len(audio))
        return SynthesizedAudio(audio=audio, sample_rate=OUTPUT_SAMPLE_RATE)
