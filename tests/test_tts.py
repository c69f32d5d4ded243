"""Unit tests for correction synthesis."""

import json

import httpx
import pytest

from factwhisper.tts import ElevenLabsTTSEngine, get_tts_engine, synthesize_correction
from factwhisper.tts.elevenlabs import OUTPUT_FORMAT, OUTPUT_SAMPLE_RATE


class TestElevenLabsTTSEngine:
    """ElevenLabs streaming over httpx.MockTransport."""

    @pytest.mark.asyncio
    async def test_returns_pcm_at_22050(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            seen["key"] = request.headers["xi-api-key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, content=b"\x01\x00" * 500)

        engine = ElevenLabsTTSEngine("el-key", "voice-1", transport=httpx.MockTransport(handler))
        result = await engine.synthesize("Actually, Earth has just one moon.")

        assert result is not None
        assert result.audio == b"\x01\x00" * 500
        assert result.sample_rate == OUTPUT_SAMPLE_RATE == 22050
        assert seen["path"] == "/v1/text-to-speech/voice-1/stream"
        assert seen["params"] == {"output_format": OUTPUT_FORMAT}
        assert seen["key"] == "el-key"
        assert seen["body"]["text"] == "Actually, Earth has just one moon."

    @pytest.mark.asyncio
    async def test_http_error_returns_none(self):
        engine = ElevenLabsTTSEngine(
            "el-key", "voice-1", transport=httpx.MockTransport(lambda r: httpx.Response(401))
        )
        assert await engine.synthesize("hello") is None

    @pytest.mark.asyncio
    async def test_empty_body_returns_none(self):
        engine = ElevenLabsTTSEngine(
            "el-key", "voice-1", transport=httpx.MockTransport(lambda r: httpx.Response(200, content=b""))
        )
        assert await engine.synthesize("hello") is None

    @pytest.mark.asyncio
    async def test_transport_failure_returns_none(self):
        def handler(request):
            raise httpx.ConnectError("unreachable")

        engine = ElevenLabsTTSEngine("el-key", "voice-1", transport=httpx.MockTransport(handler))
        assert await engine.synthesize("hello") is None


class TestTTSService:
    def test_engine_from_settings(self, make_settings):
        assert isinstance(get_tts_engine(make_settings()), ElevenLabsTTSEngine)
        assert get_tts_engine(make_settings(TTS_BACKEND="none")) is None

    @pytest.mark.asyncio
    async def test_blank_text_is_not_synthesized(self, fake_tts):
        engine = fake_tts(b"\x00\x00")
        assert await synthesize_correction(engine, "   ") is None
        assert engine.calls == []

    @pytest.mark.asyncio
    async def test_disabled_engine(self):
        assert await synthesize_correction(None, "Actually, one moon.") is None

    @pytest.mark.asyncio
    async def test_engine_exception_is_absorbed(self, fake_tts):
        class Exploding(fake_tts):
            async def synthesize(self, text):
                raise RuntimeError("boom")

        assert await synthesize_correction(Exploding(b"\x00"), "hi") is None

    @pytest.mark.asyncio
    async def test_text_is_trimmed(self, fake_tts):
        engine = fake_tts(b"\x00\x00")
        result = await synthesize_correction(engine, "  Actually, one moon.  ")
        assert result.audio == b"\x00\x00"
        assert engine.calls == ["Actually, one moon."]
