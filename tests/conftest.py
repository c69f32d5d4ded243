"""Shared fixtures and fakes for factwhisper tests."""

import asyncio
import json
from typing import Any

import pytest
from starlette.websockets import WebSocketState

from factwhisper.config import Settings
from factwhisper.stt.base import TranscriptionBridge, TranscriptSegment
from factwhisper.tts.base import SynthesizedAudio, TTSEngine


def _settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "PUBLIC_HOST": "example.test",
        "MEDIA_SECRET": "secret",
        "TWILIO_AUTH_TOKEN": "test-auth-token-abc123",
        "ANTHROPIC_API_KEY": "test-key",
        "DEEPGRAM_API_KEY": "dg-key",
        "ELEVENLABS_API_KEY": "el-key",
        "ELEVENLABS_VOICE_ID": "voice-1",
        "LISTENER_SHUTDOWN_TIMEOUT_SEC": 1.0,
        "LOG_FILE": "",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return _settings()


@pytest.fixture
def make_settings():
    return _settings


class FakeLLM:
    """Stands in for AnthropicClient. Responses are consumed in order: str -> one text block,
    list -> raw blocks, Exception -> raised. Optional gate blocks every call until set."""

    def __init__(self, responses: list[Any] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[dict[str, Any]] = []
        self.gate: asyncio.Event | None = None

    async def create_message(self, **kwargs: Any) -> list[dict[str, Any]]:
        self.calls.append(kwargs)
        if self.gate is not None:
            await self.gate.wait()
        response = self.responses.pop(0) if self.responses else "NONE"
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return [{"type": "text", "text": response}]
        return response


class FakeSearch:
    def __init__(self, result: str = "[1] Moon\nEarth has one natural satellite.") -> None:
        self.result = result
        self.queries: list[str] = []

    async def search(self, query: str, count: int = 5) -> str:
        self.queries.append(query)
        return self.result


class FakeTTS(TTSEngine):
    def __init__(self, audio: bytes | None, sample_rate: int = 22050) -> None:
        self.audio = audio
        self._sample_rate = sample_rate
        self.calls: list[str] = []

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    async def synthesize(self, text: str) -> SynthesizedAudio | None:
        self.calls.append(text)
        if not self.audio:
            return None
        return SynthesizedAudio(audio=self.audio, sample_rate=self._sample_rate)


class FakeBridge(TranscriptionBridge):
    """Records every frame handed to it; tests push transcript segments with emit()."""

    def __init__(self) -> None:
        super().__init__(queue_size=64)
        self.sent: list[bytes] = []
        self.started = False
        self.closed = False
        self._open = False

    async def start(self) -> None:
        self.started = True
        self._open = True

    async def send(self, frame: bytes) -> None:
        self.sent.append(frame)

    async def close(self) -> None:
        self.closed = True
        self._open = False
        self._finish()

    @property
    def is_open(self) -> bool:
        return self._open

    def emit(self, text: str, is_final: bool = True) -> None:
        self._emit(TranscriptSegment(text=text, is_final=is_final))


class FakeWebSocket:
    """Starlette-like WebSocket: receive() pops queued messages, send_text() records."""

    def __init__(self) -> None:
        self._incoming: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self.sent: list[str] = []
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED

    def push(self, message: dict[str, Any] | str) -> None:
        text = message if isinstance(message, str) else json.dumps(message)
        self._incoming.put_nowait({"type": "websocket.receive", "text": text})

    def disconnect(self) -> None:
        self.client_state = WebSocketState.DISCONNECTED
        self._incoming.put_nowait({"type": "websocket.disconnect", "code": 1000})

    async def receive(self) -> dict[str, Any]:
        return await self._incoming.get()

    async def send_text(self, text: str) -> None:
        if self.client_state != WebSocketState.CONNECTED:
            raise RuntimeError("socket closed")
        self.sent.append(text)


@pytest.fixture
def fake_llm():
    return FakeLLM


@pytest.fixture
def fake_search():
    return FakeSearch


@pytest.fixture
def fake_tts():
    return FakeTTS


@pytest.fixture
def fake_bridge() -> FakeBridge:
    return FakeBridge()


@pytest.fixture
def fake_websocket() -> FakeWebSocket:
    return FakeWebSocket()
