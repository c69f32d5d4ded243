"""
DeepgramBridge: live transcription over Deepgram's streaming websocket.

- Configured for Twilio's native format (mu-law, 8kHz, mono) so inbound audio
  is forwarded untouched; no resampling on the inbound path.
- Interim and final results are both emitted; callers pick is_final.
- Connection failures are logged; the event stream just ends. No reconnect.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable
from urllib.parse import urlencode

import websockets
from websockets.exceptions import ConnectionClosed

from factwhisper.stt.base import TranscriptionBridge, TranscriptSegment

logger = logging.getLogger(__name__)

DEFAULT_URL = "wss://api.deepgram.com/v1/listen"


class DeepgramBridge(TranscriptionBridge):
    """One Deepgram live connection per call."""

    def __init__(
        self,
        api_key: str,
        model: str = "nova-2",
        url: str = DEFAULT_URL,
        sample_rate: int = 8000,
        queue_size: int = 256,
        connect: Callable[..., Any] | None = None,
    ) -> None:
        super().__init__(queue_size=queue_size)
        self._api_key = api_key
        self._model = model
        self._url = url
        self._sample_rate = sample_rate
        self._connect = connect or websockets.connect
        self._ws: Any = None
        self._open = False
        self._closed = False
        self._receiver_task: asyncio.Task[None] | None = None

    def listen_url(self) -> str:
        params = {
            "model": self._model,
            "language": "en",
            "encoding": "mulaw",
            "sample_rate": self._sample_rate,
            "channels": 1,
            "smart_format": "true",
            "interim_results": "true",
            "utterance_end_ms": 1500,
            "vad_events": "true",
        }
        return f"{self._url}?{urlencode(params)}"

    @property
    def is_open(self) -> bool:
        return self._open

    async def start(self) -> None:
        if self._closed or self._ws is not None:
            return
        if not self._api_key:
            logger.error("DEEPGRAM_API_KEY not set; transcription disabled for this call")
            self._finish()
            return
        try:
            ws = await self._connect(
                self.listen_url(),
                additional_headers={"Authorization": f"Token {self._api_key}"},
            )
        except Exception as e:
            logger.error("Deepgram connect failed: %s", e)
            self._finish()
            return

        self._ws = ws
        if self._closed:
            # close() ran while we were connecting
            await self._close_socket(send_close_stream=False)
            self._finish()
            return
        self._open = True
        logger.info("Deepgram connection opened")
        self._receiver_task = asyncio.create_task(self._receive_loop())

    async def send(self, frame: bytes) -> None:
        if not self._open or self._ws is None:
            return
        try:
            await self._ws.send(frame)
        except Exception as e:
            logger.warning("Deepgram send failed; dropping audio from now on: %s", e)
            self._open = False

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        was_open = self._open
        self._open = False
        if self._ws is not None:
            await self._close_socket(send_close_stream=was_open)
        if self._receiver_task is None:
            self._finish()

    async def _close_socket(self, send_close_stream: bool) -> None:
        try:
            if send_close_stream:
                await self._ws.send(json.dumps({"type": "CloseStream"}))
            await self._ws.close()
        except Exception as e:
            logger.debug("Deepgram close: %s", e)

    async def _receive_loop(self) -> None:
        try:
            async for message in self._ws:
                if isinstance(message, (bytes, bytearray)):
                    continue
                self._handle_message(message)
        except ConnectionClosed as e:
            logger.warning("Deepgram connection lost: %s", e)
        except Exception as e:
            logger.error("Deepgram receive failed: %s", e)
        finally:
            self._open = False
            self._finish()
            logger.info("Deepgram connection closed")

    def _handle_message(self, message: str) -> None:
        try:
            data = json.loads(message)
        except ValueError:
            logger.debug("Deepgram sent non-JSON message")
            return
        if not isinstance(data, dict):
            return
        msg_type = data.get("type")
        if msg_type != "Results":
            # Metadata, SpeechStarted, UtteranceEnd, ...
            logger.debug("Deepgram %s", msg_type)
            return

        alternatives = (data.get("channel") or {}).get("alternatives") or [{}]
        transcript = (alternatives[0].get("transcript") or "").strip()
        if not transcript:
            return
        self._emit(
            TranscriptSegment(
                text=transcript,
                is_final=bool(data.get("is_final")),
                speech_final=bool(data.get("speech_final")),
            )
        )
