"""
CallSession: one Twilio media stream = one call session.

connecting -> active (start event, or first media frame carrying streamSid)
active -> closing (stop event, socket close or socket error)
closing -> closed (after the transcription bridge is closed)

Inbound audio is forwarded to the bridge in arrival order from the receive loop.
A listener task consumes transcript segments; each final segment spawns an
independent claim task (detect -> verify -> whisper). Claim tasks are held only
for strong references; they are never awaited or cancelled. A correction that
resolves after the call ended is discarded at delivery time.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any

from starlette.websockets import WebSocketState

from factwhisper.audio import attenuate, convert_to_telephony, iter_frames, send_frames
from factwhisper.claims import ClaimPipeline
from factwhisper.config import Settings, get_settings
from factwhisper.session_store import generate_session_id, register_session, unregister_session
from factwhisper.stt import TranscriptionBridge, TranscriptSegment
from factwhisper.telephony.messages import (
    EVENT_CONNECTED,
    EVENT_MEDIA,
    EVENT_START,
    EVENT_STOP,
    TransportEvent,
    parse_media_message,
)
from factwhisper.transcript import TranscriptBuffer
from factwhisper.tts import TTSEngine, synthesize_correction

logger = logging.getLogger(__name__)


class CallState(str, Enum):
    CONNECTING = "connecting"
    ACTIVE = "active"
    CLOSING = "closing"
    CLOSED = "closed"


class CallSession:
    """Binds one call's media socket to one bridge, one transcript window and the shared claim pipeline."""

    def __init__(
        self,
        websocket: Any,
        pipeline: ClaimPipeline,
        bridge: TranscriptionBridge,
        tts_engine: TTSEngine | None,
        settings: Settings | None = None,
    ) -> None:
        self._ws = websocket
        self._pipeline = pipeline
        self._bridge = bridge
        self._tts = tts_engine
        self._settings = settings or get_settings()
        self.session_id = generate_session_id()
        self._state = CallState.CONNECTING
        self._stream_sid: str | None = None
        self._transcript = TranscriptBuffer(self._settings.TRANSCRIPT_MAX_SEGMENTS)
        self._listener_task: asyncio.Task[None] | None = None
        self._claim_tasks: set[asyncio.Task[None]] = set()
        # One correction's frames go out contiguously
        self._send_lock = asyncio.Lock()

    @property
    def state(self) -> CallState:
        return self._state

    @property
    def stream_sid(self) -> str | None:
        return self._stream_sid

    @property
    def transcript(self) -> list[str]:
        return self._transcript.segments()

    def is_open(self) -> bool:
        """True while the call is active and both sides of the socket are connected."""
        if self._state != CallState.ACTIVE:
            return False
        return (
            self._ws.client_state == WebSocketState.CONNECTED
            and self._ws.application_state == WebSocketState.CONNECTED
        )

    async def run(self) -> None:
        """Main loop: receive transport events until stop/close, then shut down."""
        register_session(self.session_id, self)
        logger.info("[%s] media stream connected", self.session_id)
        self._listener_task = asyncio.create_task(self._listen_transcripts())
        try:
            while self._state in (CallState.CONNECTING, CallState.ACTIVE):
                msg = await self._ws.receive()
                if msg.get("type") == "websocket.disconnect":
                    logger.info("[%s] media stream closed by peer", self.session_id)
                    break
                text = msg.get("text")
                if text is None:
                    continue
                await self.handle_event(parse_media_message(text))
        except Exception as e:
            logger.error("[%s] media socket error: %s", self.session_id, e)
        finally:
            await self._shutdown()

    async def handle_event(self, event: TransportEvent) -> None:
        if event.type == EVENT_START:
            if event.stream_sid:
                self._stream_sid = event.stream_sid
            self._activate()
        elif event.type == EVENT_MEDIA:
            if not self._stream_sid and event.stream_sid:
                # start was missed; latch from the first media frame
                self._stream_sid = event.stream_sid
                self._activate()
            if event.audio:
                await self._bridge.send(event.audio)
        elif event.type == EVENT_STOP:
            logger.info("[%s] stop received", self.session_id)
            self._state = CallState.CLOSING
        elif event.type == EVENT_CONNECTED:
            pass
        else:
            logger.debug("[%s] ignoring %s event", self.session_id, event.type)

    def _activate(self) -> None:
        if self._state == CallState.CONNECTING:
            self._state = CallState.ACTIVE
            logger.info("[%s] call active (streamSid=%s)", self.session_id, self._stream_sid)

    async def _listen_transcripts(self) -> None:
        try:
            await self._bridge.start()
            async for segment in self._bridge.events():
                self._on_segment(segment)
        except Exception as e:
            logger.error("[%s] transcript listener failed: %s", self.session_id, e)

    def _on_segment(self, segment: TranscriptSegment) -> None:
        """Final segments go into the window; only an active call spawns a claim task."""
        if not segment.is_final:
            return
        text = segment.text.strip()
        if not text:
            return
        logger.info("[%s] transcript: %s", self.session_id, text)
        self._transcript.push(text)
        if self._state != CallState.ACTIVE:
            # e.g. the final result flushed by the bridge during shutdown
            logger.debug("[%s] call not active; skipping claim detection", self.session_id)
            return
        context = self._transcript.recent(self._settings.DETECTION_CONTEXT_SEGMENTS)
        task = asyncio.create_task(self._process_segment(context, text))
        self._claim_tasks.add(task)
        task.add_done_callback(self._claim_tasks.discard)

    async def _process_segment(self, context: str, segment: str) -> None:
        try:
            correction = await self._pipeline.process_segment(context, segment)
            if correction:
                await self.whisper_correction(correction)
        except Exception:
            logger.exception("[%s] claim processing error", self.session_id)

    async def whisper_correction(self, text: str) -> int:
        """
        synthesize -> resample + mu-law encode -> attenuate -> 160-byte frames -> socket.
        Delivered only if the call is still open and the streamSid is known. Returns frames sent.
        """
        settings = self._settings
        logger.info("[%s] whispering: %r", self.session_id, text)
        result = await synthesize_correction(self._tts, text)
        if result is None:
            return 0

        telephony = convert_to_telephony(result.audio, result.sample_rate, settings.TELEPHONY_SAMPLE_RATE)
        whisper = attenuate(telephony, settings.WHISPER_ATTENUATION)

        if not self.is_open() or not self._stream_sid:
            logger.info("[%s] call no longer open; discarding correction", self.session_id)
            return 0
        async with self._send_lock:
            sent = await send_frames(
                self._ws.send_text,
                iter_frames(whisper, settings.FRAME_BYTES),
                self._stream_sid,
                self.is_open,
            )
        logger.info("[%s] sent %d bytes of correction audio in %d frames", self.session_id, len(whisper), sent)
        return sent

    async def _shutdown(self) -> None:
        if self._state != CallState.CLOSED:
            self._state = CallState.CLOSING
        await self._bridge.close()
        if self._listener_task is not None:
            try:
                await asyncio.wait_for(
                    self._listener_task,
                    timeout=self._settings.LISTENER_SHUTDOWN_TIMEOUT_SEC,
                )
            except asyncio.TimeoutError:
                logger.warning("[%s] transcript listener did not finish; cancelled", self.session_id)
        unregister_session(self.session_id)
        self._state = CallState.CLOSED
        logger.info(
            "[%s] call closed (%d segments, %d claim tasks still running)",
            self.session_id,
            len(self._transcript),
            len(self._claim_tasks),
        )
