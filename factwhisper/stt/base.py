"""
TranscriptionBridge: abstract interface for one streaming STT connection per call.

Implementations: DeepgramBridge (live websocket), NullBridge (STT disabled).
Audio goes in with send(); transcript segments come out of events(), a bounded
channel that ends when the connection is gone. Failures never raise to the caller.
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranscriptSegment:
    """One recognized utterance. Only is_final segments feed claim detection."""

    text: str
    is_final: bool
    speech_final: bool = False


class TranscriptionBridge(ABC):
    """
    Streaming STT bridge. start() connects, send() forwards audio only while open
    (drops otherwise), close() is idempotent. events() yields segments until closed.
    """

    def __init__(self, queue_size: int = 256) -> None:
        self._events: asyncio.Queue[TranscriptSegment | None] = asyncio.Queue(maxsize=max(1, queue_size))
        self._finished = False

    @abstractmethod
    async def start(self) -> None:
        """Open the upstream connection. Logs and returns on failure."""
        ...

    @abstractmethod
    async def send(self, frame: bytes) -> None:
        """Forward one audio frame if open; otherwise drop silently."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Request graceful shutdown. Safe to call more than once."""
        ...

    @property
    @abstractmethod
    def is_open(self) -> bool:
        ...

    def _emit(self, segment: TranscriptSegment) -> None:
        if self._finished:
            return
        try:
            self._events.put_nowait(segment)
        except asyncio.QueueFull:
            logger.warning("Transcript queue full; dropping segment: %r", segment.text[:60])

    def _finish(self) -> None:
        """End the event stream (sentinel). Evicts the oldest segment if the queue is full."""
        if self._finished:
            return
        self._finished = True
        if self._events.full():
            self._events.get_nowait()
        self._events.put_nowait(None)

    async def events(self) -> AsyncIterator[TranscriptSegment]:
        """Transcript segments in arrival order; ends after close or connection loss."""
        while True:
            item = await self._events.get()
            if item is None:
                return
            yield item


class NullBridge(TranscriptionBridge):
    """STT disabled: accepts and drops audio, never emits."""

    async def start(self) -> None:
        logger.info("STT disabled (STT_BACKEND=none); no transcripts for this call")

    async def send(self, frame: bytes) -> None:
        pass

    async def close(self) -> None:
        self._finish()

    @property
    def is_open(self) -> bool:
        return False
