"""
Frame chunking for outbound telephony audio.

- Frame size: 20ms of mu-law at 8kHz = 160 bytes (configurable).
- iter_frames() yields exact frame_size slices, then the remainder (if any).
- send_frames() is the delivery sink: one media message per frame, only while
  the destination is open. Once it is not, the remaining frames are dropped.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Iterable, Iterator

from factwhisper.telephony.messages import build_media_message

logger = logging.getLogger(__name__)


def iter_frames(buffer: bytes, frame_size: int) -> Iterator[bytes]:
    """Lazily split buffer into frame_size slices; last slice holds the remainder. Empty buffer -> no frames."""
    if frame_size <= 0:
        raise ValueError(f"frame_size must be positive, got {frame_size}")
    for offset in range(0, len(buffer), frame_size):
        yield bytes(buffer[offset : offset + frame_size])


async def send_frames(
    send: Callable[[str], Awaitable[None]],
    frames: Iterable[bytes],
    stream_sid: str,
    is_open: Callable[[], bool],
) -> int:
    """
    Send each frame as a media message. Checks is_open() before every send and
    stops silently when closed or when a send fails. Returns frames sent.
    """
    sent = 0
    for frame in frames:
        if not is_open():
            logger.debug("Destination closed after %d frames; dropping the rest", sent)
            break
        try:
            await send(build_media_message(stream_sid, frame))
        except Exception as e:
            logger.debug("Frame send failed after %d frames: %s", sent, e)
            break
        sent += 1
    return sent
