"""
Twilio Media Streams wire messages.

Inbound (JSON text frames): connected | start | media | stop | mark | ...
- start: {"event": "start", "start": {"streamSid": ...}}
- media: {"event": "media", "streamSid": ..., "media": {"payload": base64 mu-law 8kHz}}
Outbound: {"event": "media", "streamSid": ..., "media": {"payload": base64}}
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

EVENT_CONNECTED = "connected"
EVENT_START = "start"
EVENT_MEDIA = "media"
EVENT_STOP = "stop"
EVENT_ERROR = "error"
EVENT_UNKNOWN = "unknown"


@dataclass(frozen=True)
class TransportEvent:
    """One parsed inbound event. type is the event name (unrecognized names pass through)."""

    type: str
    stream_sid: str | None = None
    audio: bytes | None = None


def parse_media_message(message: str | bytes) -> TransportEvent:
    """Parse one inbound media-stream message. Malformed input -> type 'error'; never raises."""
    try:
        data = json.loads(message)
    except (ValueError, TypeError):
        return TransportEvent(type=EVENT_ERROR)
    if not isinstance(data, dict):
        return TransportEvent(type=EVENT_ERROR)

    event = data.get("event")
    if event == EVENT_MEDIA:
        media = data.get("media")
        payload = media.get("payload") if isinstance(media, dict) else None
        if not isinstance(payload, str):
            return TransportEvent(type=EVENT_ERROR)
        try:
            audio = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            return TransportEvent(type=EVENT_ERROR)
        return TransportEvent(type=EVENT_MEDIA, stream_sid=data.get("streamSid"), audio=audio)

    if event == EVENT_START:
        start = data.get("start")
        stream_sid = start.get("streamSid") if isinstance(start, dict) else None
        # Twilio also repeats streamSid at the top level of every event
        stream_sid = stream_sid or data.get("streamSid")
        logger.info("Stream started: %s", stream_sid)
        return TransportEvent(type=EVENT_START, stream_sid=stream_sid)

    if event == EVENT_STOP:
        logger.info("Stream stopped: %s", data.get("streamSid"))
        return TransportEvent(type=EVENT_STOP, stream_sid=data.get("streamSid"))

    if event == EVENT_CONNECTED:
        logger.info("Media WebSocket connected")
        return TransportEvent(type=EVENT_CONNECTED)

    return TransportEvent(type=event if isinstance(event, str) and event else EVENT_UNKNOWN)


def build_media_message(stream_sid: str, audio: bytes) -> str:
    """Outbound media message for one frame of mu-law audio."""
    return json.dumps(
        {
            "event": EVENT_MEDIA,
            "streamSid": stream_sid,
            "media": {"payload": base64.b64encode(audio).decode("ascii")},
        }
    )
