"""Telephony transport: Twilio media-stream messages and call webhooks."""
from .messages import TransportEvent, build_media_message, parse_media_message

__all__ = ["TransportEvent", "build_media_message", "parse_media_message"]
