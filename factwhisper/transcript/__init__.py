"""Transcript: rolling per-call window of final segments."""
from .buffer import TranscriptBuffer

__all__ = ["TranscriptBuffer"]
