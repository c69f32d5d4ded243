"""
TranscriptBuffer: rolling window of final transcript segments for one call.

- Bounded: oldest segment evicted first once MAX segments are held.
- recent(n) gives the detection context: last n segments joined by a space.
- In memory only; dropped with the call.
"""
from __future__ import annotations

from collections import deque


class TranscriptBuffer:
    def __init__(self, max_segments: int = 30) -> None:
        self._segments: deque[str] = deque(maxlen=max(1, max_segments))

    def push(self, segment: str) -> None:
        self._segments.append(segment)

    def recent(self, n: int) -> str:
        if n <= 0:
            return ""
        return " ".join(list(self._segments)[-n:])

    def segments(self) -> list[str]:
        return list(self._segments)

    def __len__(self) -> int:
        return len(self._segments)
