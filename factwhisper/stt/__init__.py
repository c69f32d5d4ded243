"""STT: streaming transcription bridges (one per call)."""
from factwhisper.config import Settings
from factwhisper.stt.base import NullBridge, TranscriptionBridge, TranscriptSegment
from factwhisper.stt.deepgram import DeepgramBridge


def create_transcription_bridge(settings: Settings) -> TranscriptionBridge:
    """Return a new, unstarted bridge for one call based on STT_BACKEND."""
    if settings.STT_BACKEND == "none":
        return NullBridge(queue_size=settings.TRANSCRIPT_QUEUE_SIZE)
    return DeepgramBridge(
        api_key=settings.DEEPGRAM_API_KEY,
        model=settings.DEEPGRAM_MODEL,
        url=settings.DEEPGRAM_URL,
        sample_rate=settings.TELEPHONY_SAMPLE_RATE,
        queue_size=settings.TRANSCRIPT_QUEUE_SIZE,
    )


__all__ = [
    "TranscriptionBridge",
    "TranscriptSegment",
    "DeepgramBridge",
    "NullBridge",
    "create_transcription_bridge",
]
