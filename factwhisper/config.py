"""Application configuration. Loads from env vars."""
from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    """App settings. Override via environment variables."""

    # Public host Twilio connects back to: wss://{PUBLIC_HOST}/media?token=...
    PUBLIC_HOST: str = "localhost:8080"
    # Shared secret carried as ?token= on the media WebSocket URL
    MEDIA_SECRET: str = ""

    # Twilio webhook signature validation
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""

    # Telephony audio: mu-law 8-bit mono, 8kHz
    TELEPHONY_SAMPLE_RATE: int = 8000
    # Frame: 20ms @ 8kHz mu-law = 160 bytes
    FRAME_BYTES: int = 160
    # Whisper effect: amplitude factor applied to correction audio
    WHISPER_ATTENUATION: float = 0.5

    # Rolling transcript window (final segments only)
    TRANSCRIPT_MAX_SEGMENTS: int = 30
    DETECTION_CONTEXT_SEGMENTS: int = 10
    # Bounded transcript event channel between bridge and session
    TRANSCRIPT_QUEUE_SIZE: int = 256
    LISTENER_SHUTDOWN_TIMEOUT_SEC: float = 5.0

    # Streaming STT backend: "deepgram" | "none"
    STT_BACKEND: Literal["deepgram", "none"] = "deepgram"
    DEEPGRAM_API_KEY: str = ""
    DEEPGRAM_MODEL: str = "nova-2"
    DEEPGRAM_URL: str = "wss://api.deepgram.com/v1/listen"

    # Claim detection / verification (Anthropic Messages API)
    ANTHROPIC_API_KEY: str = ""
    ANTHROPIC_BASE_URL: str = "https://api.anthropic.com"
    DETECTION_MODEL: str = "claude-haiku-4-5-20251001"
    DETECTION_MAX_TOKENS: int = 150
    VERIFICATION_MODEL: str = "claude-haiku-4-5-20251001"
    VERIFICATION_MAX_TOKENS: int = 200
    # Knowledge lookup before verdict: server-side web_search tool or Brave Search results in prompt
    VERIFY_SEARCH_BACKEND: Literal["anthropic_tool", "brave"] = "anthropic_tool"
    BRAVE_API_KEY: str = ""
    # Same claim text is not re-verified within this window after a verdict
    CLAIM_COOLDOWN_SEC: float = 60.0

    # Per-call deadlines for external collaborators (seconds)
    DETECTION_TIMEOUT_SEC: float = 10.0
    VERIFICATION_TIMEOUT_SEC: float = 30.0
    SEARCH_TIMEOUT_SEC: float = 10.0
    TTS_TIMEOUT_SEC: float = 20.0

    # TTS for corrections: elevenlabs = ElevenLabs streaming PCM, none = disable whispering
    TTS_BACKEND: Literal["elevenlabs", "none"] = "elevenlabs"
    ELEVENLABS_API_KEY: str = ""
    ELEVENLABS_VOICE_ID: str = ""
    ELEVENLABS_MODEL: str = "eleven_turbo_v2_5"

    # Logging: level (DEBUG, INFO, WARNING, ERROR); file path = also log to rotating file (empty = console only)
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    class Config:
        env_file = ".env"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()


def missing_credentials(settings: Settings) -> list[str]:
    """Names of credentials the enabled backends need but are empty."""
    required = ["MEDIA_SECRET", "TWILIO_AUTH_TOKEN", "ANTHROPIC_API_KEY"]
    if settings.STT_BACKEND == "deepgram":
        required.append("DEEPGRAM_API_KEY")
    if settings.VERIFY_SEARCH_BACKEND == "brave":
        required.append("BRAVE_API_KEY")
    if settings.TTS_BACKEND == "elevenlabs":
        required.extend(["ELEVENLABS_API_KEY", "ELEVENLABS_VOICE_ID"])
    return [name for name in required if not getattr(settings, name, "")]
