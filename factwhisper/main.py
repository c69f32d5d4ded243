"""
FastAPI app: Twilio voice webhooks + media-stream WebSocket for real-time fact whispering.

POST /twilio/inbound  -> TwiML <Connect><Stream url="wss://.../media?token=..."/></Connect>
WS   /media           -> Twilio Media Streams (mu-law 8kHz, JSON events); one CallSession per socket
GET  /health
"""
from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, status
from starlette.websockets import WebSocketState

from factwhisper.call_session import CallSession
from factwhisper.claims import create_claim_pipeline
from factwhisper.config import get_settings, missing_credentials
from factwhisper.logging_utils import configure_logging
from factwhisper.session_store import active_session_count
from factwhisper.stt import create_transcription_bridge
from factwhisper.telephony.twilio_webhooks import router as twilio_router
from factwhisper.tts import get_tts_engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    for name in missing_credentials(settings):
        logger.error("Missing required setting: %s (dependent stage will be skipped)", name)
    # One pipeline per process: its pending/cooldown registry is shared by every call
    app.state.claim_pipeline = create_claim_pipeline(settings)
    app.state.tts_engine = get_tts_engine(settings)
    logger.info("Fact-Whisper ready; media stream at wss://%s/media", settings.PUBLIC_HOST)
    yield
    app.state.claim_pipeline = None
    app.state.tts_engine = None


app = FastAPI(
    title="Fact-Whisper",
    description="Real-time factual claim detection and whispered corrections during phone calls",
    lifespan=lifespan,
)
app.include_router(twilio_router)


def _token_matches(token: str, secret: str) -> bool:
    if not secret:
        return False
    return secrets.compare_digest(token.encode("utf-8"), secret.encode("utf-8"))


@app.websocket("/media")
async def media_stream(websocket: WebSocket) -> None:
    """Twilio media stream. Requires ?token=MEDIA_SECRET; otherwise closed with 1008."""
    settings = get_settings()
    token = websocket.query_params.get("token", "")
    if not _token_matches(token, settings.MEDIA_SECRET):
        logger.warning("Rejected media WebSocket: invalid token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    session = CallSession(
        websocket,
        pipeline=websocket.app.state.claim_pipeline,
        bridge=create_transcription_bridge(settings),
        tts_engine=websocket.app.state.tts_engine,
        settings=settings,
    )
    try:
        await session.run()
    except Exception:
        logger.exception("[%s] session crashed", session.session_id)
    finally:
        if (
            websocket.client_state == WebSocketState.CONNECTED
            and websocket.application_state == WebSocketState.CONNECTED
        ):
            try:
                await websocket.close()
            except Exception as e:
                logger.debug("[%s] media socket close: %s", session.session_id, e)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "active_calls": active_session_count()}
