"""
Twilio voice webhooks: inbound call -> TwiML that opens a bidirectional media stream.

Every route requires a valid X-Twilio-Signature (HMAC-SHA1 over URL + sorted form params,
keyed by TWILIO_AUTH_TOKEN). Unsigned or mis-signed requests get 403 before any processing.
"""
from __future__ import annotations

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from twilio.request_validator import RequestValidator
from twilio.twiml.voice_response import Connect, VoiceResponse

from factwhisper.config import Settings, get_settings

logger = logging.getLogger(__name__)


def media_stream_url(settings: Settings) -> str:
    """wss URL Twilio connects the media stream to (token-guarded)."""
    query = urlencode({"token": settings.MEDIA_SECRET})
    return f"wss://{settings.PUBLIC_HOST}/media?{query}"


def _signed_url(request: Request) -> str:
    """Reconstruct the public URL Twilio signed (TLS usually terminates at a proxy)."""
    scheme = request.headers.get("x-forwarded-proto") or request.url.scheme
    host = request.headers.get("host") or request.url.netloc
    url = f"{scheme}://{host}{request.url.path}"
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return url


async def verify_twilio_signature(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> dict[str, str]:
    """Dependency: validate the webhook signature; returns the form params on success."""
    signature = request.headers.get("x-twilio-signature")
    if not signature:
        logger.warning("Rejected webhook %s: missing X-Twilio-Signature", request.url.path)
        raise HTTPException(status_code=403, detail="Forbidden")

    form = await request.form()
    params = {key: str(value) for key, value in form.items()}
    token = settings.TWILIO_AUTH_TOKEN
    if not token or not RequestValidator(token).validate(_signed_url(request), params, signature):
        logger.warning("Rejected webhook %s: invalid signature", request.url.path)
        raise HTTPException(status_code=403, detail="Forbidden")
    return params


router = APIRouter(prefix="/twilio", tags=["twilio"])


@router.post("/inbound")
async def inbound_call(
    params: dict[str, str] = Depends(verify_twilio_signature),
    settings: Settings = Depends(get_settings),
) -> Response:
    """Answer an incoming call with <Connect><Stream url=.../></Connect>."""
    logger.info("Incoming call %s from %s", params.get("CallSid", "?"), params.get("From", "?"))
    twiml = VoiceResponse()
    connect = Connect()
    connect.stream(url=media_stream_url(settings))
    twiml.append(connect)
    return Response(content=str(twiml), media_type="text/xml")


@router.post("/status")
async def call_status(params: dict[str, str] = Depends(verify_twilio_signature)) -> Response:
    """Status callback: log only."""
    logger.info(
        "Call %s status=%s duration=%ss",
        params.get("CallSid", "?"),
        params.get("CallStatus", "unknown"),
        params.get("CallDuration", "-"),
    )
    return Response(status_code=200)
