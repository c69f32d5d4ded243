"""
Two-stage claim pipeline: detect a checkable factual claim, then verify it.

Per claim text: unseen -> detected -> pending verification -> resolved
(correction | no correction) -> cooled down for CLAIM_COOLDOWN_SEC.

- detect() never raises; any failure means "no claim".
- verify() never raises; any failure means "no correction".
- A claim already pending or cooling down is skipped without any external call.
  Check-and-insert happens with no await in between, so it is atomic on the loop.
- Collaborator errors release the pending entry without a cooldown, so the
  same claim can be retried later.
"""
from __future__ import annotations

import logging
import time
from typing import Callable

from factwhisper.claims.llm import AnthropicClient, text_from_blocks
from factwhisper.claims.search import BraveSearchClient
from factwhisper.config import Settings, get_settings

logger = logging.getLogger(__name__)

CLAIM_MARKER = "CLAIM:"
CORRECTION_MARKER = "CORRECTION:"

WEB_SEARCH_TOOL = {"type": "web_search_20250305", "name": "web_search", "max_uses": 3}

DETECTION_PROMPT = """You monitor a live phone conversation transcript for factual claims.

Decide whether the latest segment contains a specific, checkable factual claim: a statement that
- asserts a concrete fact about the world (numbers, dates, names, events, science, geography, ...),
- can be confirmed or refuted with a web search,
- is not an opinion, preference, or subjective judgement,
- is not vague or hedged ("I think maybe...").

If it does, extract the single most specific claim.

Respond in exactly one of these forms:
CLAIM: <the extracted factual claim>
NONE

Output nothing else."""

VERIFICATION_PROMPT = """You are a real-time fact checker for a live conversation.

You receive one factual claim. Look it up, then decide whether it is FALSE or MISLEADING.

Rules:
- Only flag claims that are clearly wrong. If the claim is approximately right or debatable, answer CORRECT.
- A correction must be SHORT (under 20 words) and conversational, like a friend whispering it.
- Start corrections with "Actually," or "Just so you know,".

Respond in exactly one of these forms:
CORRECT
CORRECTION: <brief correction>"""


class ClaimRegistry:
    """Pending-verification set plus per-claim cooldown expiries, keyed by exact claim text."""

    def __init__(self, cooldown_sec: float = 60.0, clock: Callable[[], float] = time.monotonic) -> None:
        self._cooldown_sec = cooldown_sec
        self._clock = clock
        self._pending: set[str] = set()
        self._cooldowns: dict[str, float] = {}

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [claim for claim, until in self._cooldowns.items() if until <= now]
        for claim in expired:
            del self._cooldowns[claim]

    def is_pending(self, claim: str) -> bool:
        return claim in self._pending

    def is_cooling_down(self, claim: str) -> bool:
        self._purge_expired()
        return claim in self._cooldowns

    def try_acquire(self, claim: str) -> bool:
        """Mark claim pending. False if it is already pending or cooling down."""
        if claim in self._pending or self.is_cooling_down(claim):
            return False
        self._pending.add(claim)
        return True

    def release(self, claim: str) -> None:
        self._pending.discard(claim)

    def cool_down(self, claim: str) -> None:
        self._cooldowns[claim] = self._clock() + self._cooldown_sec

    @property
    def pending_count(self) -> int:
        return len(self._pending)


class ClaimPipeline:
    """One instance per process, shared by every call session."""

    def __init__(
        self,
        llm: AnthropicClient,
        settings: Settings | None = None,
        search: BraveSearchClient | None = None,
        registry: ClaimRegistry | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._llm = llm
        self._search = search
        self.registry = registry or ClaimRegistry(cooldown_sec=self._settings.CLAIM_COOLDOWN_SEC)

    async def detect(self, recent_context: str, segment: str) -> str | None:
        """Stage 1: extract one checkable claim from the latest segment, or None."""
        settings = self._settings
        user = (
            f"Recent conversation context:\n{recent_context}\n\n"
            f'Latest segment to analyze:\n"{segment}"'
        )
        try:
            blocks = await self._llm.create_message(
                model=settings.DETECTION_MODEL,
                system=DETECTION_PROMPT,
                user=user,
                max_tokens=settings.DETECTION_MAX_TOKENS,
                timeout=settings.DETECTION_TIMEOUT_SEC,
            )
        except Exception as e:
            logger.warning("Claim detection failed: %s", e)
            return None

        text = text_from_blocks(blocks).strip()
        if not text.startswith(CLAIM_MARKER):
            return None
        claim = text[len(CLAIM_MARKER) :].strip()
        if not claim:
            return None
        logger.info("Claim detected: %r", claim)
        return claim

    async def verify(self, claim: str) -> str | None:
        """Stage 2: look the claim up and return a short spoken correction, or None."""
        if not self.registry.try_acquire(claim):
            logger.debug("Skipping claim already pending or cooling down: %r", claim)
            return None
        try:
            correction = await self._ask_verifier(claim)
            self.registry.cool_down(claim)
        except Exception as e:
            logger.warning("Claim verification failed for %r: %s", claim, e)
            correction = None
        finally:
            self.registry.release(claim)
        return correction

    async def process_segment(self, recent_context: str, segment: str) -> str | None:
        """detect() then verify(); the correction to whisper, or None."""
        claim = await self.detect(recent_context, segment)
        if not claim:
            return None
        return await self.verify(claim)

    async def _ask_verifier(self, claim: str) -> str | None:
        settings = self._settings
        user = f'Claim to verify: "{claim}"'
        tools = None
        if settings.VERIFY_SEARCH_BACKEND == "brave" and self._search is not None:
            results = await self._search.search(claim)
            user = f"{user}\n\nWeb search results:\n{results}"
        else:
            tools = [WEB_SEARCH_TOOL]

        blocks = await self._llm.create_message(
            model=settings.VERIFICATION_MODEL,
            system=VERIFICATION_PROMPT,
            user=user,
            max_tokens=settings.VERIFICATION_MAX_TOKENS,
            timeout=settings.VERIFICATION_TIMEOUT_SEC,
            tools=tools,
        )
        # Web search responses split the answer across several text blocks and may
        # open with narration ("Let me check..."); the verdict is the last marker.
        text = text_from_blocks(blocks).strip()
        marker_at = text.rfind(CORRECTION_MARKER)
        if marker_at >= 0:
            correction = text[marker_at + len(CORRECTION_MARKER) :].strip()
            if correction:
                logger.info("Correction for %r: %r", claim, correction)
                return correction
        logger.info("Claim verified correct or unverifiable: %r", claim)
        return None
