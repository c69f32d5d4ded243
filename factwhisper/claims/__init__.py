"""Claims: two-stage detection/verification with a shared dedup and cooldown registry."""
from factwhisper.claims.llm import AnthropicClient, text_from_blocks
from factwhisper.claims.pipeline import ClaimPipeline, ClaimRegistry
from factwhisper.claims.search import BraveSearchClient
from factwhisper.config import Settings


def create_claim_pipeline(settings: Settings) -> ClaimPipeline:
    """Build the process-wide pipeline from settings."""
    llm = AnthropicClient(api_key=settings.ANTHROPIC_API_KEY, base_url=settings.ANTHROPIC_BASE_URL)
    search = None
    if settings.VERIFY_SEARCH_BACKEND == "brave":
        search = BraveSearchClient(api_key=settings.BRAVE_API_KEY, timeout=settings.SEARCH_TIMEOUT_SEC)
    return ClaimPipeline(llm=llm, settings=settings, search=search)


__all__ = [
    "AnthropicClient",
    "BraveSearchClient",
    "ClaimPipeline",
    "ClaimRegistry",
    "create_claim_pipeline",
    "text_from_blocks",
]
