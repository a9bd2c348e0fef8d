"""
Lookup orchestrator for MediLex AI.

Issues the text and image requests for a term concurrently, waits for
both to settle, and merges them into a SearchResult. Only a failed text
request fails the lookup; any image problem degrades to a placeholder.
"""

import asyncio
import time
from typing import Optional

from medilex.config import settings
from medilex.core.ai_client import CompletionClient, InlineImage
from medilex.core.exceptions import TermLookupError
from medilex.core.normalizer import normalize_response
from medilex.models.schemas import Language, SearchResult
from medilex.services.prompts import (
    build_image_prompt,
    build_lookup_prompt,
    placeholder_image_url,
)
from medilex.utils.logger import get_logger

logger = get_logger("lookup")


class LookupOrchestrator:
    """
    Produces a SearchResult for a medical term.
    
    Text and image generation run as independent tasks joined with
    asyncio.gather(return_exceptions=True), so a failing or slow image
    request never cancels the text request.
    """
    
    def __init__(self, client: CompletionClient, web_search: Optional[bool] = None):
        self.client = client
        self.web_search = settings.enable_web_search if web_search is None else web_search
    
    async def search(self, term: str, language: Language) -> SearchResult:
        """
        Look up a term.
        
        Args:
            term: Non-empty medical term, used verbatim in prompts and result
            language: Response language
            
        Returns:
            SearchResult
            
        Raises:
            TermLookupError: If the text request failed
        """
        if not term or not term.strip():
            raise ValueError("Search term must not be empty")
        
        start_time = time.time()
        logger.info("Lookup started", term=term, language=language.value)
        
        text_outcome, image_outcome = await asyncio.gather(
            self.client.complete_text(
                build_lookup_prompt(term, language),
                web_search=self.web_search
            ),
            self.client.complete_image(build_image_prompt(term)),
            return_exceptions=True
        )
        
        if isinstance(text_outcome, BaseException):
            logger.error("Text generation failed", term=term, error=str(text_outcome))
            raise TermLookupError(term) from text_outcome
        
        content = normalize_response(text_outcome)
        image_url = self._resolve_image(term, image_outcome)
        
        logger.info(
            "Lookup completed",
            term=term,
            structured=content.structured,
            key_points=len(content.key_points),
            generated_image=image_url.startswith("data:"),
            processing_time_ms=int((time.time() - start_time) * 1000)
        )
        
        return SearchResult(
            term=term,
            definition=content.definition,
            key_points=content.key_points,
            sources=content.sources,
            image_url=image_url
        )
    
    def _resolve_image(self, term: str, outcome) -> str:
        """Data URI for a generated image, or the placeholder URL."""
        if isinstance(outcome, BaseException):
            logger.warning("Image generation failed, using placeholder", term=term, error=str(outcome))
        elif isinstance(outcome, InlineImage):
            return outcome.to_data_uri()
        else:
            logger.warning("No inline image returned, using placeholder", term=term)
        return placeholder_image_url(term)
