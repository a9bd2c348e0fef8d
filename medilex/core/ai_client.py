"""
MediLex - Generative AI Client

Wraps the Google Gemini SDK behind three operations: text completion
(optionally web-search grounded), image generation and multi-turn chat.
Every SDK or transport failure is re-raised as ProviderError.
"""

import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, List, Sequence

from google import genai
from google.genai import types

from medilex.config import settings
from medilex.core.exceptions import CredentialError, ProviderError
from medilex.models.schemas import ChatRole
from medilex.utils.logger import get_logger

logger = get_logger("ai_client")


@dataclass(frozen=True)
class InlineImage:
    """Binary image returned inline by the provider."""
    mime_type: str
    data: bytes
    
    def to_data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


@dataclass(frozen=True)
class ChatTurn:
    """One prior conversation turn sent as chat history."""
    role: ChatRole
    text: str


class ChatSession(ABC):
    """Stateful multi-turn conversation."""
    
    @abstractmethod
    async def send_message(self, text: str) -> str:
        """Send a user turn and return the assistant's reply text (may be empty)."""
        ...


class CompletionClient(ABC):
    """Provider-neutral interface used by the orchestrators."""
    
    @abstractmethod
    async def complete_text(self, prompt: str, web_search: bool = False) -> str:
        """Return the raw text of a single completion."""
        ...
    
    @abstractmethod
    async def complete_image(self, prompt: str) -> Optional[InlineImage]:
        """Return the first inline image of an image completion, if any."""
        ...
    
    @abstractmethod
    def start_chat(
        self,
        system_instruction: str,
        history: Sequence[ChatTurn]
    ) -> ChatSession:
        """Open a chat seeded with a system instruction and prior turns."""
        ...


class GeminiChatSession(ChatSession):
    """Chat session backed by the SDK's async chat object."""
    
    def __init__(self, chat, model: str):
        self._chat = chat
        self._model = model
    
    async def send_message(self, text: str) -> str:
        try:
            response = await self._chat.send_message(text)
        except Exception as e:
            logger.error("Chat turn failed", model=self._model, error=str(e))
            raise ProviderError(f"Chat request failed: {e}") from e
        return response.text or ""


class GeminiClient(CompletionClient):
    """
    Google Gemini implementation of CompletionClient.
    
    The API key is read once at construction; a new key requires a new
    client instance.
    """
    
    def __init__(
        self,
        api_key: str,
        text_model: Optional[str] = None,
        image_model: Optional[str] = None,
        chat_model: Optional[str] = None
    ):
        if not api_key:
            raise CredentialError("A Gemini API key is required")
        
        self.text_model = text_model or settings.gemini_text_model
        self.image_model = image_model or settings.gemini_image_model
        self.chat_model = chat_model or settings.gemini_chat_model
        
        try:
            self._client = genai.Client(api_key=api_key)
        except Exception as e:
            raise ProviderError(f"Could not initialize Gemini client: {e}") from e
        
        logger.info(
            "Gemini client initialized",
            text_model=self.text_model,
            image_model=self.image_model
        )
    
    async def complete_text(self, prompt: str, web_search: bool = False) -> str:
        config = None
        if web_search:
            config = types.GenerateContentConfig(
                tools=[types.Tool(google_search=types.GoogleSearch())]
            )
        
        try:
            response = await self._client.aio.models.generate_content(
                model=self.text_model,
                contents=prompt,
                config=config
            )
        except Exception as e:
            logger.error("Text completion failed", model=self.text_model, error=str(e))
            raise ProviderError(f"Text completion failed: {e}") from e
        
        logger.info("Text completion received", model=self.text_model)
        return response.text or ""
    
    async def complete_image(self, prompt: str) -> Optional[InlineImage]:
        try:
            response = await self._client.aio.models.generate_content(
                model=self.image_model,
                contents=types.Content(role="user", parts=[types.Part(text=prompt)])
            )
        except Exception as e:
            logger.warning("Image generation failed", model=self.image_model, error=str(e))
            raise ProviderError(f"Image generation failed: {e}") from e
        
        return _first_inline_image(response)
    
    def start_chat(
        self,
        system_instruction: str,
        history: Sequence[ChatTurn]
    ) -> ChatSession:
        contents = [
            types.Content(role=turn.role.value, parts=[types.Part(text=turn.text)])
            for turn in history
        ]
        try:
            chat = self._client.aio.chats.create(
                model=self.chat_model,
                config=types.GenerateContentConfig(system_instruction=system_instruction),
                history=contents
            )
        except Exception as e:
            raise ProviderError(f"Could not start chat: {e}") from e
        
        return GeminiChatSession(chat, self.chat_model)


def _first_inline_image(response) -> Optional[InlineImage]:
    """Extract the first inline image part from a generate_content response."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates or candidates[0].content is None:
        return None
    
    parts: List = candidates[0].content.parts or []
    for part in parts:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            return InlineImage(
                mime_type=inline.mime_type or "image/png",
                data=inline.data
            )
    return None
