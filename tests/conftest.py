"""
Shared fixtures: a scriptable fake provider client and in-memory storage.
"""

import asyncio
from typing import List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from medilex.core.ai_client import ChatSession, ChatTurn, CompletionClient, InlineImage
from medilex.core.exceptions import ProviderError
from medilex.api.middleware import limiter
from medilex.core.kv_store import MemoryStore
from medilex.main import create_app
from medilex.services.session import SessionController


TEST_API_KEY = "AIzaSyTESTKEY1234567890"

WELL_FORMED_TEXT = '{"definition":"A lung condition.","keyPoints":["Point A"],"sources":["WHO"]}'


class FakeChatSession(ChatSession):
    def __init__(self, client: "FakeCompletionClient"):
        self._client = client
    
    async def send_message(self, text: str) -> str:
        self._client.sent_messages.append(text)
        if self._client.chat_error is not None:
            raise self._client.chat_error
        return self._client.chat_reply


class FakeCompletionClient(CompletionClient):
    """Scriptable stand-in for GeminiClient."""
    
    def __init__(self, api_key: str = TEST_API_KEY):
        self.api_key = api_key
        self.text_response: str = WELL_FORMED_TEXT
        self.text_error: Optional[Exception] = None
        self.text_delay: float = 0.0
        self.image: Optional[InlineImage] = None
        self.image_error: Optional[Exception] = None
        self.image_delay: float = 0.0
        self.chat_reply: str = "It is not contagious."
        self.chat_error: Optional[Exception] = None
        
        self.text_prompts: List[str] = []
        self.web_search_flags: List[bool] = []
        self.image_prompts: List[str] = []
        self.chat_starts: List[tuple] = []
        self.sent_messages: List[str] = []
        self.text_finished = False
    
    async def complete_text(self, prompt: str, web_search: bool = False) -> str:
        self.text_prompts.append(prompt)
        self.web_search_flags.append(web_search)
        if self.text_delay:
            await asyncio.sleep(self.text_delay)
        if self.text_error is not None:
            raise self.text_error
        self.text_finished = True
        return self.text_response
    
    async def complete_image(self, prompt: str) -> Optional[InlineImage]:
        self.image_prompts.append(prompt)
        if self.image_delay:
            await asyncio.sleep(self.image_delay)
        if self.image_error is not None:
            raise self.image_error
        return self.image
    
    def start_chat(self, system_instruction: str, history: Sequence[ChatTurn]) -> ChatSession:
        self.chat_starts.append((system_instruction, list(history)))
        return FakeChatSession(self)


@pytest.fixture
def fake_client():
    """Fake provider client shared by the controller under test."""
    return FakeCompletionClient()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def controller(store, fake_client):
    """Controller with a saved credential and the fake client."""
    store.set("medilex_api_key", TEST_API_KEY)
    return SessionController(store=store, client_factory=lambda key: fake_client)


@pytest.fixture
def api_client(controller):
    """HTTP test client serving the fake-backed controller."""
    limiter.reset()
    return TestClient(create_app(controller=controller))


@pytest.fixture
def provider_error():
    return ProviderError("quota exceeded")
