"""
Tests for the chat orchestrator.
"""

import pytest

from medilex.core.exceptions import ProviderError
from medilex.models.schemas import ChatMessage, ChatRole, Language, SearchResult
from medilex.services.chat import (
    CHAT_ERROR_TEXT,
    EMPTY_REPLY_TEXT,
    ChatOrchestrator,
    build_chat_history,
)
from medilex.services.prompts import CHAT_READY_ACKNOWLEDGEMENT


@pytest.fixture
def result():
    return SearchResult(
        term="asthma",
        definition="A lung condition.",
        key_points=["Point A"],
        sources=["WHO"],
    )


@pytest.fixture
def chat(fake_client):
    return ChatOrchestrator(fake_client)


class TestChatHistory:
    """Test conversation context construction."""
    
    def test_seed_turns_only(self, result):
        """Without prior turns the history is the two seed turns."""
        turns = build_chat_history(result, [])
        
        assert len(turns) == 2
        assert turns[0].role == ChatRole.USER
        assert turns[0].text == "Context: Definition of asthma: A lung condition."
        assert turns[1].role == ChatRole.MODEL
        assert turns[1].text == CHAT_READY_ACKNOWLEDGEMENT
    
    def test_prior_turns_appended_in_order(self, result):
        prior = [
            ChatMessage(role=ChatRole.USER, text="Q1"),
            ChatMessage(role=ChatRole.MODEL, text="A1"),
        ]
        turns = build_chat_history(result, prior)
        
        assert [(t.role, t.text) for t in turns[2:]] == [
            (ChatRole.USER, "Q1"),
            (ChatRole.MODEL, "A1"),
        ]


class TestAsk:
    """Test single chat turns."""
    
    @pytest.mark.asyncio
    async def test_reply_returned(self, chat, result, fake_client):
        reply = await chat.ask(result, [], "Is it contagious?", Language.ENGLISH)
        
        assert reply.text == "It is not contagious."
        assert not reply.degraded
        assert fake_client.sent_messages == ["Is it contagious?"]
    
    @pytest.mark.asyncio
    async def test_system_instruction(self, chat, result, fake_client):
        """System instruction should name the term, language and length limit."""
        await chat.ask(result, [], "Q", Language.ARABIC)
        system_instruction, history = fake_client.chat_starts[0]
        
        assert '"asthma"' in system_instruction
        assert "Answer in Arabic." in system_instruction
        assert "under 3 paragraphs" in system_instruction
        assert len(history) == 2
    
    @pytest.mark.asyncio
    async def test_provider_failure_degrades(self, chat, result, fake_client):
        """Provider errors should become the apology message, not exceptions."""
        fake_client.chat_error = ProviderError("network down")
        reply = await chat.ask(result, [], "Q", Language.ENGLISH)
        
        assert reply.text == CHAT_ERROR_TEXT
        assert reply.degraded
    
    @pytest.mark.asyncio
    async def test_unexpected_failure_degrades(self, chat, result, fake_client):
        fake_client.chat_error = RuntimeError("unexpected")
        reply = await chat.ask(result, [], "Q", Language.ENGLISH)
        assert reply.text == CHAT_ERROR_TEXT
    
    @pytest.mark.asyncio
    async def test_empty_reply(self, chat, result, fake_client):
        """An empty provider reply should become the fixed apology."""
        fake_client.chat_reply = ""
        reply = await chat.ask(result, [], "Q", Language.ENGLISH)
        
        assert reply.text == EMPTY_REPLY_TEXT
        assert reply.degraded
