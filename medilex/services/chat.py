"""
Chat orchestrator for MediLex AI.

Answers follow-up questions about the current term. A chat turn always
yields a reply value; provider faults are absorbed into a fixed apology.
"""

from dataclasses import dataclass
from typing import List, Sequence

from medilex.core.ai_client import ChatTurn, CompletionClient
from medilex.models.schemas import ChatMessage, ChatRole, Language, SearchResult
from medilex.services.prompts import (
    CHAT_READY_ACKNOWLEDGEMENT,
    build_chat_system_instruction,
    build_context_turn,
)
from medilex.utils.logger import get_logger

logger = get_logger("chat")

EMPTY_REPLY_TEXT = "I apologize, I could not generate a response."
CHAT_ERROR_TEXT = "Sorry, I encountered an error responding to that."


@dataclass(frozen=True)
class ChatReply:
    """Reply text, with `degraded` set when it is a fallback message."""
    text: str
    degraded: bool = False


def build_chat_history(result: SearchResult, prior: Sequence[ChatMessage]) -> List[ChatTurn]:
    """Seed context turns followed by the real conversation so far."""
    turns = [
        ChatTurn(role=ChatRole.USER, text=build_context_turn(result.term, result.definition)),
        ChatTurn(role=ChatRole.MODEL, text=CHAT_READY_ACKNOWLEDGEMENT),
    ]
    turns.extend(
        ChatTurn(
            role=ChatRole.USER if message.role == ChatRole.USER else ChatRole.MODEL,
            text=message.text
        )
        for message in prior
    )
    return turns


class ChatOrchestrator:
    """Runs one chat turn against the provider."""
    
    def __init__(self, client: CompletionClient):
        self.client = client
    
    async def ask(
        self,
        result: SearchResult,
        prior: Sequence[ChatMessage],
        message: str,
        language: Language
    ) -> ChatReply:
        """
        Ask a follow-up question about a looked-up term.
        
        Args:
            result: Current lookup result providing the term and definition
            prior: Earlier turns of this conversation, oldest first
            message: The new user message
            language: Answer language
            
        Returns:
            ChatReply; never raises for provider failures
        """
        history = build_chat_history(result, prior)
        system_instruction = build_chat_system_instruction(result.term, language)
        
        try:
            session = self.client.start_chat(system_instruction, history)
            text = await session.send_message(message)
        except Exception as e:
            logger.warning("Chat turn degraded", term=result.term, error=str(e))
            return ChatReply(text=CHAT_ERROR_TEXT, degraded=True)
        
        if not text or not text.strip():
            logger.warning("Empty chat reply", term=result.term)
            return ChatReply(text=EMPTY_REPLY_TEXT, degraded=True)
        
        return ChatReply(text=text)
