"""
Session controller for MediLex AI.

Owns all mutable session state (credential-bound client, language,
current result, chat log, history, loading state) and exposes it only
through intent methods. It is the single writer; the presentation layer
reads immutable SessionState snapshots.

Loading state machine:
    IDLE -> SEARCHING -> SUCCESS | ERROR        (lookup)
    SUCCESS -> THINKING -> SUCCESS              (chat, including failed turns)
"""

from typing import Callable, Optional, Tuple

from medilex.core.ai_client import CompletionClient, GeminiClient
from medilex.core.exceptions import (
    ChatInProgressError,
    CredentialError,
    NoActiveResultError,
    TermLookupError,
)
from medilex.core.kv_store import KeyValueStore
from medilex.models.schemas import (
    ChatMessage,
    ChatRole,
    HistoryItem,
    Language,
    LoadingState,
    SearchResult,
    SessionState,
)
from medilex.services.chat import ChatOrchestrator
from medilex.services.credentials import CredentialStore
from medilex.services.history import HistoryStore
from medilex.services.lookup import LookupOrchestrator
from medilex.services.prompts import placeholder_image_url
from medilex.utils.logger import get_logger

logger = get_logger("session")

LOOKUP_ERROR_MESSAGE = "Failed to retrieve information. Please check your API key or try again."

ClientFactory = Callable[[str], CompletionClient]


class SessionController:
    """
    Explicit state container for one user session.
    
    Every lookup and credential change bumps a generation counter; a
    completion that resolves after its generation has passed is dropped
    so it cannot overwrite newer state.
    """
    
    def __init__(
        self,
        store: KeyValueStore,
        client_factory: ClientFactory = GeminiClient,
        bootstrap_key: Optional[str] = None
    ):
        self._credentials = CredentialStore(store, bootstrap_key=bootstrap_key)
        self._history = HistoryStore(store)
        self._client_factory = client_factory
        
        self._client: Optional[CompletionClient] = None
        self._lookup: Optional[LookupOrchestrator] = None
        self._chat: Optional[ChatOrchestrator] = None
        
        self._language = Language.ENGLISH
        self._loading_state = LoadingState.IDLE
        self._result: Optional[SearchResult] = None
        self._messages: Tuple[ChatMessage, ...] = ()
        self._error: Optional[str] = None
        self._generation = 0
        
        stored_key = self._credentials.get()
        if stored_key:
            self._bind_client(stored_key)
    
    # =========================================================================
    # Read side
    # =========================================================================
    
    @property
    def has_credential(self) -> bool:
        return self._client is not None
    
    @property
    def loading_state(self) -> LoadingState:
        return self._loading_state
    
    def snapshot(self) -> SessionState:
        """Consistent, immutable view of the current state."""
        result = self._result
        return SessionState(
            has_credential=self.has_credential,
            language=self._language,
            text_direction="rtl" if self._language.is_rtl else "ltr",
            loading_state=self._loading_state,
            result=result,
            fallback_image_url=placeholder_image_url(result.term) if result else None,
            chat_messages=list(self._messages),
            history=self._history.items,
            error=self._error,
        )
    
    def history(self) -> list[HistoryItem]:
        return self._history.items
    
    # =========================================================================
    # Credential intents
    # =========================================================================
    
    def _bind_client(self, api_key: str) -> None:
        client = self._client_factory(api_key)
        self._client = client
        self._lookup = LookupOrchestrator(client)
        self._chat = ChatOrchestrator(client)
    
    def _require_client(self) -> None:
        if self._client is None:
            raise CredentialError("An API key is required before using MediLex")
    
    def submit_credential(self, api_key: str) -> SessionState:
        """Validate, persist and activate a new API key."""
        key = self._credentials.save(api_key)
        self._bind_client(key)
        self._generation += 1
        self._loading_state = LoadingState.IDLE
        self._error = None
        return self.snapshot()
    
    def clear_credential(self) -> SessionState:
        """Forget the API key and reset the session; history is kept."""
        self._credentials.clear()
        self._client = None
        self._lookup = None
        self._chat = None
        self._generation += 1
        self._result = None
        self._messages = ()
        self._error = None
        self._loading_state = LoadingState.IDLE
        return self.snapshot()
    
    def set_language(self, language: Language) -> SessionState:
        self._language = language
        return self.snapshot()
    
    # =========================================================================
    # Lookup intents
    # =========================================================================
    
    async def submit_search(self, term: str) -> SessionState:
        """
        Look up a term and make it the current result.
        
        The previous result and chat log are cleared before the provider is
        called. A text failure moves the session to ERROR; image failures
        are absorbed by the lookup.
        
        Raises:
            CredentialError: If no API key is configured
            ValueError: If the term is blank
        """
        self._require_client()
        if not term or not term.strip():
            raise ValueError("Search term must not be empty")
        
        self._generation += 1
        generation = self._generation
        self._loading_state = LoadingState.SEARCHING
        self._error = None
        self._result = None
        self._messages = ()
        language = self._language
        
        try:
            result = await self._lookup.search(term, language)
        except TermLookupError as e:
            if generation != self._generation:
                return self.snapshot()
            logger.error("Lookup failed", term=term, error=str(e.__cause__ or e))
            self._error = LOOKUP_ERROR_MESSAGE
            self._loading_state = LoadingState.ERROR
            return self.snapshot()
        
        if generation != self._generation:
            logger.info("Discarding stale lookup result", term=term)
            return self.snapshot()
        
        self._result = result
        self._history.record(result.term)
        self._loading_state = LoadingState.SUCCESS
        return self.snapshot()
    
    async def select_history_term(self, term: str) -> SessionState:
        """Re-run a lookup for a stored history term, verbatim."""
        return await self.submit_search(term)
    
    def clear_history(self) -> SessionState:
        self._history.clear()
        return self.snapshot()
    
    # =========================================================================
    # Chat intents
    # =========================================================================
    
    async def submit_chat_message(self, text: str) -> SessionState:
        """
        Ask a follow-up question about the current result.
        
        The user turn is appended immediately; the model turn (a real reply
        or a fallback message) is appended when the provider answers. The
        session always returns to SUCCESS.
        
        Raises:
            CredentialError: If no API key is configured
            NoActiveResultError: If there is no current result
            ChatInProgressError: If a lookup or another chat turn is pending
            ValueError: If the message is blank
        """
        self._require_client()
        if self._result is None:
            raise NoActiveResultError("Look up a term before asking questions")
        if self._loading_state in (LoadingState.THINKING, LoadingState.SEARCHING):
            raise ChatInProgressError("Wait for the current answer before asking again")
        if not text or not text.strip():
            raise ValueError("Message must not be empty")
        
        generation = self._generation
        result = self._result
        prior = self._messages
        self._messages = prior + (ChatMessage(role=ChatRole.USER, text=text),)
        self._loading_state = LoadingState.THINKING
        
        reply = await self._chat.ask(result, prior, text, self._language)
        
        if generation != self._generation:
            logger.info("Discarding chat reply for replaced result", term=result.term)
            return self.snapshot()
        
        if reply.degraded:
            logger.info("Chat reply degraded", term=result.term)
        self._messages = self._messages + (ChatMessage(role=ChatRole.MODEL, text=reply.text),)
        self._loading_state = LoadingState.SUCCESS
        return self.snapshot()
