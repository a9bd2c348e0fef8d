"""
Pydantic schemas for MediLex AI.

Defines the session data model and the request/response models for all
API endpoints. JSON field names are camelCase; Python attributes are
snake_case.
"""

import time
from datetime import datetime
from enum import Enum
from typing import Optional, List
from uuid import uuid4

from pydantic import BaseModel, Field, ConfigDict, field_validator


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def new_id() -> str:
    return str(uuid4())


# =============================================================================
# Enums
# =============================================================================

class Language(str, Enum):
    """Display and response language."""
    ENGLISH = "en"
    ARABIC = "ar"
    
    @property
    def is_rtl(self) -> bool:
        return self is Language.ARABIC


class LoadingState(str, Enum):
    """UI loading state machine."""
    IDLE = "IDLE"
    SEARCHING = "SEARCHING"
    THINKING = "THINKING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class ChatRole(str, Enum):
    """Conversation roles understood by the provider."""
    USER = "user"
    MODEL = "model"


# =============================================================================
# Session Data
# =============================================================================

class SearchResult(BaseModel):
    """Outcome of one successful term lookup. Immutable once created."""
    
    term: str = Field(description="Term exactly as searched")
    definition: str = Field(description="Simple but accurate explanation")
    key_points: List[str] = Field(
        default_factory=list,
        alias="keyPoints",
        description="3-5 basic key points"
    )
    sources: List[str] = Field(
        default_factory=list,
        description="Named sources where the information can be verified"
    )
    image_url: Optional[str] = Field(
        default=None,
        alias="imageUrl",
        description="Data URI of the generated illustration, or a placeholder URL"
    )
    
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class ChatMessage(BaseModel):
    """One turn of the follow-up conversation."""
    
    id: str = Field(default_factory=new_id)
    role: ChatRole
    text: str
    timestamp: int = Field(default_factory=now_ms, description="Epoch milliseconds")
    
    model_config = ConfigDict(frozen=True)


class HistoryItem(BaseModel):
    """A past lookup, as persisted in local storage."""
    
    id: str = Field(default_factory=new_id)
    term: str
    timestamp: int = Field(default_factory=now_ms, description="Epoch milliseconds")
    
    model_config = ConfigDict(frozen=True)


class SessionState(BaseModel):
    """Snapshot of the session handed to the presentation layer."""
    
    has_credential: bool = Field(alias="hasCredential")
    language: Language
    text_direction: str = Field(alias="textDirection", description="'rtl' or 'ltr'")
    loading_state: LoadingState = Field(alias="loadingState")
    result: Optional[SearchResult] = None
    fallback_image_url: Optional[str] = Field(
        default=None,
        alias="fallbackImageUrl",
        description="Placeholder to show if the result image fails to load"
    )
    chat_messages: List[ChatMessage] = Field(default_factory=list, alias="chatMessages")
    history: List[HistoryItem] = Field(default_factory=list)
    error: Optional[str] = None
    
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Requests
# =============================================================================

class CredentialRequest(BaseModel):
    """Provider API key entered by the user."""
    
    api_key: str = Field(alias="apiKey", description="Google Gemini API key")
    
    model_config = ConfigDict(populate_by_name=True)


class LanguageRequest(BaseModel):
    """Language selection."""
    
    language: Language


class TermRequest(BaseModel):
    """A medical term to look up."""
    
    term: str = Field(min_length=1, max_length=200, description="Medical term")
    
    @field_validator("term")
    @classmethod
    def term_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Search term must not be blank")
        return value


class ChatRequest(BaseModel):
    """A follow-up question about the current term."""
    
    message: str = Field(min_length=1, max_length=2000)
    
    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message must not be blank")
        return value


# =============================================================================
# Health & Errors
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    
    status: str = Field(default="healthy")
    version: str = Field(description="Application version")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    
    model_config = ConfigDict(from_attributes=True)


class ErrorResponse(BaseModel):
    """Standard error response."""
    
    error: str = Field(description="Error type")
    message: str = Field(description="Human-readable error message")
    error_code: str = Field(description="Machine-readable error code")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    
    model_config = ConfigDict(from_attributes=True)
