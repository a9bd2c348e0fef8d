"""
Error taxonomy for MediLex AI.

Only a failed text lookup is promoted to a user-visible error state.
Image, normalization and chat failures are absorbed where they occur.
"""


class MediLexError(Exception):
    """Base class for all application errors."""


class CredentialError(MediLexError):
    """Provider credential is missing or fails local validation."""


class ProviderError(MediLexError):
    """A single completion, image or chat call to the provider failed."""


class TermLookupError(MediLexError):
    """The text request of a term lookup failed; no result was produced."""

    def __init__(self, term: str, message: str = "Failed to retrieve medical information."):
        super().__init__(message)
        self.term = term


class NoActiveResultError(MediLexError):
    """A chat message was sent while no lookup result is current."""


class ChatInProgressError(MediLexError):
    """A chat message was sent while a lookup or chat turn is still pending."""
