"""
Provider credential handling for MediLex AI.

The API key is an opaque string kept in the key/value store. Only its
length is checked locally; the provider rejects bad keys on first use.
"""

from typing import Optional

from medilex.config import settings
from medilex.core.exceptions import CredentialError
from medilex.core.kv_store import KeyValueStore
from medilex.utils.logger import get_logger

logger = get_logger("credentials")


class CredentialStore:
    """Reads, validates, saves and clears the provider API key."""
    
    def __init__(
        self,
        store: KeyValueStore,
        storage_key: Optional[str] = None,
        min_length: Optional[int] = None,
        bootstrap_key: Optional[str] = None
    ):
        self._store = store
        self._key = storage_key or settings.api_key_storage_key
        self._min_length = min_length if min_length is not None else settings.min_api_key_length
        self._bootstrap_key = bootstrap_key
    
    def get(self) -> Optional[str]:
        """Stored key, falling back to a configured key if none is stored."""
        return self._store.get(self._key) or self._bootstrap_key or None
    
    def validate(self, api_key: str) -> str:
        key = (api_key or "").strip()
        if len(key) < self._min_length:
            raise CredentialError("Please enter a valid Google Gemini API Key.")
        return key
    
    def save(self, api_key: str) -> str:
        """
        Validate and persist a key.
        
        Raises:
            CredentialError: If the key is shorter than the minimum length
        """
        key = self.validate(api_key)
        self._store.set(self._key, key)
        logger.info("API key saved", key_length=len(key))
        return key
    
    def clear(self) -> None:
        """Forget the stored key, including any configured bootstrap key."""
        self._store.remove(self._key)
        self._bootstrap_key = None
        logger.info("API key cleared")
