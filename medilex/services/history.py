"""
Lookup history for MediLex AI.

Keeps the most recent lookups, newest first, deduplicated case-insensitively
by term and capped in length. The whole list is rebuilt and persisted on
every change; entries are never edited in place.
"""

import json
from typing import List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from medilex.config import settings
from medilex.core.kv_store import KeyValueStore
from medilex.models.schemas import HistoryItem
from medilex.utils.logger import get_logger

logger = get_logger("history")

_history_adapter = TypeAdapter(List[HistoryItem])


class HistoryStore:
    """Persisted, capped list of past lookups."""
    
    def __init__(
        self,
        store: KeyValueStore,
        storage_key: Optional[str] = None,
        limit: Optional[int] = None
    ):
        self._store = store
        self._key = storage_key or settings.history_storage_key
        self._limit = limit or settings.history_limit
        self._items: Tuple[HistoryItem, ...] = self._load()
    
    @property
    def items(self) -> List[HistoryItem]:
        return list(self._items)
    
    def _load(self) -> Tuple[HistoryItem, ...]:
        """Read persisted history; corrupt data is discarded as empty."""
        raw = self._store.get(self._key)
        if not raw:
            return ()
        try:
            items = _history_adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding unreadable history", error=str(e))
            return ()
        return tuple(items[:self._limit])
    
    def _save(self) -> None:
        payload = json.dumps([item.model_dump() for item in self._items], ensure_ascii=False)
        self._store.set(self._key, payload)
    
    def record(self, term: str) -> HistoryItem:
        """
        Add a term at the head of the history.
        
        Any existing entry with the same term (ignoring case) is removed and
        the list is truncated to the configured limit.
        
        Args:
            term: Term as searched; its casing is kept
            
        Returns:
            The new HistoryItem
        """
        item = HistoryItem(term=term)
        folded = term.casefold()
        remaining = [h for h in self._items if h.term.casefold() != folded]
        self._items = tuple([item] + remaining)[:self._limit]
        self._save()
        
        logger.info("History recorded", term=term, size=len(self._items))
        return item
    
    def clear(self) -> None:
        self._items = ()
        self._store.remove(self._key)
        logger.info("History cleared")
