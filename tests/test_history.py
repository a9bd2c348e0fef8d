"""
Tests for the lookup history store.
"""

import json

from medilex.core.kv_store import MemoryStore
from medilex.services.history import HistoryStore

KEY = "medilex_history"


class TestRecord:
    """Test insertion, deduplication and capping."""
    
    def test_newest_first(self):
        history = HistoryStore(MemoryStore(), KEY, 20)
        history.record("asthma")
        history.record("flu")
        
        assert [h.term for h in history.items] == ["flu", "asthma"]
    
    def test_case_insensitive_dedup(self):
        """Recording 'Flu' then 'flu' should leave one entry, 'flu', at the head."""
        history = HistoryStore(MemoryStore(), KEY, 20)
        history.record("asthma")
        first = history.record("Flu")
        second = history.record("flu")
        
        terms = [h.term for h in history.items]
        assert terms == ["flu", "asthma"]
        assert history.items[0].id == second.id
        assert history.items[0].timestamp >= first.timestamp
    
    def test_capped_at_limit(self):
        """A 21st distinct term should evict the oldest."""
        history = HistoryStore(MemoryStore(), KEY, 20)
        for i in range(21):
            history.record(f"term-{i}")
        
        terms = [h.term for h in history.items]
        assert len(terms) == 20
        assert terms[0] == "term-20"
        assert "term-0" not in terms
    
    def test_entries_not_mutated(self):
        """Re-recording a term should create a new entry, not edit the old one."""
        history = HistoryStore(MemoryStore(), KEY, 20)
        first = history.record("asthma")
        second = history.record("ASTHMA")
        
        assert first.term == "asthma"
        assert second.id != first.id


class TestPersistence:
    """Test storage round trips."""
    
    def test_persisted_after_each_record(self):
        store = MemoryStore()
        history = HistoryStore(store, KEY, 20)
        history.record("asthma")
        
        stored = json.loads(store.get(KEY))
        assert stored[0]["term"] == "asthma"
        assert set(stored[0]) == {"id", "term", "timestamp"}
    
    def test_reloaded_by_new_instance(self):
        store = MemoryStore()
        HistoryStore(store, KEY, 20).record("asthma")
        
        reloaded = HistoryStore(store, KEY, 20)
        assert [h.term for h in reloaded.items] == ["asthma"]
    
    def test_corrupt_history_discarded(self):
        """Unparseable stored history should be treated as empty."""
        store = MemoryStore({KEY: "{not json"})
        history = HistoryStore(store, KEY, 20)
        
        assert history.items == []
        history.record("flu")
        assert [h.term for h in history.items] == ["flu"]
    
    def test_wrong_shape_discarded(self):
        store = MemoryStore({KEY: json.dumps({"term": "flu"})})
        assert HistoryStore(store, KEY, 20).items == []
    
    def test_clear(self):
        store = MemoryStore()
        history = HistoryStore(store, KEY, 20)
        history.record("asthma")
        history.clear()
        
        assert history.items == []
        assert store.get(KEY) is None
