"""
Tests for API endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from medilex.core.exceptions import ProviderError
from medilex.core.kv_store import MemoryStore
from medilex.models.schemas import LoadingState
from medilex.main import create_app
from medilex.services.session import SessionController

from tests.conftest import TEST_API_KEY


@pytest.fixture
def anonymous_client(fake_client):
    """Test client whose session has no API key yet."""
    controller = SessionController(MemoryStore(), client_factory=lambda key: fake_client)
    return TestClient(create_app(controller=controller))


class TestHealthEndpoint:
    """Test health check endpoint."""
    
    def test_health_returns_200(self, api_client):
        response = api_client.get("/health")
        assert response.status_code == 200
    
    def test_health_response_structure(self, api_client):
        data = api_client.get("/health").json()
        
        assert data["status"] == "healthy"
        assert "version" in data
        assert "timestamp" in data


class TestCredentialEndpoints:
    """Test the credential gate."""
    
    def test_search_without_key_requires_credential(self, anonymous_client):
        response = anonymous_client.post("/search", json={"term": "asthma"})
        
        assert response.status_code == 401
        assert response.json()["error_code"] == "CREDENTIAL_REQUIRED"
    
    def test_short_key_rejected(self, anonymous_client):
        response = anonymous_client.post("/credential", json={"apiKey": "short"})
        assert response.status_code == 401
    
    def test_key_accepted(self, anonymous_client):
        response = anonymous_client.post("/credential", json={"apiKey": TEST_API_KEY})
        
        assert response.status_code == 200
        data = response.json()
        assert data["hasCredential"] is True
        assert data["loadingState"] == "IDLE"
    
    def test_clear_key(self, api_client):
        data = api_client.delete("/credential").json()
        assert data["hasCredential"] is False


class TestSearchEndpoint:
    """Test lookups over HTTP."""
    
    def test_search_success(self, api_client):
        response = api_client.post("/search", json={"term": "asthma"})
        
        assert response.status_code == 200
        data = response.json()
        assert data["loadingState"] == "SUCCESS"
        assert data["result"]["definition"] == "A lung condition."
        assert data["result"]["keyPoints"] == ["Point A"]
        assert data["result"]["sources"] == ["WHO"]
        assert "asthma" in data["result"]["imageUrl"]
        assert data["history"][0]["term"] == "asthma"
    
    def test_search_failure_returns_error_state(self, api_client, fake_client):
        fake_client.text_error = ProviderError("quota exceeded")
        response = api_client.post("/search", json={"term": "asthma"})
        
        assert response.status_code == 502
        data = response.json()
        assert data["loadingState"] == "ERROR"
        assert "check your API key" in data["error"]
        assert data["result"] is None
    
    def test_blank_term_rejected(self, api_client):
        response = api_client.post("/search", json={"term": "   "})
        assert response.status_code == 422
    
    def test_missing_term_rejected(self, api_client):
        response = api_client.post("/search", json={})
        assert response.status_code == 422
    
    def test_arabic_direction(self, api_client):
        data = api_client.put("/language", json={"language": "ar"}).json()
        assert data["language"] == "ar"
        assert data["textDirection"] == "rtl"


class TestChatEndpoint:
    """Test follow-up chat over HTTP."""
    
    def test_chat_before_search_conflicts(self, api_client):
        response = api_client.post("/chat", json={"message": "Hello?"})
        assert response.status_code == 409
    
    def test_chat_after_search(self, api_client):
        api_client.post("/search", json={"term": "asthma"})
        response = api_client.post("/chat", json={"message": "Is it contagious?"})
        
        assert response.status_code == 200
        data = response.json()
        assert [m["role"] for m in data["chatMessages"]] == ["user", "model"]
        assert data["loadingState"] == "SUCCESS"
    
    def test_chat_while_thinking_conflicts(self, api_client, controller):
        api_client.post("/search", json={"term": "asthma"})
        controller._loading_state = LoadingState.THINKING
        response = api_client.post("/chat", json={"message": "Q"})
        
        assert response.status_code == 409
        assert response.json()["error_code"] == "CHAT_IN_PROGRESS"
    
    def test_chat_failure_still_succeeds(self, api_client, fake_client):
        api_client.post("/search", json={"term": "asthma"})
        fake_client.chat_error = ProviderError("network")
        response = api_client.post("/chat", json={"message": "Q"})
        
        assert response.status_code == 200
        assert response.json()["loadingState"] == "SUCCESS"


class TestHistoryEndpoints:
    """Test history listing, reselection and clearing."""
    
    def test_history_listing(self, api_client):
        api_client.post("/search", json={"term": "Flu"})
        api_client.post("/search", json={"term": "flu"})
        
        history = api_client.get("/history").json()
        assert [h["term"] for h in history] == ["flu"]
    
    def test_select_from_history(self, api_client):
        api_client.post("/search", json={"term": "asthma"})
        api_client.post("/search", json={"term": "flu"})
        
        data = api_client.post("/history/select", json={"term": "asthma"}).json()
        assert data["result"]["term"] == "asthma"
        assert [h["term"] for h in data["history"]] == ["asthma", "flu"]
    
    def test_clear_history(self, api_client):
        api_client.post("/search", json={"term": "asthma"})
        data = api_client.delete("/history").json()
        assert data["history"] == []
