import asyncio
import pytest

from supportwise.config import Settings
from supportwise.data_models import BusinessContext
from supportwise.datastore import BusinessDataStore

ACME_RECORD = {
    "config": {
        "business": {"name": "Acme Bikes", "type": "retail", "logo": "https://example.com/acme.png"},
        "contact": {"phone": "+1 555 0100", "email": "help@acmebikes.example"},
    },
    "initial_message": "Welcome to Acme!",
    "system_message": None,
    "knowledge_base": [
        {"question": "What are your hours?", "answer": "9-5 Mon-Fri", "category": "hours", "priority": 0},
    ],
}


class FakeCompletionService:
    """Stands in for CompletionService; records every call."""

    def __init__(self, replies=None, error=None, delay=0.0):
        self.replies = list(replies or ["Stub reply"])
        self.error = error
        self.delay = delay
        self.calls = []
        self.is_configured = True

    async def complete(self, system_prompt, prior_turns=(), sampling=None):
        self.calls.append({"system_prompt": system_prompt, "prior_turns": list(prior_turns), "sampling": sampling})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0]


class InMemoryDataStore(BusinessDataStore):
    """Datastore over a dict of business records, counting fetches."""

    def __init__(self, businesses=None):
        self.businesses = dict(businesses or {})
        self.config_fetches = 0
        self.kb_fetches = 0
        self.error = None

    async def fetch_business_config(self, business_id):
        self.config_fetches += 1
        if self.error is not None:
            raise self.error
        record = self.businesses.get(business_id)
        if record is None:
            return None
        return {k: v for k, v in record.items() if k != "knowledge_base"}

    async def fetch_knowledge_base(self, business_id):
        self.kb_fetches += 1
        if self.error is not None:
            raise self.error
        return list((self.businesses.get(business_id) or {}).get("knowledge_base") or [])

    async def list_businesses(self):
        return [{"business_id": business_id} for business_id in self.businesses]

    async def health_check(self):
        return {"status": "ok", "backend": "memory", "businesses": len(self.businesses)}


@pytest.fixture
def settings():
    return Settings(app_env="development", completion_api_key="")


@pytest.fixture
def acme_datastore():
    return InMemoryDataStore({"acme": ACME_RECORD})


@pytest.fixture
def acme_context():
    return BusinessContext.from_records("acme", ACME_RECORD, ACME_RECORD["knowledge_base"])


@pytest.fixture
def fake_completion():
    def _make(replies=None, error=None, delay=0.0):
        return FakeCompletionService(replies=replies, error=error, delay=delay)
    return _make


@pytest.fixture
def make_datastore():
    return InMemoryDataStore
