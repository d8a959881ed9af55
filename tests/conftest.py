from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from streamqa.adapters.keyed_lock import KeyedLock
from streamqa.adapters.kv.repos import KVGuestPaymentRepo, KVSessionStore
from streamqa.adapters.memory_kv import InMemoryKeyValueStore
from streamqa.adapters.payment_stub import StubPaymentVerifier
from streamqa.api import deps
from streamqa.api.main import app
from streamqa.domain.entities import Session
from streamqa.rules.loader import load_rules
from streamqa.rules.models import Rules

PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture
def rules() -> Rules:
    """Real rules from the project root, with a short poll budget for tests."""
    loaded = load_rules(PROJECT_ROOT / "rules.yaml")
    loaded.credits.poll_timeout_seconds = 1.0
    return loaded


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def verifier() -> StubPaymentVerifier:
    return StubPaymentVerifier()


@pytest.fixture
def session_store(kv: InMemoryKeyValueStore) -> KVSessionStore:
    return KVSessionStore(kv)


@pytest.fixture
def payment_repo(kv: InMemoryKeyValueStore) -> KVGuestPaymentRepo:
    return KVGuestPaymentRepo(kv)


@pytest.fixture
def session(session_store: KVSessionStore) -> Session:
    """A USD/2 session priced at 50 cents per question."""
    return session_store.save_session(
        Session(
            id="sess-1",
            title="Friday AMA",
            host_wallet_address="https://wallet.example/host",
            question_price=50,
            asset_code="USD",
            asset_scale=2,
            status="live",
        )
    )


@pytest.fixture
def client(rules: Rules, kv: InMemoryKeyValueStore, verifier: StubPaymentVerifier):
    """TestClient over the real app with in-memory storage and a stub verifier."""
    locks = KeyedLock()
    app.dependency_overrides[deps.get_rules] = lambda: rules
    app.dependency_overrides[deps.get_kv] = lambda: kv
    app.dependency_overrides[deps.get_verifier] = lambda: verifier
    app.dependency_overrides[deps.get_keyed_lock] = lambda: locks

    yield TestClient(app)

    app.dependency_overrides.clear()
