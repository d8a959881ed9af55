import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from streamqa.adapters.clock import SystemClock
from streamqa.adapters.keyed_lock import KeyedLock
from streamqa.adapters.kv.repos import KVGuestPaymentRepo, KVSessionStore
from streamqa.adapters.memory_kv import InMemoryKeyValueStore
from streamqa.adapters.open_payments import OpenPaymentsVerifier
from streamqa.adapters.sqlite_kv import SQLiteKeyValueStore

# Atomic components are stateless; ports/repos/adapters are injected here.
from streamqa.components import balance, credits, stats
from streamqa.components.balance import BalanceReconciler
from streamqa.components.credits import CreditGate
from streamqa.components.stats import StatsService
from streamqa.core.ports.payment import PaymentVerifierPort
from streamqa.core.ports.storage import KeyValuePort
from streamqa.rules.loader import load_rules
from streamqa.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("STREAMQA_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "streamqa.db")
        self.rules_path = Path(
            os.environ.get("STREAMQA_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )
        self.storage = os.environ.get("STREAMQA_STORAGE", "sqlite").lower()


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Storage ---
@lru_cache
def get_memory_kv() -> InMemoryKeyValueStore:
    """Process-lifetime store used when STREAMQA_STORAGE=memory."""
    return InMemoryKeyValueStore()


def get_kv(settings: Settings = Depends(get_settings)) -> KeyValuePort:
    if settings.storage == "memory":
        return get_memory_kv()
    return SQLiteKeyValueStore(settings.db_path)


# --- Repos ---
def get_guest_payment_repo(kv: KeyValuePort = Depends(get_kv)) -> KVGuestPaymentRepo:
    return KVGuestPaymentRepo(kv)


def get_session_store(kv: KeyValuePort = Depends(get_kv)) -> KVSessionStore:
    return KVSessionStore(kv)


# --- Adapters ---
def get_verifier(rules: Rules = Depends(get_rules)) -> PaymentVerifierPort:
    return OpenPaymentsVerifier(request_timeout=rules.verifier.request_timeout_seconds)


# Shared by the reconciler and the credit gate so both serialise on the same keys
@lru_cache
def get_keyed_lock() -> KeyedLock:
    return KeyedLock()


@lru_cache
def get_clock() -> SystemClock:
    return SystemClock()


# --- Component Services ---
def get_reconciler(
    repo: KVGuestPaymentRepo = Depends(get_guest_payment_repo),
    store: KVSessionStore = Depends(get_session_store),
    verifier: PaymentVerifierPort = Depends(get_verifier),
    locks: KeyedLock = Depends(get_keyed_lock),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> BalanceReconciler:
    """Get balance component service."""
    return BalanceReconciler(
        repo=repo,
        sessions=store,
        verifier=verifier,
        clock=clock,
        locks=locks,
        config=balance.load_config_from_rules(rules),
    )


def get_credit_gate(
    repo: KVGuestPaymentRepo = Depends(get_guest_payment_repo),
    store: KVSessionStore = Depends(get_session_store),
    locks: KeyedLock = Depends(get_keyed_lock),
    rules: Rules = Depends(get_rules),
) -> CreditGate:
    """Get credits component service."""
    return CreditGate(
        repo=repo,
        sessions=store,
        questions=store,
        locks=locks,
        config=credits.load_config_from_rules(rules),
    )


def get_stats_service(
    repo: KVGuestPaymentRepo = Depends(get_guest_payment_repo),
    store: KVSessionStore = Depends(get_session_store),
    rules: Rules = Depends(get_rules),
) -> StatsService:
    """Get stats component service."""
    return StatsService(
        repo=repo,
        sessions=store,
        questions=store,
        config=stats.load_config_from_rules(rules),
    )
