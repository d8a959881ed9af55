"""
Unit tests for credits component.

Tests:
- Credit arithmetic (floor, zero price, never negative)
- Balance view for unknown guests and sessions
- End-to-end payment -> question -> stream scenario
- Gate rejection and the reserve-then-commit critical section
"""

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from streamqa.adapters.keyed_lock import KeyedLock
from streamqa.adapters.kv.repos import KVGuestPaymentRepo, KVSessionStore
from streamqa.adapters.memory_kv import InMemoryKeyValueStore
from streamqa.adapters.payment_stub import StubPaymentVerifier
from streamqa.components.balance import BalanceReconciler
from streamqa.components.credits import (
    BalanceInput,
    ConsumeCreditInput,
    CreditGate,
    CreditsConfig,
    InsufficientCreditsError,
    compute_balance,
    compute_credits,
    count_credits_used,
    run,
    run_consume,
)
from streamqa.domain.entities import GuestPaymentRecord, Question, Session

URL = "https://wallet.example/guest/incoming-payments/p1"


# --- Fixtures ---


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def store(kv: InMemoryKeyValueStore) -> KVSessionStore:
    store = KVSessionStore(kv)
    store.save_session(
        Session(
            id="s1",
            title="Live AMA",
            host_wallet_address="https://wallet.example/host",
            question_price=50,
        )
    )
    return store


@pytest.fixture
def repo(kv: InMemoryKeyValueStore) -> KVGuestPaymentRepo:
    return KVGuestPaymentRepo(kv)


@pytest.fixture
def locks() -> KeyedLock:
    return KeyedLock()


@pytest.fixture
def gate(repo: KVGuestPaymentRepo, store: KVSessionStore, locks: KeyedLock) -> CreditGate:
    return CreditGate(repo=repo, sessions=store, questions=store, locks=locks)


@pytest.fixture
def verifier() -> StubPaymentVerifier:
    return StubPaymentVerifier()


@pytest.fixture
def reconciler(
    repo: KVGuestPaymentRepo,
    store: KVSessionStore,
    verifier: StubPaymentVerifier,
    locks: KeyedLock,
) -> BalanceReconciler:
    return BalanceReconciler(repo=repo, sessions=store, verifier=verifier, locks=locks)


def _question(guest_id: str, status: str = "paid") -> Question:
    return Question(
        session_id="s1",
        text="What's next?",
        submitter_name="Guest",
        submitter_wallet_address=guest_id,
        guest_id=guest_id,
        status=status,
    )


# --- Pure functions ---


class TestComputeCredits:
    """Tests for compute_credits / compute_balance."""

    @pytest.mark.parametrize(
        "total,price,used,expected",
        [
            (100, 50, 0, 2),
            (99, 50, 0, 1),
            (125, 50, 1, 1),
            (100, 50, 5, 0),
            (100, 0, 0, 0),
            (0, 50, 0, 0),
        ],
    )
    def test_credits(self, total: int, price: int, used: int, expected: int) -> None:
        assert compute_credits(total, price, used) == expected

    def test_balance_floored(self) -> None:
        assert compute_balance(100, 50, 1) == 50
        assert compute_balance(100, 50, 3) == 0


class TestCountCreditsUsed:
    """Tests for count_credits_used."""

    def test_ignores_pending_and_other_guests(self) -> None:
        questions = [
            _question("g1"),
            _question("g1", status="answered"),
            _question("g1", status="skipped"),
            _question("g1", status="pending_payment"),
            _question("g2"),
        ]
        assert count_credits_used(questions, "g1") == 3

    def test_matches_guest_id_field(self) -> None:
        question = _question("g1").model_copy(update={"submitter_wallet_address": None})
        assert count_credits_used([question], "g1") == 1


# --- Balance view ---


class TestGetGuestBalance:
    """Tests for CreditGate.get_guest_balance."""

    def test_unknown_guest_is_zero(self, gate: CreditGate) -> None:
        balance = gate.get_guest_balance("nobody", "s1")
        assert balance.question_credits == 0
        assert balance.balance == 0
        assert balance.total_received == 0

    def test_unknown_session_is_zero(self) -> None:
        kv = InMemoryKeyValueStore()
        store = KVSessionStore(kv)
        gate = CreditGate(
            repo=KVGuestPaymentRepo(kv),
            sessions=store,
            questions=store,
            config=CreditsConfig(default_asset_code="EUR", default_asset_scale=2),
        )
        balance = gate.get_guest_balance("g1", "missing")
        assert balance.question_credits == 0
        assert balance.asset_code == "EUR"

    def test_legacy_record_converted_on_read(
        self, gate: CreditGate, repo: KVGuestPaymentRepo
    ) -> None:
        repo.save(
            GuestPaymentRecord(
                guest_id="g1",
                session_id="s1",
                total_received=1_000_000_000,  # 1.00 at scale 9
                asset_code="USD",
                asset_scale=9,
            )
        )
        balance = gate.get_guest_balance("g1", "s1")
        assert balance.total_received == 100
        assert balance.question_credits == 2
        assert balance.asset_scale == 2

        # Reads never rewrite the stored record
        stored = repo.get("g1", "s1")
        assert stored is not None
        assert stored.asset_scale == 9

    def test_run_dispatch(self, gate: CreditGate) -> None:
        balance = run(BalanceInput(guest_id="g1", session_id="s1"), gate)
        assert balance.question_credits == 0

        with pytest.raises(TypeError):
            run("bogus", gate)  # type: ignore[arg-type]


# --- Scenario ---


class TestPaymentToQuestionScenario:
    """Poll, spend a credit, then receive a stream increment."""

    def test_scenario(
        self,
        gate: CreditGate,
        reconciler: BalanceReconciler,
        verifier: StubPaymentVerifier,
        store: KVSessionStore,
    ) -> None:
        verifier.set_received(URL, "1.00", asset_code="USD", asset_scale=2)
        asyncio.run(reconciler.register_incoming_payment_url("g1", "s1", URL, "USD", 2))
        asyncio.run(reconciler.poll_and_reconcile("g1", "s1"))

        balance = gate.get_guest_balance("g1", "s1")
        assert balance.total_received == 100
        assert balance.question_credits == 2
        assert balance.balance == 100

        gate.check_and_consume_credit("g1", "s1", commit=lambda: store.save_question(_question("g1")))

        balance = gate.get_guest_balance("g1", "s1")
        assert balance.credits_used == 1
        assert balance.question_credits == 1
        assert balance.balance == 50

        reconciler.increment("g1", "s1", 25, "USD", 2)

        balance = gate.get_guest_balance("g1", "s1")
        assert balance.total_received == 125
        assert balance.question_credits == 1


# --- Gate ---


class TestCheckAndConsumeCredit:
    """Tests for the question-submission gate."""

    def test_zero_credits_rejected(self, gate: CreditGate, store: KVSessionStore) -> None:
        calls = []

        with pytest.raises(InsufficientCreditsError) as exc_info:
            gate.check_and_consume_credit("g1", "s1", commit=lambda: calls.append("saved"))

        assert exc_info.value.available == 0
        assert exc_info.value.guest_id == "g1"
        assert calls == []
        assert store.get_questions_by_session("s1") == []

    def test_passes_with_credit(self, gate: CreditGate, reconciler: BalanceReconciler) -> None:
        reconciler.increment("g1", "s1", 50, "USD", 2)
        output = run_consume(ConsumeCreditInput(guest_id="g1", session_id="s1"), gate)
        assert output.balance.question_credits == 1
        assert output.committed is None

    def test_commit_result_returned(
        self, gate: CreditGate, reconciler: BalanceReconciler, store: KVSessionStore
    ) -> None:
        reconciler.increment("g1", "s1", 50, "USD", 2)
        question = _question("g1")
        output = gate.check_and_consume_credit("g1", "s1", commit=lambda: store.save_question(question))
        assert output.committed == question

    def test_last_credit_spent_once(
        self, gate: CreditGate, reconciler: BalanceReconciler, store: KVSessionStore
    ) -> None:
        reconciler.increment("g1", "s1", 50, "USD", 2)
        start = threading.Barrier(6)

        def submit(_: int) -> bool:
            start.wait()
            try:
                gate.check_and_consume_credit(
                    "g1", "s1", commit=lambda: store.save_question(_question("g1"))
                )
                return True
            except InsufficientCreditsError:
                return False

        with ThreadPoolExecutor(max_workers=6) as pool:
            results = list(pool.map(submit, range(6)))

        assert results.count(True) == 1
        assert len(store.get_questions_by_session("s1")) == 1
        assert gate.get_guest_balance("g1", "s1").question_credits == 0
