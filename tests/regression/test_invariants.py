import asyncio
import random

import pytest

from streamqa.adapters.keyed_lock import KeyedLock
from streamqa.adapters.kv.repos import KVGuestPaymentRepo, KVSessionStore
from streamqa.adapters.memory_kv import InMemoryKeyValueStore
from streamqa.adapters.payment_stub import StubPaymentVerifier
from streamqa.components.balance import BalanceReconciler
from streamqa.components.credits import CreditGate, compute_credits
from streamqa.domain.currency import convert_amount
from streamqa.domain.entities import Question, Session


@pytest.fixture
def world():
    kv = InMemoryKeyValueStore()
    store = KVSessionStore(kv)
    store.save_session(
        Session(id="s1", title="AMA", host_wallet_address="https://w.example/h", question_price=50)
    )
    repo = KVGuestPaymentRepo(kv)
    locks = KeyedLock()
    verifier = StubPaymentVerifier()
    reconciler = BalanceReconciler(repo=repo, sessions=store, verifier=verifier, locks=locks)
    gate = CreditGate(repo=repo, sessions=store, questions=store, locks=locks)
    return reconciler, gate, store, verifier


# --- R1: Ratchet monotonicity ---
def test_R1_ratchet_never_decreases(world):
    """R1: Every ratchet leaves total_received >= its previous value."""
    reconciler, _, _, _ = world
    rng = random.Random(7)
    previous = 0
    for _ in range(200):
        record = reconciler.ratchet("g1", "s1", rng.randint(0, 10_000), "USD", 2)
        assert record.total_received >= previous
        previous = record.total_received


# --- R2: Increments sum ---
def test_R2_increments_equal_sum_of_deltas(world):
    """R2: n non-negative increments leave total_received == sum(deltas)."""
    reconciler, _, _, _ = world
    rng = random.Random(11)
    deltas = [rng.randint(0, 500) for _ in range(100)]
    for delta in deltas:
        reconciler.increment("g1", "s1", delta, "USD", 2)
    record, _ = reconciler.increment("g1", "s1", 0, "USD", 2)
    assert record.total_received == sum(deltas)


# --- R3: Credits never negative ---
@pytest.mark.parametrize("total", [0, 1, 49, 50, 99, 100, 10_000])
@pytest.mark.parametrize("used", [0, 1, 2, 500])
@pytest.mark.parametrize("price", [0, 1, 50, 999])
def test_R3_credits_non_negative(total, used, price):
    """R3: question_credits >= 0 for any total/used/price."""
    assert compute_credits(total, price, used) >= 0


def test_R3_over_spent_guest_reads_zero(world):
    """R3: more accepted questions than credits earned caps at zero."""
    _, gate, store, _ = world
    for _ in range(3):
        store.save_question(
            Question(session_id="s1", text="q", submitter_name="G", guest_id="g1", status="paid")
        )
    balance = gate.get_guest_balance("g1", "s1")
    assert balance.question_credits == 0
    assert balance.balance == 0


# --- R4: Same-scale conversion is identity ---
@pytest.mark.parametrize("scale", [0, 2, 6, 9])
def test_R4_same_scale_round_trip(scale):
    """R4: converting X from scale s to s yields X exactly."""
    for value in [0, 1, 99, 123_456_789]:
        assert convert_amount(value, scale, scale) == value


# --- R5: Missing data is zero, not an error ---
def test_R5_unknown_guest_zero_balance(world):
    """R5: no record -> zero-valued balance."""
    _, gate, _, _ = world
    balance = gate.get_guest_balance("ghost", "s1")
    assert (balance.balance, balance.total_received, balance.question_credits) == (0, 0, 0)


# --- R6: Poll never lowers the stored total ---
def test_R6_stale_poll_after_stream(world):
    """R6: a poll reporting less than the streamed total leaves it intact."""
    reconciler, _, _, verifier = world
    url = "https://w.example/incoming-payments/1"
    asyncio.run(reconciler.register_incoming_payment_url("g1", "s1", url, "USD", 2))
    reconciler.increment("g1", "s1", 300, "USD", 2)
    verifier.set_received(url, "1.00")

    result = asyncio.run(reconciler.poll_and_reconcile("g1", "s1"))

    assert result.total_received == 300
    assert not result.updated
