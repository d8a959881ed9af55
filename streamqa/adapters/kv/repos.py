"""
KV-backed repositories.

Records are stored as JSON documents under prefixed keys:
- guest_payments:<guest_id>:<session_id>
- session:<session_id>
- question:<question_id>
- session_questions:<session_id>:<question_id>  (index marker)
"""

from __future__ import annotations

from streamqa.core.ports.storage import KeyValuePort
from streamqa.domain.entities import GuestPaymentRecord, Question, Session

GUEST_PAYMENTS_KEY = "guest_payments"
SESSION_KEY = "session"
QUESTION_KEY = "question"
SESSION_QUESTIONS_KEY = "session_questions"


def guest_payment_key(guest_id: str, session_id: str) -> str:
    return f"{GUEST_PAYMENTS_KEY}:{guest_id}:{session_id}"


class KVGuestPaymentRepo:
    def __init__(self, kv: KeyValuePort):
        self._kv = kv

    def get(self, guest_id: str, session_id: str) -> GuestPaymentRecord | None:
        raw = self._kv.get(guest_payment_key(guest_id, session_id))
        if raw is None:
            return None
        return GuestPaymentRecord.model_validate_json(raw)

    def save(self, record: GuestPaymentRecord) -> GuestPaymentRecord:
        self._kv.set(
            guest_payment_key(record.guest_id, record.session_id),
            record.model_dump_json(),
        )
        return record

    def list_by_session(self, session_id: str) -> list[GuestPaymentRecord]:
        records = []
        for key in self._kv.scan(f"{GUEST_PAYMENTS_KEY}:"):
            # guest IDs are client generated and may contain ':'
            if not key.endswith(f":{session_id}"):
                continue
            raw = self._kv.get(key)
            if raw is None:
                continue
            record = GuestPaymentRecord.model_validate_json(raw)
            if record.session_id == session_id:
                records.append(record)
        return records


class KVSessionStore:
    def __init__(self, kv: KeyValuePort):
        self._kv = kv

    def get_session(self, session_id: str) -> Session | None:
        raw = self._kv.get(f"{SESSION_KEY}:{session_id}")
        return Session.model_validate_json(raw) if raw else None

    def save_session(self, session: Session) -> Session:
        self._kv.set(f"{SESSION_KEY}:{session.id}", session.model_dump_json())
        return session

    def get_question(self, question_id: str) -> Question | None:
        raw = self._kv.get(f"{QUESTION_KEY}:{question_id}")
        return Question.model_validate_json(raw) if raw else None

    def save_question(self, question: Question) -> Question:
        self._kv.set(f"{QUESTION_KEY}:{question.id}", question.model_dump_json())
        self._kv.set(f"{SESSION_QUESTIONS_KEY}:{question.session_id}:{question.id}", "1")
        return question

    def get_questions_by_session(self, session_id: str) -> list[Question]:
        prefix = f"{SESSION_QUESTIONS_KEY}:{session_id}:"
        questions = []
        for key in self._kv.scan(prefix):
            question = self.get_question(key[len(prefix):])
            if question is not None:
                questions.append(question)
        questions.sort(key=lambda q: q.created_at)
        return questions
