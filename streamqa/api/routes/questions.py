"""
Question routes.

Question submission is the credit gate's enforcement point: when the request
names a guest, the question is persisted inside the gate's critical section
and only if the guest still holds a credit.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from streamqa.adapters.kv.repos import KVSessionStore
from streamqa.api.deps import get_credit_gate, get_session_store, get_stats_service
from streamqa.api.schemas import (
    InsufficientCreditsDetail,
    QuestionCreateRequest,
    QuestionListResponse,
    QuestionUpdateRequest,
    SessionStatsResponse,
)
from streamqa.components.credits import CreditGate, InsufficientCreditsError
from streamqa.components.stats import StatsInput, StatsService
from streamqa.components.stats import run as run_stats
from streamqa.domain.entities import Question, utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=QuestionListResponse)
async def list_questions(
    session_id: str = Query(..., alias="sessionId", min_length=1),
    store: KVSessionStore = Depends(get_session_store),
    stats_service: StatsService = Depends(get_stats_service),
) -> QuestionListResponse:
    """Questions of a session plus its earnings summary."""
    questions = store.get_questions_by_session(session_id)
    stats = await run_stats(StatsInput(session_id=session_id), stats_service)
    return QuestionListResponse(
        questions=questions,
        stats=SessionStatsResponse(
            total_questions=stats.total_questions,
            answered_questions=stats.answered_questions,
            total_earned=stats.total_earned,
            asset_code=stats.asset_code,
            asset_scale=stats.asset_scale,
        ),
    )


@router.post("", response_model=Question, status_code=status.HTTP_201_CREATED)
def create_question(
    req: QuestionCreateRequest,
    store: KVSessionStore = Depends(get_session_store),
    gate: CreditGate = Depends(get_credit_gate),
) -> Question:
    """Submit a question, spending one credit when submitted by a guest."""
    session = store.get_session(req.session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")

    question = Question(
        session_id=req.session_id,
        text=req.text,
        submitter_name=req.submitter_name,
        submitter_wallet_address=req.submitter_wallet_address or req.guest_id,
        guest_id=req.guest_id,
        amount_paid=session.question_price or req.amount_paid,
        status=req.status,
    )

    if not req.guest_id:
        return store.save_question(question)

    # A gated question always spends its credit
    question.status = "paid"
    try:
        result = gate.check_and_consume_credit(
            req.guest_id, req.session_id, commit=lambda: store.save_question(question)
        )
    except InsufficientCreditsError as e:
        detail = InsufficientCreditsDetail(
            available=e.available,
            balance=gate.get_guest_balance(req.guest_id, req.session_id),
        )
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail=detail.model_dump(mode="json", by_alias=True),
        ) from e

    logger.info(
        "[CREDIT SUCCESS] Question accepted question=%s guest=%s credits_left=%d",
        question.id,
        req.guest_id,
        result.balance.question_credits - 1,
    )
    return result.committed


@router.patch("/{question_id}", response_model=Question)
def update_question(
    question_id: str,
    req: QuestionUpdateRequest,
    store: KVSessionStore = Depends(get_session_store),
) -> Question:
    """Host moderation: answer, complete, skip or upvote a question."""
    question = store.get_question(question_id)
    if question is None:
        raise HTTPException(status_code=404, detail="Question not found")

    if req.action == "answer":
        question.status = "active"
    elif req.action == "complete":
        question.status = "answered"
        question.answered_at = utcnow()
    elif req.action == "skip":
        question.status = "skipped"
    elif req.action == "upvote":
        question.upvotes += 1

    return store.save_question(question)
