from typing import Literal

from pydantic import Field

from streamqa.domain.entities import (
    CamelModel,
    GuestBalance,
    GuestPaymentRecord,
    Question,
    QuestionStatus,
)

QuestionAction = Literal["answer", "complete", "skip", "upvote"]


# --- Guest payments ---
class RegisterPaymentRequest(CamelModel):
    guest_id: str = Field(min_length=1)
    session_id: str = Field(min_length=1)
    incoming_payment_url: str = Field(min_length=1)
    asset_code: str | None = None
    asset_scale: int | None = Field(default=None, ge=0, le=18)


class RegisterPaymentResponse(CamelModel):
    success: bool = True
    guest_payment: GuestPaymentRecord
    newly_registered: bool
    verified: bool


class PollRequest(CamelModel):
    guest_id: str = Field(min_length=1)
    session_id: str = Field(min_length=1)


class PollResponse(CamelModel):
    success: bool = True
    total_received: int
    previous_total: int
    updated: bool
    polled_total: int = 0
    urls_polled: int = 0
    urls_failed: int = 0
    timed_out: bool = False


class IncrementRequest(CamelModel):
    guest_id: str = Field(min_length=1)
    session_id: str = Field(min_length=1)
    amount_received: int
    asset_code: str | None = None
    asset_scale: int | None = Field(default=None, ge=0, le=18)


class IncrementResponse(CamelModel):
    success: bool = True
    guest_payment: GuestPaymentRecord
    previous_total: int
    new_total: int
    amount_received: int


# --- Sessions ---
class SessionCreateRequest(CamelModel):
    title: str = Field(min_length=1)
    description: str = ""
    host_wallet_address: str = Field(min_length=1)
    question_price: int = Field(gt=0)
    asset_code: str | None = None
    asset_scale: int | None = Field(default=None, ge=0, le=18)


# --- Questions ---
class QuestionCreateRequest(CamelModel):
    session_id: str = Field(min_length=1)
    text: str = Field(min_length=1)
    submitter_name: str = Field(min_length=1)
    submitter_wallet_address: str | None = None
    guest_id: str | None = None
    amount_paid: int = 0
    status: QuestionStatus = "paid"


class QuestionUpdateRequest(CamelModel):
    action: QuestionAction


class SessionStatsResponse(CamelModel):
    total_questions: int
    answered_questions: int
    total_earned: int
    asset_code: str
    asset_scale: int


class QuestionListResponse(CamelModel):
    questions: list[Question]
    stats: SessionStatsResponse


class InsufficientCreditsDetail(CamelModel):
    code: Literal["insufficient_credits"] = "insufficient_credits"
    message: str = "Insufficient credits"
    available: int = 0
    balance: GuestBalance | None = None
