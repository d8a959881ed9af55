from datetime import UTC, datetime
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# --- Enums / Literals ---
SessionStatus = Literal["draft", "live", "ended"]
QuestionStatus = Literal["pending_payment", "paid", "queued", "active", "answered", "skipped"]

# Questions in this state have not spent a credit
AWAITING_PAYMENT: QuestionStatus = "pending_payment"


def utcnow() -> datetime:
    return datetime.now(UTC)


class CamelModel(BaseModel):
    """Base model that accepts and emits the camelCase wire names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Sessions & Questions ---

class Session(CamelModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    title: str
    description: str = ""
    host_wallet_address: str
    question_price: int  # smallest unit of asset_code/asset_scale
    asset_code: str = "USD"
    asset_scale: int = 2
    status: SessionStatus = "draft"
    created_at: datetime = Field(default_factory=utcnow)


class Question(CamelModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    session_id: str
    text: str
    submitter_name: str
    submitter_wallet_address: str | None = None
    guest_id: str | None = None
    amount_paid: int = 0
    status: QuestionStatus = "paid"
    created_at: datetime = Field(default_factory=utcnow)
    answered_at: datetime | None = None
    upvotes: int = 0

    def submitted_by(self, guest_id: str) -> bool:
        return self.submitter_wallet_address == guest_id or self.guest_id == guest_id


# --- Guest payments ---

class ReceivedAmount(CamelModel):
    """Amount as reported by the payment network (decimal display string)."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True
    )

    value: str = "0"
    asset_code: str = "USD"
    asset_scale: int = Field(default=2, ge=0, le=18)


class GuestPaymentRecord(CamelModel):
    guest_id: str
    session_id: str
    incoming_payment_urls: list[str] = Field(default_factory=list)
    total_received: int = 0
    # Separate signals behind total_received, both in asset_code/asset_scale
    verified_total: int = 0
    streamed_total: int = 0
    asset_code: str
    asset_scale: int
    last_updated: datetime = Field(default_factory=utcnow)


class GuestBalance(CamelModel):
    guest_id: str
    session_id: str
    balance: int = 0
    total_received: int = 0
    question_credits: int = 0
    credits_used: int = 0
    asset_code: str = "USD"
    asset_scale: int = 2
