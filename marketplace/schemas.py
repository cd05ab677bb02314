from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# Payment route bodies keep their fields loose; the handlers check them
# themselves so every bad value maps to a specific 400 message.
class OfferPaymentRequest(BaseModel):
    offerId: Any = None


class PaymentConfirmationRequest(BaseModel):
    paymentIntentId: Any = None


class CrowdfundingPaymentRequest(BaseModel):
    projectId: Any = None
    amountCents: Any = None


class SendOfferRequest(BaseModel):
    recipientId: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: Optional[str] = None
    amountCents: int = Field(gt=0)
    deliveryDays: Optional[int] = Field(default=None, gt=0)


class CompletionResponseRequest(BaseModel):
    accept: bool


class VoteRequest(BaseModel):
    voteType: str


class OrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class OfferOut(OrmModel):
    id: str
    sender_id: str
    recipient_id: str
    title: str
    description: Optional[str] = None
    amount_cents: int
    status: str
    accepted_at: Optional[datetime] = None
    delivery_started_at: Optional[datetime] = None
    delivery_days: Optional[int] = None
    completion_requested_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PartySummary(OrmModel):
    id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class OfferWithParty(OfferOut):
    other_party: PartySummary
    is_sender: bool


class OfferThread(BaseModel):
    other_id: str
    last_offer: OfferOut
    is_recipient: bool


class ProjectOut(OrmModel):
    id: str
    creator_id: Optional[str] = None
    title: str
    slug: Optional[str] = None
    short_description: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    min_investment_cents: int
    target_amount_cents: int
    raised_amount_cents: int
    expected_roi_pct: Optional[float] = None
    status: str
    deadline_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProjectSummary(OrmModel):
    id: str
    title: str
    slug: Optional[str] = None
    status: str
    expected_roi_pct: Optional[float] = None


class PledgeOut(OrmModel):
    id: str
    project_id: str
    user_id: str
    amount_cents: int
    status: str
    return_amount_cents: Optional[int] = None
    return_paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PledgeWithProject(PledgeOut):
    project: Optional[ProjectSummary] = None


class NotificationOut(OrmModel):
    id: str
    user_id: str
    project_id: Optional[str] = None
    pledge_id: Optional[str] = None
    type: str
    title: str
    message: Optional[str] = None
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class VoteTally(BaseModel):
    up: int = 0
    down: int = 0
    interested: int = 0


class UserVote(BaseModel):
    vote_type: Optional[str] = None
