import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, Float, Text, DateTime, UniqueConstraint

from marketplace.database import Base


def new_id():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


class OfferStatus:
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    WITHDRAWN = "withdrawn"
    COMPLETION_REQUESTED = "completion_requested"
    COMPLETED = "completed"


class ProjectStatus:
    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    ACTIVE = "active"
    FUNDED = "funded"
    CLOSED = "closed"
    CANCELLED = "cancelled"

    ACCEPTING_INVESTMENTS = (ACTIVE, FUNDED)
    LISTED = (ACTIVE, FUNDED, CLOSED)


class PledgeStatus:
    PLEDGED = "pledged"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


VOTE_TYPES = ("up", "down", "interested")


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True)               # auth user id
    full_name = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)


class Offer(Base):
    __tablename__ = "offers"

    id = Column(String, primary_key=True, default=new_id)
    sender_id = Column(String, index=True, nullable=False)
    recipient_id = Column(String, index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    amount_cents = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default=OfferStatus.PENDING)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    delivery_started_at = Column(DateTime(timezone=True), nullable=True)
    delivery_days = Column(Integer, nullable=True)
    completion_requested_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)


class CrowdfundingProject(Base):
    __tablename__ = "crowdfunding_projects"

    id = Column(String, primary_key=True, default=new_id)
    creator_id = Column(String, nullable=True)
    title = Column(String, nullable=False)
    slug = Column(String, nullable=True)
    short_description = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True)            # real_estate | entertainment | recreation | other
    location = Column(String, nullable=True)
    min_investment_cents = Column(Integer, nullable=False, default=0)
    target_amount_cents = Column(Integer, nullable=False, default=0)
    raised_amount_cents = Column(Integer, nullable=False, default=0)
    expected_roi_pct = Column(Float, nullable=True)
    status = Column(String, nullable=False, default=ProjectStatus.DRAFT)
    deadline_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)


class CrowdfundingPledge(Base):
    __tablename__ = "crowdfunding_pledges"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_pledge_project_user"),)

    id = Column(String, primary_key=True, default=new_id)
    project_id = Column(String, index=True, nullable=False)
    user_id = Column(String, index=True, nullable=False)
    amount_cents = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default=PledgeStatus.PLEDGED)
    return_amount_cents = Column(Integer, nullable=True)
    return_paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)


class CrowdfundingVote(Base):
    __tablename__ = "crowdfunding_votes"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_vote_project_user"),)

    id = Column(String, primary_key=True, default=new_id)
    project_id = Column(String, index=True, nullable=False)
    user_id = Column(String, index=True, nullable=False)
    vote_type = Column(String, nullable=False)          # up | down | interested
    created_at = Column(DateTime(timezone=True), default=utcnow)


class CrowdfundingNotification(Base):
    __tablename__ = "crowdfunding_notifications"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, index=True, nullable=False)
    project_id = Column(String, nullable=True)
    pledge_id = Column(String, nullable=True)
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=True)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
