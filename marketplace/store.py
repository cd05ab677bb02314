from sqlalchemy import update
from sqlalchemy.dialects import postgresql, sqlite

from marketplace.models import (
    CrowdfundingPledge,
    CrowdfundingVote,
    Offer,
    OfferStatus,
    utcnow,
)


def _insert(db, model):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise RuntimeError(f"Upsert is not supported on {dialect}")


def transition_offer(db, offer_id: str, match: dict, values: dict):
    """Apply a single conditional UPDATE to one offer.

    `match` holds extra equality filters (owner, current status). Returns the
    refreshed offer, or None when no row satisfied every filter.
    """
    stmt = update(Offer).where(Offer.id == offer_id)
    for column, expected in match.items():
        stmt = stmt.where(getattr(Offer, column) == expected)
    stmt = stmt.values(updated_at=utcnow(), **values).execution_options(synchronize_session=False)

    result = db.execute(stmt)
    if result.rowcount == 0:
        db.rollback()
        return None
    db.commit()
    return db.get(Offer, offer_id)


def accept_paid_offer(db, offer_id: str, recipient_id: str):
    return transition_offer(
        db,
        offer_id,
        match={"recipient_id": recipient_id, "status": OfferStatus.PENDING},
        values={"status": OfferStatus.ACCEPTED, "accepted_at": utcnow()},
    )


def upsert_pledge(db, project_id: str, user_id: str, amount_cents: int, status: str):
    now = utcnow()
    stmt = _insert(db, CrowdfundingPledge).values(
        project_id=project_id,
        user_id=user_id,
        amount_cents=amount_cents,
        status=status,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["project_id", "user_id"],
        set_={"amount_cents": amount_cents, "status": status, "updated_at": now},
    )
    db.execute(stmt)
    db.commit()
    return (
        db.query(CrowdfundingPledge)
        .filter_by(project_id=project_id, user_id=user_id)
        .populate_existing()
        .one()
    )


def upsert_vote(db, project_id: str, user_id: str, vote_type: str):
    stmt = _insert(db, CrowdfundingVote).values(
        project_id=project_id,
        user_id=user_id,
        vote_type=vote_type,
        created_at=utcnow(),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["project_id", "user_id"],
        set_={"vote_type": vote_type},
    )
    db.execute(stmt)
    db.commit()
