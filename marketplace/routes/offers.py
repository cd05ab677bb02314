import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from marketplace.auth import CurrentUser, get_current_user
from marketplace.database import get_db
from marketplace.models import Offer, OfferStatus, Profile, utcnow
from marketplace.schemas import (
    CompletionResponseRequest,
    OfferOut,
    OfferThread,
    OfferWithParty,
    PartySummary,
    SendOfferRequest,
)
from marketplace.store import transition_offer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/offers", tags=["offers"])


def _offers_for(db: Session, user_id: str):
    return (
        db.query(Offer)
        .filter(or_(Offer.sender_id == user_id, Offer.recipient_id == user_id))
        .order_by(Offer.created_at.desc())
        .all()
    )


def _other_party_id(offer: Offer, user_id: str) -> str:
    return offer.recipient_id if offer.sender_id == user_id else offer.sender_id


@router.get("", response_model=List[OfferWithParty])
def list_offers(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    offers = _offers_for(db, user.id)

    other_ids = {_other_party_id(o, user.id) for o in offers}
    profiles = {}
    if other_ids:
        profiles = {p.id: p for p in db.query(Profile).filter(Profile.id.in_(other_ids))}

    result = []
    for offer in offers:
        other_id = _other_party_id(offer, user.id)
        profile = profiles.get(other_id)
        party = PartySummary.model_validate(profile) if profile else PartySummary(id=other_id)
        result.append(OfferWithParty(
            **OfferOut.model_validate(offer).model_dump(),
            other_party=party,
            is_sender=offer.sender_id == user.id,
        ))
    return result


@router.get("/threads", response_model=List[OfferThread])
def list_offer_threads(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    # Offers come back newest first, so the first one seen per counterparty wins.
    threads = {}
    for offer in _offers_for(db, user.id):
        other_id = _other_party_id(offer, user.id)
        if other_id in threads:
            continue
        threads[other_id] = OfferThread(
            other_id=other_id,
            last_offer=OfferOut.model_validate(offer),
            is_recipient=offer.recipient_id == user.id,
        )
    return list(threads.values())


@router.get("/thread/{other_id}", response_model=List[OfferOut])
def list_thread_offers(other_id: str, user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return (
        db.query(Offer)
        .filter(or_(
            and_(Offer.sender_id == user.id, Offer.recipient_id == other_id),
            and_(Offer.sender_id == other_id, Offer.recipient_id == user.id),
        ))
        .order_by(Offer.created_at.asc())
        .all()
    )


@router.post("", response_model=OfferOut, status_code=201)
def send_offer(request: SendOfferRequest, user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    if request.recipientId == user.id:
        raise HTTPException(status_code=400, detail="You cannot send an offer to yourself")

    offer = Offer(
        sender_id=user.id,
        recipient_id=request.recipientId,
        title=request.title,
        description=request.description,
        amount_cents=request.amountCents,
        delivery_days=request.deliveryDays,
        status=OfferStatus.PENDING,
    )
    db.add(offer)
    db.commit()
    db.refresh(offer)

    logger.info("Offer %s sent by %s to %s", offer.id, user.id, offer.recipient_id)
    return offer


def _transition_or_400(db, offer_id, match, values, message):
    offer = transition_offer(db, offer_id, match=match, values=values)
    if offer is None:
        raise HTTPException(status_code=400, detail=message)
    logger.info("Offer %s moved to %s", offer_id, offer.status)
    return offer


@router.post("/{offer_id}/decline", response_model=OfferOut)
def decline_offer(offer_id: str, user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return _transition_or_400(
        db, offer_id,
        match={"recipient_id": user.id, "status": OfferStatus.PENDING},
        values={"status": OfferStatus.DECLINED},
        message="Offer not found or no longer pending",
    )


@router.post("/{offer_id}/withdraw", response_model=OfferOut)
def withdraw_offer(offer_id: str, user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return _transition_or_400(
        db, offer_id,
        match={"sender_id": user.id, "status": OfferStatus.PENDING},
        values={"status": OfferStatus.WITHDRAWN},
        message="Offer not found or already withdrawn",
    )


@router.post("/{offer_id}/complete", response_model=OfferOut)
def request_completion(offer_id: str, user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return _transition_or_400(
        db, offer_id,
        match={"sender_id": user.id, "status": OfferStatus.ACCEPTED},
        values={"status": OfferStatus.COMPLETION_REQUESTED, "completion_requested_at": utcnow()},
        message="Offer not found or already marked complete",
    )


@router.post("/{offer_id}/completion", response_model=OfferOut)
def respond_to_completion(
    offer_id: str,
    request: CompletionResponseRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # Rejecting sends the offer back to accepted so the provider can try again.
    new_status = OfferStatus.COMPLETED if request.accept else OfferStatus.ACCEPTED
    return _transition_or_400(
        db, offer_id,
        match={"recipient_id": user.id, "status": OfferStatus.COMPLETION_REQUESTED},
        values={"status": new_status},
        message="Offer not found or completion already responded",
    )
