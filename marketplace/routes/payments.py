import logging
import math

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from marketplace.auth import CurrentUser, get_current_user
from marketplace.database import get_db
from marketplace.errors import route_guard
from marketplace.models import CrowdfundingNotification, CrowdfundingProject, Offer, OfferStatus, PledgeStatus, ProjectStatus
from marketplace.schemas import CrowdfundingPaymentRequest, OfferPaymentRequest, PaymentConfirmationRequest, PledgeOut
from marketplace.store import accept_paid_offer, upsert_pledge
from marketplace.stripe_service import CROWDFUNDING_INTENT_TYPE, create_payment, intent_metadata, retrieve_payment

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stripe", tags=["payments"])

MIN_OFFER_AMOUNT_CENTS = 50
MIN_INVESTMENT_AMOUNT_CENTS = 100

RADIX_PREFIXES = {"0x": 16, "0o": 8, "0b": 2}


def format_dollars(cents: int) -> str:
    return f"${cents / 100:.2f}"


def coerce_amount_cents(value):
    """Round a client-supplied amount to whole cents, half up.

    Returns None when the value is not a finite number.
    """
    if isinstance(value, bool):
        value = int(value)
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        number = _parse_numeric_string(value.strip())
        if number is None:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return math.floor(number + 0.5)


def _parse_numeric_string(text: str):
    # Same grammar as a JS numeric string: blank is 0, unsigned 0x/0o/0b
    # integers, otherwise an ASCII decimal literal without digit separators.
    if not text:
        return 0.0
    if not text.isascii() or "_" in text:
        return None
    prefix = text[:2].lower()
    if prefix in RADIX_PREFIXES:
        if not text[2:].isalnum():
            return None
        try:
            return float(int(text[2:], RADIX_PREFIXES[prefix]))
        except (ValueError, OverflowError):
            return None
    try:
        return float(text)
    except ValueError:
        return None


def _require_string(value, field: str) -> str:
    if not value or not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{field} is required")
    return value


def _retrieve_succeeded_intent(payment_intent_id: str):
    intent = retrieve_payment(payment_intent_id)
    if intent.status != "succeeded":
        raise HTTPException(status_code=400, detail="Payment not completed")
    return intent


@router.post("/create-payment-intent")
def create_offer_payment_intent(
    request: OfferPaymentRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with route_guard("create-payment-intent", "Failed to create payment intent"):
        offer_id = _require_string(request.offerId, "offerId")

        offer = db.get(Offer, offer_id)
        if not offer:
            raise HTTPException(status_code=404, detail="Offer not found")
        if offer.recipient_id != user.id:
            raise HTTPException(status_code=403, detail="You can only pay for offers sent to you")
        if offer.status != OfferStatus.PENDING:
            raise HTTPException(status_code=400, detail="Offer is no longer pending")
        if offer.amount_cents < MIN_OFFER_AMOUNT_CENTS:
            raise HTTPException(
                status_code=400,
                detail=f"Minimum amount is {format_dollars(MIN_OFFER_AMOUNT_CENTS)}",
            )

        intent = create_payment(
            offer.amount_cents,
            metadata={
                "offer_id": offer.id,
                "recipient_id": user.id,
                "sender_id": offer.sender_id,
            },
        )
        logger.info("Created payment intent %s for offer %s", intent.id, offer.id)

        return {"clientSecret": intent.client_secret}


@router.post("/accept-offer-after-payment")
def accept_offer_after_payment(
    request: PaymentConfirmationRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with route_guard("accept-offer-after-payment", "Failed to accept offer"):
        payment_intent_id = _require_string(request.paymentIntentId, "paymentIntentId")

        intent = _retrieve_succeeded_intent(payment_intent_id)
        metadata = intent_metadata(intent)

        offer_id = metadata.get("offer_id")
        if not offer_id:
            raise HTTPException(status_code=400, detail="Invalid payment")
        if metadata.get("recipient_id") != user.id:
            raise HTTPException(status_code=403, detail="Payment does not belong to you")

        offer = accept_paid_offer(db, offer_id, user.id)
        if offer is None:
            raise HTTPException(status_code=400, detail="Failed to accept offer or already accepted")

        logger.info("Offer %s accepted after payment %s", offer_id, payment_intent_id)
        return {"success": True}


@router.post("/crowdfunding-payment-intent")
def create_crowdfunding_payment_intent(
    request: CrowdfundingPaymentRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with route_guard("crowdfunding-payment-intent", "Failed to create payment intent"):
        project_id = _require_string(request.projectId, "projectId")

        amount = coerce_amount_cents(request.amountCents)
        if amount is None or amount < MIN_INVESTMENT_AMOUNT_CENTS:
            raise HTTPException(
                status_code=400,
                detail=f"Amount must be at least {format_dollars(MIN_INVESTMENT_AMOUNT_CENTS)}",
            )

        project = db.get(CrowdfundingProject, project_id)
        if not project:
            raise HTTPException(status_code=404, detail="Project not found")
        if project.status not in ProjectStatus.ACCEPTING_INVESTMENTS:
            raise HTTPException(status_code=400, detail="Project is not accepting investments")
        if amount < project.min_investment_cents:
            raise HTTPException(
                status_code=400,
                detail=f"Minimum investment is {format_dollars(project.min_investment_cents)}",
            )

        intent = create_payment(
            amount,
            metadata={
                "type": CROWDFUNDING_INTENT_TYPE,
                "project_id": project_id,
                "user_id": user.id,
            },
        )
        logger.info("Created payment intent %s for project %s (%s cents)", intent.id, project_id, amount)

        return {"clientSecret": intent.client_secret, "paymentIntentId": intent.id}


@router.post("/confirm-crowdfunding-payment")
def confirm_crowdfunding_payment(
    request: PaymentConfirmationRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with route_guard("confirm-crowdfunding-payment", "Failed to confirm payment"):
        payment_intent_id = _require_string(request.paymentIntentId, "paymentIntentId")

        intent = _retrieve_succeeded_intent(payment_intent_id)
        metadata = intent_metadata(intent)

        if metadata.get("type") != CROWDFUNDING_INTENT_TYPE:
            raise HTTPException(status_code=400, detail="Invalid payment type")
        project_id = metadata.get("project_id")
        if not project_id:
            raise HTTPException(status_code=400, detail="Invalid payment")
        if metadata.get("user_id") != user.id:
            raise HTTPException(status_code=403, detail="Payment does not belong to you")

        amount_cents = intent.amount
        try:
            pledge = upsert_pledge(db, project_id, user.id, amount_cents, PledgeStatus.CONFIRMED)
        except Exception:
            db.rollback()
            logger.exception("Failed to record pledge for project %s", project_id)
            raise HTTPException(status_code=500, detail="Failed to record investment")

        pledge_out = PledgeOut.model_validate(pledge).model_dump(mode="json")
        _notify_investment_confirmed(db, pledge, amount_cents)

        logger.info("Pledge %s confirmed by payment %s", pledge_out["id"], payment_intent_id)
        return {"success": True, "pledge": pledge_out}


def _notify_investment_confirmed(db: Session, pledge, amount_cents: int):
    # Best effort: the pledge is already committed and stays that way.
    pledge_id, project_id, user_id = pledge.id, pledge.project_id, pledge.user_id
    try:
        project = db.get(CrowdfundingProject, project_id)
        title = project.title if project else "project"
        db.add(CrowdfundingNotification(
            user_id=user_id,
            project_id=project_id,
            pledge_id=pledge_id,
            type="project_update",
            title="Investment confirmed",
            message=f"Your investment of {format_dollars(amount_cents)} in {title} has been confirmed.",
        ))
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to record confirmation notification for pledge %s", pledge_id)
