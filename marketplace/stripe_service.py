import stripe

from marketplace.config import get_payment_currency, get_stripe_secret_key

CROWDFUNDING_INTENT_TYPE = "crowdfunding_invest"


def _configure():
    key = get_stripe_secret_key()
    if not key:
        raise RuntimeError("STRIPE_SECRET_KEY is not configured")
    stripe.api_key = key


def create_payment(amount: int, metadata: dict, currency: str = None):
    _configure()
    return stripe.PaymentIntent.create(
        amount=amount,
        currency=currency or get_payment_currency(),
        automatic_payment_methods={"enabled": True},
        metadata=metadata,
    )


def retrieve_payment(payment_intent_id: str):
    _configure()
    return stripe.PaymentIntent.retrieve(payment_intent_id)


def intent_metadata(intent) -> dict:
    metadata = getattr(intent, "metadata", None)
    if metadata is None:
        return {}
    if hasattr(metadata, "to_dict"):
        return metadata.to_dict()
    return dict(metadata)
