import logging

import stripe

import config
from booking_schemas import CardPaymentResult, PaymentIntentResult

logger = logging.getLogger(__name__)


class StripeCardPayment:
    """
    Confirms a card payment against the PaymentIntent named by a client secret.
    The card is either a PaymentMethod id ("pm_...") or raw card fields.
    """

    def __init__(self, api_key: str = None):
        self.api_key = api_key or config.STRIPE_API_KEY

    def confirm_card_payment(self, client_secret: str, payment_details: dict) -> CardPaymentResult:
        intent_id = client_secret.split("_secret_")[0]
        method = payment_details.get("payment_method") or {}
        card = method.get("card")

        params = {}
        if isinstance(card, str):
            params["payment_method"] = card
        else:
            params["payment_method_data"] = {
                "type": "card",
                "card": card or {},
                "billing_details": method.get("billing_details") or {},
            }
        if payment_details.get("receipt_email"):
            params["receipt_email"] = payment_details["receipt_email"]

        try:
            intent = stripe.PaymentIntent.confirm(intent_id, api_key=self.api_key, **params)
        except stripe.StripeError as e:
            logger.warning(f"Card payment for {intent_id} declined: {e}")
            return CardPaymentResult(error=e.user_message or str(e))

        return CardPaymentResult(payment_intent=PaymentIntentResult(id=intent.id, status=intent.status))
