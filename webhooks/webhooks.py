import json
import logging

import stripe
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

import config
from payments.checkout import handle_payment_intent_failed, handle_payment_intent_succeeded
from persistence.db import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])


@router.post("/api/payments/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(None),
    db: Session = Depends(get_db),
):
    payload = await request.body()
    if config.STRIPE_WEBHOOK_SECRET:
        try:
            stripe.Webhook.construct_event(payload, stripe_signature, config.STRIPE_WEBHOOK_SECRET)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.error(f"Webhook signature verification failed: {e}")
            raise HTTPException(status_code=400, detail="Invalid Stripe signature")
    else:
        # only for local dev; NOT for prod
        logger.warning("STRIPE_WEBHOOK_SECRET not set, accepting unverified webhook")

    try:
        event = json.loads(payload)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid webhook payload")

    # Handle the event types we care about
    event_type = event.get("type")
    intent = (event.get("data") or {}).get("object") or {}
    if event_type == "payment_intent.succeeded":
        result = handle_payment_intent_succeeded(db, intent)
        return JSONResponse(content={"received": True, "result": result})
    if event_type == "payment_intent.payment_failed":
        result = handle_payment_intent_failed(intent)
        return JSONResponse(content={"received": True, "result": result})

    logger.info(f"Unhandled event type: {event_type}")
    return JSONResponse(content={"received": True})
