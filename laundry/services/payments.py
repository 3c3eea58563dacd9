import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import httpx
from fastapi import HTTPException
from sqlalchemy.orm import Session

from laundry import config
from laundry.models.order import Order
from laundry.models.user import User
from laundry.services.authorization import ActorContext
from laundry.services.events import OrderChanged, order_events
from laundry.services.order_service import get_order_for_actor
from laundry.services.pricing import D
from laundry.utils.enums import OrderStatus, PaymentMethod, PaymentStatus, Role

logger = logging.getLogger("laundry.payments")

STRIPE_CHECKOUT_URL = "https://api.stripe.com/v1/checkout/sessions"
SIGNATURE_TOLERANCE_SECONDS = 300
UNPAYABLE_STATUSES = (OrderStatus.REJECTED, OrderStatus.CANCELLED)


def _minor_units(amount) -> int:
    """Euros to cents, as the provider counts amounts."""
    return int((D(amount) * 100).to_integral_value())


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str


class StripeCheckoutClient:
    """Hosted checkout: we create a session and redirect the customer to its URL."""

    def __init__(self, secret_key: str = None, transport: Optional[httpx.BaseTransport] = None,
                 timeout: float = None):
        self.secret_key = config.STRIPE_SECRET_KEY if secret_key is None else secret_key
        self.transport = transport
        self.timeout = config.HTTP_TIMEOUT_SECONDS if timeout is None else timeout

    def create_session(self, order_id: int, amount: Decimal, currency: str, email: str,
                       user_id: str) -> CheckoutSession:
        if not self.secret_key:
            raise HTTPException(status_code=503, detail="Payment service unavailable")
        form = {
            "mode": "payment",
            "customer_email": email,
            "line_items[0][quantity]": "1",
            "line_items[0][price_data][currency]": currency,
            "line_items[0][price_data][unit_amount]": str(_minor_units(amount)),
            "line_items[0][price_data][product_data][name]": "Pesulapalvelu",
            "line_items[0][price_data][product_data][description]": f"Tilaus #{order_id}",
            "success_url": f"{config.PUBLIC_APP_URL}/app?payment=success&session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{config.PUBLIC_APP_URL}/app?payment=cancelled",
            "metadata[order_id]": str(order_id),
            "metadata[user_id]": user_id,
        }
        try:
            with httpx.Client(transport=self.transport, timeout=self.timeout) as client:
                response = client.post(STRIPE_CHECKOUT_URL, data=form, auth=(self.secret_key, ""))
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            logger.error("checkout session creation failed for order %s: %s", order_id, exc)
            raise HTTPException(status_code=502, detail="Payment provider request failed")
        return CheckoutSession(id=data["id"], url=data["url"])


def get_payment_client() -> StripeCheckoutClient:
    return StripeCheckoutClient()


def create_payment_session(db: Session, actor: ActorContext, order_id: int,
                           client: StripeCheckoutClient) -> CheckoutSession:
    """Open a checkout for the order's authoritative final price; nothing is written if the provider fails."""
    order = get_order_for_actor(db, actor, order_id)
    if actor.role != Role.ADMIN and order.user_id != actor.user_id:
        raise HTTPException(status_code=404, detail="Order not found")
    if order.payment_status == PaymentStatus.PAID:
        raise HTTPException(status_code=400, detail="Order is already paid")
    if order.status in UNPAYABLE_STATUSES:
        raise HTTPException(status_code=400, detail="Order can no longer be paid")
    if D(order.final_price) <= 0:
        raise HTTPException(status_code=400, detail="Nothing to pay")

    owner = db.query(User).filter(User.id == order.user_id).first()
    session = client.create_session(
        order_id=order.id,
        amount=D(order.final_price),
        currency=config.CURRENCY,
        email=owner.email,
        user_id=order.user_id,
    )
    order.stripe_session_id = session.id
    order.payment_method = PaymentMethod.STRIPE
    order.payment_status = PaymentStatus.PENDING
    order.payment_amount = D(order.final_price)
    db.commit()
    logger.info("checkout session opened for order %s", order.id)
    return session


def verify_signature(payload: bytes, header: str, secret: str, now: float = None) -> None:
    """Check a ``t=...,v1=...`` webhook signature header."""
    parts = {}
    for item in (header or "").split(","):
        key, _, value = item.partition("=")
        parts.setdefault(key.strip(), []).append(value.strip())
    try:
        timestamp = int(parts["t"][0])
    except (KeyError, ValueError):
        raise HTTPException(status_code=400, detail="Invalid signature header")
    now = time.time() if now is None else now
    if abs(now - timestamp) > SIGNATURE_TOLERANCE_SECONDS:
        raise HTTPException(status_code=400, detail="Signature timestamp outside tolerance")
    signed = f"{timestamp}.".encode() + payload
    expected = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    if not any(hmac.compare_digest(expected, candidate) for candidate in parts.get("v1", [])):
        raise HTTPException(status_code=400, detail="Invalid signature")


def _matches_order(session: dict, order: Order) -> bool:
    if order.payment_amount is None:
        return False
    if str(session.get("currency") or "").lower() != config.CURRENCY:
        return False
    return session.get("amount_total") == _minor_units(order.payment_amount)


def handle_webhook(db: Session, payload: bytes, signature: Optional[str]) -> bool:
    """Mark the order paid on a completed checkout; returns whether an order changed."""
    if not config.STRIPE_WEBHOOK_SECRET:
        logger.error("webhook received but no signing secret is configured")
        raise HTTPException(status_code=503, detail="Payment webhook unavailable")
    verify_signature(payload, signature, config.STRIPE_WEBHOOK_SECRET)
    try:
        event = json.loads(payload)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid payload")

    if event.get("type") != "checkout.session.completed":
        return False
    session = (event.get("data") or {}).get("object") or {}
    order = db.query(Order).filter(Order.stripe_session_id == session.get("id")).first()
    if order is None:
        logger.warning("completed checkout for unknown session")
        return False
    if order.payment_status == PaymentStatus.PAID:
        return False
    if not _matches_order(session, order):
        logger.error("completed checkout for order %s does not match the stored amount", order.id)
        return False
    order.payment_status = PaymentStatus.PAID
    db.commit()
    logger.info("order %s marked paid", order.id)
    order_events.publish(OrderChanged(order_id=order.id, status=OrderStatus(order.status).value))
    return True
