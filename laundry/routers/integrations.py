from fastapi import APIRouter, Depends, Header, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from typing import Optional

from laundry.database import get_db
from laundry.deps import get_actor
from laundry.schemas.external import (
    GeocodeRequest, GeocodeResponse, AutocompleteRequest, AutocompleteResponse,
    PaymentRequest, PaymentSessionResponse,
)
from laundry.services import payments
from laundry.services.authorization import ActorContext
from laundry.services.geocoding import GeocodingClient, get_geocoding_client

router = APIRouter(prefix="", tags=["integrations"])


@router.post("/geocode", response_model=GeocodeResponse)
def geocode(body: GeocodeRequest, actor: ActorContext = Depends(get_actor),
            client: GeocodingClient = Depends(get_geocoding_client)):
    return GeocodeResponse(coordinates=client.geocode(body.address))


@router.post("/address-autocomplete", response_model=AutocompleteResponse)
def autocomplete(body: AutocompleteRequest, actor: ActorContext = Depends(get_actor),
                 client: GeocodingClient = Depends(get_geocoding_client)):
    return AutocompleteResponse(suggestions=client.autocomplete(body.text))


@router.post("/payments/session", response_model=PaymentSessionResponse)
def create_payment(body: PaymentRequest, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor),
                   client: payments.StripeCheckoutClient = Depends(payments.get_payment_client)):
    session = payments.create_payment_session(db, actor, body.order_id, client)
    return PaymentSessionResponse(session_id=session.id, url=session.url)


@router.post("/payments/webhook")
async def payment_webhook(request: Request, stripe_signature: Optional[str] = Header(default=None),
                          db: Session = Depends(get_db)):
    payload = await request.body()
    # database work stays off the event loop
    updated = await run_in_threadpool(payments.handle_webhook, db, payload, stripe_signature)
    return {"received": True, "updated": updated}
