import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from marketplace.auth import Actor, require_roles
from marketplace.database import get_db
from marketplace.models.client_offer import ClientOffer
from marketplace.models.profile import Role
from marketplace.schemas.offer import (
    AdminOfferResponse,
    OfferCreate,
    OfferCreateResponse,
    OfferPreviewResponse,
    OfferPricingInput,
    PriceBreakdownResponse,
)
from marketplace.schemas.order import OrderResponse
from marketplace.services.offers import OfferQuote, accept_offer, create_client_offer, preview_offer

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/offers", tags=["offers"])


def _breakdown(priced: OfferQuote) -> PriceBreakdownResponse:
    b = priced.breakdown
    return PriceBreakdownResponse(
        supplier_cost=b.supplier_cost,
        margin_percent=b.margin_percent,
        margin_amount=b.margin_amount,
        distance_km=b.distance_km,
        logistics_rate_per_km=b.rate_per_km,
        computed_logistics=b.computed_logistics,
        min_logistics_fee=b.min_logistics_fee,
        logistics_fee=b.logistics_fee,
        minimum_fee_applied=b.minimum_fee_applied,
        subtotal=b.subtotal,
        vat_percent=b.vat_percent,
        vat_amount=b.vat_amount,
        final_total=b.final_total,
    )


def _preview_fields(priced: OfferQuote) -> dict:
    return {
        "supplier_quote_id": priced.supplier_quote_id,
        "rfq_id": priced.rfq_id,
        "pickup_city": priced.pickup_city,
        "delivery_city": priced.delivery_city,
        "distance_source": priced.distance_source,
        "estimated_delivery_days": priced.estimated_delivery_days,
        "breakdown": _breakdown(priced),
    }


@router.post("/preview", response_model=OfferPreviewResponse)
def preview(
    payload: OfferPricingInput,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """Margin calculator: price a supplier quote without publishing anything."""
    priced = preview_offer(
        db,
        payload.supplier_quote_id,
        margin_percent=payload.margin_percent,
        logistics_rate_per_km=payload.logistics_rate_per_km,
        min_logistics_fee=payload.min_logistics_fee,
        distance_km=payload.distance_km,
        pickup_city=payload.pickup_city,
    )
    return OfferPreviewResponse(**_preview_fields(priced))


@router.post("", response_model=OfferCreateResponse, status_code=201)
def calculate_client_offer(
    payload: OfferCreate,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """Select the supplier quote, publish the buyer price and move the RFQ to quoted."""
    offer, priced = create_client_offer(
        db,
        actor,
        payload.supplier_quote_id,
        margin_percent=payload.margin_percent,
        logistics_rate_per_km=payload.logistics_rate_per_km,
        min_logistics_fee=payload.min_logistics_fee,
        valid_days=payload.valid_days,
        distance_km=payload.distance_km,
        pickup_city=payload.pickup_city,
    )
    return OfferCreateResponse(
        **_preview_fields(priced),
        offer_id=offer.id,
        valid_until=offer.valid_until,
        status=offer.status,
    )


@router.get("/{offer_id}", response_model=AdminOfferResponse)
def get_offer(
    offer_id: int,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    offer = db.query(ClientOffer).filter(ClientOffer.id == offer_id).first()
    if not offer:
        raise HTTPException(status_code=404, detail="Client offer not found")
    return offer


@router.post("/{offer_id}/accept", response_model=OrderResponse, status_code=201)
def accept(
    offer_id: int,
    actor: Actor = Depends(require_roles(Role.BUYER)),
    db: Session = Depends(get_db),
):
    """Buyer accepts the offer; the order is created in the same transaction."""
    return accept_offer(db, actor, offer_id)
