"""
Client offers: pricing a selected supplier quote and the buyer's acceptance.

Both writes here are compare-and-set updates inside one transaction. A racing admin
or a double-clicked accept loses with Conflict instead of materialising twice.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from marketplace.auth import Actor
from marketplace.errors import (
    AlreadySelected,
    Conflict,
    InvalidTransition,
    MarketplaceError,
    NotFound,
    OfferExpired,
    PermissionDenied,
    ValidationError,
)
from marketplace.models.client_offer import ClientOffer, OfferStatus
from marketplace.models.order import Order, OrderStatus, PaymentStatus
from marketplace.models.rfq import RFQ, RFQStatus
from marketplace.models.supplier_quote import SupplierQuote
from marketplace.services import audit
from marketplace.services.distances import resolve_distance
from marketplace.services.pricing import PriceBreakdown, calculate_price, estimate_delivery_days
from marketplace.services.profiles import acting_profile
from marketplace.services.workflow import as_utc, ensure_transition, make_reference, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OfferQuote:
    """Everything the admin calculator shows for one supplier quote."""
    supplier_quote_id: int
    rfq_id: int
    pickup_city: str | None
    delivery_city: str
    distance_km: Decimal
    distance_source: str  # "manual" | "table"
    breakdown: PriceBreakdown
    estimated_delivery_days: int


def _load_quote(db: Session, supplier_quote_id: int) -> SupplierQuote:
    quote = (
        db.query(SupplierQuote)
        .options(joinedload(SupplierQuote.rfq), joinedload(SupplierQuote.supplier))
        .filter(SupplierQuote.id == supplier_quote_id)
        .first()
    )
    if not quote:
        raise NotFound("Supplier quote not found")
    return quote


def supplier_city(quote: SupplierQuote) -> str | None:
    supplier = quote.supplier
    return (supplier.city or None) if supplier else None


def price_quote(
    db: Session,
    quote: SupplierQuote,
    margin_percent,
    logistics_rate_per_km,
    min_logistics_fee,
    distance_km=None,
    pickup_city: str | None = None,
) -> OfferQuote:
    pickup = (pickup_city or "").strip() or supplier_city(quote)
    delivery = quote.rfq.delivery_city
    distance = resolve_distance(db, pickup, delivery, manual_override=distance_km)
    breakdown = calculate_price(
        supplier_cost=quote.total_price,
        margin_percent=margin_percent,
        distance_km=distance,
        rate_per_km=logistics_rate_per_km,
        min_logistics_fee=min_logistics_fee,
    )
    return OfferQuote(
        supplier_quote_id=quote.id,
        rfq_id=quote.rfq_id,
        pickup_city=pickup,
        delivery_city=delivery,
        distance_km=distance,
        distance_source="manual" if distance_km is not None else "table",
        breakdown=breakdown,
        estimated_delivery_days=estimate_delivery_days(quote.lead_time_days, distance),
    )


def preview_offer(db: Session, supplier_quote_id: int, **pricing) -> OfferQuote:
    """Admin calculator preview. Writes nothing."""
    return price_quote(db, _load_quote(db, supplier_quote_id), **pricing)


def create_client_offer(
    db: Session,
    actor: Actor,
    supplier_quote_id: int,
    margin_percent,
    logistics_rate_per_km,
    min_logistics_fee,
    valid_days: int,
    distance_km=None,
    pickup_city: str | None = None,
) -> tuple[ClientOffer, OfferQuote]:
    quote = _load_quote(db, supplier_quote_id)
    rfq = quote.rfq
    if quote.is_selected:
        raise AlreadySelected("Supplier quote is already selected for a client offer")
    ensure_transition("rfq", rfq.status, RFQStatus.QUOTED)
    if valid_days < 1:
        raise ValidationError("Offer must be valid for at least one day")

    priced = price_quote(
        db,
        quote,
        margin_percent=margin_percent,
        logistics_rate_per_km=logistics_rate_per_km,
        min_logistics_fee=min_logistics_fee,
        distance_km=distance_km,
        pickup_city=pickup_city,
    )
    b = priced.breakdown
    now = utcnow()

    try:
        selected = (
            db.query(SupplierQuote)
            .filter(SupplierQuote.id == quote.id, SupplierQuote.is_selected.is_(False))
            .update({SupplierQuote.is_selected: True, SupplierQuote.selected_at: now}, synchronize_session=False)
        )
        if selected != 1:
            raise AlreadySelected("Supplier quote is already selected for a client offer")
        others = (
            db.query(SupplierQuote)
            .filter(
                SupplierQuote.rfq_id == rfq.id,
                SupplierQuote.id != quote.id,
                SupplierQuote.is_selected.is_(True),
            )
            .count()
        )
        if others:
            raise AlreadySelected("Another quote on this RFQ is already selected")

        moved = (
            db.query(RFQ)
            .filter(RFQ.id == rfq.id, RFQ.status == RFQStatus.SOURCING)
            .update({RFQ.status: RFQStatus.QUOTED}, synchronize_session=False)
        )
        if moved != 1:
            raise InvalidTransition("RFQ is no longer in sourcing")

        offer = ClientOffer(
            rfq_id=rfq.id,
            supplier_quote_id=quote.id,
            created_by=actor.user_id,
            supplier_cost=b.supplier_cost,
            margin_percent=b.margin_percent,
            margin_amount=b.margin_amount,
            distance_km=priced.distance_km,
            pickup_city=priced.pickup_city,
            logistics_rate_per_km=b.rate_per_km,
            min_logistics_fee=b.min_logistics_fee,
            logistics_fee=b.logistics_fee,
            subtotal=b.subtotal,
            vat_percent=b.vat_percent,
            vat_amount=b.vat_amount,
            final_total=b.final_total,
            estimated_delivery_days=priced.estimated_delivery_days,
            valid_until=now + timedelta(days=valid_days),
            status=OfferStatus.PENDING,
        )
        db.add(offer)
        db.flush()
        audit.record(db, "supplier_quote", quote.id, "selected", actor)
        audit.record(db, "client_offer", offer.id, "created", actor)
        audit.record(db, "rfq", rfq.id, RFQStatus.QUOTED, actor)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict("A client offer already exists for this RFQ") from e
    except MarketplaceError:
        db.rollback()
        raise

    db.refresh(offer)
    logger.info(
        "create_client_offer: rfq_id=%s quote_id=%s offer_id=%s final_total=%s",
        rfq.id, quote.id, offer.id, offer.final_total,
    )
    return offer, priced


def accept_offer(db: Session, actor: Actor, offer_id: int) -> Order:
    """Buyer accepts a pending offer: offer, RFQ and new Order commit together or not at all."""
    offer = (
        db.query(ClientOffer)
        .options(joinedload(ClientOffer.rfq))
        .filter(ClientOffer.id == offer_id)
        .first()
    )
    if not offer:
        raise NotFound("Client offer not found")
    rfq = offer.rfq
    if rfq.buyer_id != actor.user_id:
        raise PermissionDenied("Only the buyer who raised the RFQ can accept its offer")
    acting_profile(db, actor)
    if offer.status != OfferStatus.PENDING:
        raise Conflict(f"Offer is already '{offer.status}'")
    now = utcnow()
    if as_utc(offer.valid_until) < now:
        logger.info("accept_offer: offer_id=%s expired at %s", offer_id, offer.valid_until)
        raise OfferExpired("This offer has expired. Ask for a new quote.")

    try:
        claimed = (
            db.query(ClientOffer)
            .filter(
                ClientOffer.id == offer.id,
                ClientOffer.status == OfferStatus.PENDING,
                ClientOffer.valid_until >= now,
            )
            .update({ClientOffer.status: OfferStatus.ACCEPTED, ClientOffer.accepted_at: now}, synchronize_session=False)
        )
        if claimed != 1:
            raise Conflict("Offer was accepted or expired in the meantime")
        moved = (
            db.query(RFQ)
            .filter(RFQ.id == rfq.id, RFQ.status == RFQStatus.QUOTED)
            .update({RFQ.status: RFQStatus.ACCEPTED}, synchronize_session=False)
        )
        if moved != 1:
            raise InvalidTransition(f"RFQ is '{rfq.status}' and cannot be accepted")

        order = Order(
            rfq_id=rfq.id,
            client_offer_id=offer.id,
            buyer_id=actor.user_id,
            total_amount=offer.final_total,
            vat_amount=offer.vat_amount,
            payment_status=PaymentStatus.PENDING,
            status=OrderStatus.ACCEPTED,
        )
        db.add(order)
        db.flush()
        order.order_number = make_reference("ORD", order.id, now)
        audit.record(db, "client_offer", offer.id, OfferStatus.ACCEPTED, actor)
        audit.record(db, "rfq", rfq.id, RFQStatus.ACCEPTED, actor)
        audit.record(db, "order", order.id, "created", actor)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict("An order already exists for this RFQ") from e
    except MarketplaceError:
        db.rollback()
        raise

    db.refresh(order)
    logger.info("accept_offer: offer_id=%s order_id=%s order_number=%s", offer.id, order.id, order.order_number)
    return order
