import logging
from datetime import date
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.auth import Actor
from marketplace.errors import Conflict, NotFound, ValidationError
from marketplace.models.rfq import RFQ, RFQStatus
from marketplace.models.supplier_quote import SupplierQuote
from marketplace.services import audit
from marketplace.services.profiles import acting_profile
from marketplace.services.workflow import ensure_transition

logger = logging.getLogger(__name__)


def quote_total(price_per_unit, quantity) -> Decimal:
    return Decimal(str(price_per_unit)) * Decimal(str(quantity))


def quote_state(quote: SupplierQuote, today: date | None = None) -> str:
    """Supplier-facing state: selected, pending or expired."""
    today = today or date.today()
    if quote.is_selected:
        return "selected"
    if quote.valid_until < today:
        return "expired"
    return "pending"


def submit_quote(
    db: Session,
    actor: Actor,
    rfq_id: int,
    price_per_unit,
    lead_time_days: int,
    valid_until: date,
    notes: str | None = None,
) -> SupplierQuote:
    """Create or revise the supplier's one quote on an open RFQ."""
    acting_profile(db, actor)
    rfq = db.query(RFQ).filter(RFQ.id == rfq_id).first()
    if not rfq:
        raise NotFound("RFQ not found")
    if rfq.status not in RFQStatus.OPEN:
        raise Conflict(f"RFQ is '{rfq.status}' and no longer accepts quotes")
    price = Decimal(str(price_per_unit))
    if price <= 0:
        raise ValidationError("Price per unit must be positive")
    if lead_time_days < 0:
        raise ValidationError("Lead time cannot be negative")
    if valid_until < date.today():
        raise ValidationError("Validity date is in the past")

    quote = (
        db.query(SupplierQuote)
        .filter(SupplierQuote.rfq_id == rfq_id, SupplierQuote.supplier_id == actor.user_id)
        .first()
    )
    action = "updated"
    if quote is None:
        quote = SupplierQuote(rfq_id=rfq_id, supplier_id=actor.user_id, is_selected=False)
        db.add(quote)
        action = "created"
    elif quote.is_selected:
        raise Conflict("Quote has been selected for a client offer and can no longer change")

    quote.price_per_unit = price
    quote.total_price = quote_total(price, rfq.quantity)
    quote.lead_time_days = lead_time_days
    quote.valid_until = valid_until
    quote.notes = notes

    # First quote in means sourcing is under way
    if rfq.status == RFQStatus.NEW:
        ensure_transition("rfq", rfq.status, RFQStatus.SOURCING)
        rfq.status = RFQStatus.SOURCING
        audit.record(db, "rfq", rfq.id, RFQStatus.SOURCING, actor)

    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise Conflict("A quote from this supplier already exists for the RFQ") from e
    audit.record(db, "supplier_quote", quote.id, action, actor)
    db.commit()
    db.refresh(quote)
    logger.info("submit_quote: rfq_id=%s quote_id=%s supplier=%s %s", rfq_id, quote.id, actor.user_id, action)
    return quote
