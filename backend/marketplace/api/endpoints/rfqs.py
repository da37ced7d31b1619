import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from marketplace.auth import Actor, get_actor, require_roles
from marketplace.database import get_db
from marketplace.models.product import ProductCategory
from marketplace.models.profile import Role
from marketplace.models.rfq import RFQ, RFQStatus
from marketplace.models.supplier_quote import SupplierQuote
from marketplace.schemas.offer import AdminOfferResponse, BuyerOfferResponse
from marketplace.schemas.rfq import RFQCreate, RFQResponse, RFQStatusUpdate, RFQListRow
from marketplace.services import audit
from marketplace.services.profiles import acting_profile
from marketplace.services.workflow import ensure_transition, is_terminal, make_reference

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/rfqs", tags=["rfqs"])


def _get_rfq_or_404(db: Session, rfq_id: int) -> RFQ:
    rfq = db.query(RFQ).filter(RFQ.id == rfq_id).first()
    if not rfq:
        raise HTTPException(status_code=404, detail="RFQ not found")
    return rfq


def _ensure_can_view(db: Session, rfq: RFQ, actor: Actor) -> None:
    if actor.is_admin:
        return
    if actor.role == Role.BUYER and rfq.buyer_id == actor.user_id:
        return
    if actor.role == Role.SUPPLIER:
        if rfq.status in RFQStatus.OPEN:
            return
        quoted = (
            db.query(SupplierQuote.id)
            .filter(SupplierQuote.rfq_id == rfq.id, SupplierQuote.supplier_id == actor.user_id)
            .first()
        )
        if quoted:
            return
    raise HTTPException(status_code=403, detail="Not allowed to view this RFQ")


@router.post("", response_model=RFQResponse, status_code=201)
def create_rfq(
    payload: RFQCreate,
    actor: Actor = Depends(require_roles(Role.BUYER)),
    db: Session = Depends(get_db),
):
    acting_profile(db, actor)
    if payload.product_category_id is not None and db.get(ProductCategory, payload.product_category_id) is None:
        raise HTTPException(status_code=422, detail="Unknown product category")
    rfq = RFQ(
        buyer_id=actor.user_id,
        product_name=payload.product_name.strip(),
        product_category_id=payload.product_category_id,
        quantity=payload.quantity,
        unit=payload.unit.strip(),
        delivery_address=payload.delivery_address.strip(),
        delivery_city=payload.delivery_city.strip(),
        delivery_province=payload.delivery_province.strip(),
        delivery_postal_code=payload.delivery_postal_code or None,
        required_by=payload.required_by,
        additional_notes=payload.additional_notes or None,
        status=RFQStatus.NEW,
    )
    db.add(rfq)
    db.flush()
    rfq.reference_number = make_reference("RFQ", rfq.id)
    audit.record(db, "rfq", rfq.id, "created", actor)
    db.commit()
    db.refresh(rfq)
    logger.info("create_rfq: id=%s ref=%s buyer=%s", rfq.id, rfq.reference_number, actor.user_id)
    return rfq


@router.get("", response_model=list[RFQListRow])
def list_rfqs(
    status: str | None = None,
    actor: Actor = Depends(require_roles(Role.BUYER, Role.SUPPLIER, Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """Buyers see their own RFQs, suppliers see open ones, admins see everything with quote counts."""
    q = db.query(RFQ).options(joinedload(RFQ.buyer), joinedload(RFQ.category))
    if actor.role == Role.BUYER:
        q = q.filter(RFQ.buyer_id == actor.user_id)
    elif actor.role == Role.SUPPLIER:
        q = q.filter(RFQ.status.in_(RFQStatus.OPEN))
    if status:
        q = q.filter(RFQ.status == status)
    rfqs = q.order_by(RFQ.created_at.desc(), RFQ.id.desc()).all()

    counts: dict[int, int] = {}
    if actor.is_admin and rfqs:
        counts = dict(
            db.query(SupplierQuote.rfq_id, func.count(SupplierQuote.id))
            .filter(SupplierQuote.rfq_id.in_([r.id for r in rfqs]))
            .group_by(SupplierQuote.rfq_id)
            .all()
        )
    rows = []
    for r in rfqs:
        row = RFQListRow.model_validate(r)
        row.category_name = r.category.name if r.category else None
        if actor.is_admin:
            row.buyer_company = r.buyer.company_name if r.buyer else None
            row.quote_count = counts.get(r.id, 0)
        rows.append(row)
    return rows


@router.get("/{rfq_id}", response_model=RFQResponse)
def get_rfq(rfq_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    rfq = _get_rfq_or_404(db, rfq_id)
    _ensure_can_view(db, rfq, actor)
    return rfq


@router.patch("/{rfq_id}/status", response_model=RFQResponse)
def update_rfq_status(
    rfq_id: int,
    payload: RFQStatusUpdate,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """Admin marks an RFQ as being sourced. Quoted/accepted are reached through offers only."""
    rfq = _get_rfq_or_404(db, rfq_id)
    ensure_transition("rfq", rfq.status, payload.status)
    rfq.status = payload.status
    audit.record(db, "rfq", rfq.id, payload.status, actor)
    db.commit()
    db.refresh(rfq)
    return rfq


@router.post("/{rfq_id}/cancel", response_model=RFQResponse)
def cancel_rfq(
    rfq_id: int,
    actor: Actor = Depends(require_roles(Role.BUYER, Role.ADMIN)),
    db: Session = Depends(get_db),
):
    rfq = _get_rfq_or_404(db, rfq_id)
    if not actor.is_admin and rfq.buyer_id != actor.user_id:
        raise HTTPException(status_code=403, detail="Only the buyer who raised the RFQ can cancel it")
    if is_terminal("rfq", rfq.status):
        raise HTTPException(status_code=409, detail=f"RFQ is already '{rfq.status}'")
    ensure_transition("rfq", rfq.status, RFQStatus.CANCELLED)
    rfq.status = RFQStatus.CANCELLED
    audit.record(db, "rfq", rfq.id, RFQStatus.CANCELLED, actor)
    db.commit()
    db.refresh(rfq)
    logger.info("cancel_rfq: id=%s by=%s", rfq.id, actor.label)
    return rfq


@router.get("/{rfq_id}/offer", response_model=AdminOfferResponse | BuyerOfferResponse)
def get_rfq_offer(
    rfq_id: int,
    actor: Actor = Depends(require_roles(Role.BUYER, Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """The client offer for an RFQ. Buyers get the final price only; admins get the full breakdown."""
    rfq = _get_rfq_or_404(db, rfq_id)
    _ensure_can_view(db, rfq, actor)
    if rfq.offer is None:
        raise HTTPException(status_code=404, detail="No offer published for this RFQ yet")
    if actor.is_admin:
        return AdminOfferResponse.model_validate(rfq.offer)
    return BuyerOfferResponse.model_validate(rfq.offer)
