from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, joinedload

from marketplace.auth import Actor, require_roles
from marketplace.database import get_db
from marketplace.models.profile import Role
from marketplace.models.rfq import RFQ
from marketplace.models.supplier_quote import SupplierQuote
from marketplace.schemas.quote import QuoteSubmit, SupplierQuoteResponse, MyQuoteRow, AdminQuoteRow
from marketplace.services.quotes import quote_state, submit_quote

router = APIRouter(tags=["quotes"])


@router.put("/rfqs/{rfq_id}/quote", response_model=SupplierQuoteResponse)
def put_quote(
    rfq_id: int,
    payload: QuoteSubmit,
    actor: Actor = Depends(require_roles(Role.SUPPLIER)),
    db: Session = Depends(get_db),
):
    """Submit or revise this supplier's quote. Total price is derived from the RFQ quantity."""
    return submit_quote(
        db,
        actor,
        rfq_id,
        price_per_unit=payload.price_per_unit,
        lead_time_days=payload.lead_time_days,
        valid_until=payload.valid_until,
        notes=payload.notes,
    )


@router.get("/rfqs/{rfq_id}/quote", response_model=SupplierQuoteResponse)
def get_my_quote_for_rfq(
    rfq_id: int,
    actor: Actor = Depends(require_roles(Role.SUPPLIER)),
    db: Session = Depends(get_db),
):
    quote = (
        db.query(SupplierQuote)
        .filter(SupplierQuote.rfq_id == rfq_id, SupplierQuote.supplier_id == actor.user_id)
        .first()
    )
    if not quote:
        raise HTTPException(status_code=404, detail="You have not quoted on this RFQ")
    return quote


@router.get("/rfqs/{rfq_id}/quotes", response_model=list[AdminQuoteRow])
def list_rfq_quotes(
    rfq_id: int,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """All supplier quotes on an RFQ, cheapest first, with the supplier's location for distance lookup."""
    if not db.query(RFQ.id).filter(RFQ.id == rfq_id).first():
        raise HTTPException(status_code=404, detail="RFQ not found")
    quotes = (
        db.query(SupplierQuote)
        .options(joinedload(SupplierQuote.supplier))
        .filter(SupplierQuote.rfq_id == rfq_id)
        .order_by(SupplierQuote.total_price.asc(), SupplierQuote.id.asc())
        .all()
    )
    rows = []
    for q in quotes:
        row = AdminQuoteRow.model_validate(q)
        if q.supplier:
            row.supplier_company = q.supplier.company_name
            row.supplier_city = q.supplier.city
        rows.append(row)
    return rows


@router.get("/quotes/mine", response_model=list[MyQuoteRow])
def list_my_quotes(
    state: str | None = None,
    actor: Actor = Depends(require_roles(Role.SUPPLIER)),
    db: Session = Depends(get_db),
):
    """Supplier's quotes with state selected / pending / expired."""
    quotes = (
        db.query(SupplierQuote)
        .options(joinedload(SupplierQuote.rfq))
        .filter(SupplierQuote.supplier_id == actor.user_id)
        .order_by(SupplierQuote.created_at.desc(), SupplierQuote.id.desc())
        .all()
    )
    rows = []
    for q in quotes:
        s = quote_state(q)
        if state and s != state:
            continue
        rows.append(MyQuoteRow(
            **SupplierQuoteResponse.model_validate(q).model_dump(),
            state=s,
            rfq_reference=q.rfq.reference_number,
            product_name=q.rfq.product_name,
            quantity=q.rfq.quantity,
            unit=q.rfq.unit,
            rfq_status=q.rfq.status,
        ))
    return rows
