from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session, joinedload

from marketplace.auth import Actor, require_roles
from marketplace.database import get_db
from marketplace.models.order import Order
from marketplace.models.profile import Role
from marketplace.schemas.logistics import LogisticsJobResponse
from marketplace.schemas.offer import BuyerOfferResponse
from marketplace.schemas.order import (
    DocumentResponse,
    JobSummary,
    OrderDetailResponse,
    OrderListRow,
    OrderResponse,
)
from marketplace.services.fulfillment import (
    attach_document,
    complete_order,
    create_logistics_job,
    ensure_can_view_order,
    get_order_or_404,
    verify_payment,
)

router = APIRouter(prefix="/orders", tags=["orders"])


def _list_row(order: Order) -> OrderListRow:
    row = OrderListRow.model_validate(order)
    row.rfq_reference = order.rfq.reference_number if order.rfq else None
    row.product_name = order.rfq.product_name if order.rfq else None
    if order.logistics_job is not None:
        row.logistics_job = JobSummary.model_validate(order.logistics_job)
    return row


@router.get("", response_model=list[OrderListRow])
def list_orders(
    status: str | None = None,
    actor: Actor = Depends(require_roles(Role.BUYER, Role.ADMIN)),
    db: Session = Depends(get_db),
):
    q = db.query(Order).options(joinedload(Order.rfq), joinedload(Order.logistics_job))
    if not actor.is_admin:
        q = q.filter(Order.buyer_id == actor.user_id)
    if status:
        q = q.filter(Order.status == status)
    return [_list_row(o) for o in q.order_by(Order.created_at.desc(), Order.id.desc()).all()]


@router.get("/{order_id}", response_model=OrderDetailResponse)
def get_order(
    order_id: int,
    actor: Actor = Depends(require_roles(Role.BUYER, Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """Order with the buyer-safe offer fields, delivery progress and documents."""
    order = get_order_or_404(db, order_id)
    ensure_can_view_order(order, actor)
    row = _list_row(order)
    return OrderDetailResponse(
        **row.model_dump(),
        offer=BuyerOfferResponse.model_validate(order.client_offer),
        documents=[DocumentResponse.model_validate(d) for d in order.documents],
    )


@router.post("/{order_id}/verify-payment", response_model=OrderResponse)
def verify_order_payment(
    order_id: int,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    return verify_payment(db, actor, order_id)


@router.post("/{order_id}/complete", response_model=OrderResponse)
def complete(
    order_id: int,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """Manual sign-off once the goods are delivered."""
    return complete_order(db, actor, order_id)


@router.post("/{order_id}/documents", response_model=DocumentResponse, status_code=201)
def upload_document(
    order_id: int,
    document_type: str = Form(...),
    file: UploadFile = File(...),
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    return attach_document(db, actor, order_id, document_type, file)


@router.post("/{order_id}/logistics-job", response_model=LogisticsJobResponse, status_code=201)
def create_job(
    order_id: int,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    return create_logistics_job(db, actor, order_id)
