"""
Orders and logistics jobs after acceptance.

Order and job are separate machines. Job moves to in_transit / delivered are
projected onto the order; nothing flows back. Completing an order is a manual
admin step.
"""
import logging

from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from marketplace.auth import Actor
from marketplace.errors import (
    Conflict,
    MissingProofOfDelivery,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from marketplace.models.client_offer import ClientOffer
from marketplace.models.document import Document, DocumentType
from marketplace.models.logistics_job import JobStatus, LogisticsJob
from marketplace.models.order import Order, OrderStatus, PaymentStatus
from marketplace.models.profile import Profile, Role
from marketplace.models.supplier_quote import SupplierQuote
from marketplace.services import audit
from marketplace.services.file_service import discard_upload, save_uploaded_file
from marketplace.services.profiles import acting_profile
from marketplace.services.workflow import (
    JOB_TO_ORDER_STATUS,
    TRANSPORTER_SETTABLE,
    can_transition,
    ensure_transition,
    utcnow,
)

logger = logging.getLogger(__name__)


def get_order_or_404(db: Session, order_id: int) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFound("Order not found")
    return order


def get_job_or_404(db: Session, job_id: int) -> LogisticsJob:
    job = db.query(LogisticsJob).options(joinedload(LogisticsJob.order)).filter(LogisticsJob.id == job_id).first()
    if not job:
        raise NotFound("Logistics job not found")
    return job


def ensure_can_view_order(order: Order, actor: Actor) -> None:
    if actor.is_admin:
        return
    if actor.role == Role.BUYER and order.buyer_id == actor.user_id:
        return
    raise PermissionDenied("Not your order")


def verify_payment(db: Session, actor: Actor, order_id: int) -> Order:
    order = get_order_or_404(db, order_id)
    ensure_transition("order", order.status, OrderStatus.PAYMENT_VERIFIED)
    now = utcnow()
    updated = (
        db.query(Order)
        .filter(
            Order.id == order.id,
            Order.payment_status == PaymentStatus.PENDING,
            Order.status == OrderStatus.ACCEPTED,
        )
        .update(
            {
                Order.payment_status: PaymentStatus.VERIFIED,
                Order.payment_verified_at: now,
                Order.status: OrderStatus.PAYMENT_VERIFIED,
            },
            synchronize_session=False,
        )
    )
    if updated != 1:
        db.rollback()
        raise Conflict("Payment was already verified")
    audit.record(db, "order", order.id, OrderStatus.PAYMENT_VERIFIED, actor)
    db.commit()
    db.refresh(order)
    logger.info("verify_payment: order_id=%s", order.id)
    return order


def complete_order(db: Session, actor: Actor, order_id: int) -> Order:
    """Admin sign-off after delivery. Deliberately not derived from the job."""
    order = get_order_or_404(db, order_id)
    ensure_transition("order", order.status, OrderStatus.COMPLETED)
    order.status = OrderStatus.COMPLETED
    order.completed_at = utcnow()
    audit.record(db, "order", order.id, OrderStatus.COMPLETED, actor)
    db.commit()
    db.refresh(order)
    logger.info("complete_order: order_id=%s", order.id)
    return order


def attach_document(db: Session, actor: Actor, order_id: int, document_type: str, upload: UploadFile) -> Document:
    order = get_order_or_404(db, order_id)
    if document_type not in DocumentType.ALL:
        raise ValidationError(f"document_type must be one of {', '.join(DocumentType.ALL)}")
    url, filename = save_uploaded_file(upload, prefix=f"{document_type}_{order.id}_")
    try:
        doc = Document(order_id=order.id, document_type=document_type, filename=filename, url=url, uploaded_by=actor.label)
        db.add(doc)
        db.flush()
        audit.record(db, "order", order.id, f"document_{document_type}", actor)
        db.commit()
    except Exception:
        db.rollback()
        discard_upload(url)
        raise
    db.refresh(doc)
    return doc


def create_logistics_job(db: Session, actor: Actor, order_id: int) -> LogisticsJob:
    order = (
        db.query(Order)
        .options(
            joinedload(Order.rfq),
            joinedload(Order.client_offer).joinedload(ClientOffer.supplier_quote).joinedload(SupplierQuote.supplier),
        )
        .filter(Order.id == order_id)
        .first()
    )
    if not order:
        raise NotFound("Order not found")
    if order.status != OrderStatus.PAYMENT_VERIFIED:
        raise Conflict("Logistics can only be arranged once payment is verified")
    if order.logistics_job is not None:
        raise Conflict("Order already has a logistics job")

    offer = order.client_offer
    supplier = offer.supplier_quote.supplier if offer.supplier_quote else None
    pickup_city = offer.pickup_city or (supplier.city if supplier else None) or "TBD"
    pickup_address = (supplier.address if supplier else None) or f"Supplier Warehouse, {pickup_city}"
    rfq = order.rfq

    job = LogisticsJob(
        order_id=order.id,
        pickup_address=pickup_address,
        pickup_city=pickup_city,
        delivery_address=rfq.delivery_address or rfq.delivery_city,
        delivery_city=rfq.delivery_city,
        distance_km=offer.distance_km,
        agreed_rate=offer.logistics_fee,
        status=JobStatus.PENDING,
    )
    db.add(job)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise Conflict("Order already has a logistics job") from e
    audit.record(db, "logistics_job", job.id, "created", actor)
    db.commit()
    db.refresh(job)
    logger.info("create_logistics_job: order_id=%s job_id=%s pickup=%s", order.id, job.id, pickup_city)
    return job


def _approved_transporter(db: Session, transporter_id: int) -> Profile:
    profile = db.query(Profile).filter(Profile.id == transporter_id).first()
    if profile is None or profile.role != Role.TRANSPORTER:
        raise NotFound("Transporter not found")
    if not profile.is_approved:
        raise PermissionDenied("Transporter is awaiting admin approval")
    return profile


def _take_job(db: Session, actor: Actor, job: LogisticsJob, transporter_id: int) -> LogisticsJob:
    updated = (
        db.query(LogisticsJob)
        .filter(
            LogisticsJob.id == job.id,
            LogisticsJob.status == JobStatus.PENDING,
            LogisticsJob.transporter_id.is_(None),
        )
        .update(
            {LogisticsJob.transporter_id: transporter_id, LogisticsJob.status: JobStatus.ASSIGNED},
            synchronize_session=False,
        )
    )
    if updated != 1:
        db.rollback()
        raise Conflict("Job has already been taken")
    audit.record(db, "logistics_job", job.id, JobStatus.ASSIGNED, actor)
    db.commit()
    db.refresh(job)
    logger.info("assign_job: job_id=%s transporter_id=%s by=%s", job.id, transporter_id, actor.label)
    return job


def claim_job(db: Session, actor: Actor, job_id: int) -> LogisticsJob:
    """Transporter self-assigns an open job."""
    acting_profile(db, actor)
    job = get_job_or_404(db, job_id)
    return _take_job(db, actor, job, actor.user_id)


def assign_job(db: Session, actor: Actor, job_id: int, transporter_id: int) -> LogisticsJob:
    job = get_job_or_404(db, job_id)
    _approved_transporter(db, transporter_id)
    return _take_job(db, actor, job, transporter_id)


def _ensure_job_actor(db: Session, job: LogisticsJob, actor: Actor) -> None:
    if actor.is_admin:
        return
    if actor.role != Role.TRANSPORTER or job.transporter_id != actor.user_id:
        raise PermissionDenied("Job is assigned to another transporter")
    # A suspended transporter keeps the job but cannot move it
    acting_profile(db, actor)


def _mirror_to_order(db: Session, actor: Actor, job: LogisticsJob, job_status: str) -> None:
    order_status = JOB_TO_ORDER_STATUS.get(job_status)
    if order_status is None:
        return
    order = job.order
    if order.status == order_status:
        return
    if not can_transition("order", order.status, order_status):
        logger.warning(
            "mirror skipped: order_id=%s status=%s cannot follow job to %s",
            order.id, order.status, order_status,
        )
        return
    order.status = order_status
    audit.record(db, "order", order.id, order_status, actor)


def advance_job(db: Session, actor: Actor, job_id: int, new_status: str) -> LogisticsJob:
    job = get_job_or_404(db, job_id)
    _ensure_job_actor(db, job, actor)
    if new_status not in TRANSPORTER_SETTABLE:
        raise ValidationError(f"Status '{new_status}' cannot be set directly")
    if new_status == JobStatus.COMPLETED and not job.pod_url:
        raise MissingProofOfDelivery("Upload proof of delivery before completing the job")
    ensure_transition("logistics_job", job.status, new_status)

    now = utcnow()
    job.status = new_status
    if new_status in (JobStatus.PICKED_UP, JobStatus.IN_TRANSIT) and job.pickup_scheduled_at is None:
        job.pickup_scheduled_at = now
    elif new_status == JobStatus.DELIVERED:
        job.delivered_at = now
    elif new_status == JobStatus.COMPLETED:
        job.completed_at = now
    audit.record(db, "logistics_job", job.id, new_status, actor)
    _mirror_to_order(db, actor, job, new_status)
    db.commit()
    db.refresh(job)
    logger.info("advance_job: job_id=%s status=%s by=%s", job.id, new_status, actor.label)
    return job


def upload_pod(db: Session, actor: Actor, job_id: int, upload: UploadFile) -> LogisticsJob:
    job = get_job_or_404(db, job_id)
    _ensure_job_actor(db, job, actor)
    ensure_transition("logistics_job", job.status, JobStatus.POD_UPLOADED)
    url, filename = save_uploaded_file(upload, prefix=f"pod_{job.id}_")
    try:
        job.pod_url = url
        job.pod_uploaded_at = utcnow()
        job.status = JobStatus.POD_UPLOADED
        db.add(Document(
            order_id=job.order_id,
            document_type=DocumentType.POD,
            filename=filename,
            url=url,
            uploaded_by=actor.label,
        ))
        audit.record(db, "logistics_job", job.id, JobStatus.POD_UPLOADED, actor)
        db.commit()
    except Exception:
        db.rollback()
        discard_upload(url)
        logger.warning("upload_pod: job_id=%s not saved, removed %s", job_id, url)
        raise
    db.refresh(job)
    logger.info("upload_pod: job_id=%s url=%s", job.id, url)
    return job
