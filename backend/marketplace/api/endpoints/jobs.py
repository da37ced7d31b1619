from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session, joinedload

from marketplace.auth import Actor, require_roles
from marketplace.database import get_db
from marketplace.models.logistics_job import JobStatus, LogisticsJob
from marketplace.models.order import Order
from marketplace.models.profile import Role
from marketplace.schemas.logistics import JobAssign, JobBoardRow, JobStatusUpdate, LogisticsJobResponse
from marketplace.services.fulfillment import advance_job, assign_job, claim_job, upload_pod

router = APIRouter(prefix="/jobs", tags=["logistics"])


def _board_row(job: LogisticsJob) -> JobBoardRow:
    row = JobBoardRow.model_validate(job)
    if job.order is not None:
        row.order_number = job.order.order_number
        row.product_name = job.order.rfq.product_name if job.order.rfq else None
    return row


def _jobs_query(db: Session):
    return db.query(LogisticsJob).options(joinedload(LogisticsJob.order).joinedload(Order.rfq))


@router.get("", response_model=list[JobBoardRow])
def list_jobs(
    status: str | None = None,
    city: str | None = None,
    actor: Actor = Depends(require_roles(Role.TRANSPORTER, Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """Transporters see the open job board; admins see every job."""
    q = _jobs_query(db)
    if actor.role == Role.TRANSPORTER:
        q = q.filter(LogisticsJob.status == JobStatus.PENDING, LogisticsJob.transporter_id.is_(None))
    elif status:
        q = q.filter(LogisticsJob.status == status)
    jobs = q.order_by(LogisticsJob.created_at.desc(), LogisticsJob.id.desc()).all()
    if city:
        c = city.strip().lower()
        jobs = [j for j in jobs if c in (j.pickup_city.lower(), j.delivery_city.lower())]
    return [_board_row(j) for j in jobs]


@router.get("/mine", response_model=list[JobBoardRow])
def list_my_jobs(
    actor: Actor = Depends(require_roles(Role.TRANSPORTER)),
    db: Session = Depends(get_db),
):
    jobs = (
        _jobs_query(db)
        .filter(LogisticsJob.transporter_id == actor.user_id)
        .order_by(LogisticsJob.created_at.desc(), LogisticsJob.id.desc())
        .all()
    )
    return [_board_row(j) for j in jobs]


@router.post("/{job_id}/claim", response_model=LogisticsJobResponse)
def claim(
    job_id: int,
    actor: Actor = Depends(require_roles(Role.TRANSPORTER)),
    db: Session = Depends(get_db),
):
    return claim_job(db, actor, job_id)


@router.post("/{job_id}/assign", response_model=LogisticsJobResponse)
def assign(
    job_id: int,
    payload: JobAssign,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    return assign_job(db, actor, job_id, payload.transporter_id)


@router.patch("/{job_id}/status", response_model=LogisticsJobResponse)
def update_status(
    job_id: int,
    payload: JobStatusUpdate,
    actor: Actor = Depends(require_roles(Role.TRANSPORTER, Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """Advance delivery. in_transit and delivered are mirrored onto the order."""
    return advance_job(db, actor, job_id, payload.status)


@router.post("/{job_id}/pod", response_model=LogisticsJobResponse)
def upload_proof_of_delivery(
    job_id: int,
    file: UploadFile = File(...),
    actor: Actor = Depends(require_roles(Role.TRANSPORTER, Role.ADMIN)),
    db: Session = Depends(get_db),
):
    return upload_pod(db, actor, job_id, file)
