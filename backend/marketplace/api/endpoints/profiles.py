import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from marketplace.auth import Actor, get_actor, require_roles
from marketplace.database import get_db
from marketplace.models.profile import Profile, Role
from marketplace.schemas.profile import ProfileCreate, ProfileApproval, ProfileResponse, ProfileUpdate
from marketplace.services import audit
from marketplace.services.profiles import acting_profile, get_profile_or_404

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.post("", response_model=ProfileResponse, status_code=201)
def register_profile(payload: ProfileCreate, db: Session = Depends(get_db)):
    """Self-registration. Buyers can trade at once; suppliers and transporters wait for approval."""
    profile = Profile(
        company_name=payload.company_name.strip(),
        role=payload.role,
        contact_person=payload.contact_person,
        contact_email=payload.contact_email,
        phone=payload.phone,
        vat_number=payload.vat_number,
        address=payload.address,
        city=(payload.city or "").strip() or None,
        province=payload.province,
        postal_code=payload.postal_code,
        is_approved=payload.role == Role.BUYER,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    logger.info("register_profile: id=%s role=%s", profile.id, profile.role)
    return profile


@router.get("", response_model=list[ProfileResponse])
def list_profiles(
    role: str | None = None,
    approved: bool | None = None,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    q = db.query(Profile)
    if role:
        q = q.filter(Profile.role == role)
    if approved is not None:
        q = q.filter(Profile.is_approved.is_(approved))
    return q.order_by(Profile.created_at.desc(), Profile.id.desc()).all()


@router.get("/me", response_model=ProfileResponse)
def get_my_profile(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return acting_profile(db, actor, require_approved=False)


@router.patch("/me", response_model=ProfileResponse)
def update_my_profile(payload: ProfileUpdate, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    """Company details from the settings page. Suspended accounts may still correct them."""
    profile = acting_profile(db, actor, require_approved=False)
    changes = payload.model_dump(exclude_unset=True)
    if "company_name" in changes:
        if changes["company_name"] is None:
            raise HTTPException(status_code=422, detail="company_name cannot be empty")
        changes["company_name"] = changes["company_name"].strip()
    if "city" in changes:
        changes["city"] = (changes["city"] or "").strip() or None
    for field, value in changes.items():
        setattr(profile, field, value)
    audit.record(db, "profile", profile.id, "updated", actor)
    db.commit()
    db.refresh(profile)
    logger.info("update_my_profile: id=%s fields=%s", profile.id, ",".join(sorted(changes)))
    return profile


@router.get("/{profile_id}", response_model=ProfileResponse)
def get_profile(profile_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return get_profile_or_404(db, profile_id)


@router.patch("/{profile_id}/approval", response_model=ProfileResponse)
def set_approval(
    profile_id: int,
    payload: ProfileApproval,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """Approve or suspend a participant."""
    profile = get_profile_or_404(db, profile_id)
    if profile.role == Role.ADMIN:
        raise HTTPException(status_code=400, detail="Admin accounts cannot be suspended")
    profile.is_approved = payload.is_approved
    audit.record(db, "profile", profile.id, "approved" if payload.is_approved else "suspended", actor)
    db.commit()
    db.refresh(profile)
    return profile
