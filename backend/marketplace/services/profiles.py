from sqlalchemy.orm import Session

from marketplace.auth import Actor
from marketplace.errors import NotFound, PermissionDenied
from marketplace.models.profile import Profile


def get_profile_or_404(db: Session, profile_id: int) -> Profile:
    profile = db.query(Profile).filter(Profile.id == profile_id).first()
    if not profile:
        raise NotFound("Profile not found")
    return profile


def acting_profile(db: Session, actor: Actor, require_approved: bool = True) -> Profile:
    """Profile behind the actor claim; role must match and, by default, be approved."""
    profile = db.query(Profile).filter(Profile.id == actor.user_id).first()
    if profile is None:
        raise PermissionDenied("No profile registered for this user")
    if profile.role != actor.role:
        raise PermissionDenied("Role claim does not match the registered profile")
    if require_approved and not profile.is_approved:
        raise PermissionDenied("Account is awaiting admin approval")
    return profile
