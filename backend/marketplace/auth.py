"""
Actor claims for the current request.

Authentication happens upstream; the gateway forwards the authenticated user id
and the role claim issued at sign-in as X-User-Id / X-User-Role. The role is a
claim of the session, never a field a user can flip on their own profile.
"""
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException

from marketplace.models.profile import Role


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: str

    @property
    def label(self) -> str:
        return f"{self.role}:{self.user_id}"

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def get_actor(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    x_user_role: str | None = Header(None, alias="X-User-Role"),
) -> Actor:
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=401, detail="Missing X-User-Id / X-User-Role claims")
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="X-User-Id must be an integer") from None
    role = x_user_role.strip().lower()
    if role not in Role.ALL:
        raise HTTPException(status_code=401, detail=f"Unknown role claim '{x_user_role}'")
    return Actor(user_id=user_id, role=role)


def require_roles(*roles: str):
    """Dependency factory: the actor must hold one of the given roles."""

    def _check(actor: Actor = Depends(get_actor)) -> Actor:
        if actor.role not in roles:
            raise HTTPException(
                status_code=403,
                detail=f"Role '{actor.role}' may not perform this action",
            )
        return actor

    return _check
