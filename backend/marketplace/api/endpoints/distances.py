from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from marketplace.auth import Actor, require_roles
from marketplace.database import get_db
from marketplace.models.city_distance import CityDistance
from marketplace.models.profile import Role
from marketplace.schemas.distance import DistanceLookupResponse, DistanceResponse, DistanceUpsert
from marketplace.services.distances import lookup_distance, upsert_distance

router = APIRouter(prefix="/distances", tags=["distances"])


@router.get("", response_model=list[DistanceResponse])
def list_distances(
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    return db.query(CityDistance).order_by(CityDistance.city_from, CityDistance.city_to).all()


@router.get("/lookup", response_model=DistanceLookupResponse)
def lookup(
    city_from: str = Query(..., min_length=1),
    city_to: str = Query(..., min_length=1),
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """Route distance in either direction; found=false means the admin must enter it manually."""
    km = lookup_distance(db, city_from, city_to)
    return DistanceLookupResponse(city_from=city_from, city_to=city_to, found=km is not None, distance_km=km)


@router.post("", response_model=DistanceResponse)
def save_distance(
    payload: DistanceUpsert,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    return upsert_distance(db, payload.city_from, payload.city_to, payload.distance_km)
