import logging
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.errors import MissingDistance, ValidationError
from marketplace.models.city_distance import CityDistance, pair_key

logger = logging.getLogger(__name__)


def _norm(city: str | None) -> str:
    return (city or "").strip().lower()


def find_pair(db: Session, city_a: str, city_b: str) -> CityDistance | None:
    """Distance row for the pair, stored in either direction."""
    key_a, key_b = pair_key(city_a, city_b)
    return db.query(CityDistance).filter(CityDistance.key_a == key_a, CityDistance.key_b == key_b).first()


def lookup_distance(db: Session, city_a: str | None, city_b: str | None) -> Decimal | None:
    """Known road distance in km, 0 for the same city, None when the route is unknown."""
    if not _norm(city_a) or not _norm(city_b):
        return None
    if _norm(city_a) == _norm(city_b):
        return Decimal("0")
    row = find_pair(db, city_a, city_b)
    if row is None:
        return None
    return Decimal(str(row.distance_km))


def resolve_distance(
    db: Session,
    pickup_city: str | None,
    delivery_city: str | None,
    manual_override=None,
) -> Decimal:
    """Manual override wins; otherwise the table; otherwise the calculation is blocked."""
    if manual_override is not None:
        override = Decimal(str(manual_override))
        if override < 0:
            raise ValidationError("Distance cannot be negative")
        return override
    distance = lookup_distance(db, pickup_city, delivery_city)
    if distance is None:
        logger.info("resolve_distance: no route %r -> %r", pickup_city, delivery_city)
        raise MissingDistance(
            f"No known route between '{pickup_city or '?'}' and '{delivery_city or '?'}'. "
            "Enter the distance manually."
        )
    return distance


def upsert_distance(db: Session, city_from: str, city_to: str, distance_km) -> CityDistance:
    if not _norm(city_from) or not _norm(city_to):
        raise ValidationError("Both cities are required")
    if _norm(city_from) == _norm(city_to):
        raise ValidationError("A city has no distance to itself")
    km = Decimal(str(distance_km))
    if km < 0:
        raise ValidationError("Distance cannot be negative")
    row = find_pair(db, city_from, city_to)
    if row is not None:
        row.distance_km = km
        db.commit()
        db.refresh(row)
        return row

    key_a, key_b = pair_key(city_from, city_to)
    row = CityDistance(
        city_from=city_from.strip(),
        city_to=city_to.strip(),
        key_a=key_a,
        key_b=key_b,
        distance_km=km,
    )
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        # Same route saved by a concurrent request; update that row
        db.rollback()
        row = find_pair(db, city_from, city_to)
        row.distance_km = km
        db.commit()
        logger.info("upsert_distance: %r <-> %r inserted concurrently, updated instead", city_from, city_to)
    db.refresh(row)
    return row
