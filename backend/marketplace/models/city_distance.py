from sqlalchemy import Column, Integer, String, Numeric, UniqueConstraint

from marketplace.models.base import Base


def pair_key(city_a: str, city_b: str) -> tuple[str, str]:
    """Lower-cased pair in sorted order; the same for both directions."""
    a, b = sorted(((city_a or "").strip().lower(), (city_b or "").strip().lower()))
    return a, b


class CityDistance(Base):
    """Road distance between two cities. Looked up in either direction."""
    __tablename__ = "city_distances"
    __table_args__ = (UniqueConstraint("key_a", "key_b", name="uq_city_distances_pair"),)

    id = Column(Integer, primary_key=True, index=True)
    city_from = Column(String(120), nullable=False)
    city_to = Column(String(120), nullable=False)
    # Normalised pair for lookups and uniqueness; see pair_key
    key_a = Column(String(120), nullable=False, index=True)
    key_b = Column(String(120), nullable=False, index=True)
    distance_km = Column(Numeric(10, 2), nullable=False)
