"""Product categories and supplier catalog listings."""
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.auth import Actor
from marketplace.errors import Conflict, NotFound, PermissionDenied, ValidationError
from marketplace.models.product import ProductCategory, SupplierProduct
from marketplace.services import audit
from marketplace.services.profiles import acting_profile

logger = logging.getLogger(__name__)

# Fields of ProductUpdate a supplier may change on a listing
EDITABLE_FIELDS = (
    "category_id",
    "name",
    "description",
    "price_per_unit",
    "unit",
    "minimum_order_quantity",
    "stock_available",
    "lead_time_days",
    "location_city",
    "location_province",
    "is_active",
)


def create_category(db: Session, actor: Actor, name: str, description: str | None = None) -> ProductCategory:
    clean = name.strip()
    if not clean:
        raise ValidationError("Category name is required")
    exists = db.query(ProductCategory.id).filter(func.lower(ProductCategory.name) == clean.lower()).first()
    if exists:
        raise Conflict(f"Category '{clean}' already exists")
    category = ProductCategory(name=clean, description=description)
    db.add(category)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise Conflict(f"Category '{clean}' already exists") from e
    audit.record(db, "product_category", category.id, "created", actor)
    db.commit()
    db.refresh(category)
    return category


def _ensure_category(db: Session, category_id: int) -> ProductCategory:
    category = db.get(ProductCategory, category_id)
    if category is None:
        raise ValidationError("Unknown product category")
    return category


def get_product_or_404(db: Session, product_id: int) -> SupplierProduct:
    product = db.get(SupplierProduct, product_id)
    if product is None:
        raise NotFound("Product not found")
    return product


def _own_product(db: Session, actor: Actor, product_id: int) -> SupplierProduct:
    product = get_product_or_404(db, product_id)
    if product.supplier_id != actor.user_id:
        raise PermissionDenied("Not your product")
    return product


def create_product(db: Session, actor: Actor, **fields) -> SupplierProduct:
    """New listing for an approved supplier. Listings start active."""
    profile = acting_profile(db, actor)
    _ensure_category(db, fields["category_id"])
    product = SupplierProduct(supplier_id=actor.user_id, is_active=True, **fields)
    if not product.location_city:
        product.location_city = profile.city
    if not product.location_province:
        product.location_province = profile.province
    db.add(product)
    db.flush()
    audit.record(db, "supplier_product", product.id, "created", actor)
    db.commit()
    db.refresh(product)
    logger.info("create_product: id=%s supplier=%s", product.id, actor.user_id)
    return product


def update_product(db: Session, actor: Actor, product_id: int, changes: dict) -> SupplierProduct:
    acting_profile(db, actor)
    product = _own_product(db, actor, product_id)
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot change {', '.join(sorted(unknown))}")
    for field in ("category_id", "name", "price_per_unit", "unit", "minimum_order_quantity", "lead_time_days", "is_active"):
        if field in changes and changes[field] is None:
            raise ValidationError(f"{field} cannot be empty")
    if "category_id" in changes:
        _ensure_category(db, changes["category_id"])
    for field, value in changes.items():
        setattr(product, field, value)
    audit.record(db, "supplier_product", product.id, "updated", actor)
    db.commit()
    db.refresh(product)
    return product


def toggle_product(db: Session, actor: Actor, product_id: int) -> SupplierProduct:
    product = _own_product(db, actor, product_id)
    return update_product(db, actor, product_id, {"is_active": not product.is_active})


def delete_product(db: Session, actor: Actor, product_id: int) -> None:
    acting_profile(db, actor)
    product = _own_product(db, actor, product_id)
    db.delete(product)
    audit.record(db, "supplier_product", product_id, "deleted", actor)
    db.commit()
    logger.info("delete_product: id=%s supplier=%s", product_id, actor.user_id)
