from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import or_
from sqlalchemy.orm import Session, contains_eager, joinedload

from marketplace.auth import Actor, get_actor, require_roles
from marketplace.database import get_db
from marketplace.models.product import ProductCategory, SupplierProduct
from marketplace.models.profile import Profile, Role
from marketplace.schemas.product import (
    CatalogRow,
    CategoryCreate,
    CategoryResponse,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)
from marketplace.services.catalog import (
    create_category,
    create_product,
    delete_product,
    get_product_or_404,
    toggle_product,
    update_product,
)

router = APIRouter(tags=["catalog"])


def _product_row(product: SupplierProduct) -> ProductResponse:
    row = ProductResponse.model_validate(product)
    row.category_name = product.category.name if product.category else None
    return row


def _search(q, term: str | None):
    if not term:
        return q
    like = f"%{term.strip()}%"
    return q.filter(
        or_(
            SupplierProduct.name.ilike(like),
            SupplierProduct.description.ilike(like),
        )
    )


@router.get("/categories", response_model=list[CategoryResponse])
def list_categories(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return db.query(ProductCategory).order_by(ProductCategory.name).all()


@router.post("/categories", response_model=CategoryResponse, status_code=201)
def add_category(
    payload: CategoryCreate,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    return create_category(db, actor, payload.name, payload.description)


@router.post("/products", response_model=ProductResponse, status_code=201)
def add_product(
    payload: ProductCreate,
    actor: Actor = Depends(require_roles(Role.SUPPLIER)),
    db: Session = Depends(get_db),
):
    return _product_row(create_product(db, actor, **payload.model_dump()))


@router.get("/products/mine", response_model=list[ProductResponse])
def list_my_products(
    q: str | None = None,
    status: str = "all",
    actor: Actor = Depends(require_roles(Role.SUPPLIER)),
    db: Session = Depends(get_db),
):
    """The supplier's own listings. status is all | active | inactive."""
    if status not in ("all", "active", "inactive"):
        raise HTTPException(status_code=422, detail="status must be all, active or inactive")
    query = (
        db.query(SupplierProduct)
        .options(joinedload(SupplierProduct.category))
        .filter(SupplierProduct.supplier_id == actor.user_id)
    )
    if status != "all":
        query = query.filter(SupplierProduct.is_active.is_(status == "active"))
    query = _search(query, q)
    products = query.order_by(SupplierProduct.created_at.desc(), SupplierProduct.id.desc()).all()
    return [_product_row(p) for p in products]


@router.get("/products/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: int,
    actor: Actor = Depends(require_roles(Role.SUPPLIER, Role.ADMIN)),
    db: Session = Depends(get_db),
):
    product = get_product_or_404(db, product_id)
    if not actor.is_admin and product.supplier_id != actor.user_id:
        raise HTTPException(status_code=403, detail="Not your product")
    return _product_row(product)


@router.patch("/products/{product_id}", response_model=ProductResponse)
def edit_product(
    product_id: int,
    payload: ProductUpdate,
    actor: Actor = Depends(require_roles(Role.SUPPLIER)),
    db: Session = Depends(get_db),
):
    return _product_row(update_product(db, actor, product_id, payload.model_dump(exclude_unset=True)))


@router.post("/products/{product_id}/toggle-active", response_model=ProductResponse)
def toggle_active(
    product_id: int,
    actor: Actor = Depends(require_roles(Role.SUPPLIER)),
    db: Session = Depends(get_db),
):
    return _product_row(toggle_product(db, actor, product_id))


@router.delete("/products/{product_id}", status_code=204)
def remove_product(
    product_id: int,
    actor: Actor = Depends(require_roles(Role.SUPPLIER)),
    db: Session = Depends(get_db),
):
    delete_product(db, actor, product_id)
    return Response(status_code=204)


@router.get("/catalog", response_model=list[CatalogRow])
def admin_catalog(
    category_id: int | None = None,
    q: str | None = None,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """Active listings of approved suppliers with contact details, for sourcing RFQs."""
    query = (
        db.query(SupplierProduct)
        .join(SupplierProduct.supplier)
        .options(contains_eager(SupplierProduct.supplier), joinedload(SupplierProduct.category))
        .filter(SupplierProduct.is_active.is_(True), Profile.is_approved.is_(True))
    )
    if category_id is not None:
        query = query.filter(SupplierProduct.category_id == category_id)
    query = _search(query, q)
    rows = []
    for p in query.order_by(SupplierProduct.name, SupplierProduct.id).all():
        row = CatalogRow(**_product_row(p).model_dump())
        if p.supplier is not None:
            row.supplier_company = p.supplier.company_name
            row.supplier_contact_person = p.supplier.contact_person
            row.supplier_email = p.supplier.contact_email
            row.supplier_phone = p.supplier.phone
            row.supplier_city = p.supplier.city
        rows.append(row)
    return rows
