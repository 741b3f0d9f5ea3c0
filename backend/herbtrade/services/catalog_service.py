# Overview: Service-layer operations for the product catalog; search, create and update.

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Product
from ..models.catalog import PRODUCT_QUALITIES, QUANTITY_UNITS
from .concurrency import run_with_retry
from .permission_service import AccessDeniedError


LIST_LIMIT = 50
SORT_OPTIONS = {
    "price_low": Product.price.asc(),
    "price_high": Product.price.desc(),
    "newest": Product.created_at.desc(),
}
EDITABLE_FIELDS = ("name", "description", "price", "image", "category", "quality", "in_stock", "quantity_unit")


def _parse_price(value) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError("Price must be a non-negative number")
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("Price must be a non-negative number")
    if not price.is_finite() or price < 0:
        raise ValidationError("Price must be a non-negative number")
    return price


def _parse_stock(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError("in_stock must be a non-negative integer")
    return value


def _clean(data: dict) -> dict:
    """Validate and coerce the editable fields present in data."""
    cleaned = {}
    for field in EDITABLE_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field == "price":
            value = _parse_price(value)
        elif field == "in_stock":
            value = _parse_stock(value)
        elif field == "quality" and value not in PRODUCT_QUALITIES:
            raise ValidationError(f"Invalid quality. Must be one of: {', '.join(PRODUCT_QUALITIES)}")
        elif field == "quantity_unit" and value not in QUANTITY_UNITS:
            raise ValidationError(f"Invalid quantity unit. Must be one of: {', '.join(QUANTITY_UNITS)}")
        elif field in ("name", "category") and (not isinstance(value, str) or not value.strip()):
            raise ValidationError(f"{field} is required")
        cleaned[field] = value
    return cleaned


def list_products(
    search: str | None = None,
    category: str | None = None,
    min_price=None,
    max_price=None,
    quality: str | None = None,
    sort: str | None = None,
) -> list[Product]:
    query = db.session.query(Product)
    if search:
        pattern = f"%{search}%"
        query = query.filter(db.or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
    if category:
        query = query.filter(Product.category == category)
    if min_price is not None:
        query = query.filter(Product.price >= _parse_price(min_price))
    if max_price is not None:
        query = query.filter(Product.price <= _parse_price(max_price))
    if quality:
        query = query.filter(Product.quality == quality)

    order = SORT_OPTIONS.get(sort, Product.created_at.desc())
    return query.order_by(order, Product.id.desc()).limit(LIST_LIMIT).all()


def list_categories() -> list[str]:
    rows = db.session.query(Product.category).distinct().order_by(Product.category).all()
    return [row[0] for row in rows]


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def create_product(seller, data: dict) -> Product:
    """Create a product owned by the calling staff member (or admin)."""
    if not isinstance(data, dict):
        raise ValidationError("Request body must be an object")
    missing = [field for field in ("name", "price", "category") if data.get(field) in (None, "")]
    if missing:
        raise ValidationError("All required fields must be provided", details=", ".join(missing))

    fields = _clean(data)
    fields.setdefault("description", "")
    product = Product(seller_id=seller.id, **fields)
    db.session.add(product)
    db.session.commit()
    return product


def update_product(product_id: int, data: dict, actor) -> Product:
    """
    Edit a product. Staff may edit only their own products; admins may edit any.
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be an object")
    changes = _clean(data)

    def _op():
        product = get_product(product_id)
        if actor.role != "admin" and product.seller_id != actor.id:
            raise AccessDeniedError()
        for field, value in changes.items():
            setattr(product, field, value)
        db.session.commit()
        return product

    return run_with_retry(_op)
