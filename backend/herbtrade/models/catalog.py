from __future__ import annotations

from ..extensions import db
from herbtrade.time_utils import to_utc_z


PRODUCT_QUALITIES = ("Premium", "Standard", "Organic")
QUANTITY_UNITS = ("grams", "count")


class Product(db.Model):
    """
    Catalog item sold by a staff member.

    `in_stock` is reserved at order creation and restored on cancellation,
    so it is written under the version_id optimistic lock.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category", "category"),
        db.CheckConstraint("in_stock >= 0", name="ck_products_in_stock_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    price = db.Column(db.Numeric(12, 2), nullable=False)
    image = db.Column(db.String(512), nullable=True)
    category = db.Column(db.String(64), nullable=False)
    quality = db.Column(db.String(16), nullable=False, default="Standard")
    in_stock = db.Column(db.Integer, nullable=False, default=0)
    quantity_unit = db.Column(db.String(16), nullable=False, default="grams")

    seller_id = db.Column(db.Integer, db.ForeignKey("principals.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    seller = db.relationship("Principal", foreign_keys=[seller_id])
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": float(self.price) if self.price is not None else None,
            "image": self.image,
            "category": self.category,
            "quality": self.quality,
            "in_stock": self.in_stock,
            "quantity_unit": self.quantity_unit,
            "seller_id": self.seller_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
