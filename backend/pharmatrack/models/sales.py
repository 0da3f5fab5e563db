from __future__ import annotations

from ..extensions import db
from pharmatrack.time_utils import to_utc_z

PAYMENT_METHODS = ("cash", "card", "check", "online")


class Sale(db.Model):
    """
    Sale ledger header.

    Append-only: a sale is written once inside the sale transaction and
    never updated or deleted afterwards.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint(
            "payment_method IN ('cash', 'card', 'check', 'online')",
            name="ck_sales_payment_method",
        ),
        db.Index("ix_sales_user_created", "user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Clerk who rang up the sale
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # subtotal + tax at creation time, in cents
    total_cents = db.Column(db.Integer, nullable=False)
    # Rate the total was taxed at; receipts reuse it
    tax_rate_bps = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(16), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    clerk = db.relationship("User", backref=db.backref("sales", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "clerk_name": self.clerk.name if self.clerk else None,
            "total_cents": self.total_cents,
            "tax_rate_bps": self.tax_rate_bps,
            "payment_method": self.payment_method,
            "created_at": to_utc_z(self.created_at),
        }


class SaleItem(db.Model):
    """Line items on a sale; unit_price_cents is the price captured at sale time."""
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", backref=db.backref("items", lazy=True, order_by="SaleItem.id"))
    product = db.relationship("Product")

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.unit_price_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
            "created_at": to_utc_z(self.created_at),
        }
