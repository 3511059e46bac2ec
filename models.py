# models.py
from sqlalchemy import (
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from database import Base


# =========================================
# ================ Orders =================
# =========================================

class Order(Base):
    __tablename__ = "orders"

    order_no = Column(String, primary_key=True)
    date = Column(String, nullable=False)              # YYYY-MM-DD
    customer_name = Column(String, nullable=False)
    contact_person = Column(String)
    phone = Column(String)
    status = Column(String, nullable=False, default="New")
    machine_name = Column(String)

    subtotal = Column(Float, nullable=False, default=0.0)
    gst = Column(Float, nullable=False, default=0.0)
    total = Column(Float, nullable=False, default=0.0)

    remarks = Column(Text)
    delivery_note = Column(String)
    delivery_note_date = Column(String)
    buyer_order_no = Column(String)
    buyer_order_date = Column(String)
    created_date = Column(String, nullable=False)      # ISO-8601

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderItem.sl_no",
    )

    __table_args__ = (
        Index("idx_order_status", "status"),
        Index("idx_order_date", "date"),
    )

    def __repr__(self):
        return f"<Order(order_no={self.order_no}, customer_name={self.customer_name}, status={self.status})>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_no = Column(
        String,
        ForeignKey("orders.order_no", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sl_no = Column(Integer, nullable=False)
    item_type = Column(String)
    qty = Column(Float, nullable=False, default=0.0)
    length = Column(String)
    dia = Column(String)
    shore = Column(String)
    remarks = Column(String)
    rate = Column(Float, nullable=False)
    amount = Column(Float, nullable=False)

    order = relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem(order_no={self.order_no}, sl_no={self.sl_no}, amount={self.amount})>"
