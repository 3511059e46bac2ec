# services/order_form.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from config import DEFAULT_GST_PERCENT
from schemas import ORDER_NO_SLASH_MESSAGE, LineItem, Order, OrderStatus, OrderTotals
from services.errors import DuplicateOrderError, ValidationError
from services.line_items import LineItemEditor, renumber, sanitize_items
from utils.code_generator import next_order_no

logger = logging.getLogger(__name__)

HEADER_FIELDS = (
    "order_no",
    "customer_name",
    "contact_person",
    "phone",
    "machine_name",
    "remarks",
    "delivery_note",
    "delivery_note_date",
    "buyer_order_no",
    "buyer_order_date",
)


def parse_gst_percent(value) -> float:
    """blank / junk -> 0"""
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def compute_totals(items: Iterable[LineItem], gst_percent) -> OrderTotals:
    subtotal = sum(i.amount for i in items)
    gst = subtotal * (parse_gst_percent(gst_percent) / 100)
    return OrderTotals(subtotal=subtotal, gst=gst, total=subtotal + gst)


class OrderForm:
    """
    Header fields + line-item editor for one order being created.

    ``store`` is the storage boundary (needs ``exists`` and ``save``).
    ``confirm_overwrite(order_no)`` is asked before replacing an existing order.
    """

    def __init__(
        self,
        store,
        confirm_overwrite: Optional[Callable[[str], bool]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        default_gst_percent: float = DEFAULT_GST_PERCENT,
    ):
        self.store = store
        self.confirm_overwrite = confirm_overwrite or (lambda order_no: False)
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.default_gst_percent = default_gst_percent
        self.editor = LineItemEditor(on_change=self._items_changed)
        self.active_view = "create"
        self.totals = OrderTotals(subtotal=0, gst=0, total=0)
        self.clear()

    # ---------- totals ----------
    def _items_changed(self, items) -> None:
        self.update_totals()

    def update_totals(self) -> OrderTotals:
        self.totals = compute_totals(self.editor.items, self.gst_percent)
        return self.totals

    def set_gst_percent(self, value) -> OrderTotals:
        self.gst_percent = value
        return self.update_totals()

    # ---------- lifecycle ----------
    def clear(self) -> None:
        for name in HEADER_FIELDS:
            setattr(self, name, "")
        self.date = self.clock().astimezone().date().isoformat()
        self.gst_percent = self.default_gst_percent
        self.editor.clear()
        self.update_totals()

    def fill(self, data) -> "OrderForm":
        """Copy a posted OrderSubmit into the form fields."""
        for name in HEADER_FIELDS:
            setattr(self, name, getattr(data, name, "") or "")
        if data.date:
            self.date = data.date
        if data.gst_percent is not None:
            self.gst_percent = data.gst_percent
        self.editor.load(data.items)
        return self

    def submit(self) -> Order:
        customer_name = (self.customer_name or "").strip()
        if not customer_name:
            logger.warning("order rejected: customer name missing")
            raise ValidationError("Please enter Customer name", field="customer_name")

        valid = sanitize_items(self.editor.items)
        if not valid:
            logger.warning("order rejected: no valid items")
            raise ValidationError("Please add at least one valid item with Rate", field="items")
        self.editor.items = renumber(valid)
        totals = self.update_totals()

        now = self.clock()
        if "/" in (self.order_no or ""):
            logger.warning("order rejected: order number contains '/'")
            raise ValidationError(ORDER_NO_SLASH_MESSAGE, field="order_no")
        order_no = (self.order_no or "").strip() or next_order_no(self.store.exists, now)
        if self.store.exists(order_no) and not self.confirm_overwrite(order_no):
            logger.info(f"overwrite of {order_no} declined")
            raise DuplicateOrderError(order_no)

        order = Order(
            order_no=order_no,
            date=self.date,
            customer_name=customer_name,
            contact_person=(self.contact_person or "").strip(),
            phone=(self.phone or "").strip(),
            status=OrderStatus.NEW.value,
            machine_name=(self.machine_name or "").strip(),
            items=list(self.editor.items),
            subtotal=totals.subtotal,
            gst=totals.gst,
            total=totals.total,
            remarks=(self.remarks or "").strip(),
            delivery_note=(self.delivery_note or "").strip(),
            delivery_note_date=self.delivery_note_date or "",
            buyer_order_no=(self.buyer_order_no or "").strip(),
            buyer_order_date=self.buyer_order_date or "",
            created_date=now.isoformat(),
        )

        # BoundaryError propagates and the form keeps its data
        self.store.save(order)
        logger.info(f"order {order_no} saved ({len(order.items)} items, total {order.total:.2f})")
        self.clear()
        self.active_view = "view"
        return order
