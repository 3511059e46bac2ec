# services/order_store.py
"""
Storage boundary: everything that touches the database or the filesystem.

Callers get plain schema objects back (``schemas.Order``), never ORM rows.
Failures are raised as BoundaryError with a readable message.
"""
from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from pathlib import Path
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

import models
from config import PAGE_SIZE
from schemas import LineItem, Order, OrderPage
from services.errors import BoundaryError, NotFoundError

logger = logging.getLogger(__name__)


# ---------- ORM -> schema ----------
def item_out(row: models.OrderItem) -> LineItem:
    return LineItem(
        sl_no=row.sl_no,
        item_type=row.item_type or "",
        qty=row.qty or 0.0,
        length=row.length or "",
        dia=row.dia or "",
        shore=row.shore or "",
        remarks=row.remarks or "",
        rate=row.rate,
        amount=row.amount,
    )


def order_out(row: models.Order) -> Order:
    return Order(
        order_no=row.order_no,
        date=row.date,
        customer_name=row.customer_name,
        contact_person=row.contact_person,
        phone=row.phone,
        status=row.status or "New",
        machine_name=row.machine_name,
        items=[item_out(i) for i in row.items],
        subtotal=row.subtotal,
        gst=row.gst,
        total=row.total,
        remarks=row.remarks,
        delivery_note=row.delivery_note,
        delivery_note_date=row.delivery_note_date,
        buyer_order_no=row.buyer_order_no,
        buyer_order_date=row.buyer_order_date,
        created_date=row.created_date,
    )


def _apply(row: models.Order, order: Order) -> None:
    row.date = order.date
    row.customer_name = order.customer_name
    row.contact_person = order.contact_person
    row.phone = order.phone
    row.status = order.status
    row.machine_name = order.machine_name
    row.subtotal = order.subtotal
    row.gst = order.gst
    row.total = order.total
    row.remarks = order.remarks
    row.delivery_note = order.delivery_note
    row.delivery_note_date = order.delivery_note_date
    row.buyer_order_no = order.buyer_order_no
    row.buyer_order_date = order.buyer_order_date
    row.created_date = order.created_date
    row.items = [
        models.OrderItem(
            sl_no=i.sl_no,
            item_type=i.item_type,
            qty=i.qty,
            length=i.length,
            dia=i.dia,
            shore=i.shore,
            remarks=i.remarks,
            rate=i.rate,
            amount=i.amount,
        )
        for i in order.items
    ]


class OrderStore:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _boundary(self, action: str):
        try:
            yield
        except (NotFoundError, BoundaryError):
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"database error while trying to {action}")
            raise BoundaryError(f"Failed to {action}: {e}") from e
        except OSError as e:
            self.db.rollback()
            logger.exception(f"file error while trying to {action}")
            raise BoundaryError(f"Failed to {action}: {e}") from e

    def _row(self, order_no: str) -> models.Order:
        row = self.db.get(models.Order, order_no)
        if not row:
            raise NotFoundError(f"Order {order_no} not found")
        return row

    # ---------- read ----------
    def exists(self, order_no: str) -> bool:
        with self._boundary("check order number"):
            return self.db.get(models.Order, order_no) is not None

    def get(self, order_no: str) -> Order:
        with self._boundary("load order"):
            return order_out(self._row(order_no))

    def load_page(self, page: int = 1, page_size: int = PAGE_SIZE) -> OrderPage:
        page = max(int(page or 1), 1)
        page_size = max(int(page_size or PAGE_SIZE), 1)
        with self._boundary("load orders"):
            total = self.db.query(models.Order).count()
            rows = (
                self.db.query(models.Order)
                .options(selectinload(models.Order.items))
                .order_by(models.Order.created_date.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
                .all()
            )
            orders = [order_out(r) for r in rows]
        pages = math.ceil(total / page_size)
        return OrderPage(
            orders=orders,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=max(pages, 1),
        )

    def load_all(self) -> List[Order]:
        with self._boundary("load orders"):
            rows = (
                self.db.query(models.Order)
                .options(selectinload(models.Order.items))
                .order_by(models.Order.created_date.desc())
                .all()
            )
            return [order_out(r) for r in rows]

    # ---------- write ----------
    def save(self, order: Order) -> Order:
        """Insert or replace; the old item rows are dropped and rewritten."""
        with self._boundary("save order"):
            row = self.db.get(models.Order, order.order_no)
            if row is None:
                row = models.Order(order_no=order.order_no)
                self.db.add(row)
            _apply(row, order)
            self.db.commit()
            logger.info(f"saved order {order.order_no} ({len(order.items)} items)")
            return order

    def update_status(self, order_no: str, status: str) -> Order:
        with self._boundary("update status"):
            row = self._row(order_no)
            row.status = status
            self.db.commit()
            self.db.refresh(row)
            logger.info(f"order {order_no} -> {status}")
            return order_out(row)

    def delete(self, order_no: str) -> None:
        with self._boundary("delete order"):
            row = self._row(order_no)
            self.db.delete(row)
            self.db.commit()
            logger.info(f"deleted order {order_no}")

    # ---------- files ----------
    def export_all(self, path) -> Path:
        from services.order_export import export_orders

        orders = self.load_all()
        with self._boundary("export orders"):
            out = export_orders(orders, path)
        logger.info(f"exported {len(orders)} orders to {out}")
        return out

    def save_rendered_document(self, path, html: str) -> Path:
        with self._boundary("save document"):
            out = Path(path)
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(html, encoding="utf-8")
        logger.info(f"document written to {out}")
        return out
