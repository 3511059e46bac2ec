from __future__ import annotations

import math
from typing import Optional, List
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

# tolerance for the stored-vs-recomputed money checks (2 dp display)
MONEY_TOLERANCE = 0.01
ORDER_NO_SLASH_MESSAGE = "Order number cannot contain '/'"


# =========================
# ===== Base (Pydantic v2)
# =========================
class APIBase(BaseModel):
    """
    Base สำหรับทุก schema:
    - JSON ใช้ camelCase (orderNo, customerName, ...) ตามไฟล์ที่หน้าเว็บส่งมา
    - populate_by_name=True: ฝั่ง Python ใช้ชื่อ snake_case ได้ด้วย
    """
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=True,
    )


class OrderStatus(str, Enum):
    NEW = "New"
    IN_PROGRESS = "In Progress"
    REJECTED = "Rejected"
    COMPLETED = "Completed"


ORDER_STATUSES = [s.value for s in OrderStatus]


def line_amount(qty: float, rate: float) -> float:
    """qty 0 (or blank) means a lump-sum line: amount = rate"""
    return rate if qty == 0 else qty * rate


# =========================================
# ================ Line items =============
# =========================================
class LineItem(APIBase):
    sl_no: int = Field(default=1, ge=1)
    item_type: str = Field(default="", alias="type")
    qty: float = Field(default=0.0, ge=0)
    length: str = ""
    dia: str = ""
    shore: str = ""
    remarks: str = ""
    rate: float = Field(..., ge=0)
    amount: Optional[float] = Field(default=None, ge=0)

    @field_validator("qty", "rate")
    @classmethod
    def _finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("must be a finite number")
        return v

    @model_validator(mode="after")
    def _check_amount(self):
        expected = line_amount(self.qty, self.rate)
        if self.amount is None:
            self.amount = expected
        elif abs(self.amount - expected) > MONEY_TOLERANCE:
            raise ValueError(f"amount {self.amount} does not match qty x rate ({expected})")
        return self


# =========================================
# ================= Orders ================
# =========================================
class OrderHeader(APIBase):
    order_no: str
    date: str
    customer_name: str
    contact_person: str = ""
    phone: str = ""
    status: OrderStatus = OrderStatus.NEW.value
    machine_name: str = ""
    remarks: str = ""
    delivery_note: str = ""
    delivery_note_date: str = ""
    buyer_order_no: str = ""
    buyer_order_date: str = ""
    created_date: str = ""

    @field_validator(
        "contact_person", "phone", "machine_name", "remarks", "delivery_note",
        "delivery_note_date", "buyer_order_no", "buyer_order_date", "created_date",
        mode="before",
    )
    @classmethod
    def _none_to_blank(cls, v):
        return "" if v is None else v


class Order(OrderHeader):
    items: List[LineItem] = Field(..., min_length=1)
    subtotal: float
    gst: float
    total: float

    @field_validator("order_no", "customer_name")
    @classmethod
    def _required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("order_no")
    @classmethod
    def _no_slash(cls, v: str) -> str:
        # order_no is a URL path segment
        if "/" in v:
            raise ValueError(ORDER_NO_SLASH_MESSAGE)
        return v

    @model_validator(mode="after")
    def _check_totals(self):
        subtotal = sum(i.amount for i in self.items)
        if abs(self.subtotal - subtotal) > MONEY_TOLERANCE:
            raise ValueError(f"subtotal {self.subtotal} does not match items ({subtotal})")
        if abs(self.total - (self.subtotal + self.gst)) > MONEY_TOLERANCE:
            raise ValueError("total must equal subtotal + gst")
        return self

    @property
    def items_count(self) -> int:
        return len(self.items)


class OrderSubmit(APIBase):
    """Form payload: orderNo may be blank (generated), totals are computed server-side."""
    order_no: str = ""
    date: Optional[str] = None
    customer_name: str = ""
    contact_person: str = ""
    phone: str = ""
    machine_name: str = ""
    remarks: str = ""
    delivery_note: str = ""
    delivery_note_date: str = ""
    buyer_order_no: str = ""
    buyer_order_date: str = ""
    items: List[LineItem] = []
    gst_percent: Optional[float] = None


class OrderPage(APIBase):
    orders: List[Order]
    total: int
    page: int
    page_size: int
    total_pages: int


class OrderTotals(APIBase):
    subtotal: float
    gst: float
    total: float


class TotalsRequest(APIBase):
    items: List[LineItem] = []
    gst_percent: float = 18.0


class StatusUpdate(APIBase):
    status: OrderStatus


class ExportRequest(APIBase):
    file_path: str


class DocumentSaveRequest(APIBase):
    file_path: str
    content: Optional[str] = None  # ไม่ส่งมา = ให้ server render เอง


class OrderListOut(APIBase):
    rows: List[Order]
    showing_start: int
    showing_end: int
    total_orders: int
    current_page: int
    total_pages: int
    has_prev: bool
    has_next: bool
    empty_message: Optional[str] = None
    status_filter: str = "All"
    search: str = ""
    sort_column: Optional[str] = None
    sort_direction: str = "asc"
