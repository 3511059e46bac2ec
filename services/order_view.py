# services/order_view.py
"""
Order list view-state.

``compute_view`` is a pure function of (page of orders, status filter,
search text, sort column, page info). Filtering and search only ever see the
page the store returned; paging itself happens in the store.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Iterable, List, Optional, Tuple

from config import PAGE_SIZE
from schemas import Order
from services.errors import NotFoundError

logger = logging.getLogger(__name__)

STATUS_ALL = "All"
ASC, DESC = "asc", "desc"

# header key -> Order attribute
SORT_COLUMNS = {
    "orderNo": "order_no",
    "date": "date",
    "customerName": "customer_name",
    "contactPerson": "contact_person",
    "phone": "phone",
    "status": "status",
    "itemsCount": "items_count",
    "total": "total",
}


# ---------- value types ----------
@dataclass(frozen=True)
class SortSpec:
    column: str
    direction: str = ASC


@dataclass(frozen=True)
class PageInfo:
    current_page: int = 1
    page_size: int = PAGE_SIZE
    total_orders: int = 0
    total_pages: int = 1


@dataclass(frozen=True)
class ViewState:
    orders: Tuple[Order, ...] = ()
    status_filter: str = STATUS_ALL
    search: str = ""
    sort: Optional[SortSpec] = None
    page: PageInfo = field(default_factory=PageInfo)


@dataclass(frozen=True)
class OrderListView:
    rows: Tuple[Order, ...]
    showing_start: int
    showing_end: int
    total_orders: int
    current_page: int
    total_pages: int
    has_prev: bool
    has_next: bool
    empty_message: Optional[str] = None


# ---------- pipeline steps ----------
def filter_by_status(orders: Iterable[Order], status: str) -> List[Order]:
    if not status or status == STATUS_ALL:
        return list(orders)
    return [o for o in orders if o.status == status]


def search_orders(orders: Iterable[Order], query: str) -> List[Order]:
    q = (query or "").strip().lower()
    if not q:
        return list(orders)
    return [
        o for o in orders
        if q in (o.order_no or "").lower() or q in (o.customer_name or "").lower()
    ]


def _as_date(v) -> date:
    try:
        return date.fromisoformat(str(v)[:10])
    except (TypeError, ValueError):
        return date.min


def _num(v) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return 0.0


def sort_key(order: Order, column: str):
    if column == "itemsCount":
        return len(order.items)
    if column == "date":
        return _as_date(order.date)
    if column == "total":
        return _num(order.total)
    attr = SORT_COLUMNS.get(column, column)
    return str(getattr(order, attr, "") or "").lower()


def sort_orders(orders: Iterable[Order], sort: Optional[SortSpec]) -> List[Order]:
    orders = list(orders)
    if sort is None or not sort.column:
        return orders
    ordered = sorted(orders, key=lambda o: sort_key(o, sort.column))
    if sort.direction == DESC:
        ordered.reverse()
    return ordered


def next_sort(current: Optional[SortSpec], column: str) -> SortSpec:
    """Header click: same column flips direction, another column starts asc."""
    if current is not None and current.column == column:
        return SortSpec(column, DESC if current.direction == ASC else ASC)
    return SortSpec(column, ASC)


def empty_message(total_orders: int) -> str:
    if total_orders > 0:
        return (
            f"No orders found. Total orders in database: {total_orders}. "
            "Try checking other pages or clearing filters."
        )
    return "No orders found. No orders in database."


def compute_view(state: ViewState) -> OrderListView:
    rows = filter_by_status(state.orders, state.status_filter)
    rows = search_orders(rows, state.search)
    rows = sort_orders(rows, state.sort)

    p = state.page
    if rows:
        start = (p.current_page - 1) * p.page_size + 1
        end = start + len(rows) - 1
    else:
        start = end = 0

    return OrderListView(
        rows=tuple(rows),
        showing_start=start,
        showing_end=end,
        total_orders=p.total_orders,
        current_page=p.current_page,
        total_pages=p.total_pages,
        has_prev=p.current_page > 1,
        has_next=p.current_page < p.total_pages,
        empty_message=None if rows else empty_message(p.total_orders),
    )


# ---------- session ----------
class OrderListSession:
    """
    Keeps one immutable ViewState and swaps it on every user action.

    Status-filter and page changes go back to the store; search and sort only
    recompute over the page already loaded. A store failure leaves the state
    as it was.
    """

    def __init__(self, store, page_size: int = PAGE_SIZE):
        self.store = store
        self.state = ViewState(page=PageInfo(page_size=page_size))

    @property
    def view(self) -> OrderListView:
        return compute_view(self.state)

    def reload(self, page: Optional[int] = None) -> OrderListView:
        page = page or self.state.page.current_page
        result = self.store.load_page(page, self.state.page.page_size)
        if not result.orders and result.page > result.total_pages:
            # last row of the last page was deleted
            result = self.store.load_page(result.total_pages, self.state.page.page_size)
        self.state = replace(
            self.state,
            orders=tuple(result.orders),
            page=PageInfo(
                current_page=result.page,
                page_size=result.page_size,
                total_orders=result.total,
                total_pages=result.total_pages,
            ),
        )
        logger.debug(f"loaded page {result.page}/{result.total_pages} ({len(result.orders)} orders)")
        return self.view

    def set_status_filter(self, status: str) -> OrderListView:
        # filter change always restarts from page 1
        result = self.store.load_page(1, self.state.page.page_size)
        self.state = replace(
            self.state,
            status_filter=status or STATUS_ALL,
            orders=tuple(result.orders),
            page=PageInfo(
                current_page=result.page,
                page_size=result.page_size,
                total_orders=result.total,
                total_pages=result.total_pages,
            ),
        )
        return self.view

    def restore(self, status_filter: str = STATUS_ALL, search: str = "",
                sort: Optional[SortSpec] = None) -> OrderListView:
        """Re-apply a filter/search/sort the caller already holds; no store call."""
        self.state = replace(
            self.state,
            status_filter=status_filter or STATUS_ALL,
            search=search or "",
            sort=sort,
        )
        return self.view

    def set_search(self, text: str) -> OrderListView:
        self.state = replace(self.state, search=text or "")
        return self.view

    def click_sort(self, column: str) -> OrderListView:
        self.state = replace(self.state, sort=next_sort(self.state.sort, column))
        return self.view

    def go_to_page(self, page: int) -> OrderListView:
        if page < 1 or page > self.state.page.total_pages:
            return self.view
        return self.reload(page)

    def find(self, order_no: str) -> Order:
        for o in self.state.orders:
            if o.order_no == order_no:
                return o
        raise NotFoundError("Order not found")

    def change_status(self, order_no: str, status: str) -> OrderListView:
        self.find(order_no)
        # store first, then reload
        self.store.update_status(order_no, status)
        return self.reload()

    def delete(self, order_no: str) -> OrderListView:
        self.find(order_no)
        self.store.delete(order_no)
        return self.reload()
