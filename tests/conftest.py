import math

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import get_db, init_db, make_engine
from schemas import LineItem, Order, OrderPage, line_amount
from services.errors import BoundaryError, NotFoundError
from services.order_store import OrderStore


def build_order(
    order_no="ORD-1",
    customer_name="Acme Rubber",
    items=None,
    gst_percent=18,
    status="New",
    date="2024-01-15",
    created_date="2024-01-15T10:00:00+00:00",
    **extra,
):
    if items is None:
        items = [
            {"item_type": "Hose", "qty": 2, "rate": 100},
            {"item_type": "Lining", "qty": 0, "rate": 50},
        ]
    lines = [
        LineItem(sl_no=n, amount=line_amount(i.get("qty", 0), i["rate"]), **i)
        for n, i in enumerate(items, start=1)
    ]
    subtotal = sum(i.amount for i in lines)
    gst = subtotal * gst_percent / 100
    return Order(
        order_no=order_no,
        date=date,
        customer_name=customer_name,
        status=status,
        items=lines,
        subtotal=subtotal,
        gst=gst,
        total=subtotal + gst,
        created_date=created_date,
        **extra,
    )


class FakeStore:
    """In-memory stand-in for OrderStore; records every call."""

    def __init__(self, orders=()):
        self.orders = {o.order_no: o for o in orders}
        self.calls = []
        self.fail = False

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        if self.fail:
            raise BoundaryError(f"Failed to {name}: disk full")

    def exists(self, order_no):
        self._call("exists", order_no)
        return order_no in self.orders

    def save(self, order):
        self._call("save", order.order_no)
        self.orders[order.order_no] = order
        return order

    def load_page(self, page=1, page_size=50):
        self._call("load_page", page, page_size)
        ordered = sorted(self.orders.values(), key=lambda o: o.created_date, reverse=True)
        start = (page - 1) * page_size
        return OrderPage(
            orders=ordered[start:start + page_size],
            total=len(ordered),
            page=page,
            page_size=page_size,
            total_pages=max(math.ceil(len(ordered) / page_size), 1),
        )

    def update_status(self, order_no, status):
        self._call("update_status", order_no, status)
        if order_no not in self.orders:
            raise NotFoundError(f"Order {order_no} not found")
        self.orders[order_no] = self.orders[order_no].model_copy(update={"status": status})
        return self.orders[order_no]

    def delete(self, order_no):
        self._call("delete", order_no)
        if order_no not in self.orders:
            raise NotFoundError(f"Order {order_no} not found")
        del self.orders[order_no]


# ---------- fixtures ----------
@pytest.fixture
def order_factory():
    return build_order


@pytest.fixture
def sample_orders():
    """three orders: ORD-3 newest created, ORD-2 cheapest, ORD-3 the only Completed"""
    return [
        build_order(order_no="ORD-1", customer_name="Acme Rubber", date="2024-01-15",
                    created_date="2024-01-15T10:00:00+00:00"),
        build_order(order_no="ORD-2", customer_name="Widget Works", date="2024-03-01",
                    created_date="2024-03-01T09:00:00+00:00",
                    items=[{"item_type": "Seal", "rate": 10}] * 3),
        build_order(order_no="ORD-3", customer_name="Zen Seals", date="2023-12-01",
                    status="Completed", created_date="2024-03-05T08:00:00+00:00",
                    items=[{"item_type": "Gasket", "rate": 200}] * 4),
    ]


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def engine():
    eng = make_engine("sqlite://", poolclass=StaticPool)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def store(session):
    return OrderStore(session)


@pytest.fixture
def client(session_factory):
    from main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
