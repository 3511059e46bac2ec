from datetime import datetime, timezone

import pytest

from services.errors import BoundaryError, DuplicateOrderError, ValidationError
from services.line_items import LineItemDraft
from services.order_form import OrderForm, compute_totals, parse_gst_percent

FIXED_NOW = datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def form(fake_store):
    return OrderForm(fake_store, clock=lambda: FIXED_NOW)


def fill_sample(form):
    form.order_no = "ORD-100"
    form.customer_name = "Acme Rubber"
    form.editor.add_or_update(LineItemDraft(item_type="Hose", qty="2", rate="100"))
    form.editor.add_or_update(LineItemDraft(item_type="Lining", rate="50"))


def test_new_form_defaults(form):
    assert form.gst_percent == 18
    assert form.date == FIXED_NOW.astimezone().date().isoformat()
    assert form.editor.items == []
    assert form.totals.total == 0
    assert form.active_view == "create"


def test_totals_follow_items_and_gst(form):
    fill_sample(form)
    assert (form.totals.subtotal, form.totals.gst, form.totals.total) == (250, 45, 295)
    form.set_gst_percent("abc")
    assert (form.totals.gst, form.totals.total) == (0, 250)


def test_submit_saves_and_resets(form, fake_store):
    fill_sample(form)
    order = form.submit()

    assert order.order_no == "ORD-100"
    assert order.status == "New"
    assert (order.subtotal, order.gst, order.total) == (250, 45, 295)
    assert [i.sl_no for i in order.items] == [1, 2]
    assert order.created_date == FIXED_NOW.isoformat()
    assert fake_store.orders["ORD-100"] == order

    assert form.customer_name == ""
    assert form.editor.items == []
    assert form.gst_percent == 18
    assert form.active_view == "view"


def test_blank_customer_makes_no_storage_call(form, fake_store):
    fill_sample(form)
    form.customer_name = "   "
    with pytest.raises(ValidationError) as exc:
        form.submit()
    assert exc.value.message == "Please enter Customer name"
    assert fake_store.calls == []


def test_order_no_with_slash_rejected(form, fake_store):
    fill_sample(form)
    form.order_no = "PO/2024/01"
    with pytest.raises(ValidationError) as exc:
        form.submit()
    assert exc.value.field == "order_no"
    assert exc.value.message == "Order number cannot contain '/'"
    assert fake_store.calls == []
    assert form.customer_name == "Acme Rubber"


def test_no_items_rejected(form, fake_store):
    form.customer_name = "Acme"
    with pytest.raises(ValidationError) as exc:
        form.submit()
    assert exc.value.message == "Please add at least one valid item with Rate"
    assert fake_store.calls == []


def test_generated_order_number(form, fake_store):
    fill_sample(form)
    form.order_no = ""
    order = form.submit()
    assert order.order_no == "ORD-20240115103000"


def test_generated_order_number_avoids_collision(form, fake_store, order_factory):
    fake_store.orders["ORD-20240115103000"] = order_factory(order_no="ORD-20240115103000")
    fill_sample(form)
    form.order_no = ""
    assert form.submit().order_no == "ORD-20240115103000-2"


def test_overwrite_declined(fake_store, order_factory):
    existing = order_factory(order_no="ORD-100", customer_name="Old Customer")
    fake_store.orders["ORD-100"] = existing
    form = OrderForm(fake_store, confirm_overwrite=lambda no: False, clock=lambda: FIXED_NOW)
    fill_sample(form)

    with pytest.raises(DuplicateOrderError) as exc:
        form.submit()
    assert exc.value.message == "Order number ORD-100 already exists. Please use a different Order Number"
    assert fake_store.orders["ORD-100"] is existing
    assert form.customer_name == "Acme Rubber"


def test_overwrite_confirmed(fake_store, order_factory):
    fake_store.orders["ORD-100"] = order_factory(order_no="ORD-100", customer_name="Old Customer")
    asked = []
    form = OrderForm(fake_store, confirm_overwrite=lambda no: asked.append(no) or True,
                     clock=lambda: FIXED_NOW)
    fill_sample(form)
    form.submit()
    assert asked == ["ORD-100"]
    assert fake_store.orders["ORD-100"].customer_name == "Acme Rubber"


def test_storage_failure_keeps_form(form, fake_store):
    fill_sample(form)
    fake_store.fail = True
    with pytest.raises(BoundaryError):
        form.submit()
    assert form.customer_name == "Acme Rubber"
    assert len(form.editor.items) == 2
    assert form.active_view == "create"


def test_parse_gst_percent():
    assert parse_gst_percent("12.5") == 12.5
    assert parse_gst_percent("") == 0.0
    assert parse_gst_percent(None) == 0.0


def test_compute_totals_empty():
    t = compute_totals([], 18)
    assert (t.subtotal, t.gst, t.total) == (0, 0, 0)


def test_order_schema_rejects_slash_in_number(order_factory):
    with pytest.raises(ValueError):
        order_factory(order_no="PO/2024/01")
