import pytest

from services.errors import BoundaryError, NotFoundError
from services.order_view import (
    OrderListSession,
    PageInfo,
    SortSpec,
    ViewState,
    compute_view,
    filter_by_status,
    next_sort,
    search_orders,
    sort_orders,
)


def orders_no(rows):
    return [o.order_no for o in rows]


def test_filter_by_status(sample_orders):
    orders = list(sample_orders)
    assert orders_no(filter_by_status(orders, "All")) == orders_no(orders)
    assert orders_no(filter_by_status(orders, "Completed")) == ["ORD-3"]


def test_search_is_case_insensitive_on_number_and_customer(sample_orders):
    orders = list(sample_orders)
    assert orders_no(search_orders(orders, "acme")) == ["ORD-1"]
    assert orders_no(search_orders(orders, "ord-2")) == ["ORD-2"]
    assert orders_no(search_orders(orders, "  ")) == orders_no(orders)
    assert search_orders(orders, "nothing-like-this") == []


def test_sort_by_date_total_and_items(sample_orders):
    orders = list(sample_orders)
    assert orders_no(sort_orders(orders, SortSpec("date"))) == ["ORD-3", "ORD-1", "ORD-2"]
    assert orders_no(sort_orders(orders, SortSpec("total"))) == ["ORD-2", "ORD-1", "ORD-3"]
    assert orders_no(sort_orders(orders, SortSpec("itemsCount", "desc"))) == ["ORD-3", "ORD-2", "ORD-1"]


def test_sort_strings_ignore_case(order_factory):
    orders = [
        order_factory(order_no="A", customer_name="zeta"),
        order_factory(order_no="B", customer_name="Alpha"),
    ]
    assert orders_no(sort_orders(orders, SortSpec("customerName"))) == ["B", "A"]


def test_descending_is_reverse_of_ascending(order_factory, sample_orders):
    orders = list(sample_orders) + [order_factory(order_no="ORD-4", status="Completed")]
    asc = sort_orders(orders, SortSpec("status", "asc"))
    desc = sort_orders(orders, SortSpec("status", "desc"))
    assert orders_no(desc) == list(reversed(orders_no(asc)))


def test_unparsable_dates_sort_first(order_factory):
    orders = [order_factory(order_no="A", date="2024-02-01"), order_factory(order_no="B", date="soon")]
    assert orders_no(sort_orders(orders, SortSpec("date"))) == ["B", "A"]


def test_next_sort_toggles():
    first = next_sort(None, "date")
    assert first == SortSpec("date", "asc")
    assert next_sort(first, "date") == SortSpec("date", "desc")
    assert next_sort(SortSpec("date", "desc"), "date") == SortSpec("date", "asc")
    assert next_sort(SortSpec("date", "desc"), "total") == SortSpec("total", "asc")


def test_compute_view_pagination_range(sample_orders):
    orders = list(sample_orders)
    state = ViewState(
        orders=tuple(orders),
        page=PageInfo(current_page=2, page_size=50, total_orders=53, total_pages=2),
    )
    view = compute_view(state)
    assert (view.showing_start, view.showing_end) == (51, 53)
    assert view.has_prev and not view.has_next
    assert view.empty_message is None


def test_compute_view_search_on_top_of_filter(sample_orders):
    orders = list(sample_orders)
    state = ViewState(orders=tuple(orders), status_filter="New", search="widget",
                      page=PageInfo(total_orders=3))
    view = compute_view(state)
    assert orders_no(view.rows) == ["ORD-2"]
    assert (view.showing_start, view.showing_end) == (1, 1)


def test_empty_messages(sample_orders):
    empty_db = compute_view(ViewState())
    assert empty_db.empty_message == "No orders found. No orders in database."
    assert (empty_db.showing_start, empty_db.showing_end) == (0, 0)

    filtered = compute_view(ViewState(
        orders=tuple(sample_orders),
        status_filter="Rejected",
        page=PageInfo(total_orders=3),
    ))
    assert filtered.empty_message == (
        "No orders found. Total orders in database: 3. "
        "Try checking other pages or clearing filters."
    )


def test_compute_view_does_not_touch_input(sample_orders):
    orders = tuple(sample_orders)
    state = ViewState(orders=orders, sort=SortSpec("total", "desc"))
    compute_view(state)
    assert state.orders is orders


# ---------- session ----------
@pytest.fixture
def session(fake_store, sample_orders):
    for o in sample_orders:
        fake_store.orders[o.order_no] = o
    s = OrderListSession(fake_store, page_size=2)
    s.reload(1)
    return s


def test_session_reload_uses_store_paging(session):
    view = session.view
    assert view.total_orders == 3
    assert view.total_pages == 2
    # newest created first
    assert orders_no(view.rows) == ["ORD-3", "ORD-2"]


def test_session_status_filter_refetches_first_page(session, fake_store):
    session.go_to_page(2)
    fake_store.calls.clear()
    view = session.set_status_filter("New")
    assert fake_store.calls == [("load_page", 1, 2)]
    assert view.current_page == 1
    assert orders_no(view.rows) == ["ORD-2"]


def test_session_status_filter_then_all_restores_page_order(session, fake_store):
    original = orders_no(session.view.rows)
    assert orders_no(session.set_status_filter("Completed").rows) == ["ORD-3"]
    view = session.set_status_filter("All")
    assert orders_no(view.rows) == original == ["ORD-3", "ORD-2"]
    assert (view.showing_start, view.showing_end) == (1, 2)
    assert view.empty_message is None


def test_session_search_and_sort_stay_local(session, fake_store):
    fake_store.calls.clear()
    session.set_search("ord")
    view = session.click_sort("total")
    assert fake_store.calls == []
    assert orders_no(view.rows) == ["ORD-2", "ORD-3"]
    assert orders_no(session.click_sort("total").rows) == ["ORD-3", "ORD-2"]


def test_session_go_to_page_out_of_range_ignored(session, fake_store):
    fake_store.calls.clear()
    session.go_to_page(0)
    session.go_to_page(3)
    assert fake_store.calls == []
    assert session.view.current_page == 1


def test_session_change_status_persists_then_reloads(session, fake_store):
    fake_store.calls.clear()
    view = session.change_status("ORD-2", "Completed")
    assert [c[0] for c in fake_store.calls] == ["update_status", "load_page"]
    assert fake_store.orders["ORD-2"].status == "Completed"
    assert session.find("ORD-2").status == "Completed"
    assert view.current_page == 1


def test_session_failed_status_change_leaves_state(session, fake_store):
    before = session.state
    fake_store.fail = True
    with pytest.raises(BoundaryError):
        session.change_status("ORD-2", "Rejected")
    assert session.state is before
    assert session.find("ORD-2").status == "New"


def test_session_delete(session, fake_store):
    view = session.delete("ORD-3")
    assert "ORD-3" not in fake_store.orders
    assert view.total_orders == 2


def test_session_find_unknown(session):
    with pytest.raises(NotFoundError):
        session.find("ORD-404")


def test_session_delete_last_row_on_last_page(session, fake_store):
    session.go_to_page(2)
    view = session.delete("ORD-1")
    assert view.current_page == 1
    assert view.total_pages == 1
    assert orders_no(view.rows) == ["ORD-3", "ORD-2"]


def test_session_restore_recomputes_without_store_call(session, fake_store):
    fake_store.calls.clear()
    view = session.restore(status_filter="New", search="ord", sort=SortSpec("total", "desc"))
    assert fake_store.calls == []
    assert orders_no(view.rows) == ["ORD-2"]
    assert session.state.sort == SortSpec("total", "desc")

    view = session.restore()
    assert orders_no(view.rows) == ["ORD-3", "ORD-2"]
    assert session.state.status_filter == "All"
