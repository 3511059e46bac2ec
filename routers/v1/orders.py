# routers/v1/orders.py
from io import BytesIO
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import HTMLResponse, StreamingResponse
from sqlalchemy.orm import Session

from config import DEFAULT_GST_PERCENT, PAGE_SIZE
from database import get_db
from schemas import (
    DocumentSaveRequest,
    ExportRequest,
    Order,
    OrderListOut,
    OrderPage,
    OrderSubmit,
    OrderTotals,
    StatusUpdate,
    TotalsRequest,
)
from services.line_items import renumber, sanitize_items
from services.order_export import (
    document_filename,
    export_orders_bytes,
    render_order_docx,
    render_order_html,
)
from services.order_form import OrderForm, compute_totals
from services.order_store import OrderStore
from services.order_view import (
    ASC,
    DESC,
    STATUS_ALL,
    SORT_COLUMNS,
    OrderListSession,
    SortSpec,
)

router = APIRouter(prefix="/orders", tags=["orders"])

XLSX_MEDIA = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
DOCX_MEDIA = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def get_store(db: Session = Depends(get_db)) -> OrderStore:
    return OrderStore(db)


def content_disposition(disposition: str, filename: str) -> str:
    """
    header ต้องเป็น latin-1: ใส่ชื่อ ASCII ไว้ใน filename= และชื่อเต็มใน filename* (RFC 5987)
    """
    fallback = "".join(c for c in filename if " " <= c <= "~" and c not in '"\\')
    return f"{disposition}; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


# ---------- list ----------
@router.get("", response_model=OrderPage)
def list_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(PAGE_SIZE, ge=1, le=1000, alias="pageSize"),
    store: OrderStore = Depends(get_store),
):
    return store.load_page(page, page_size)


@router.get("/view", response_model=OrderListOut)
def view_orders(
    status: str = Query(STATUS_ALL),
    q: str = Query("", description="Search by order no or customer name"),
    sort: Optional[str] = Query(None, description="orderNo, date, customerName, ..."),
    dir: str = Query(ASC, pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(PAGE_SIZE, ge=1, le=1000, alias="pageSize"),
    store: OrderStore = Depends(get_store),
):
    """
    หน้า list: โหลดหน้าเดียวจาก DB แล้ว filter / search / sort เฉพาะหน้านั้น
    (หน้าเว็บเรียกแค่ตอนเปลี่ยน status / page; search กับ sort ทำใน browser)
    """
    session = OrderListSession(store, page_size)
    session.reload(page)
    sort_by = SortSpec(sort, DESC if dir == DESC else ASC) if sort in SORT_COLUMNS else None
    view = session.restore(status_filter=status, search=q, sort=sort_by)
    state = session.state
    return OrderListOut(
        rows=list(view.rows),
        showing_start=view.showing_start,
        showing_end=view.showing_end,
        total_orders=view.total_orders,
        current_page=view.current_page,
        total_pages=view.total_pages,
        has_prev=view.has_prev,
        has_next=view.has_next,
        empty_message=view.empty_message,
        status_filter=state.status_filter,
        search=state.search,
        sort_column=sort_by.column if sort_by else None,
        sort_direction=sort_by.direction if sort_by else ASC,
    )


# ---------- form helpers ----------
@router.post("/totals", response_model=OrderTotals)
def preview_totals(payload: TotalsRequest):
    items = renumber(sanitize_items(payload.items))
    return compute_totals(items, payload.gst_percent)


# ---------- export (ต้องอยู่เหนือ /{order_no}) ----------
@router.get("/export")
def download_export(store: OrderStore = Depends(get_store)):
    data = export_orders_bytes(store.load_all())
    return StreamingResponse(
        BytesIO(data),
        media_type=XLSX_MEDIA,
        headers={"Content-Disposition": 'attachment; filename="orders.xlsx"'},
    )


@router.post("/export")
def export_to_file(payload: ExportRequest, store: OrderStore = Depends(get_store)):
    out = store.export_all(payload.file_path)
    return {"ok": True, "filePath": str(out)}


# ---------- create / replace ----------
@router.post("", response_model=Order, status_code=201)
def submit_order(
    payload: OrderSubmit,
    overwrite: bool = Query(False, description="Replace an existing order with the same number"),
    store: OrderStore = Depends(get_store),
):
    gst = DEFAULT_GST_PERCENT if payload.gst_percent is None else payload.gst_percent
    form = OrderForm(store, confirm_overwrite=lambda _no: overwrite, default_gst_percent=gst)
    return form.fill(payload).submit()


# ---------- single order ----------
@router.get("/{order_no}", response_model=Order)
def get_order(order_no: str, store: OrderStore = Depends(get_store)):
    return store.get(order_no)


@router.patch("/{order_no}/status", response_model=Order)
def update_order_status(order_no: str, payload: StatusUpdate, store: OrderStore = Depends(get_store)):
    return store.update_status(order_no, payload.status)


@router.delete("/{order_no}")
def delete_order(order_no: str, store: OrderStore = Depends(get_store)):
    store.delete(order_no)
    return {"ok": True}


# ---------- documents ----------
@router.get("/{order_no}/document", response_class=HTMLResponse)
def order_document(order_no: str, store: OrderStore = Depends(get_store)):
    order = store.get(order_no)
    return HTMLResponse(
        render_order_html(order),
        headers={"Content-Disposition": content_disposition("inline", document_filename(order, "html"))},
    )


@router.get("/{order_no}/document.docx")
def order_document_docx(order_no: str, store: OrderStore = Depends(get_store)):
    order = store.get(order_no)
    return Response(
        content=render_order_docx(order),
        media_type=DOCX_MEDIA,
        headers={"Content-Disposition": content_disposition("attachment", document_filename(order, "docx"))},
    )


@router.post("/{order_no}/document")
def save_order_document(order_no: str, payload: DocumentSaveRequest, store: OrderStore = Depends(get_store)):
    html = payload.content
    if html is None:
        html = render_order_html(store.get(order_no))
    out = store.save_rendered_document(payload.file_path, html)
    return {"ok": True, "filePath": str(out)}
