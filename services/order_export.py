# services/order_export.py
"""
Files produced from orders: spreadsheet (xlsx / csv), printable HTML
(WORK ORDER / QUOTATION) and the same document as .docx.
"""
from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path
from typing import Iterable, List

import pandas as pd
from docx import Document
from docx.enum.table import WD_CELL_VERTICAL_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt
from jinja2 import Environment, FileSystemLoader, select_autoescape
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from config import (
    APP_DIR,
    COMPANY_ADDRESS,
    COMPANY_CONTACT,
    COMPANY_NAME,
    COMPANY_TAGLINE,
    TERMS,
)
from schemas import Order
from services.errors import BoundaryError

logger = logging.getLogger(__name__)

TEMPLATES_DIR = APP_DIR / "templates"
DOCUMENT_TEMPLATE = "order_document.html"

# ===== spreadsheet layout =====
ORDER_COLUMNS = [
    ("Order No", "order_no"),
    ("Date", "date"),
    ("Customer Name", "customer_name"),
    ("Contact Person", "contact_person"),
    ("Phone", "phone"),
    ("Status", "status"),
    ("Machine Name", "machine_name"),
    ("Subtotal", "subtotal"),
    ("GST", "gst"),
    ("Total", "total"),
    ("Remarks", "remarks"),
    ("Delivery Note", "delivery_note"),
    ("Delivery Note Date", "delivery_note_date"),
    ("Buyer's Order Number", "buyer_order_no"),
    ("Buyer's Order Date", "buyer_order_date"),
    ("Created Date", "created_date"),
]
ORDER_HEADERS = [h for h, _ in ORDER_COLUMNS]

ITEM_COLUMNS = [
    ("Order No", None),
    ("Sl. No", "sl_no"),
    ("Type", "item_type"),
    ("Qty", "qty"),
    ("Length", "length"),
    ("Dia", "dia"),
    ("Shore", "shore"),
    ("Remarks", "remarks"),
    ("Rate", "rate"),
    ("Amount", "amount"),
]
ITEM_HEADERS = [h for h, _ in ITEM_COLUMNS]

MONEY_HEADERS = {"Subtotal", "GST", "Total", "Rate", "Amount"}


# ---------- frames ----------
def orders_to_frame(orders: Iterable[Order]) -> pd.DataFrame:
    rows = [{h: getattr(o, attr) for h, attr in ORDER_COLUMNS} for o in orders]
    return pd.DataFrame(rows, columns=ORDER_HEADERS)


def items_to_frame(orders: Iterable[Order]) -> pd.DataFrame:
    rows = []
    for o in orders:
        for item in o.items:
            rows.append({
                h: (o.order_no if attr is None else getattr(item, attr))
                for h, attr in ITEM_COLUMNS
            })
    return pd.DataFrame(rows, columns=ITEM_HEADERS)


def _style_sheet(ws, headers: List[str]) -> None:
    """bold header, money as 0.00, width พอดีกับหัวคอลัมน์"""
    for idx, header in enumerate(headers, start=1):
        letter = get_column_letter(idx)
        ws[f"{letter}1"].font = Font(bold=True)
        ws.column_dimensions[letter].width = max(len(header) + 4, 12)
        if header in MONEY_HEADERS:
            for (cell,) in ws.iter_rows(min_row=2, min_col=idx, max_col=idx):
                cell.number_format = "0.00"
    ws.freeze_panes = "A2"


def _write_workbook(orders: List[Order], target) -> None:
    with pd.ExcelWriter(target, engine="openpyxl") as writer:
        orders_to_frame(orders).to_excel(writer, sheet_name="Orders", index=False)
        items_to_frame(orders).to_excel(writer, sheet_name="Items", index=False)
        _style_sheet(writer.sheets["Orders"], ORDER_HEADERS)
        _style_sheet(writer.sheets["Items"], ITEM_HEADERS)


def export_orders(orders: Iterable[Order], path) -> Path:
    """Write every given order to ``path`` (.xlsx or .csv)."""
    orders = list(orders)
    out = Path(path)
    suffix = out.suffix.lower()
    if suffix not in (".xlsx", ".csv"):
        raise BoundaryError(f"Unsupported export format: {out.suffix or '(none)'}")
    out.parent.mkdir(parents=True, exist_ok=True)

    if suffix == ".csv":
        orders_to_frame(orders).to_csv(out, index=False, encoding="utf-8")
    else:
        _write_workbook(orders, out)
    logger.debug(f"wrote {len(orders)} orders to {out}")
    return out


def export_orders_bytes(orders: Iterable[Order]) -> bytes:
    buf = BytesIO()
    _write_workbook(list(orders), buf)
    return buf.getvalue()


# ===== printable document =====
def _money(v) -> str:
    return f"{float(v or 0):.2f}"


def _dash(v) -> str:
    return v if (v is not None and str(v).strip()) else "-"


def _qty(v) -> str:
    v = float(v or 0)
    return str(int(v)) if v.is_integer() else f"{v:g}"


_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)
_env.filters["money"] = _money
_env.filters["dash"] = _dash
_env.filters["qty"] = _qty


def letterhead() -> dict:
    return {
        "name": COMPANY_NAME,
        "tagline": COMPANY_TAGLINE,
        "address": COMPANY_ADDRESS,
        "contact": COMPANY_CONTACT,
        "terms": TERMS,
    }


def info_fields(order: Order) -> List[tuple]:
    """(label, value) pairs shown in the two-column info block"""
    return [
        ("Order No", order.order_no),
        ("Date", order.date),
        ("Customer (M/s)", order.customer_name),
        ("Status", order.status),
        ("Contact Person", _dash(order.contact_person)),
        ("Phone", _dash(order.phone)),
        ("Name of the Machine", _dash(order.machine_name)),
        ("Remarks", _dash(order.remarks)),
        ("Delivery Note", _dash(order.delivery_note)),
        ("Delivery Note Date", _dash(order.delivery_note_date)),
        ("Buyer's Order Number", _dash(order.buyer_order_no)),
        ("Buyer's Order Date", _dash(order.buyer_order_date)),
    ]


def render_order_html(order: Order) -> str:
    tpl = _env.get_template(DOCUMENT_TEMPLATE)
    return tpl.render(order=order, info=info_fields(order), company=letterhead())


def document_filename(order: Order, ext: str = "html") -> str:
    return f"Order_{order.order_no}.{ext.lstrip('.')}"


def _center_cell(cell):
    cell.vertical_alignment = WD_CELL_VERTICAL_ALIGNMENT.CENTER
    for p in cell.paragraphs:
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER


def _right_cell(cell):
    for p in cell.paragraphs:
        p.alignment = WD_ALIGN_PARAGRAPH.RIGHT


def render_order_docx(order: Order, target=None):
    """
    สร้างใบ WORK ORDER / QUOTATION เป็น .docx
    target = path หรือ file-like; ถ้าไม่ส่งมาคืนค่าเป็น bytes
    """
    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Arial"
    style.font.size = Pt(10)

    # ---------- letterhead ----------
    title = doc.add_paragraph()
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER
    run = title.add_run(COMPANY_NAME)
    run.bold = True
    run.font.size = Pt(18)
    for line in (COMPANY_TAGLINE, COMPANY_ADDRESS, COMPANY_CONTACT):
        p = doc.add_paragraph(line)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER

    heading = doc.add_paragraph()
    heading.alignment = WD_ALIGN_PARAGRAPH.CENTER
    r = heading.add_run("WORK ORDER / QUOTATION")
    r.bold = True
    r.font.size = Pt(13)

    # ---------- info (2 columns) ----------
    info = info_fields(order)
    grid = doc.add_table(rows=(len(info) + 1) // 2, cols=2)
    for n, (label, value) in enumerate(info):
        cell = grid.cell(n // 2, n % 2)
        p = cell.paragraphs[0]
        p.add_run(f"{label}: ").bold = True
        p.add_run(str(value))

    doc.add_paragraph()

    # ---------- items ----------
    headers = ["Sl.", "Type", "Qty", "Length", "Dia", "Shore", "Remarks", "Rate Rs.", "Amount Rs."]
    table = doc.add_table(rows=1, cols=len(headers))
    table.style = "Table Grid"
    for cell, text in zip(table.rows[0].cells, headers):
        cell.text = text
        cell.paragraphs[0].runs[0].bold = True
        _center_cell(cell)

    for item in order.items:
        cells = table.add_row().cells
        values = [
            str(item.sl_no), item.item_type, _qty(item.qty), item.length,
            item.dia, item.shore, item.remarks, _money(item.rate), _money(item.amount),
        ]
        for cell, text in zip(cells, values):
            cell.text = text or ""
        _center_cell(cells[0])
        _right_cell(cells[7])
        _right_cell(cells[8])

    # ---------- totals ----------
    for label, value, bold in (
        ("Subtotal", order.subtotal, False),
        ("GST", order.gst, False),
        ("Total", order.total, True),
    ):
        p = doc.add_paragraph()
        p.alignment = WD_ALIGN_PARAGRAPH.RIGHT
        run = p.add_run(f"{label}: Rs. {_money(value)}")
        run.bold = bold

    # ---------- terms + signature ----------
    doc.add_paragraph().add_run("Terms & Conditions:").bold = True
    for term in TERMS:
        doc.add_paragraph(term, style="List Bullet")

    sign = doc.add_paragraph("\n\n______________________\nAuthorized Signatory")
    sign.alignment = WD_ALIGN_PARAGRAPH.RIGHT

    if target is None:
        buf = BytesIO()
        doc.save(buf)
        return buf.getvalue()
    if isinstance(target, (str, Path)):
        Path(target).parent.mkdir(parents=True, exist_ok=True)
        target = str(target)
    doc.save(target)
    return target
