# services/line_items.py
"""
Line-item editor for the order form.

State machine: Idle <-> Editing(index). ``begin_edit`` always moves to
Editing(i) (an unfinished edit is dropped without saving), ``add_or_update``
and ``cancel_edit`` go back to Idle.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields
from typing import Callable, Iterable, List, Optional

from schemas import LineItem, line_amount
from services.errors import ValidationError

logger = logging.getLogger(__name__)


# ---------- helpers ----------
def _parse_number(value) -> Optional[float]:
    """'' / None -> None, otherwise float or raise ValueError"""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    s = str(value).strip()
    if not s:
        return None
    return float(s)


def _fmt_number(v: float) -> str:
    return str(int(v)) if float(v).is_integer() else repr(float(v))


def is_valid_item(item) -> bool:
    if item is None:
        return False
    try:
        rate = float(item.rate)
        qty = float(item.qty)
        amount = float(item.amount)
    except (AttributeError, TypeError, ValueError):
        return False
    return (
        math.isfinite(rate) and rate >= 0
        and math.isfinite(qty) and qty >= 0
        and math.isfinite(amount)
    )


def sanitize_items(items: Iterable) -> List[LineItem]:
    """Drop corrupt rows silently (negative / NaN rate, qty or amount)."""
    items = list(items)
    kept = [i for i in items if is_valid_item(i)]
    if len(kept) != len(items):
        logger.debug(f"dropped {len(items) - len(kept)} invalid line item(s)")
    return kept


def renumber(items: Iterable[LineItem]) -> List[LineItem]:
    return [item.model_copy(update={"sl_no": n}) for n, item in enumerate(items, start=1)]


# ---------- draft ----------
@dataclass
class LineItemDraft:
    """Raw field values as typed into the item entry row."""
    item_type: str = ""
    qty: str = ""
    length: str = ""
    dia: str = ""
    shore: str = ""
    remarks: str = ""
    rate: str = ""

    @classmethod
    def from_item(cls, item: LineItem) -> "LineItemDraft":
        return cls(
            item_type=item.item_type or "",
            qty="" if item.qty == 0 else _fmt_number(item.qty),
            length=item.length or "",
            dia=item.dia or "",
            shore=item.shore or "",
            remarks=item.remarks or "",
            rate=_fmt_number(item.rate),
        )

    def is_blank(self) -> bool:
        return all(not str(getattr(self, f.name)).strip() for f in fields(self))


# ---------- editor ----------
class LineItemEditor:
    def __init__(
        self,
        items: Optional[Iterable[LineItem]] = None,
        on_change: Optional[Callable[[List[LineItem]], None]] = None,
    ):
        self.items: List[LineItem] = renumber(sanitize_items(items or []))
        self.draft = LineItemDraft()
        self.editing_index: Optional[int] = None
        self.on_change = on_change

    @property
    def is_editing(self) -> bool:
        return self.editing_index is not None

    @property
    def state(self) -> str:
        return "Idle" if self.editing_index is None else f"Editing({self.editing_index})"

    def _changed(self) -> None:
        self.items = renumber(sanitize_items(self.items))
        if self.on_change:
            self.on_change(self.items)

    def build_item(self, draft: LineItemDraft) -> LineItem:
        try:
            rate = _parse_number(draft.rate)
        except ValueError:
            rate = None
        if rate is None or not math.isfinite(rate) or rate < 0:
            raise ValidationError("Please enter a valid Rate (must be a number >= 0)", field="rate")

        try:
            qty = _parse_number(draft.qty)
        except ValueError:
            raise ValidationError("Please enter a valid Quantity (must be >= 0)", field="qty")
        qty = 0.0 if qty is None else qty
        if not math.isfinite(qty) or qty < 0:
            raise ValidationError("Please enter a valid Quantity (must be >= 0)", field="qty")

        return LineItem(
            sl_no=len(self.items) + 1,
            item_type=(draft.item_type or "").strip(),
            qty=qty,
            length=(draft.length or "").strip(),
            dia=(draft.dia or "").strip(),
            shore=(draft.shore or "").strip(),
            remarks=(draft.remarks or "").strip(),
            rate=rate,
            amount=line_amount(qty, rate),
        )

    def add_or_update(self, draft: Optional[LineItemDraft] = None) -> LineItem:
        """Append the draft, or replace the row being edited. Clears the draft."""
        if draft is not None:
            self.draft = draft
        item = self.build_item(self.draft)

        if self.editing_index is not None:
            self.items[self.editing_index] = item
            self.editing_index = None
        else:
            self.items.append(item)

        self.draft = LineItemDraft()
        self._changed()
        return item

    def begin_edit(self, index: int) -> Optional[LineItemDraft]:
        if index < 0 or index >= len(self.items):
            return None
        self.editing_index = index
        self.draft = LineItemDraft.from_item(self.items[index])
        return self.draft

    def cancel_edit(self) -> None:
        self.editing_index = None
        self.draft = LineItemDraft()

    def remove(self, index: int) -> None:
        if index < 0 or index >= len(self.items):
            return
        del self.items[index]
        if self.editing_index is not None:
            if self.editing_index == index:
                self.cancel_edit()
            elif self.editing_index > index:
                self.editing_index -= 1
        self._changed()

    def load(self, items: Iterable[LineItem]) -> None:
        """Replace the whole list (e.g. items posted by the browser form)."""
        self.items = list(items)
        self.cancel_edit()
        self._changed()

    def rows(self) -> List[LineItem]:
        """Items as they should be rendered (invalid rows dropped, slNo fresh)."""
        self.items = renumber(sanitize_items(self.items))
        return list(self.items)

    def clear(self) -> None:
        self.items = []
        self.cancel_edit()
        if self.on_change:
            self.on_change(self.items)
