# utils/code_generator.py
from datetime import datetime, timezone
from typing import Callable, Optional

ORDER_PREFIX = "ORD-"


def compact_timestamp(now: datetime) -> str:
    """2025-01-31T08:05:09 -> 20250131080509"""
    return now.strftime("%Y%m%d%H%M%S")


def next_order_no(
    exists: Callable[[str], bool],
    now: Optional[datetime] = None,
    prefix: str = ORDER_PREFIX,
) -> str:
    """
    ORD-<YYYYMMDDHHMMSS> จากเวลาปัจจุบัน (UTC)
    ถ้าเลขนี้มีอยู่แล้ว (บันทึกสองใบในวินาทีเดียวกัน) ต่อท้าย -2, -3, ...
    """
    now = now or datetime.now(timezone.utc)
    base = f"{prefix}{compact_timestamp(now)}"
    if not exists(base):
        return base
    n = 2
    while exists(f"{base}-{n}"):
        n += 1
    return f"{base}-{n}"
