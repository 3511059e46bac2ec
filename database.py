# database.py
import logging
from typing import Generator

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.orm import sessionmaker, declarative_base, Session

from config import DATABASE_URL

logger = logging.getLogger(__name__)


def make_engine(url: str = DATABASE_URL, **kwargs):
    """SQLite ต้องปิด check_same_thread เพราะ FastAPI รัน dependency คนละ thread"""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    eng = create_engine(url, future=True, **kwargs)
    if url.startswith("sqlite"):
        event.listen(eng, "connect", _enable_sqlite_fk)
    return eng


def _enable_sqlite_fk(dbapi_conn, _record):
    # order_items ลบตาม orders (ON DELETE CASCADE) ได้ก็ต่อเมื่อเปิด foreign_keys
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()


engine = make_engine()
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Dependency สำหรับ FastAPI: เปิด session ต่อคำขอ แล้วปิดให้เสมอ"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# columns added after the first release; older files get them back-filled
LATE_ORDER_COLUMNS = (
    "machine_name",
    "delivery_note",
    "delivery_note_date",
    "buyer_order_no",
    "buyer_order_date",
)


def init_db(bind=None) -> None:
    import models  # noqa: F401  (register tables)

    bind = bind or engine
    Base.metadata.create_all(bind=bind)

    existing = {c["name"] for c in inspect(bind).get_columns("orders")}
    missing = [c for c in LATE_ORDER_COLUMNS if c not in existing]
    if not missing:
        return
    with bind.begin() as conn:
        for col in missing:
            conn.execute(text(f"ALTER TABLE orders ADD COLUMN {col} TEXT"))
            logger.info(f"orders: added missing column {col}")
