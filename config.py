# config.py
import os
import logging
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env if present
load_dotenv()

APP_DIR = Path(__file__).resolve().parent

# ---------- database ----------
# ไฟล์ฐานข้อมูลอยู่ข้างแอป (portable) ถ้าไม่ได้กำหนด DATABASE_URL
ORDERS_DB_PATH = os.getenv("ORDERS_DB_PATH", str(APP_DIR / "orders.db"))
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{ORDERS_DB_PATH}")

# ---------- order defaults ----------
PAGE_SIZE = int(os.getenv("ORDERS_PAGE_SIZE", 50))
DEFAULT_GST_PERCENT = float(os.getenv("DEFAULT_GST_PERCENT", 18))

# ---------- printable letterhead ----------
COMPANY_NAME = os.getenv("COMPANY_NAME", "AAKSO RUBBER WORKS")
COMPANY_TAGLINE = os.getenv("COMPANY_TAGLINE", "Mfg: Rubber Extruded, Moulded & Lining Products")
COMPANY_ADDRESS = os.getenv(
    "COMPANY_ADDRESS", "Admn. Off/Works: D-34, Phase V, IDA, Jeedimetla, Hyderabad-500 055"
)
COMPANY_CONTACT = os.getenv(
    "COMPANY_CONTACT", "E-mail: aaksorubber@gmail.com | Ph: 9440624313, 9550884200"
)
TERMS = [
    "Payment within 30 days",
    "Prices subject to change without notice",
    "Goods once sold will not be taken back",
]

# ---------- server ----------
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", 8000))

# ---------- logging ----------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE", "error.log")


def configure_logging(level: str | None = None, log_file: str | None = None) -> None:
    """Stream handler always; UTF-8 file handler unless LOG_FILE is empty."""
    log_file = LOG_FILE if log_file is None else log_file
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )
