# main.py
import argparse
import logging
import webbrowser
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from config import APP_DIR, HOST, PAGE_SIZE, PORT, configure_logging
from database import init_db
from routers.v1 import api_v1
from schemas import ORDER_STATUSES
from services.errors import (
    BoundaryError,
    DuplicateOrderError,
    NotFoundError,
    ValidationError,
)
from services.order_view import STATUS_ALL

logger = logging.getLogger(__name__)


# ---------- Bootstrap ----------
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("order database ready")
    yield


app = FastAPI(title="Order Manager API", version="1.0", lifespan=lifespan)

origins = [
    "http://127.0.0.1:5500",
    "http://localhost:5500",
    "http://127.0.0.1:8000",
    "http://localhost:8000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Static & templates (ไม่มีโฟลเดอร์ static ก็ข้ามไป)
STATIC_DIR = APP_DIR / "static"
if STATIC_DIR.is_dir():
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
templates = Jinja2Templates(directory=str(APP_DIR / "templates"))

app.include_router(api_v1, prefix="/api/v1")


# ===== error mapping =====
@app.exception_handler(DuplicateOrderError)
async def duplicate_order_handler(request: Request, exc: DuplicateOrderError):
    logger.warning(exc.message)
    return JSONResponse(status_code=409, content={"detail": exc.message, "field": exc.field})


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    logger.warning(exc.message)
    return JSONResponse(status_code=422, content={"detail": exc.message, "field": exc.field})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    logger.warning(exc.message)
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(BoundaryError)
async def boundary_handler(request: Request, exc: BoundaryError):
    return JSONResponse(status_code=500, content={"detail": exc.message})


# ---------- pages ----------
@app.get("/", response_class=HTMLResponse)
def home(request: Request):
    return templates.TemplateResponse(
        request,
        "orders_list.html",
        {
            "statuses": [STATUS_ALL] + ORDER_STATUSES,
            "order_statuses": ORDER_STATUSES,
            "page_size": PAGE_SIZE,
        },
    )


def run(argv=None):
    """console entry: order-manager [--host] [--port] [--open]"""
    ap = argparse.ArgumentParser(description="Order / quotation manager (local web UI).")
    ap.add_argument("--host", default=HOST)
    ap.add_argument("--port", type=int, default=PORT)
    ap.add_argument("--open", action="store_true", help="open the browser after start")
    args = ap.parse_args(argv)

    configure_logging()
    url = f"http://{args.host}:{args.port}/"
    logger.info(f"starting order manager on {url}")
    if args.open:
        webbrowser.open(url)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    run()
