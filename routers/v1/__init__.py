# routers/v1/__init__.py
from fastapi import APIRouter

from . import orders

api_v1 = APIRouter()
api_v1.include_router(orders.router)

__all__ = ["api_v1"]
