# app/api/v1/router.py
from fastapi import APIRouter
from app.api.v1.auth import router as auth_router
from app.modules.buyer_orders.router import router as buyer_orders_router
from app.modules.vendor_orders.router import router as vendor_orders_router


# Crear router principal de la API v1
api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["authentication"])

api_router.include_router(
    buyer_orders_router,
    prefix="/buyer-orders",
    tags=["Buyer Orders"]
)

api_router.include_router(
    vendor_orders_router,
    prefix="/vendor-orders",
    tags=["Vendor Orders"]
)
