# app/modules/buyer_orders/schemas.py
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from decimal import Decimal
from datetime import datetime

from app.shared.schemas.common import BaseResponse, CustomerInfo


class CheckoutItem(BaseModel):
    product_id: int = Field(..., description="ID del producto")
    quantity: int = Field(..., ge=1, description="Cantidad")


class PaymentInfo(BaseModel):
    method: str = Field(..., min_length=1, description="card, bank_transfer, cash, sinpe...")
    card_last4: str = Field("", max_length=4)
    bank_name: str = ""


class ShippingInfo(BaseModel):
    address: str = ""
    method: str = "Envío estándar"
    estimated_delivery: str = "3-5 días hábiles"
    cost: Decimal = Field(Decimal('0'), ge=0, description="Costo total del envío")


class CheckoutRequest(BaseModel):
    items: List[CheckoutItem] = Field(..., min_length=1, description="Productos del pedido")
    customer: CustomerInfo
    payment: PaymentInfo
    shipping: ShippingInfo = Field(default_factory=ShippingInfo)

    class Config:
        json_schema_extra = {
            "example": {
                "items": [
                    {"product_id": 12, "quantity": 2},
                    {"product_id": 31, "quantity": 1}
                ],
                "customer": {
                    "full_name": "Ana Rodríguez",
                    "email": "ana@example.com",
                    "phone": "8888-8888",
                    "address": "Desamparados, San José",
                    "city": "San José",
                    "province": "San José"
                },
                "payment": {"method": "card", "card_last4": "4242"},
                "shipping": {"address": "Desamparados, San José", "cost": 300}
            }
        }


class VendorProgress(BaseModel):
    """Estado de la parte de un vendedor dentro del pedido"""
    vendor_id: int
    vendor_order_id: int
    status: str
    vendor_total: Decimal
    tracking_number: Optional[str] = ""
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None


class BuyerOrderResponse(BaseModel):
    id: int
    code: str
    status: str
    items: List[Dict[str, Any]]
    customer: Dict[str, Any]
    payment: Dict[str, Any]
    shipping: Dict[str, Any]
    subtotal: Decimal
    shipping_cost: Decimal
    total: Decimal
    created_at: Optional[datetime] = None
    vendors: List[VendorProgress] = []


class FanOutSummary(BaseModel):
    vendor_order_ids: List[int]
    created_count: int
    already_existed_count: int
    errors: List[Dict[str, Any]] = []


class CheckoutResponse(BaseResponse):
    order: BuyerOrderResponse
    fan_out: FanOutSummary


class BuyerOrderListResponse(BaseResponse):
    orders: List[BuyerOrderResponse]
    total: int
