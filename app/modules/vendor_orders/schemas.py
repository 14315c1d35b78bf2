# app/modules/vendor_orders/schemas.py
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from decimal import Decimal
from datetime import datetime

from app.shared.schemas.common import BaseResponse, ProductSnapshot
from app.shared.schemas.order_status import VendorOrderStatus


class VendorOrderItem(BaseModel):
    product_id: Optional[int] = None
    name: str = ""
    price: Decimal
    quantity: int
    category: str = ""
    product_snapshot: ProductSnapshot = Field(default_factory=ProductSnapshot)


class StatusHistoryEntry(BaseModel):
    status: str
    timestamp: datetime
    notes: Optional[str] = None
    updated_by_user_id: Optional[int] = None

    class Config:
        from_attributes = True


class VendorOrderSummary(BaseModel):
    """Pedido de vendedor para listados"""
    id: int
    buyer_order_id: int
    buyer_order_code: str
    vendor_id: int
    status: str
    priority: str
    vendor_subtotal: Decimal
    shipping_cost: Decimal
    vendor_total: Decimal
    items_count: int
    customer_name: Optional[str] = None
    tags: List[str] = []
    other_vendors_in_order: bool
    created_at: Optional[datetime] = None

    @classmethod
    def from_vendor_order(cls, vendor_order) -> "VendorOrderSummary":
        customer = vendor_order.customer or {}
        return cls(
            id=vendor_order.id,
            buyer_order_id=vendor_order.buyer_order_id,
            buyer_order_code=vendor_order.buyer_order_code,
            vendor_id=vendor_order.vendor_id,
            status=vendor_order.status,
            priority=vendor_order.priority,
            vendor_subtotal=vendor_order.vendor_subtotal,
            shipping_cost=vendor_order.shipping_cost,
            vendor_total=vendor_order.vendor_total,
            items_count=len(vendor_order.items or []),
            customer_name=customer.get("full_name"),
            tags=vendor_order.tags or [],
            other_vendors_in_order=bool(vendor_order.other_vendors_in_order),
            created_at=vendor_order.created_at
        )


class VendorOrderResponse(BaseModel):
    """Detalle completo de un pedido de vendedor"""
    id: int
    buyer_order_id: int
    buyer_order_code: str
    vendor_id: int
    customer: Dict[str, Any]
    items: List[VendorOrderItem]
    vendor_subtotal: Decimal
    shipping_cost: Decimal
    vendor_total: Decimal
    payment: Dict[str, Any]
    shipping: Dict[str, Any]
    status: str
    priority: str
    vendor_notes: Optional[str] = ""
    tags: List[str] = []
    status_history: List[StatusHistoryEntry] = []
    confirmed_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    processing_time: Optional[int] = None
    delivery_time: Optional[int] = None
    tracking_number: Optional[str] = ""
    tracking_url: Optional[str] = ""
    original_order_total: Decimal
    other_vendors_in_order: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class VendorOrderListResponse(BaseResponse):
    orders: List[VendorOrderSummary]
    page: int
    limit: int
    total: int


class StatusUpdateRequest(BaseModel):
    status: VendorOrderStatus = Field(..., description="Nuevo estado del pedido")
    notes: Optional[str] = Field(None, max_length=1000, description="Notas del cambio")
    tracking_number: Optional[str] = Field(None, max_length=100, description="Número de guía")

    class Config:
        json_schema_extra = {
            "example": {
                "status": "shipped",
                "notes": "Enviado por Correos de Costa Rica",
                "tracking_number": "CR123456789"
            }
        }


class StatusUpdateResponse(BaseResponse):
    vendor_order: VendorOrderResponse


class VendorFanOutErrorInfo(BaseModel):
    vendor_id: int
    error: str


class FanOutResponse(BaseResponse):
    buyer_order_id: int
    created: List[VendorOrderSummary]
    already_existed: List[VendorOrderSummary]
    errors: List[VendorFanOutErrorInfo]


class ReconcileResponse(BaseResponse):
    buyer_order_id: int
    buyer_order_code: str
    status: str
