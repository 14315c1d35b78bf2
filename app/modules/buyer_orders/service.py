# app/modules/buyer_orders/service.py
from fastapi import HTTPException
from sqlalchemy.orm import Session
from datetime import datetime
from decimal import Decimal
from typing import List
import logging
import uuid

from app.core.exceptions import NotFoundError
from app.shared.database.models import BuyerOrder
from app.shared.services.catalog_service import ProductCatalog
from app.modules.vendor_orders.service import VendorOrdersService, FanOutResult
from .repository import BuyerOrdersRepository
from .schemas import (
    CheckoutRequest, CheckoutResponse, BuyerOrderResponse, BuyerOrderListResponse,
    VendorProgress, FanOutSummary
)

logger = logging.getLogger(__name__)

def generate_order_code() -> str:
    """Código legible del pedido, ej: ORD-1724100900000-3FA2"""
    millis = int(datetime.now().timestamp() * 1000)
    return f"ORD-{millis}-{uuid.uuid4().hex[:4].upper()}"

class BuyerOrdersService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = BuyerOrdersRepository(db)
        self.catalog = ProductCatalog(db)
        self.vendor_orders = VendorOrdersService(db, catalog=self.catalog)

    def checkout(self, request: CheckoutRequest, buyer_id: int) -> CheckoutResponse:
        """
        Crear el pedido del comprador y repartirlo entre vendedores.

        Responsabilidades:
        - Tomar precio, vendedor y categoría del catálogo (no del frontend)
        - Guardar el pedido con total = subtotal + envío
        - Crear un pedido por vendedor (errores por vendedor no anulan el checkout)
        """
        logger.info(f"Iniciando checkout - Comprador: {buyer_id}, items: {len(request.items)}")

        # PASO 1: Resolver productos
        order_items = []
        unavailable = []
        for item in request.items:
            product = self.catalog.find_product_by_id(item.product_id)
            if not product or product.status != "active":
                unavailable.append(f"Producto {item.product_id} no disponible")
                continue

            order_items.append({
                "product_id": product.id,
                "seller_id": product.vendor_id,
                "name": product.title,
                "price": float(product.price),
                "quantity": item.quantity,
                "category": product.category or ""
            })

        if unavailable:
            raise HTTPException(
                status_code=400,
                detail="Productos no disponibles:\n" + "\n".join(f"• {x}" for x in unavailable)
            )

        # PASO 2: Totales
        subtotal = sum(
            (Decimal(str(i["price"])) * i["quantity"] for i in order_items),
            Decimal('0')
        )
        shipping_cost = request.shipping.cost
        total = subtotal + shipping_cost

        shipping = request.shipping.model_dump(exclude={"cost"})
        shipping["address"] = shipping["address"] or request.customer.address
        shipping["tracking"] = ""

        # PASO 3: Guardar pedido
        order = self.repository.create_buyer_order({
            "code": generate_order_code(),
            "buyer_id": buyer_id,
            "items": order_items,
            "customer": request.customer.model_dump(),
            "payment": request.payment.model_dump(),
            "shipping": shipping,
            "subtotal": subtotal,
            "shipping_cost": shipping_cost,
            "total": total,
            "status": "pending"
        })
        logger.info(f"Pedido {order.code} creado - total {total}")

        # PASO 4: Reparto a vendedores
        fan_out = self.vendor_orders.fan_out_order(order.id)
        if fan_out.has_errors:
            logger.warning(
                f"Pedido {order.code}: {len(fan_out.errors)} vendedores sin pedido, se puede reintentar el reparto"
            )

        return CheckoutResponse(
            success=True,
            message="Pedido creado exitosamente",
            order=self._build_order_response(order),
            fan_out=self._build_fan_out_summary(fan_out)
        )

    def list_orders(self, buyer_id: int) -> BuyerOrderListResponse:
        orders = self.repository.get_orders_by_buyer(buyer_id)
        return BuyerOrderListResponse(
            success=True,
            message=f"{len(orders)} pedidos",
            orders=[self._build_order_response(o) for o in orders],
            total=len(orders)
        )

    def get_order(self, order_id: int, buyer_id: int) -> BuyerOrderResponse:
        order = self.repository.get_order_for_buyer(order_id, buyer_id)
        if not order:
            raise NotFoundError("Pedido no encontrado")
        return self._build_order_response(order)

    # MÉTODOS PRIVADOS HELPERS

    def _build_order_response(self, order: BuyerOrder) -> BuyerOrderResponse:
        return BuyerOrderResponse(
            id=order.id,
            code=order.code,
            status=order.status,
            items=order.items or [],
            customer=order.customer or {},
            payment=order.payment or {},
            shipping=order.shipping or {},
            subtotal=order.subtotal,
            shipping_cost=order.shipping_cost,
            total=order.total,
            created_at=order.created_at,
            vendors=[
                VendorProgress(
                    vendor_id=vo.vendor_id,
                    vendor_order_id=vo.id,
                    status=vo.status,
                    vendor_total=vo.vendor_total,
                    tracking_number=vo.tracking_number,
                    shipped_at=vo.shipped_at,
                    delivered_at=vo.delivered_at
                )
                for vo in order.vendor_orders
            ]
        )

    @staticmethod
    def _build_fan_out_summary(fan_out: FanOutResult) -> FanOutSummary:
        vendor_orders: List = fan_out.already_existed + fan_out.created
        return FanOutSummary(
            vendor_order_ids=[vo.id for vo in vendor_orders],
            created_count=len(fan_out.created),
            already_existed_count=len(fan_out.already_existed),
            errors=[{"vendor_id": e.vendor_id, "error": e.error} for e in fan_out.errors]
        )
