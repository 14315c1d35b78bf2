# app/modules/buyer_orders/router.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from app.config.database import get_db
from app.core.auth.dependencies import get_buyer_user
from .service import BuyerOrdersService
from .schemas import CheckoutRequest, CheckoutResponse, BuyerOrderResponse, BuyerOrderListResponse

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def checkout(
    request: CheckoutRequest,
    current_user = Depends(get_buyer_user),
    db: Session = Depends(get_db)
):
    """
    Finalizar compra

    **Incluye:**
    - Precios y vendedores tomados del catálogo
    - Total = subtotal + envío
    - Un pedido por cada vendedor con su parte del envío
    """
    service = BuyerOrdersService(db)
    try:
        return service.checkout(request, buyer_id=current_user.id)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error inesperado en checkout")
        raise HTTPException(status_code=500, detail=f"Error procesando pedido: {str(e)}")

@router.get("", response_model=BuyerOrderListResponse)
async def list_my_orders(
    current_user = Depends(get_buyer_user),
    db: Session = Depends(get_db)
):
    """Pedidos del comprador autenticado, más recientes primero"""
    service = BuyerOrdersService(db)
    return service.list_orders(current_user.id)

@router.get("/{order_id}", response_model=BuyerOrderResponse)
async def get_my_order(
    order_id: int,
    current_user = Depends(get_buyer_user),
    db: Session = Depends(get_db)
):
    """Detalle de un pedido con el avance de cada vendedor"""
    service = BuyerOrdersService(db)
    return service.get_order(order_id, current_user.id)
