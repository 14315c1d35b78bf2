# app/modules/vendor_orders/router.py
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import logging

from app.config.database import get_db
from app.core.auth.dependencies import get_vendor_user, get_admin_user, is_admin
from app.shared.schemas.order_status import VendorOrderStatus, VendorOrderPriority
from .service import VendorOrdersService
from .schemas import (
    VendorOrderListResponse, VendorOrderSummary, VendorOrderResponse,
    StatusUpdateRequest, StatusUpdateResponse,
    FanOutResponse, VendorFanOutErrorInfo, ReconcileResponse
)

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("", response_model=VendorOrderListResponse)
async def list_vendor_orders(
    status: Optional[VendorOrderStatus] = Query(None, description="Filtrar por estado"),
    priority: Optional[VendorOrderPriority] = Query(None, description="Filtrar por prioridad"),
    q: Optional[str] = Query(None, max_length=100, description="Buscar por código, nombre o email del cliente"),
    vendor_id: Optional[int] = Query(None, description="Solo admin: filtrar por vendedor"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    current_user = Depends(get_vendor_user),
    db: Session = Depends(get_db)
):
    """
    Pedidos del vendedor autenticado

    **Incluye:**
    - Solo los productos del vendedor en cada pedido
    - Totales del vendedor con su parte del envío
    - Prioridad y tags

    Un admin ve los pedidos de todos los vendedores, o de uno con `vendor_id`.
    """
    service = VendorOrdersService(db)
    orders, total = service.list_vendor_orders(
        vendor_id=vendor_id if is_admin(current_user) else current_user.id,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        search=q,
        page=page,
        limit=limit
    )

    return VendorOrderListResponse(
        success=True,
        message=f"{len(orders)} pedidos encontrados",
        orders=[VendorOrderSummary.from_vendor_order(vo) for vo in orders],
        page=page,
        limit=limit,
        total=total
    )

@router.get("/{vendor_order_id}", response_model=VendorOrderResponse)
async def get_vendor_order(
    vendor_order_id: int,
    current_user = Depends(get_vendor_user),
    db: Session = Depends(get_db)
):
    """Detalle de un pedido con su historial de estados"""
    service = VendorOrdersService(db)
    vendor_order = service.get_vendor_order_for_user(
        vendor_order_id, current_user.id, is_admin(current_user)
    )
    return VendorOrderResponse.model_validate(vendor_order)

@router.patch("/{vendor_order_id}/status", response_model=StatusUpdateResponse)
async def update_vendor_order_status(
    vendor_order_id: int,
    request: StatusUpdateRequest,
    current_user = Depends(get_vendor_user),
    db: Session = Depends(get_db)
):
    """
    Actualizar estado de un pedido del vendedor

    **Efectos:**
    - Registra el cambio en el historial
    - Fija la fecha del hito (confirmado, enviado, entregado...) la primera vez
    - Recalcula el estado general del pedido del comprador
    """
    service = VendorOrdersService(db)
    admin = is_admin(current_user)

    # Verifica existencia y pertenencia antes de modificar
    service.get_vendor_order_for_user(vendor_order_id, current_user.id, admin)

    try:
        vendor_order = service.update_vendor_order_status(
            vendor_order_id=vendor_order_id,
            new_status=request.status,
            notes=request.notes,
            actor_id=current_user.id,
            tracking_number=request.tracking_number,
            bypass_transition_rules=admin
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error inesperado actualizando estado")
        raise HTTPException(status_code=500, detail=f"Error actualizando estado: {str(e)}")

    return StatusUpdateResponse(
        success=True,
        message="Estado del pedido actualizado correctamente",
        vendor_order=VendorOrderResponse.model_validate(vendor_order)
    )

@router.post("/fan-out/{buyer_order_id}", response_model=FanOutResponse)
async def fan_out_buyer_order(
    buyer_order_id: int,
    current_user = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """
    Repartir (o reintentar el reparto de) un pedido del comprador entre vendedores.

    Seguro de repetir: los pedidos ya creados se devuelven sin cambios.
    """
    service = VendorOrdersService(db)
    result = service.fan_out_order(buyer_order_id)

    return FanOutResponse(
        success=not result.has_errors,
        message="Reparto completado" if not result.has_errors else "Reparto con errores",
        buyer_order_id=buyer_order_id,
        created=[VendorOrderSummary.from_vendor_order(vo) for vo in result.created],
        already_existed=[VendorOrderSummary.from_vendor_order(vo) for vo in result.already_existed],
        errors=[VendorFanOutErrorInfo(vendor_id=e.vendor_id, error=e.error) for e in result.errors]
    )

@router.post("/reconcile/{buyer_order_id}", response_model=ReconcileResponse)
async def reconcile_buyer_order(
    buyer_order_id: int,
    current_user = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """Recalcular el estado general de un pedido del comprador"""
    service = VendorOrdersService(db)
    try:
        buyer_order = service.reconcile_buyer_order_status(buyer_order_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error recalculando estado del pedido")
        raise HTTPException(status_code=500, detail=f"Error recalculando estado: {str(e)}")

    return ReconcileResponse(
        success=True,
        message="Estado recalculado",
        buyer_order_id=buyer_order.id,
        buyer_order_code=buyer_order.code,
        status=buyer_order.status
    )
