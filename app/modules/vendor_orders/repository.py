# app/modules/vendor_orders/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import and_, or_
from typing import Dict, Any, List, Optional, Tuple
from datetime import datetime
import logging

from app.shared.database.models import BuyerOrder, VendorOrder, VendorOrderStatusHistory

logger = logging.getLogger(__name__)

class VendorOrdersRepository:
    def __init__(self, db: Session):
        self.db = db

    # ==================== PEDIDOS DEL COMPRADOR ====================

    def get_buyer_order(self, buyer_order_id: int) -> Optional[BuyerOrder]:
        return self.db.query(BuyerOrder).filter(BuyerOrder.id == buyer_order_id).first()

    def update_buyer_order_status(self, buyer_order: BuyerOrder, status: str) -> BuyerOrder:
        buyer_order.status = status
        self.db.commit()
        self.db.refresh(buyer_order)
        return buyer_order

    # ==================== PEDIDOS POR VENDEDOR ====================

    def get_vendor_order(self, vendor_order_id: int) -> Optional[VendorOrder]:
        return self.db.query(VendorOrder).filter(VendorOrder.id == vendor_order_id).first()

    def find_by_buyer_order_and_vendor(self, buyer_order_id: int, vendor_id: int) -> Optional[VendorOrder]:
        """Buscar por la llave única (buyer_order_id, vendor_id)"""
        return self.db.query(VendorOrder).filter(
            and_(
                VendorOrder.buyer_order_id == buyer_order_id,
                VendorOrder.vendor_id == vendor_id
            )
        ).first()

    def get_by_buyer_order(self, buyer_order_id: int) -> List[VendorOrder]:
        """Todos los pedidos de vendedor de un BuyerOrder, en orden de creación"""
        return self.db.query(VendorOrder).filter(
            VendorOrder.buyer_order_id == buyer_order_id
        ).order_by(VendorOrder.id.asc()).all()

    def get_by_vendor(
        self,
        vendor_id: Optional[int],
        status: Optional[str] = None,
        priority: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 50
    ) -> Tuple[List[VendorOrder], int]:
        """
        Pedidos de un vendedor con filtros y paginación.

        vendor_id None devuelve los pedidos de todos los vendedores (uso de admin).
        search busca sin distinguir mayúsculas en el código del pedido y en el
        nombre y email del cliente.
        """
        query = self.db.query(VendorOrder)

        if vendor_id is not None:
            query = query.filter(VendorOrder.vendor_id == vendor_id)

        if status and status != "all":
            query = query.filter(VendorOrder.status == status)
        if priority:
            query = query.filter(VendorOrder.priority == priority)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    VendorOrder.buyer_order_code.ilike(pattern),
                    VendorOrder.customer["full_name"].as_string().ilike(pattern),
                    VendorOrder.customer["email"].as_string().ilike(pattern)
                )
            )

        total = query.count()
        orders = query.order_by(
            VendorOrder.created_at.desc(), VendorOrder.id.desc()
        ).offset((page - 1) * limit).limit(limit).all()

        return orders, total

    def create_vendor_order(self, vendor_order_data: Dict[str, Any], initial_notes: str) -> VendorOrder:
        """
        Crear pedido de vendedor con su primera entrada de historial.

        Raises:
            IntegrityError: si ya existe un pedido para (buyer_order_id, vendor_id)
        """
        vendor_order = VendorOrder(**vendor_order_data)
        self.db.add(vendor_order)
        self.db.flush()

        self.db.add(VendorOrderStatusHistory(
            vendor_order_id=vendor_order.id,
            status=vendor_order.status,
            timestamp=datetime.now(),
            notes=initial_notes,
            updated_by_user_id=None
        ))

        self.db.commit()
        self.db.refresh(vendor_order)
        return vendor_order

    def append_status_history(
        self,
        vendor_order: VendorOrder,
        status: str,
        timestamp: datetime,
        notes: str,
        updated_by_user_id: Optional[int]
    ) -> VendorOrderStatusHistory:
        """Agregar entrada al historial (las entradas existentes no se modifican)"""
        entry = VendorOrderStatusHistory(
            status=status,
            timestamp=timestamp,
            notes=notes,
            updated_by_user_id=updated_by_user_id
        )
        vendor_order.status_history.append(entry)
        return entry

    def save(self, vendor_order: VendorOrder) -> VendorOrder:
        self.db.commit()
        self.db.refresh(vendor_order)
        return vendor_order

    def rollback(self) -> None:
        self.db.rollback()
