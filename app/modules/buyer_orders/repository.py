# app/modules/buyer_orders/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import and_
from typing import Dict, Any, List, Optional
import logging

from app.shared.database.models import BuyerOrder

logger = logging.getLogger(__name__)

class BuyerOrdersRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_buyer_order(self, order_data: Dict[str, Any]) -> BuyerOrder:
        """Crear pedido del comprador"""
        try:
            order = BuyerOrder(**order_data)
            self.db.add(order)
            self.db.commit()
            self.db.refresh(order)
            return order
        except Exception:
            logger.exception("Error guardando pedido del comprador")
            self.db.rollback()
            raise

    def get_orders_by_buyer(self, buyer_id: int) -> List[BuyerOrder]:
        return self.db.query(BuyerOrder).filter(
            BuyerOrder.buyer_id == buyer_id
        ).order_by(BuyerOrder.created_at.desc(), BuyerOrder.id.desc()).all()

    def get_order_for_buyer(self, order_id: int, buyer_id: int) -> Optional[BuyerOrder]:
        return self.db.query(BuyerOrder).filter(
            and_(
                BuyerOrder.id == order_id,
                BuyerOrder.buyer_id == buyer_id
            )
        ).first()
