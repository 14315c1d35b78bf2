from typing import Optional
from sqlalchemy.orm import Session
import logging

from app.shared.database.models import Product
from app.shared.schemas.common import ProductSnapshot

logger = logging.getLogger(__name__)

class ProductCatalog:
    """Consulta de productos del catálogo para los módulos de pedidos"""

    def __init__(self, db: Session):
        self.db = db

    def find_product_by_id(self, product_id: Optional[int]) -> Optional[Product]:
        if product_id is None:
            return None
        return self.db.query(Product).filter(Product.id == product_id).first()

    def find_product_snapshot(self, product_id: Optional[int]) -> Optional[ProductSnapshot]:
        """
        Snapshot (título, imágenes, descripción) del producto.

        Returns:
            ProductSnapshot o None si el producto ya no existe
        """
        product = self.find_product_by_id(product_id)
        if product is None:
            return None

        return ProductSnapshot(
            title=product.title,
            images=list(product.images or []),
            description=product.description or ""
        )

    def snapshot_or_empty(self, product_id: Optional[int]) -> ProductSnapshot:
        """Snapshot del producto; si no se puede obtener, snapshot vacío"""
        try:
            snapshot = self.find_product_snapshot(product_id)
        except Exception as e:
            logger.warning(f"No se pudo obtener info del producto {product_id}: {e}")
            return ProductSnapshot()

        if snapshot is None:
            logger.warning(f"Producto {product_id} no encontrado, se usa snapshot vacío")
            return ProductSnapshot()

        return snapshot
