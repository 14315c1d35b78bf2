from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Dict, Any, Optional
import logging

from app.config.settings import Settings, settings as default_settings
from app.shared.schemas.order_status import VendorOrderPriority

logger = logging.getLogger(__name__)

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal('0')
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round_amount(value: Decimal) -> Decimal:
    """Redondeo a unidades enteras, mitades hacia arriba"""
    return value.quantize(Decimal('1'), rounding=ROUND_HALF_UP)


class VendorOrderCalculator:
    """Cálculos de reparto de un pedido entre vendedores: totales, envío, prioridad y tags"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

    @staticmethod
    def group_items_by_vendor(items: List[Dict[str, Any]]) -> Dict[int, List[Dict[str, Any]]]:
        """
        Agrupar items por vendedor conservando el orden de aparición.

        Los items sin seller_id, o con un seller_id que no es un id válido,
        no se pueden asignar y quedan fuera del reparto.
        """
        groups: Dict[int, List[Dict[str, Any]]] = {}
        for item in items or []:
            seller_id = item.get('seller_id')
            if seller_id is None or seller_id == "":
                continue
            try:
                seller_id = int(seller_id)
            except (TypeError, ValueError):
                logger.warning(f"Item {item.get('product_id')} con seller_id inválido: {seller_id!r}")
                continue
            groups.setdefault(seller_id, []).append(item)
        return groups

    @staticmethod
    def items_subtotal(items: List[Dict[str, Any]]) -> Decimal:
        return sum(
            (to_decimal(item.get('price')) * int(item.get('quantity') or 0) for item in items),
            Decimal('0')
        )

    @staticmethod
    def apportion_shipping(
        shipping_cost: Decimal,
        vendor_subtotal: Decimal,
        order_subtotal: Decimal,
        vendor_count: int
    ) -> Decimal:
        """
        Parte del envío que corresponde a un vendedor.

        Un solo vendedor recibe el envío completo. Con varios, cada uno recibe
        round(envío * subtotal_vendedor / subtotal_pedido); cada parte se redondea
        por separado, así que la suma puede diferir del envío en una unidad por vendedor.
        """
        shipping_cost = to_decimal(shipping_cost)
        if vendor_count <= 1:
            return shipping_cost

        order_subtotal = to_decimal(order_subtotal)
        if order_subtotal <= 0:
            return Decimal('0')

        return round_amount(shipping_cost * to_decimal(vendor_subtotal) / order_subtotal)

    def calculate_priority(self, total: Decimal, item_count: int) -> VendorOrderPriority:
        """Prioridad por valor y cantidad de items (gana la primera regla que aplique)"""
        s = self.settings
        total = to_decimal(total)

        if total >= s.priority_urgent_min_total:
            return VendorOrderPriority.URGENT
        if total >= s.priority_high_min_total:
            return VendorOrderPriority.HIGH
        if item_count >= s.priority_high_min_items:
            return VendorOrderPriority.HIGH
        if total >= s.priority_normal_min_total:
            return VendorOrderPriority.NORMAL
        return VendorOrderPriority.LOW

    def generate_tags(
        self,
        payment_method: Optional[str],
        items: List[Dict[str, Any]],
        now: Optional[datetime] = None
    ) -> List[str]:
        """Tags descriptivos del pedido del vendedor"""
        s = self.settings
        tags = []

        # Método de pago
        if payment_method:
            tags.append(f"payment-{payment_method}")

        # Cantidad de items
        if len(items) >= s.tag_bulk_min_items:
            tags.append("bulk-order")
        if len(items) == 1:
            tags.append("single-item")

        # Categorías sin repetir, en orden de aparición
        categories = []
        for item in items:
            category = item.get('category')
            if category and category not in categories:
                categories.append(category)
        tags.extend(f"category-{category}" for category in categories)

        # Valor de los productos (sin envío)
        items_total = self.items_subtotal(items)
        if items_total >= s.tag_high_value_min_total:
            tags.append("high-value")
        if items_total <= s.tag_low_value_max_total:
            tags.append("low-value")

        # Día de la semana
        now = now or datetime.now()
        tags.append(f"day-{WEEKDAYS[now.weekday()]}")

        return tags
