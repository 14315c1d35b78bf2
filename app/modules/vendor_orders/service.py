# app/modules/vendor_orders/service.py
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Any, Iterable, List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config.settings import Settings, settings as default_settings
from app.core.exceptions import NotFoundError, InvalidStatusTransitionError, ReconciliationError
from app.shared.database.models import BuyerOrder, VendorOrder
from app.shared.schemas.order_status import (
    VendorOrderStatus, BuyerOrderStatus, VENDOR_TO_BUYER_STATUS,
    status_rank, is_transition_allowed
)
from app.shared.services.catalog_service import ProductCatalog
from .calculator_service import VendorOrderCalculator, to_decimal, round_amount
from .repository import VendorOrdersRepository

logger = logging.getLogger(__name__)

# Fecha que se fija la primera vez que el pedido alcanza cada estado
MILESTONE_FIELDS = {
    VendorOrderStatus.CONFIRMED: "confirmed_at",
    VendorOrderStatus.PROCESSING: "processed_at",
    VendorOrderStatus.SHIPPED: "shipped_at",
    VendorOrderStatus.DELIVERED: "delivered_at",
    VendorOrderStatus.CANCELLED: "cancelled_at",
}

SECONDS_PER_MINUTE = 60
SECONDS_PER_DAY = 60 * 60 * 24


@dataclass
class VendorFanOutError:
    vendor_id: int
    error: str


@dataclass
class FanOutResult:
    buyer_order_id: int
    created: List[VendorOrder] = field(default_factory=list)
    already_existed: List[VendorOrder] = field(default_factory=list)
    errors: List[VendorFanOutError] = field(default_factory=list)

    @property
    def by_vendor(self) -> Dict[int, VendorOrder]:
        """Pedidos existentes (nuevos y previos) indexados por vendedor"""
        return {vo.vendor_id: vo for vo in self.already_existed + self.created}

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


def _elapsed(start: datetime, end: datetime, unit_seconds: int) -> int:
    seconds = Decimal(str((end - start).total_seconds()))
    return int(round_amount(seconds / unit_seconds))


class VendorOrdersService:
    def __init__(
        self,
        db: Session,
        catalog: Optional[ProductCatalog] = None,
        settings: Optional[Settings] = None
    ):
        self.db = db
        self.settings = settings or default_settings
        self.repository = VendorOrdersRepository(db)
        self.catalog = catalog or ProductCatalog(db)
        self.calculator = VendorOrderCalculator(self.settings)

    # ==================== REPARTO A VENDEDORES ====================

    def fan_out_order(self, buyer_order_id: int) -> FanOutResult:
        """
        Crear un pedido por vendedor para cada vendedor presente en el BuyerOrder.

        - Es seguro llamarlo varias veces: los pedidos existentes se devuelven sin cambios.
        - Cada vendedor se procesa por separado; un fallo no detiene a los demás
          y queda registrado en FanOutResult.errors.
        - Nunca modifica el BuyerOrder.

        Raises:
            NotFoundError: si el BuyerOrder no existe
        """
        buyer_order = self.repository.get_buyer_order(buyer_order_id)
        if not buyer_order:
            raise NotFoundError(f"BuyerOrder {buyer_order_id} no encontrado")

        logger.info(f"Sincronizando pedido {buyer_order.code} a vendedores")

        items_by_vendor = self.calculator.group_items_by_vendor(buyer_order.items)
        vendor_count = len(items_by_vendor)

        order_subtotal = to_decimal(buyer_order.subtotal)
        if order_subtotal <= 0:
            order_subtotal = self.calculator.items_subtotal(buyer_order.items or [])

        logger.info(f"Vendedores encontrados: {vendor_count}")

        result = FanOutResult(buyer_order_id=buyer_order.id)

        for vendor_id, vendor_items in items_by_vendor.items():
            try:
                existing = self.repository.find_by_buyer_order_and_vendor(buyer_order.id, vendor_id)
                if existing:
                    logger.info(f"Pedido ya existe para vendedor {vendor_id}")
                    result.already_existed.append(existing)
                    continue

                vendor_order_data = self._build_vendor_order_data(
                    buyer_order, vendor_id, vendor_items, vendor_count, order_subtotal
                )
                vendor_order = self.repository.create_vendor_order(
                    vendor_order_data, initial_notes="Pedido creado"
                )
                result.created.append(vendor_order)
                logger.info(f"Pedido creado para vendedor {vendor_id}")

            except IntegrityError:
                # Otro proceso creó el pedido de este vendedor primero
                self.repository.rollback()
                existing = self.repository.find_by_buyer_order_and_vendor(buyer_order.id, vendor_id)
                if existing:
                    result.already_existed.append(existing)
                else:
                    logger.exception(f"Error de integridad creando pedido para vendedor {vendor_id}")
                    result.errors.append(VendorFanOutError(vendor_id, "Error de integridad creando pedido"))

            except Exception as e:
                self.repository.rollback()
                logger.exception(f"Error creando pedido para vendedor {vendor_id}")
                result.errors.append(VendorFanOutError(vendor_id, str(e)))

        logger.info(
            f"Sincronización de {buyer_order.code} completada: "
            f"{len(result.created)} creados, {len(result.already_existed)} existentes, "
            f"{len(result.errors)} errores"
        )
        return result

    def _build_vendor_order_data(
        self,
        buyer_order: BuyerOrder,
        vendor_id: int,
        vendor_items: List[Dict[str, Any]],
        vendor_count: int,
        order_subtotal: Decimal
    ) -> Dict[str, Any]:
        """Armar los datos del pedido de un vendedor a partir del BuyerOrder"""
        enriched_items = []
        for item in vendor_items:
            snapshot = self.catalog.snapshot_or_empty(item.get('product_id'))
            enriched_items.append({
                "product_id": item.get('product_id'),
                "name": item.get('name', ""),
                "price": item.get('price'),
                "quantity": item.get('quantity'),
                "category": item.get('category') or "",
                "product_snapshot": snapshot.model_dump()
            })

        vendor_subtotal = self.calculator.items_subtotal(vendor_items)
        other_vendors_in_order = vendor_count > 1
        vendor_shipping = self.calculator.apportion_shipping(
            buyer_order.shipping_cost, vendor_subtotal, order_subtotal, vendor_count
        )
        vendor_total = vendor_subtotal + vendor_shipping

        payment = buyer_order.payment or {}
        shipping = buyer_order.shipping or {}

        return {
            "buyer_order_id": buyer_order.id,
            "buyer_order_code": buyer_order.code,
            "vendor_id": vendor_id,
            "customer": dict(buyer_order.customer or {}),
            "items": enriched_items,
            "vendor_subtotal": vendor_subtotal,
            "shipping_cost": vendor_shipping,
            "vendor_total": vendor_total,
            "payment": {
                "method": payment.get('method', ""),
                "card_last4": payment.get('card_last4', ""),
                "bank_name": payment.get('bank_name', ""),
                "subtotal": float(vendor_subtotal),
                "shipping": float(vendor_shipping),
                "total": float(vendor_total)
            },
            "shipping": {
                "address": shipping.get('address') or (buyer_order.customer or {}).get('address', ""),
                "method": shipping.get('method') or "Envío estándar",
                "estimated_delivery": shipping.get('estimated_delivery') or "3-5 días hábiles",
                "cost": float(vendor_shipping),
                "tracking": shipping.get('tracking', ""),
                "notes": ""
            },
            "status": VendorOrderStatus.PENDING.value,
            "priority": self.calculator.calculate_priority(vendor_total, len(enriched_items)).value,
            "tags": self.calculator.generate_tags(payment.get('method'), enriched_items),
            "original_order_total": to_decimal(buyer_order.total),
            "other_vendors_in_order": other_vendors_in_order,
        }

    # ==================== ESTADOS ====================

    def update_vendor_order_status(
        self,
        vendor_order_id: int,
        new_status: str,
        notes: Optional[str] = None,
        actor_id: Optional[int] = None,
        tracking_number: Optional[str] = None,
        bypass_transition_rules: bool = False
    ) -> VendorOrder:
        """
        Cambiar el estado de un pedido de vendedor y recalcular el estado del BuyerOrder.

        El cambio de estado es el efecto principal; si falla el recálculo del
        BuyerOrder solo se registra en el log.

        Raises:
            NotFoundError: si el pedido no existe
            InvalidStatusTransitionError: si las transiciones están restringidas y no se permite
        """
        new_status = VendorOrderStatus(new_status)

        vendor_order = self.repository.get_vendor_order(vendor_order_id)
        if not vendor_order:
            raise NotFoundError(f"Pedido de vendedor {vendor_order_id} no encontrado")

        old_status = vendor_order.status

        if (
            self.settings.enforce_status_transitions
            and not bypass_transition_rules
            and not is_transition_allowed(old_status, new_status.value)
        ):
            raise InvalidStatusTransitionError(old_status, new_status.value)

        now = datetime.now()
        vendor_order.status = new_status.value

        if notes:
            vendor_order.vendor_notes = notes
        if tracking_number:
            vendor_order.tracking_number = tracking_number

        self._apply_milestones(vendor_order, new_status, now)

        self.repository.append_status_history(
            vendor_order,
            status=new_status.value,
            timestamp=now,
            notes=notes or f"Cambiado de {old_status} a {new_status.value}",
            updated_by_user_id=actor_id
        )

        try:
            vendor_order = self.repository.save(vendor_order)
        except Exception:
            self.repository.rollback()
            logger.exception(f"Error actualizando estado del pedido {vendor_order_id}")
            raise

        logger.info(f"Estado actualizado: pedido {vendor_order_id} {old_status} → {new_status.value}")

        self._reconcile_safe(vendor_order.buyer_order_id)
        return vendor_order

    @staticmethod
    def _apply_milestones(vendor_order: VendorOrder, status: VendorOrderStatus, now: datetime) -> None:
        """Fechas de hitos (solo la primera vez) y métricas medidas hasta el momento del cambio"""
        milestone = MILESTONE_FIELDS.get(status)
        if milestone and getattr(vendor_order, milestone) is None:
            setattr(vendor_order, milestone, now)

        if status == VendorOrderStatus.SHIPPED and vendor_order.confirmed_at:
            vendor_order.processing_time = _elapsed(
                vendor_order.confirmed_at, now, SECONDS_PER_MINUTE
            )

        if status == VendorOrderStatus.DELIVERED and vendor_order.shipped_at:
            vendor_order.delivery_time = _elapsed(
                vendor_order.shipped_at, now, SECONDS_PER_DAY
            )

    # ==================== RECÁLCULO DEL BUYER ORDER ====================

    @staticmethod
    def compute_general_status(statuses: Iterable[str]) -> Optional[BuyerOrderStatus]:
        """
        Estado general: el del vendedor menos avanzado.

        En empate de rango se queda el primero encontrado. Sin estados devuelve None.
        """
        general = None
        general_rank = None
        for status in statuses:
            rank = status_rank(status)
            if general is None or rank < general_rank:
                general, general_rank = status, rank

        if general is None:
            return None

        try:
            return VENDOR_TO_BUYER_STATUS[VendorOrderStatus(general)]
        except ValueError:
            return BuyerOrderStatus.PENDING

    def reconcile_buyer_order_status(self, buyer_order_id: int) -> BuyerOrder:
        """
        Recalcular y guardar el estado del BuyerOrder a partir de sus pedidos de vendedor.

        Solo escribe si el estado cambia. Se puede ejecutar cuantas veces se quiera.

        Raises:
            NotFoundError: si el BuyerOrder no existe
            ReconciliationError: si falla el cálculo o la escritura
        """
        buyer_order = self.repository.get_buyer_order(buyer_order_id)
        if not buyer_order:
            raise NotFoundError(f"BuyerOrder {buyer_order_id} no encontrado")

        try:
            vendor_orders = self.repository.get_by_buyer_order(buyer_order_id)
            general_status = self.compute_general_status(vo.status for vo in vendor_orders)

            if general_status is None or buyer_order.status == general_status.value:
                return buyer_order

            old_status = buyer_order.status
            buyer_order = self.repository.update_buyer_order_status(buyer_order, general_status.value)
            logger.info(f"BuyerOrder {buyer_order.code} actualizado: {old_status} → {general_status.value}")
            return buyer_order

        except Exception as e:
            self.repository.rollback()
            raise ReconciliationError(buyer_order_id, str(e)) from e

    def _reconcile_safe(self, buyer_order_id: int) -> None:
        """Recalcular el BuyerOrder sin interrumpir el flujo principal"""
        try:
            self.reconcile_buyer_order_status(buyer_order_id)
        except (NotFoundError, ReconciliationError) as e:
            logger.warning(f"Error sincronizando con BuyerOrder {buyer_order_id}: {e}")

    # ==================== CONSULTAS ====================

    def list_vendor_orders(
        self,
        vendor_id: Optional[int],
        status: Optional[str] = None,
        priority: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 50
    ):
        return self.repository.get_by_vendor(vendor_id, status, priority, search, page, limit)

    def get_vendor_order_for_user(self, vendor_order_id: int, user_id: int, is_admin: bool) -> VendorOrder:
        """Pedido visible para el usuario: su propio pedido, o cualquiera si es admin"""
        vendor_order = self.repository.get_vendor_order(vendor_order_id)
        if not vendor_order or (not is_admin and vendor_order.vendor_id != user_id):
            raise NotFoundError("Pedido no encontrado o sin permiso")
        return vendor_order
