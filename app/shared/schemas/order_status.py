# app/shared/schemas/order_status.py
"""
Estados de pedidos.

El pedido del comprador (BuyerOrder) y los pedidos por vendedor (VendorOrder)
tienen enumeraciones separadas. El estado agregado del comprador se deriva del
pedido de vendedor menos avanzado usando STATUS_RANK y VENDOR_TO_BUYER_STATUS.
"""
from enum import Enum
from typing import Dict


class VendorOrderStatus(str, Enum):
    PENDING = "pending"              # Recién creado, esperando procesamiento
    CONFIRMED = "confirmed"          # Vendedor confirmó el pedido
    PROCESSING = "processing"        # Preparando productos
    READY_TO_SHIP = "ready_to_ship"  # Productos listos para envío
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    DELAYED = "delayed"              # Excepción, no es un grado de avance


class BuyerOrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    READY_TO_SHIP = "ready_to_ship"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    DELAYED = "delayed"


class VendorOrderPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


# Rango de avance: el menor rango entre vendedores define el estado general
STATUS_RANK: Dict[VendorOrderStatus, int] = {
    VendorOrderStatus.CANCELLED: 0,
    VendorOrderStatus.PENDING: 1,
    VendorOrderStatus.CONFIRMED: 2,
    VendorOrderStatus.PROCESSING: 3,
    VendorOrderStatus.READY_TO_SHIP: 4,
    VendorOrderStatus.SHIPPED: 5,
    VendorOrderStatus.DELIVERED: 6,
}
DEFAULT_STATUS_RANK = 1

VENDOR_TO_BUYER_STATUS: Dict[VendorOrderStatus, BuyerOrderStatus] = {
    VendorOrderStatus.PENDING: BuyerOrderStatus.PENDING,
    VendorOrderStatus.CONFIRMED: BuyerOrderStatus.CONFIRMED,
    VendorOrderStatus.PROCESSING: BuyerOrderStatus.PROCESSING,
    VendorOrderStatus.READY_TO_SHIP: BuyerOrderStatus.READY_TO_SHIP,
    VendorOrderStatus.SHIPPED: BuyerOrderStatus.SHIPPED,
    VendorOrderStatus.DELIVERED: BuyerOrderStatus.DELIVERED,
    VendorOrderStatus.CANCELLED: BuyerOrderStatus.CANCELLED,
    VendorOrderStatus.DELAYED: BuyerOrderStatus.DELAYED,
}

TERMINAL_STATUSES = {VendorOrderStatus.DELIVERED, VendorOrderStatus.CANCELLED}

# Solo se consulta si settings.enforce_status_transitions está activo
ALLOWED_TRANSITIONS: Dict[VendorOrderStatus, set] = {
    VendorOrderStatus.PENDING: {
        VendorOrderStatus.CONFIRMED, VendorOrderStatus.CANCELLED, VendorOrderStatus.DELAYED,
    },
    VendorOrderStatus.CONFIRMED: {
        VendorOrderStatus.PROCESSING, VendorOrderStatus.CANCELLED, VendorOrderStatus.DELAYED,
    },
    VendorOrderStatus.PROCESSING: {
        VendorOrderStatus.READY_TO_SHIP, VendorOrderStatus.CANCELLED, VendorOrderStatus.DELAYED,
    },
    VendorOrderStatus.READY_TO_SHIP: {
        VendorOrderStatus.SHIPPED, VendorOrderStatus.CANCELLED, VendorOrderStatus.DELAYED,
    },
    VendorOrderStatus.SHIPPED: {VendorOrderStatus.DELIVERED, VendorOrderStatus.DELAYED},
    VendorOrderStatus.DELAYED: {
        VendorOrderStatus.CONFIRMED, VendorOrderStatus.PROCESSING, VendorOrderStatus.READY_TO_SHIP,
        VendorOrderStatus.SHIPPED, VendorOrderStatus.DELIVERED, VendorOrderStatus.CANCELLED,
    },
    VendorOrderStatus.DELIVERED: set(),
    VendorOrderStatus.CANCELLED: set(),
}


def status_rank(status: str) -> int:
    """Rango de avance de un estado de vendedor; estados sin rango valen 1"""
    try:
        return STATUS_RANK.get(VendorOrderStatus(status), DEFAULT_STATUS_RANK)
    except ValueError:
        return DEFAULT_STATUS_RANK


def is_transition_allowed(current: str, new: str) -> bool:
    if current == new:
        return True
    try:
        return VendorOrderStatus(new) in ALLOWED_TRANSITIONS.get(VendorOrderStatus(current), set())
    except ValueError:
        return False
