# app/modules/vendor_orders/__init__.py
"""
Módulo de Pedidos por Vendedor

Este módulo reparte cada pedido del comprador entre los vendedores:
- Un pedido por vendedor, sin duplicados aunque se repita el reparto
- Totales por vendedor con reparto proporcional del envío
- Prioridad y tags por pedido
- Estados por vendedor con historial y fechas de hitos
- Estado general del pedido del comprador según el vendedor más atrasado

Arquitectura:
- router.py: Endpoints de pedidos del vendedor
- service.py: Reparto y sincronización de estados
- calculator_service.py: Totales, envío, prioridad y tags
- repository.py: Acceso a datos de pedidos
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import VendorOrdersService, FanOutResult, VendorFanOutError
from .calculator_service import VendorOrderCalculator
from .repository import VendorOrdersRepository

__all__ = [
    "router",
    "VendorOrdersService",
    "FanOutResult",
    "VendorFanOutError",
    "VendorOrderCalculator",
    "VendorOrdersRepository"
]
