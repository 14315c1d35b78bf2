# app/modules/buyer_orders/__init__.py
"""
Módulo de Pedidos del Comprador

Este módulo maneja el checkout y la consulta de pedidos del comprador:
- Checkout con precios del catálogo
- Reparto automático del pedido entre vendedores
- Consulta de pedidos propios con el avance por vendedor

Arquitectura:
- router.py: Endpoints del comprador
- service.py: Lógica de checkout
- repository.py: Acceso a datos de pedidos
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import BuyerOrdersService
from .repository import BuyerOrdersRepository

__all__ = [
    "router",
    "BuyerOrdersService",
    "BuyerOrdersRepository"
]
