# app/shared/database/models.py
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text,
    Numeric, ForeignKey, UniqueConstraint, Index, JSON,
    func
)
from sqlalchemy.orm import relationship, declarative_base
from sqlalchemy.dialects.postgresql import JSONB

Base = declarative_base()

# JSONB en PostgreSQL, JSON genérico en otros motores
JSONType = JSON().with_variant(JSONB(), "postgresql")

# =====================================================
# MIXIN PARA TIMESTAMPS
# =====================================================
class TimestampMixin:
    """Mixin que agrega campos created_at y updated_at"""
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    updated_at = Column(DateTime, nullable=False, server_default=func.current_timestamp(), onupdate=func.current_timestamp())


# =====================================================
# USUARIOS
# =====================================================

class User(Base):
    """Modelo de Usuario (comprador, vendedor o admin)"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    role = Column(String(20), default='buyer', nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.current_timestamp())

    # Relationships
    products = relationship("Product", back_populates="vendor")
    buyer_orders = relationship("BuyerOrder", back_populates="buyer")
    vendor_orders = relationship("VendorOrder", back_populates="vendor")


# =====================================================
# CATÁLOGO
# =====================================================

class Product(Base, TimestampMixin):
    """Modelo de Producto artesanal"""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(140), nullable=False)
    slug = Column(String(200), unique=True, index=True)
    description = Column(Text, default="")
    price = Column(Numeric(12, 2), nullable=False)
    stock = Column(Integer, default=0)
    images = Column(JSONType, default=list)
    category = Column(String(60), index=True)
    tags = Column(JSONType, default=list)
    status = Column(String(20), nullable=False, default='active', index=True)

    # Relationships
    vendor = relationship("User", back_populates="products")


# =====================================================
# PEDIDOS DEL COMPRADOR
# =====================================================

class BuyerOrder(Base, TimestampMixin):
    """Pedido del comprador (checkout completo, puede incluir varios vendedores)"""
    __tablename__ = "buyer_orders"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False, index=True)
    buyer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # [{product_id, seller_id, name, price, quantity, category}]
    items = Column(JSONType, nullable=False, default=list)
    customer = Column(JSONType, nullable=False, default=dict)
    payment = Column(JSONType, nullable=False, default=dict)
    shipping = Column(JSONType, nullable=False, default=dict)

    subtotal = Column(Numeric(12, 2), nullable=False)
    shipping_cost = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False)

    status = Column(String(20), nullable=False, default='pending', index=True)

    # Relationships
    buyer = relationship("User", back_populates="buyer_orders")
    vendor_orders = relationship(
        "VendorOrder", back_populates="buyer_order", order_by="VendorOrder.id"
    )


# =====================================================
# PEDIDOS POR VENDEDOR
# =====================================================

class VendorOrder(Base, TimestampMixin):
    """Pedido por vendedor: la porción de un BuyerOrder que le corresponde a un vendedor"""
    __tablename__ = "vendor_orders"

    id = Column(Integer, primary_key=True, index=True)

    # Referencia al pedido original
    buyer_order_id = Column(Integer, ForeignKey("buyer_orders.id"), nullable=False, index=True)
    buyer_order_code = Column(String(50), nullable=False, index=True)
    vendor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Copias independientes del pedido original
    customer = Column(JSONType, nullable=False, default=dict)
    payment = Column(JSONType, nullable=False, default=dict)
    shipping = Column(JSONType, nullable=False, default=dict)

    # Solo los productos de este vendedor, con product_snapshot
    items = Column(JSONType, nullable=False, default=list)

    # Totales del vendedor
    vendor_subtotal = Column(Numeric(12, 2), nullable=False)
    shipping_cost = Column(Numeric(12, 2), nullable=False, default=0)
    vendor_total = Column(Numeric(12, 2), nullable=False)

    status = Column(String(20), nullable=False, default='pending', index=True)
    priority = Column(String(10), nullable=False, default='normal')
    vendor_notes = Column(Text, default="")
    tags = Column(JSONType, default=list)

    # Fechas importantes (se fijan la primera vez que se alcanza el estado)
    confirmed_at = Column(DateTime)
    processed_at = Column(DateTime)
    shipped_at = Column(DateTime)
    delivered_at = Column(DateTime)
    cancelled_at = Column(DateTime)

    # Métricas de tiempo
    processing_time = Column(Integer)  # minutos desde confirmación hasta envío
    delivery_time = Column(Integer)    # días desde envío hasta entrega

    tracking_number = Column(String(100), default="")
    tracking_url = Column(String(255), default="")

    original_order_total = Column(Numeric(12, 2), nullable=False)
    other_vendors_in_order = Column(Boolean, default=False)

    __table_args__ = (
        UniqueConstraint('buyer_order_id', 'vendor_id', name='vendor_orders_unique_per_buyer_order'),
        Index('ix_vendor_orders_vendor_status', 'vendor_id', 'status'),
        Index('ix_vendor_orders_vendor_priority_status', 'vendor_id', 'priority', 'status'),
    )

    # Relationships
    buyer_order = relationship("BuyerOrder", back_populates="vendor_orders")
    vendor = relationship("User", back_populates="vendor_orders")
    status_history = relationship(
        "VendorOrderStatusHistory",
        back_populates="vendor_order",
        order_by="VendorOrderStatusHistory.id",
        cascade="all, delete-orphan"
    )


class VendorOrderStatusHistory(Base):
    """Historial de cambios de estado (solo se agregan filas)"""
    __tablename__ = "vendor_order_status_history"

    id = Column(Integer, primary_key=True, index=True)
    vendor_order_id = Column(Integer, ForeignKey("vendor_orders.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    timestamp = Column(DateTime, nullable=False)
    notes = Column(Text)
    updated_by_user_id = Column(Integer, ForeignKey("users.id"))

    # Relationships
    vendor_order = relationship("VendorOrder", back_populates="status_history")
    updated_by = relationship("User", foreign_keys=[updated_by_user_id])
