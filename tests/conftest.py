from __future__ import annotations

import os
from decimal import Decimal
from typing import Any, Dict, List

# La app lee DATABASE_URL al importarse
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config.database import get_db
from app.config.settings import Settings
from app.core.auth.service import AuthService
from app.main import app
from app.shared.database.models import Base, BuyerOrder, Product, User


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def strict_settings() -> Settings:
    return Settings(enforce_status_transitions=True)


@pytest.fixture()
def make_user(db_session):
    counter = {"n": 0}

    def _make(role: str = "buyer", name: str | None = None, is_active: bool = True) -> User:
        counter["n"] += 1
        user = User(
            email=f"{role}{counter['n']}@artesjac.test",
            name=name or f"{role.title()} {counter['n']}",
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def make_product(db_session):
    counter = {"n": 0}

    def _make(vendor: User, price: int = 1000, category: str = "ceramica", status: str = "active") -> Product:
        counter["n"] += 1
        product = Product(
            vendor_id=vendor.id,
            title=f"Producto {counter['n']}",
            slug=f"producto-{counter['n']}",
            description="Hecho a mano",
            price=price,
            stock=10,
            images=[f"https://img.artesjac.test/{counter['n']}.jpg"],
            category=category,
            tags=[],
            status=status,
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _make


@pytest.fixture()
def make_buyer_order(db_session):
    """BuyerOrder guardado directamente, sin pasar por checkout"""
    counter = {"n": 0}

    def _make(
        buyer: User,
        items: List[Dict[str, Any]],
        shipping_cost: int = 0,
        payment_method: str = "card",
        subtotal: int | None = None,
    ) -> BuyerOrder:
        counter["n"] += 1
        items_subtotal = sum(i["price"] * i["quantity"] for i in items)
        subtotal = items_subtotal if subtotal is None else subtotal
        order = BuyerOrder(
            code=f"ORD-TEST-{counter['n']:04d}",
            buyer_id=buyer.id,
            items=items,
            customer={"full_name": "Ana Rodríguez", "email": "ana@example.com", "address": "San José"},
            payment={"method": payment_method, "card_last4": "4242"},
            shipping={"address": "San José", "method": "Envío estándar"},
            subtotal=Decimal(subtotal),
            shipping_cost=Decimal(shipping_cost),
            total=Decimal(subtotal + shipping_cost),
            status="pending",
        )
        db_session.add(order)
        db_session.commit()
        db_session.refresh(order)
        return order

    return _make


@pytest.fixture()
def item():
    def _item(product: Product, quantity: int = 1, price: int | None = None) -> Dict[str, Any]:
        return {
            "product_id": product.id,
            "seller_id": product.vendor_id,
            "name": product.title,
            "price": int(product.price) if price is None else price,
            "quantity": quantity,
            "category": product.category,
        }

    return _item


@pytest.fixture()
def client(db_session):
    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    def _headers(user: User) -> Dict[str, str]:
        token = AuthService.create_access_token({"sub": user.id, "role": user.role})
        return {"Authorization": f"Bearer {token}"}

    return _headers
