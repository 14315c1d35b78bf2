#!/usr/bin/env python3
"""
Script para crear datos de prueba: usuarios, productos de dos vendedores y tokens de acceso
Ejecutar desde la raíz del proyecto: python scripts/seed_demo_data.py
"""
import os
import sys

# Agregar el directorio raíz al path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.config.database import SessionLocal, engine
from app.core.auth.service import AuthService
from app.shared.database.models import Base, User, Product

USERS = [
    ("admin@artesjac.com", "Ana Administradora", "admin"),
    ("comprador@artesjac.com", "Carlos Comprador", "buyer"),
    ("artesana@artesjac.com", "María Artesana", "vendor"),
    ("artesano@artesjac.com", "Luis Artesano", "vendor"),
]

PRODUCTS = {
    "artesana@artesjac.com": [
        ("Collar artesanal de semillas", "collar-artesanal-de-semillas", 12000, "joyeria"),
        ("Bolso tejido a mano", "bolso-tejido-a-mano", 18500, "textiles"),
    ],
    "artesano@artesjac.com": [
        ("Cuadro colorido abstracto", "cuadro-colorido-abstracto", 22000, "pintura"),
    ],
}

def main():
    print("🚀 ArtesJAC - Creando datos de prueba...")

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        users = {}
        for email, name, role in USERS:
            user = db.query(User).filter(User.email == email).first()
            if not user:
                user = User(email=email, name=name, role=role, is_active=True)
                db.add(user)
                db.flush()
                print(f"✅ Usuario creado: {email} ({role})")
            else:
                print(f"ℹ️  Usuario existente: {email}")
            users[email] = user

        for vendor_email, products in PRODUCTS.items():
            vendor = users[vendor_email]
            for title, slug, price, category in products:
                if db.query(Product).filter(Product.slug == slug).first():
                    continue
                db.add(Product(
                    vendor_id=vendor.id,
                    title=title,
                    slug=slug,
                    description=f"{title} hecho en Costa Rica",
                    price=price,
                    stock=10,
                    images=[],
                    category=category,
                    tags=[],
                    status="active"
                ))
                print(f"✅ Producto creado: {title}")

        db.commit()

        print("\n🔐 Tokens de acceso:")
        for email, user in users.items():
            token = AuthService.create_access_token({"sub": user.id, "email": email, "role": user.role})
            print(f"  {user.role:6} {email}: {token}")

        return True

    except Exception as e:
        db.rollback()
        print(f"❌ Error creando datos de prueba: {e}")
        return False
    finally:
        db.close()

if __name__ == "__main__":
    sys.exit(0 if main() else 1)
