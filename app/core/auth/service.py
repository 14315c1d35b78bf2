from datetime import datetime, timedelta
from typing import Optional
from jose import jwt, JWTError
from app.config.settings import settings

class AuthService:
    """Servicio de tokens de acceso"""

    @staticmethod
    def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Crear token de acceso"""
        to_encode = data.copy()

        if expires_delta:
            expire = datetime.utcnow() + expires_delta
        else:
            expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)

        to_encode.update({"exp": expire})

        if "sub" not in to_encode:
            raise ValueError("sub (id de usuario) es requerido en el token")
        to_encode["sub"] = str(to_encode["sub"])

        return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)

    @staticmethod
    def verify_token(token: str) -> Optional[dict]:
        """Verificar y decodificar token"""
        try:
            payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
            return payload
        except JWTError:
            return None

    @staticmethod
    def normalize_role(role: Optional[str]) -> Optional[str]:
        """Normaliza nombres de rol: seller/vendedor => vendor, comprador/user => buyer"""
        if not role:
            return None
        r = str(role).lower()
        if r in ("seller", "vendedor"):
            return "vendor"
        if r in ("comprador", "user"):
            return "buyer"
        return r
