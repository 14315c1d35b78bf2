from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import List

from app.config.database import get_db
from app.shared.database.models import User
from app.core.auth.service import AuthService

security = HTTPBearer()

class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )

async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Obtener usuario actual desde el token"""

    payload = AuthService.verify_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Token inválido o expirado")

    user_id = payload.get("sub")
    if user_id is None:
        raise AuthenticationError("Token inválido: sin usuario")

    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise AuthenticationError("Token inválido: usuario mal formado")

    user = db.query(User).filter(User.id == user_id).first()

    if user is None:
        raise AuthenticationError("Usuario no encontrado")

    if not user.is_active:
        raise AuthenticationError("Usuario inactivo")

    return user

def is_admin(user: User) -> bool:
    return AuthService.normalize_role(user.role) == "admin"

def require_roles(allowed_roles: List[str]):
    """Factory para crear dependency que requiere roles específicos (admin siempre puede)"""
    allowed = [AuthService.normalize_role(r) for r in allowed_roles]

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        role = AuthService.normalize_role(current_user.role)
        if role == "admin":
            return current_user
        if role not in allowed:
            raise AuthorizationError(
                f"Rol '{current_user.role}' no autorizado. Roles permitidos: {allowed_roles}"
            )
        return current_user
    return role_checker

# Dependencies específicas por rol
def get_buyer_user(current_user: User = Depends(require_roles(["buyer"]))):
    """Dependency para compradores"""
    return current_user

def get_vendor_user(current_user: User = Depends(require_roles(["vendor"]))):
    """Dependency para vendedores"""
    return current_user

def get_admin_user(current_user: User = Depends(require_roles(["admin"]))):
    """Dependency para administradores"""
    return current_user
