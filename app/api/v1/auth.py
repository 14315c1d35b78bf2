from fastapi import APIRouter, Depends

from app.core.auth.schemas import UserResponse
from app.core.auth.service import AuthService
from app.shared.database.models import User
from app.core.auth.dependencies import get_current_user

router = APIRouter()

@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """
    Obtener información del usuario actual
    **Headers requeridos:**
    - Authorization: Bearer {token}
    """
    return UserResponse(
        id=current_user.id,
        email=current_user.email,
        name=current_user.name,
        role=AuthService.normalize_role(current_user.role),
        is_active=current_user.is_active
    )

@router.get("/check-permissions")
async def check_permissions(
    current_user: User = Depends(get_current_user)
):
    """Verificar permisos del usuario actual"""
    role = AuthService.normalize_role(current_user.role)
    permissions = {
        "buyer": ["checkout", "buyer_orders"],
        "vendor": ["vendor_orders", "order_status"],
        "admin": ["all_operations", "fan_out", "reconcile"]
    }

    return {
        "user": {
            "id": current_user.id,
            "email": current_user.email,
            "role": role
        },
        "permissions": permissions.get(role, []),
        "can_access": {
            "buyer_orders_module": role in ["buyer", "admin"],
            "vendor_orders_module": role in ["vendor", "admin"],
            "admin_tools": role == "admin"
        }
    }
