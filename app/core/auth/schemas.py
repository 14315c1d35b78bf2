from pydantic import BaseModel

class UserResponse(BaseModel):
    """Schema para respuesta de usuario"""
    id: int
    email: str
    name: str
    role: str
    is_active: bool

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": 1,
                "email": "artesana@artesjac.com",
                "name": "María Solano",
                "role": "vendor",
                "is_active": True
            }
        }
