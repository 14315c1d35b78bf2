# app/shared/schemas/common.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

class BaseResponse(BaseModel):
    success: bool
    message: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)

class ProductSnapshot(BaseModel):
    """Datos del producto al momento del pedido"""
    title: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    description: Optional[str] = None

class CustomerInfo(BaseModel):
    full_name: str
    email: str
    phone: str = ""
    address: str = ""
    city: str = ""
    province: str = ""
    postal_code: str = ""
    special_instructions: str = ""
