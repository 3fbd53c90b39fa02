from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime
from storefront.db.models import OrderStatus

class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=8)
    role: Optional[str] = 'customer'
class UserRead(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: str
    created_at: datetime
    class Config: from_attributes = True
class LoginPayload(BaseModel):
    email: EmailStr
    password: str
class AccessToken(BaseModel):
    access_token: str
    token_type: str = 'bearer'

class ProductBase(BaseModel):
    name: str = Field(min_length=1, max_length=240)
    description: Optional[str] = ''
    price_cents: int = Field(ge=0, le=2**63 - 1)
    currency_code: str = 'USD'
    is_active: bool = True
class ProductCreate(ProductBase): pass
class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=240)
    description: Optional[str] = None
    price_cents: Optional[int] = Field(default=None, ge=0, le=2**63 - 1)
    currency_code: Optional[str] = None
    is_active: Optional[bool] = None
class ProductRead(ProductBase):
    id: int
    class Config: from_attributes = True

class ProductSnapshot(BaseModel):
    """The product fields an order item copies at purchase time."""
    name: str
    price_cents: int
    class Config: from_attributes = True

# Order item inputs. Presence of a field in a write is `model_fields_set`;
# constraints are checked by the store after snapshot resolution, not here.
class OrderItemCreate(BaseModel):
    order_id: int
    product_id: Optional[int] = None
    product_name_snapshot: Optional[str] = None
    unit_price_cents: Optional[int] = None
    quantity: Optional[int] = None
class OrderItemUpdate(BaseModel):
    product_id: Optional[int] = None
    product_name_snapshot: Optional[str] = None
    unit_price_cents: Optional[int] = None
    quantity: Optional[int] = None
class OrderItemRead(BaseModel):
    id: int
    order_id: Optional[int] = None
    product_id: Optional[int] = None
    product_name_snapshot: Optional[str] = None
    unit_price_cents: Optional[int] = None
    quantity: int
    line_total_cents: Optional[int] = None
    class Config: from_attributes = True

class OrderCreate(BaseModel):
    user_id: int
    currency_code: str = 'USD'
    status: OrderStatus = OrderStatus.PENDING
class OrderStatusUpdate(BaseModel):
    status: OrderStatus
class OrderRead(BaseModel):
    id: int
    user_id: int
    status: OrderStatus
    currency_code: str
    total_cents: int
    created_at: datetime
    items: List[OrderItemRead] = []
    class Config: from_attributes = True
