# app/schemas/user.py

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.schemas.common import Money, Pagination


class UserBase(BaseModel):
    username: str
    email: EmailStr
    first_name: str
    last_name: str


class UserResponse(UserBase):
    id: int
    balance: Money
    is_admin: bool = False

    model_config = ConfigDict(from_attributes=True)


class UserDetailResponse(UserResponse):
    courses_purchased: int
    created_at: datetime


class UserListResponse(BaseModel):
    users: List[UserResponse]
    pagination: Pagination


class UserUpdate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    password: Optional[str] = Field(None, min_length=6)


class BalanceAdjustRequest(BaseModel):
    """Signed amount added to the balance; the result is clamped at zero"""

    increment: Decimal


class BalanceResponse(BaseModel):
    id: int
    username: str
    balance: Money
