# app/routers/user.py

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import get_current_admin
from app.models.user import User
from app.schemas.user import (
    BalanceAdjustRequest,
    BalanceResponse,
    UserDetailResponse,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from app.services.user import UserService

router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
    responses={404: {"description": "Not found"}},
    dependencies=[Depends(get_current_admin)],
)


@router.get("", response_model=UserListResponse)
def list_users(
    q: Optional[str] = Query(None, description="Search username, name or email"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db),
):
    service = UserService(db)
    users, pagination = service.get_users(q, page, limit)
    return {"users": users, "pagination": pagination}


@router.get("/{user_id}", response_model=UserDetailResponse)
def read_user(user_id: int, db: Session = Depends(get_db)):
    """
    Retrieve a single user by their ID, with the number of purchased courses.
    """
    service = UserService(db)
    return service.get_user_detail(user_id)


@router.post("/{user_id}/balance", response_model=BalanceResponse)
def adjust_user_balance(
    user_id: int,
    request: BalanceAdjustRequest,
    db: Session = Depends(get_db),
):
    """
    Add (or, with a negative increment, remove) funds.
    The resulting balance is clamped at zero.
    """
    service = UserService(db)
    user = service.adjust_balance(user_id, request.increment)
    return {"id": user.id, "username": user.username, "balance": user.balance}


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    user_in: UserUpdate,
    db: Session = Depends(get_db),
):
    service = UserService(db)
    return service.update_user(user_id, user_in)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: int, db: Session = Depends(get_db)):
    service = UserService(db)
    service.delete_user(user_id)
