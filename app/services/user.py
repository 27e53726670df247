# app/services/user.py

import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import transaction
from app.core.decorator import db_exception
from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from app.core.hasher import PasswordHelper
from app.models.user import User
from app.models.user_course import UserCourse
from app.models.user_module_progress import UserModuleProgress
from app.schemas.common import Pagination
from app.schemas.user import UserDetailResponse, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> Optional[User]:
        """
        Retrieves a single user by their ID.
        """
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_or_404(self, user_id: int) -> User:
        user = self.get_user(user_id)
        if not user:
            raise NotFoundError("user not found")
        return user

    def get_users(
        self, q: Optional[str] = None, page: int = 1, limit: int = 10
    ) -> Tuple[List[User], Pagination]:
        query = self.db.query(User)
        if q:
            term = f"%{q.strip().lower()}%"
            query = query.filter(
                or_(
                    func.lower(User.username).like(term),
                    func.lower(User.first_name).like(term),
                    func.lower(User.last_name).like(term),
                    func.lower(User.email).like(term),
                )
            )

        total = query.count()
        users = (
            query.order_by(User.id.asc()).offset((page - 1) * limit).limit(limit).all()
        )
        return users, Pagination.build(page, limit, total)

    def get_user_detail(self, user_id: int) -> UserDetailResponse:
        user = self.get_user_or_404(user_id)
        courses_purchased = (
            self.db.query(func.count(UserCourse.id))
            .filter(UserCourse.user_id == user.id)
            .scalar()
            or 0
        )
        return UserDetailResponse(
            id=user.id,
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            balance=user.balance,
            is_admin=user.is_admin,
            courses_purchased=courses_purchased,
            created_at=user.created_at,
        )

    @db_exception
    def adjust_balance(self, user_id: int, increment: Decimal) -> User:
        """
        Add a signed amount to the user's balance.
        The balance never goes below zero: larger debits clamp to 0.
        """
        with transaction(self.db):
            user = (
                self.db.query(User).filter(User.id == user_id).with_for_update().first()
            )
            if not user:
                raise NotFoundError("user not found")

            new_balance = Decimal(user.balance) + Decimal(increment)
            user.balance = max(new_balance, Decimal("0"))

        self.db.refresh(user)
        logger.info(f"Balance of user {user_id} adjusted by {increment} -> {user.balance}")
        return user

    @db_exception
    def update_user(self, user_id: int, user_in: UserUpdate) -> User:
        user = self.get_user_or_404(user_id)

        existing = (
            self.db.query(User)
            .filter(
                or_(User.username == user_in.username, User.email == user_in.email),
                User.id != user_id,
            )
            .first()
        )
        if existing:
            raise ConflictError("username or email already exists")

        with transaction(self.db):
            user.username = user_in.username
            user.email = user_in.email
            user.first_name = user_in.first_name
            user.last_name = user_in.last_name
            if user_in.password:
                user.hashed_password = PasswordHelper.hash_password(user_in.password)

        self.db.refresh(user)
        return user

    @db_exception
    def delete_user(self, user_id: int) -> None:
        """Delete a user together with their enrollments and progress"""
        user = self.get_user_or_404(user_id)
        if user.username == settings.admin_default_username:
            raise ForbiddenError("cannot delete admin user")

        with transaction(self.db):
            self.db.query(UserCourse).filter(UserCourse.user_id == user_id).delete(
                synchronize_session=False
            )
            self.db.query(UserModuleProgress).filter(
                UserModuleProgress.user_id == user_id
            ).delete(synchronize_session=False)
            self.db.delete(user)

        logger.info(f"User deleted: {user_id}")
