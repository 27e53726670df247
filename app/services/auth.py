# app/services/auth.py
import logging
from datetime import datetime, timezone
from typing import Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.decorator import db_exception
from app.core.exceptions import AuthenticationError, ConflictError
from app.core.hasher import PasswordHelper
from app.core.security import jwt_manager, token_blacklist
from app.models.user import User
from app.schemas.auth import RegisterRequest

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    @db_exception
    def register(self, data: RegisterRequest) -> User:
        existing = (
            self.db.query(User)
            .filter(or_(User.username == data.username, User.email == data.email))
            .first()
        )
        if existing:
            if existing.username == data.username:
                raise ConflictError("username already exists")
            raise ConflictError("email already exists")

        user = User(
            first_name=data.first_name,
            last_name=data.last_name,
            username=data.username,
            email=data.email,
            hashed_password=PasswordHelper.hash_password(data.password),
            balance=0,
            is_admin=False,
        )
        with transaction(self.db):
            self.db.add(user)
        self.db.refresh(user)

        logger.info(f"User registered: {user.username}")
        return user

    def login(self, identifier: str, password: str) -> Tuple[str, User]:
        """Authenticate by username or email and issue an access token"""
        user = (
            self.db.query(User)
            .filter(or_(User.username == identifier, User.email == identifier))
            .first()
        )
        if not user or not PasswordHelper.check_password(password, user.hashed_password):
            logger.warning(f"Failed login attempt for: {identifier}")
            raise AuthenticationError("invalid credentials")

        return jwt_manager.create_access_token(user), user

    def logout(self, token: str) -> None:
        expiration = jwt_manager.get_token_expiration(token)
        ttl = None
        if expiration:
            ttl = max(int((expiration - datetime.now(timezone.utc)).total_seconds()), 1)
        token_blacklist.add_token(token, ttl)
