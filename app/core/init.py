"""
Application initialization module
Handles initial setup tasks like creating the default admin account
"""

import logging

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.hasher import PasswordHelper
from app.models.user import User

logger = logging.getLogger(__name__)


def init_default_admin(db: Session) -> None:
    """
    Create the default admin user if no admin exists yet.

    Credentials come from settings (config.py).

    Args:
        db: Database session
    """
    existing_admin = db.query(User).filter(User.is_admin.is_(True)).first()

    if existing_admin:
        logger.info(
            f"✅ Admin user already exists (ID: {existing_admin.id}, Username: {existing_admin.username})"
        )
        return

    admin = User(
        username=settings.admin_default_username,
        email=settings.admin_default_email,
        first_name="Super",
        last_name="Admin",
        hashed_password=PasswordHelper.hash_password(settings.admin_default_password),
        balance=0,
        is_admin=True,
    )

    db.add(admin)
    db.commit()
    db.refresh(admin)

    logger.info("=" * 60)
    logger.info("🎉 DEFAULT ADMIN CREATED SUCCESSFULLY!")
    logger.info("=" * 60)
    logger.info(f"Username: {admin.username}")
    logger.info(f"Email: {admin.email}")
    logger.info("=" * 60)
    logger.warning("⚠️  IMPORTANT: Change the default password immediately!")
    logger.info("=" * 60)


def initialize_application(db: Session) -> None:
    """
    Run all initialization tasks

    Args:
        db: Database session
    """
    logger.info("🚀 Starting application initialization...")
    init_default_admin(db)
    logger.info("✅ Application initialization completed")
