# app/services/access.py
from typing import Optional

from sqlalchemy.orm import Session

from app.models.user import User
from app.models.user_course import UserCourse


def is_enrolled(db: Session, user_id: int, course_id: int) -> bool:
    """Check if the user has purchased the course"""
    return (
        db.query(UserCourse.id)
        .filter(UserCourse.user_id == user_id, UserCourse.course_id == course_id)
        .first()
        is not None
    )


def has_course_access(db: Session, user: Optional[User], course_id: int) -> bool:
    """
    Single authorization primitive for course content.

    Admins always have access; everyone else needs an enrollment.
    """
    if user is None:
        return False
    if user.is_admin:
        return True
    return is_enrolled(db, user.id, course_id)
