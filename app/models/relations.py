# app/models/relations.py

from sqlalchemy.orm import relationship

from .course import Course
from .module import Module
from .user import User
from .user_course import UserCourse
from .user_module_progress import UserModuleProgress


def setup_relationships():
    """
    Configure all SQLAlchemy relationships between models.
    """

    # --- Catalog ---

    # 1. Course to Modules (One-to-Many), ordered by curriculum position
    Course.modules = relationship(
        "Module",
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Module.order",
    )
    Module.course = relationship("Course", back_populates="modules")

    # --- Enrollment ---

    # 2. Course to Enrollments (One-to-Many)
    Course.enrollments = relationship(
        "UserCourse",
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    UserCourse.course = relationship("Course", back_populates="enrollments")

    # 3. User to Enrollments (One-to-Many)
    User.enrollments = relationship(
        "UserCourse",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    UserCourse.user = relationship("User", back_populates="enrollments")

    # --- Progress ---

    # 4. Module to Progress records (One-to-Many)
    Module.progress_records = relationship(
        "UserModuleProgress",
        back_populates="module",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    UserModuleProgress.module = relationship(
        "Module", back_populates="progress_records"
    )

    # 5. User to Progress records (One-to-Many)
    User.module_progress = relationship(
        "UserModuleProgress",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    UserModuleProgress.user = relationship("User", back_populates="module_progress")
