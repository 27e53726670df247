# app/services/progress.py
"""
Course progress calculation.

Every read path that shows progress (catalog detail, my courses, dashboard,
module completion) goes through ProgressService so they all agree.
"""

from typing import Set

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.module import Module
from app.models.user_module_progress import UserModuleProgress
from app.schemas.progress import CourseProgress


def compute_percentage(completed_modules: int, total_modules: int) -> float:
    """completed / total * 100, or 0 for a course without modules."""
    if total_modules <= 0:
        return 0.0
    return completed_modules / total_modules * 100


class ProgressService:
    def __init__(self, db: Session):
        self.db = db

    def count_modules(self, course_id: int) -> int:
        return (
            self.db.query(func.count(Module.id))
            .filter(Module.course_id == course_id)
            .scalar()
            or 0
        )

    def count_completed_modules(self, user_id: int, course_id: int) -> int:
        # distinct module ids keep completed <= total even if duplicate rows slip in
        return (
            self.db.query(func.count(func.distinct(UserModuleProgress.module_id)))
            .join(Module, UserModuleProgress.module_id == Module.id)
            .filter(
                UserModuleProgress.user_id == user_id,
                UserModuleProgress.is_completed.is_(True),
                Module.course_id == course_id,
            )
            .scalar()
            or 0
        )

    def calculate_course_progress(self, user_id: int, course_id: int) -> CourseProgress:
        """Progress of a user through a course. Read-only."""
        total_modules = self.count_modules(course_id)
        completed_modules = self.count_completed_modules(user_id, course_id)

        return CourseProgress(
            total_modules=total_modules,
            completed_modules=completed_modules,
            percentage=compute_percentage(completed_modules, total_modules),
        )

    def completed_module_ids(self, user_id: int, course_id: int) -> Set[int]:
        """Ids of the course's modules the user has completed"""
        rows = (
            self.db.query(UserModuleProgress.module_id)
            .join(Module, UserModuleProgress.module_id == Module.id)
            .filter(
                UserModuleProgress.user_id == user_id,
                UserModuleProgress.is_completed.is_(True),
                Module.course_id == course_id,
            )
            .all()
        )
        return {row[0] for row in rows}

    def is_module_completed(self, user_id: int, module_id: int) -> bool:
        progress = (
            self.db.query(UserModuleProgress)
            .filter(
                UserModuleProgress.user_id == user_id,
                UserModuleProgress.module_id == module_id,
            )
            .first()
        )
        return bool(progress and progress.is_completed)


def calculate_course_progress(db: Session, user_id: int, course_id: int) -> CourseProgress:
    return ProgressService(db).calculate_course_progress(user_id, course_id)
