# app/services/course.py
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import String, cast, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.decorator import db_exception
from app.core.exceptions import ConflictError, InsufficientFundsError, NotFoundError
from app.models.course import Course
from app.models.module import Module
from app.models.user import User
from app.models.user_course import UserCourse
from app.models.user_module_progress import UserModuleProgress
from app.schemas.common import Pagination
from app.schemas.course import (
    CourseCreate,
    CourseDetailResponse,
    CourseListItem,
    CourseResponse,
    CourseUpdate,
    DashboardResponse,
    MyCourseResponse,
    PurchaseResult,
)
from app.services.access import is_enrolled
from app.services.progress import ProgressService

logger = logging.getLogger(__name__)


def _search_filter(q: str):
    term = f"%{q.strip().lower()}%"
    return or_(
        func.lower(Course.title).like(term),
        func.lower(Course.instructor).like(term),
        func.lower(cast(Course.topics, String)).like(term),
    )


class CourseService:
    def __init__(self, db: Session):
        self.db = db
        self.progress = ProgressService(db)

    # ==================== Catalog ====================

    def get_course_or_404(self, course_id: int) -> Course:
        course = self.db.query(Course).filter(Course.id == course_id).first()
        if not course:
            raise NotFoundError("course not found")
        return course

    def course_response(self, course: Course) -> CourseResponse:
        return CourseResponse.model_validate(
            {
                **self._course_fields(course),
                "total_modules": self.progress.count_modules(course.id),
            }
        )

    @db_exception
    def create_course(self, course_in: CourseCreate) -> Course:
        course = Course(**course_in.model_dump())
        with transaction(self.db):
            self.db.add(course)
        self.db.refresh(course)
        logger.info(f"Course created: {course.id} '{course.title}'")
        return course

    @db_exception
    def update_course(self, course_id: int, course_in: CourseUpdate) -> Course:
        course = self.get_course_or_404(course_id)
        with transaction(self.db):
            for field, value in course_in.model_dump(exclude_unset=True).items():
                setattr(course, field, value)
        self.db.refresh(course)
        return course

    @db_exception
    def delete_course(self, course_id: int) -> None:
        """Delete a course with its modules, their progress and its enrollments"""
        course = self.get_course_or_404(course_id)
        module_ids = self.db.query(Module.id).filter(Module.course_id == course_id)

        with transaction(self.db):
            self.db.query(UserModuleProgress).filter(
                UserModuleProgress.module_id.in_(module_ids.scalar_subquery())
            ).delete(synchronize_session=False)
            self.db.query(Module).filter(Module.course_id == course_id).delete(
                synchronize_session=False
            )
            self.db.query(UserCourse).filter(UserCourse.course_id == course_id).delete(
                synchronize_session=False
            )
            self.db.delete(course)

        logger.info(f"Course deleted: {course_id}")

    def get_courses(
        self,
        q: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
        user: Optional[User] = None,
    ) -> Tuple[List[CourseListItem], Pagination]:
        """Catalog listing with per-caller purchase flags"""
        query = self.db.query(Course)
        if q:
            query = query.filter(_search_filter(q))

        total = query.count()
        courses = (
            query.order_by(Course.created_at.desc(), Course.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        purchased_ids = set()
        if user is not None and courses:
            purchased_ids = {
                row[0]
                for row in self.db.query(UserCourse.course_id)
                .filter(
                    UserCourse.user_id == user.id,
                    UserCourse.course_id.in_([c.id for c in courses]),
                )
                .all()
            }

        items = [
            CourseListItem.model_validate(
                {
                    **self._course_fields(course),
                    "total_modules": self.progress.count_modules(course.id),
                    "is_purchased": course.id in purchased_ids,
                }
            )
            for course in courses
        ]
        return items, Pagination.build(page, limit, total)

    def get_course(
        self, course_id: int, user: Optional[User] = None
    ) -> CourseDetailResponse:
        course = self.get_course_or_404(course_id)

        is_purchased = user is not None and is_enrolled(self.db, user.id, course.id)
        if is_purchased:
            progress = self.progress.calculate_course_progress(user.id, course.id)
            total_modules = progress.total_modules
            completed_modules = progress.completed_modules
            percentage = progress.percentage
        else:
            total_modules = self.progress.count_modules(course.id)
            completed_modules = 0
            percentage = 0.0

        return CourseDetailResponse.model_validate(
            {
                **self._course_fields(course),
                "total_modules": total_modules,
                "completed_modules": completed_modules,
                "progress_percentage": percentage,
                "is_purchased": is_purchased,
            }
        )

    # ==================== Purchase ====================

    @db_exception
    def buy_course(self, course_id: int, user_id: int) -> PurchaseResult:
        """
        Debit the user's balance and enroll them, as one unit.

        Checks run in a fixed order: course exists, not already purchased,
        user exists, balance covers the price.
        """
        try:
            with transaction(self.db):
                course = self.get_course_or_404(course_id)

                if is_enrolled(self.db, user_id, course_id):
                    raise ConflictError("course already purchased")

                user = (
                    self.db.query(User)
                    .filter(User.id == user_id)
                    .with_for_update()
                    .first()
                )
                if not user:
                    raise NotFoundError("user not found")

                if user.balance < course.price:
                    raise InsufficientFundsError("insufficient balance")

                user.balance = user.balance - course.price
                enrollment = UserCourse(
                    user_id=user.id,
                    course_id=course.id,
                    purchased_at=datetime.now(timezone.utc),
                )
                self.db.add(enrollment)
                self.db.flush()
        except IntegrityError:
            # a concurrent purchase committed the same enrollment first
            logger.warning(
                f"Duplicate enrollment rejected for user {user_id} course {course_id}"
            )
            raise ConflictError("course already purchased")

        logger.info(
            f"User {user_id} purchased course {course_id} "
            f"(enrollment {enrollment.id}, balance {user.balance})"
        )
        return PurchaseResult(
            course_id=course.id,
            user_balance=user.balance,
            transaction_id=enrollment.id,
        )

    # ==================== Enrolled courses ====================

    def get_my_courses(
        self,
        user_id: int,
        q: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[MyCourseResponse], Pagination]:
        query = (
            self.db.query(UserCourse, Course)
            .join(Course, UserCourse.course_id == Course.id)
            .filter(UserCourse.user_id == user_id)
        )
        if q:
            query = query.filter(_search_filter(q))

        total = query.count()
        rows = (
            query.order_by(UserCourse.purchased_at.desc(), UserCourse.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        items = [self._my_course(user_id, enrollment, course) for enrollment, course in rows]
        return items, Pagination.build(page, limit, total)

    def get_dashboard(self, user_id: int) -> DashboardResponse:
        rows = (
            self.db.query(UserCourse, Course)
            .join(Course, UserCourse.course_id == Course.id)
            .filter(UserCourse.user_id == user_id)
            .order_by(UserCourse.purchased_at.desc(), UserCourse.id.desc())
            .all()
        )
        courses = [self._my_course(user_id, enrollment, course) for enrollment, course in rows]

        return DashboardResponse(
            courses=courses,
            enrolled_count=len(courses),
            completed_count=sum(
                1
                for c in courses
                if c.total_modules > 0 and c.progress_percentage >= 100
            ),
        )

    def _my_course(
        self, user_id: int, enrollment: UserCourse, course: Course
    ) -> MyCourseResponse:
        progress = self.progress.calculate_course_progress(user_id, course.id)
        return MyCourseResponse.model_validate(
            {
                **self._course_fields(course),
                "total_modules": progress.total_modules,
                "completed_modules": progress.completed_modules,
                "progress_percentage": progress.percentage,
                "purchased_at": enrollment.purchased_at,
            }
        )

    @staticmethod
    def _course_fields(course: Course) -> dict:
        return {
            "id": course.id,
            "title": course.title,
            "description": course.description,
            "instructor": course.instructor,
            "topics": course.topics or [],
            "price": course.price,
            "thumbnail_image": course.thumbnail_image,
            "created_at": course.created_at,
            "updated_at": course.updated_at,
        }
