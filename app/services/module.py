# app/services/module.py
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import transaction
from app.core.decorator import db_exception
from app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.models.course import Course
from app.models.module import Module
from app.models.user import User
from app.models.user_module_progress import UserModuleProgress
from app.schemas.common import Pagination
from app.schemas.module import (
    ModuleCreate,
    ModuleListItem,
    ModuleOrderItem,
    ModuleResponse,
    ModuleUpdate,
)
from app.schemas.progress import CompletionResult
from app.services.access import has_course_access
from app.services.certificate import CertificateIssuer
from app.services.progress import ProgressService

logger = logging.getLogger(__name__)

REORDER_MODES = ("lenient", "unique", "contiguous")


class ModuleService:
    def __init__(
        self,
        db: Session,
        certificate_issuer: Optional[CertificateIssuer] = None,
        reorder_validation: Optional[str] = None,
    ):
        self.db = db
        self.progress = ProgressService(db)
        self.certificate_issuer = certificate_issuer
        self.reorder_validation = reorder_validation or settings.reorder_validation
        if self.reorder_validation not in REORDER_MODES:
            raise ValueError(f"Unknown reorder validation: {self.reorder_validation}")

    # ==================== Lookups ====================

    def _get_course_or_404(self, course_id: int) -> Course:
        course = self.db.query(Course).filter(Course.id == course_id).first()
        if not course:
            raise NotFoundError("course not found")
        return course

    def get_module_or_404(self, module_id: int) -> Module:
        module = self.db.query(Module).filter(Module.id == module_id).first()
        if not module:
            raise NotFoundError("module not found")
        return module

    def _next_order(self, course_id: int) -> int:
        max_order = (
            self.db.query(func.coalesce(func.max(Module.order), 0))
            .filter(Module.course_id == course_id)
            .scalar()
        )
        return (max_order or 0) + 1

    # ==================== CRUD ====================

    @db_exception
    def create_module(self, course_id: int, module_in: ModuleCreate) -> Module:
        """Append a module at the end of the course curriculum"""
        self._get_course_or_404(course_id)

        with transaction(self.db):
            module = Module(
                course_id=course_id,
                order=self._next_order(course_id),
                **module_in.model_dump(),
            )
            self.db.add(module)
        self.db.refresh(module)

        logger.info(f"Module {module.id} created in course {course_id} at {module.order}")
        return module

    @db_exception
    def update_module(self, module_id: int, module_in: ModuleUpdate) -> Module:
        module = self.get_module_or_404(module_id)
        # content references are only replaced when a new one is supplied
        changes = module_in.model_dump(exclude_unset=True, exclude_none=True)
        with transaction(self.db):
            for field, value in changes.items():
                setattr(module, field, value)
        self.db.refresh(module)
        return module

    @db_exception
    def delete_module(self, module_id: int) -> None:
        module = self.get_module_or_404(module_id)
        with transaction(self.db):
            self.db.query(UserModuleProgress).filter(
                UserModuleProgress.module_id == module.id
            ).delete(synchronize_session=False)
            self.db.delete(module)
        logger.info(f"Module deleted: {module_id}")

    def get_modules(
        self,
        course_id: int,
        user: User,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[ModuleListItem], Pagination]:
        course = self._get_course_or_404(course_id)
        if not has_course_access(self.db, user, course_id):
            raise ForbiddenError("access denied. Course not purchased")

        query = self.db.query(Module).filter(Module.course_id == course_id)
        total = query.count()
        modules = (
            query.order_by(Module.order.asc(), Module.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        completed = self.progress.completed_module_ids(user.id, course_id)
        items = [
            ModuleListItem.model_validate(
                {
                    **self._module_fields(module),
                    "is_completed": module.id in completed,
                    "course": {
                        "id": course.id,
                        "title": course.title,
                        "instructor": course.instructor,
                    },
                }
            )
            for module in modules
        ]
        return items, Pagination.build(page, limit, total)

    def get_module(self, module_id: int, user: User) -> ModuleResponse:
        module = self.get_module_or_404(module_id)
        if not has_course_access(self.db, user, module.course_id):
            raise ForbiddenError("access denied")

        return ModuleResponse.model_validate(
            {
                **self._module_fields(module),
                "is_completed": self.progress.is_module_completed(user.id, module.id),
            }
        )

    # ==================== Reorder ====================

    @db_exception
    def reorder_modules(
        self, course_id: int, module_order: Sequence[ModuleOrderItem]
    ) -> List[ModuleOrderItem]:
        """
        Apply every (module id, order) pair in one transaction.

        Ids that do not belong to the course are skipped. Depending on the
        configured validation the resulting order set must be distinct
        ("unique") or exactly 1..n ("contiguous"); otherwise the whole batch
        is rolled back.
        """
        with transaction(self.db):
            for item in module_order:
                self.db.query(Module).filter(
                    Module.id == item.id, Module.course_id == course_id
                ).update({Module.order: item.order}, synchronize_session=False)

            if self.reorder_validation != "lenient":
                self._validate_order(course_id)

        self.db.expire_all()
        logger.info(f"Reordered {len(module_order)} module(s) in course {course_id}")
        return list(module_order)

    def _validate_order(self, course_id: int) -> None:
        orders = [
            row[0]
            for row in self.db.query(Module.order)
            .filter(Module.course_id == course_id)
            .all()
        ]
        if len(set(orders)) != len(orders):
            raise ValidationError("invalid module order: duplicate positions")
        if self.reorder_validation == "contiguous" and sorted(orders) != list(
            range(1, len(orders) + 1)
        ):
            raise ValidationError("invalid module order: positions must run 1..n")

    # ==================== Completion ====================

    @db_exception
    def complete_module(self, module_id: int, user: User) -> CompletionResult:
        """
        Mark a module as completed for the user.

        Completing an already completed module succeeds without changes.
        Reaching 100% fires the course-completed hook.
        """
        module = self.get_module_or_404(module_id)
        if not has_course_access(self.db, user, module.course_id):
            raise ForbiddenError("access denied. Course not purchased")

        try:
            with transaction(self.db):
                self._mark_completed(user.id, module.id)
        except IntegrityError:
            # a concurrent request inserted the same progress row
            logger.info(f"Progress row for user {user.id} module {module.id} already exists")
            with transaction(self.db):
                self._mark_completed(user.id, module.id)

        course_progress = self.progress.calculate_course_progress(
            user.id, module.course_id
        )
        logger.info(
            f"User {user.id} completed module {module.id} "
            f"({course_progress.completed_modules}/{course_progress.total_modules})"
        )

        certificate_url = None
        if course_progress.percentage >= 100:
            certificate_url = self.on_course_completed(user, module.course)

        return CompletionResult(
            module_id=module.id,
            is_completed=True,
            course_progress=course_progress,
            certificate_url=certificate_url,
        )

    def _mark_completed(self, user_id: int, module_id: int) -> UserModuleProgress:
        progress = (
            self.db.query(UserModuleProgress)
            .filter(
                UserModuleProgress.user_id == user_id,
                UserModuleProgress.module_id == module_id,
            )
            .first()
        )
        now = datetime.now(timezone.utc)
        if progress is None:
            progress = UserModuleProgress(
                user_id=user_id, module_id=module_id, is_completed=True, completed_at=now
            )
            self.db.add(progress)
            self.db.flush()
        elif not progress.is_completed:
            progress.is_completed = True
            progress.completed_at = now
        return progress

    def on_course_completed(self, user: User, course: Course) -> Optional[str]:
        """
        Post-completion hook: issue the certificate.

        Failures are logged and reported as no certificate; the completion
        itself is already committed.
        """
        if self.certificate_issuer is None:
            return None
        try:
            return self.certificate_issuer.issue(user, course)
        except Exception as e:
            logger.warning(
                f"Certificate issuance failed for user {user.id} course {course.id}: {e}",
                exc_info=True,
            )
            return None

    @staticmethod
    def _module_fields(module: Module) -> dict:
        return {
            "id": module.id,
            "course_id": module.course_id,
            "title": module.title,
            "description": module.description,
            "order": module.order,
            "pdf_content": module.pdf_content,
            "video_content": module.video_content,
            "created_at": module.created_at,
            "updated_at": module.updated_at,
        }
