"""Tests for module completion and the course-completed hook."""

import pytest

from app.core.exceptions import ForbiddenError, NotFoundError
from app.models import UserModuleProgress
from app.services.module import ModuleService
from tests.conftest import FailingCertificateIssuer, FakeCertificateIssuer


def _progress_rows(db, user_id):
    return (
        db.query(UserModuleProgress)
        .filter(UserModuleProgress.user_id == user_id)
        .all()
    )


@pytest.fixture
def enrolled_course(make_user, make_course, make_module, enroll):
    """A user enrolled in a two-module course."""
    user = make_user()
    course = make_course()
    modules = [make_module(course, 1), make_module(course, 2)]
    enroll(user, course)
    return user, course, modules


class TestCompleteModule:
    def test_partial_progress(self, db, enrolled_course) -> None:
        user, course, (m1, _) = enrolled_course
        issuer = FakeCertificateIssuer()

        result = ModuleService(db, certificate_issuer=issuer).complete_module(m1.id, user)

        assert result.module_id == m1.id
        assert result.is_completed is True
        assert result.course_progress.total_modules == 2
        assert result.course_progress.completed_modules == 1
        assert result.course_progress.percentage == 50.0
        assert result.certificate_url is None
        assert issuer.issued == []

    def test_last_module_issues_certificate(self, db, enrolled_course) -> None:
        user, course, (m1, m2) = enrolled_course
        issuer = FakeCertificateIssuer()
        service = ModuleService(db, certificate_issuer=issuer)

        service.complete_module(m1.id, user)
        result = service.complete_module(m2.id, user)

        assert result.course_progress.percentage == 100.0
        assert result.certificate_url == (
            f"/storage/certificates/certificate_{user.id}_{course.id}.pdf"
        )
        assert issuer.issued == [(user.id, course.id)]

    def test_completing_twice_is_idempotent(self, db, enrolled_course) -> None:
        user, _, (m1, _) = enrolled_course
        service = ModuleService(db)

        service.complete_module(m1.id, user)
        first_completed_at = _progress_rows(db, user.id)[0].completed_at
        result = service.complete_module(m1.id, user)

        rows = _progress_rows(db, user.id)
        assert len(rows) == 1
        assert rows[0].completed_at == first_completed_at
        assert result.course_progress.completed_modules == 1

    def test_reopened_row_is_completed(self, db, enrolled_course) -> None:
        user, _, (m1, _) = enrolled_course
        db.add(UserModuleProgress(user_id=user.id, module_id=m1.id, is_completed=False))
        db.commit()

        result = ModuleService(db).complete_module(m1.id, user)

        row = _progress_rows(db, user.id)[0]
        assert row.is_completed is True
        assert row.completed_at is not None
        assert result.course_progress.completed_modules == 1

    def test_requires_enrollment(self, db, make_user, make_course, make_module) -> None:
        user = make_user()
        module = make_module(make_course(), 1)

        with pytest.raises(ForbiddenError):
            ModuleService(db).complete_module(module.id, user)

        assert _progress_rows(db, user.id) == []

    def test_admin_needs_no_enrollment(
        self, db, make_user, make_course, make_module
    ) -> None:
        admin = make_user("admin", is_admin=True)
        module = make_module(make_course(), 1)

        result = ModuleService(db).complete_module(module.id, admin)

        assert result.course_progress.percentage == 100.0

    def test_unknown_module(self, db, make_user) -> None:
        user = make_user()

        with pytest.raises(NotFoundError, match="module not found"):
            ModuleService(db).complete_module(999, user)

    def test_certificate_failure_keeps_completion(self, db, enrolled_course) -> None:
        user, _, (m1, m2) = enrolled_course
        service = ModuleService(db, certificate_issuer=FailingCertificateIssuer())

        service.complete_module(m1.id, user)
        result = service.complete_module(m2.id, user)

        assert result.certificate_url is None
        assert result.course_progress.percentage == 100.0
        assert len(_progress_rows(db, user.id)) == 2

    def test_without_issuer_no_certificate(self, db, enrolled_course) -> None:
        user, _, modules = enrolled_course
        service = ModuleService(db)

        results = [service.complete_module(m.id, user) for m in modules]

        assert results[-1].course_progress.percentage == 100.0
        assert results[-1].certificate_url is None

    def test_retries_after_losing_insert_race(
        self, db, make_user, make_course, make_module, enroll, monkeypatch
    ) -> None:
        user = make_user()
        course = make_course()
        module = make_module(course, 1)
        enroll(user, course)
        original = ModuleService._mark_completed
        calls = []

        def racing_mark_completed(self, user_id, module_id):
            calls.append(module_id)
            if len(calls) == 1:
                # a concurrent request inserts the same progress row first
                for _ in range(2):
                    self.db.add(
                        UserModuleProgress(
                            user_id=user_id, module_id=module_id, is_completed=True
                        )
                    )
                self.db.flush()
            return original(self, user_id, module_id)

        monkeypatch.setattr(ModuleService, "_mark_completed", racing_mark_completed)

        result = ModuleService(db).complete_module(module.id, user)

        assert len(calls) == 2
        assert result.course_progress.percentage == 100.0
        rows = _progress_rows(db, user.id)
        assert len(rows) == 1
        assert rows[0].is_completed is True
