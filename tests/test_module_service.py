"""Tests for module management and access."""

import pytest

from app.core.exceptions import ForbiddenError, NotFoundError
from app.models import Module, UserModuleProgress
from app.schemas.module import ModuleCreate, ModuleUpdate
from app.services.module import ModuleService


class TestCreateModule:
    def test_appends_in_order(self, db, make_course) -> None:
        course = make_course()
        service = ModuleService(db)

        created = [
            service.create_module(course.id, ModuleCreate(title=f"Part {i}"))
            for i in range(3)
        ]

        assert [m.order for m in created] == [1, 2, 3]

    def test_continues_after_highest_position(
        self, db, make_course, make_module
    ) -> None:
        course = make_course()
        make_module(course, 1)
        make_module(course, 7)

        module = ModuleService(db).create_module(course.id, ModuleCreate(title="Next"))

        assert module.order == 8

    def test_unknown_course(self, db) -> None:
        with pytest.raises(NotFoundError, match="course not found"):
            ModuleService(db).create_module(42, ModuleCreate(title="Orphan"))


class TestUpdateAndDelete:
    def test_update_keeps_content_when_not_supplied(
        self, db, make_course, make_module
    ) -> None:
        module = make_module(make_course(), 1)
        service = ModuleService(db)
        service.update_module(module.id, ModuleUpdate(pdf_content="/storage/pdfs/a.pdf"))

        updated = service.update_module(module.id, ModuleUpdate(title="Renamed"))

        assert updated.title == "Renamed"
        assert updated.pdf_content == "/storage/pdfs/a.pdf"

    def test_delete_removes_progress(
        self, db, make_user, make_course, make_module
    ) -> None:
        user = make_user()
        module = make_module(make_course(), 1)
        db.add(UserModuleProgress(user_id=user.id, module_id=module.id, is_completed=True))
        db.commit()
        module_id = module.id

        ModuleService(db).delete_module(module_id)

        assert db.get(Module, module_id) is None
        assert db.query(UserModuleProgress).count() == 0


class TestModuleAccess:
    def test_listing_requires_purchase(
        self, db, make_user, make_course, make_module
    ) -> None:
        user = make_user()
        course = make_course()
        make_module(course, 1)

        with pytest.raises(ForbiddenError, match="Course not purchased"):
            ModuleService(db).get_modules(course.id, user)

    def test_listing_unknown_course(self, db, make_user) -> None:
        with pytest.raises(NotFoundError):
            ModuleService(db).get_modules(5, make_user())

    def test_listing_flags_completed_modules(
        self, db, make_user, make_course, make_module, enroll
    ) -> None:
        user = make_user()
        course = make_course()
        m1 = make_module(course, 1)
        m2 = make_module(course, 2)
        enroll(user, course)
        service = ModuleService(db)
        service.complete_module(m2.id, user)

        modules, pagination = service.get_modules(course.id, user)

        assert [(m.id, m.is_completed) for m in modules] == [
            (m1.id, False),
            (m2.id, True),
        ]
        assert modules[0].course.title == course.title
        assert pagination.total_items == 2

    def test_listing_is_paginated(
        self, db, make_user, make_course, make_module, enroll
    ) -> None:
        user = make_user()
        course = make_course()
        for order in range(1, 6):
            make_module(course, order)
        enroll(user, course)

        modules, pagination = ModuleService(db).get_modules(course.id, user, page=2, limit=2)

        assert [m.order for m in modules] == [3, 4]
        assert pagination.current_page == 2
        assert pagination.total_pages == 3

    def test_single_module_access(
        self, db, make_user, make_course, make_module, enroll
    ) -> None:
        user = make_user()
        course = make_course()
        module = make_module(course, 1)
        service = ModuleService(db)

        with pytest.raises(ForbiddenError):
            service.get_module(module.id, user)

        enroll(user, course)
        fetched = service.get_module(module.id, user)

        assert fetched.id == module.id
        assert fetched.is_completed is False
