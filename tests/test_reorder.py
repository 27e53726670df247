"""Tests for module reordering."""

import pytest

from app.core.exceptions import ValidationError
from app.models import Module
from app.schemas.module import ModuleOrderItem
from app.services.module import ModuleService


def _orders(db, course_id):
    db.expire_all()
    return {
        m.id: m.order
        for m in db.query(Module).filter(Module.course_id == course_id).all()
    }


@pytest.fixture
def course_with_modules(make_course, make_module):
    course = make_course()
    modules = [make_module(course, order) for order in (1, 2, 3)]
    return course, modules


class TestReorderModules:
    def test_swap(self, db, course_with_modules, make_user) -> None:
        course, (m1, m2, m3) = course_with_modules
        admin = make_user("admin", is_admin=True)
        service = ModuleService(db)

        applied = service.reorder_modules(
            course.id,
            [ModuleOrderItem(id=m1.id, order=2), ModuleOrderItem(id=m2.id, order=1)],
        )

        assert [item.id for item in applied] == [m1.id, m2.id]
        assert _orders(db, course.id) == {m1.id: 2, m2.id: 1, m3.id: 3}

        listed, _ = service.get_modules(course.id, admin)
        assert [m.id for m in listed] == [m2.id, m1.id, m3.id]

    def test_ids_of_other_courses_are_ignored(
        self, db, course_with_modules, make_course, make_module
    ) -> None:
        course, (m1, _, _) = course_with_modules
        foreign = make_module(make_course("Other"), 1)

        ModuleService(db).reorder_modules(
            course.id,
            [ModuleOrderItem(id=foreign.id, order=9), ModuleOrderItem(id=m1.id, order=4)],
        )

        assert db.get(Module, foreign.id).order == 1
        assert _orders(db, course.id)[m1.id] == 4

    def test_lenient_accepts_duplicates(self, db, course_with_modules) -> None:
        course, (m1, m2, _) = course_with_modules

        ModuleService(db, reorder_validation="lenient").reorder_modules(
            course.id, [ModuleOrderItem(id=m1.id, order=2)]
        )

        orders = _orders(db, course.id)
        assert orders[m1.id] == orders[m2.id] == 2

    def test_unique_rejects_duplicates_and_rolls_back(
        self, db, course_with_modules
    ) -> None:
        course, (m1, _, _) = course_with_modules
        service = ModuleService(db, reorder_validation="unique")

        with pytest.raises(ValidationError, match="duplicate"):
            service.reorder_modules(course.id, [ModuleOrderItem(id=m1.id, order=2)])

        assert sorted(_orders(db, course.id).values()) == [1, 2, 3]

    def test_unique_allows_gaps(self, db, course_with_modules) -> None:
        course, (_, _, m3) = course_with_modules

        ModuleService(db, reorder_validation="unique").reorder_modules(
            course.id, [ModuleOrderItem(id=m3.id, order=10)]
        )

        assert _orders(db, course.id)[m3.id] == 10

    def test_contiguous_rejects_gaps(self, db, course_with_modules) -> None:
        course, (_, _, m3) = course_with_modules
        service = ModuleService(db, reorder_validation="contiguous")

        with pytest.raises(ValidationError, match="1..n"):
            service.reorder_modules(course.id, [ModuleOrderItem(id=m3.id, order=10)])

        assert _orders(db, course.id)[m3.id] == 3

    def test_contiguous_accepts_permutation(self, db, course_with_modules) -> None:
        course, (m1, m2, m3) = course_with_modules

        ModuleService(db, reorder_validation="contiguous").reorder_modules(
            course.id,
            [
                ModuleOrderItem(id=m1.id, order=3),
                ModuleOrderItem(id=m2.id, order=1),
                ModuleOrderItem(id=m3.id, order=2),
            ],
        )

        assert _orders(db, course.id) == {m1.id: 3, m2.id: 1, m3.id: 2}

    def test_unknown_mode(self, db) -> None:
        with pytest.raises(ValueError):
            ModuleService(db, reorder_validation="strict")
