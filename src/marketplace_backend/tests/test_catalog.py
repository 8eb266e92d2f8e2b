import pytest

from marketplace_backend.api.exceptions import NotFoundException
from marketplace_backend.model import Lesson, Module
from marketplace_backend.services.access_control import AccessControlService
from marketplace_backend.services.catalog import CatalogService
from marketplace_backend.tests.utils import module_ids_of


def course_ids(bucket):
    return [course.id for courses in bucket.values() for course in courses]


def test_course_with_one_granted_module_is_available(test_db, seller, buyer, make_course):
    course = make_course(seller)
    m1, m2 = module_ids_of(course)
    AccessControlService(test_db).grant_module_access(buyer.id, m1)

    catalog = CatalogService(test_db).list_catalog(buyer.id)
    assert course_ids(catalog.available) == [course.id]
    assert catalog.unavailable == {}

    detail = CatalogService(test_db).get_course_detail(course.id, buyer.id)
    flags = {module.id: module.has_access for module in detail.modules}
    assert flags == {m1: True, m2: False}
    # Locked modules still carry their lessons
    assert all(len(module.lessons) == 1 for module in detail.modules)


def test_course_without_grants_is_unavailable(test_db, seller, buyer, make_course):
    course = make_course(seller, category="Design")

    catalog = CatalogService(test_db).list_catalog(buyer.id)
    assert catalog.available == {}
    assert [c.id for c in catalog.unavailable["Design"]] == [course.id]
    assert catalog.unavailable["Design"][0].seller_name == "Seller"


def test_course_without_modules_is_never_available(test_db, seller, make_user, make_course):
    empty = make_course(seller, modules=0)

    for viewer in (make_user(name="Viewer One"), make_user(name="Viewer Two")):
        catalog = CatalogService(test_db).list_catalog(viewer.id)
        assert empty.id not in course_ids(catalog.available)
        assert empty.id in course_ids(catalog.unavailable)


def test_owner_sees_own_courses_as_available(test_db, seller, make_course):
    course = make_course(seller, modules=0)

    catalog = CatalogService(test_db).list_catalog(seller.id)
    assert course_ids(catalog.available) == [course.id]


def test_missing_category_is_grouped_as_uncategorized(test_db, seller, buyer, make_course):
    make_course(seller, category=None)

    catalog = CatalogService(test_db).list_catalog(buyer.id)
    assert list(catalog.unavailable.keys()) == ["Uncategorized"]


def test_blank_stored_category_is_grouped_as_uncategorized(test_db, seller, buyer, make_course):
    make_course(seller, category="  ")

    catalog = CatalogService(test_db).list_catalog(buyer.id)
    assert list(catalog.unavailable.keys()) == ["Uncategorized"]


def test_courses_are_grouped_by_category(test_db, seller, buyer, make_course):
    first = make_course(seller, name="First", category="Programming")
    second = make_course(seller, name="Second", category="Programming")
    design = make_course(seller, name="Third", category="Design")

    catalog = CatalogService(test_db).list_catalog(buyer.id)
    assert sorted(c.id for c in catalog.unavailable["Programming"]) == sorted([first.id, second.id])
    assert [c.id for c in catalog.unavailable["Design"]] == [design.id]


def test_detail_orders_modules_and_lessons(test_db, seller, buyer, make_course):
    course = make_course(seller, modules=0)
    late = Module(title="Late", order=2, course_id=course.id)
    early = Module(title="Early", order=1, course_id=course.id)
    test_db.add_all([late, early])
    test_db.flush()
    test_db.add_all([
        Lesson(title="Second", order=5, module_id=early.id),
        Lesson(title="First", order=1, module_id=early.id),
    ])
    test_db.commit()

    detail = CatalogService(test_db).get_course_detail(course.id, buyer.id)

    assert [m.title for m in detail.modules] == ["Early", "Late"]
    assert [l.title for l in detail.modules[0].lessons] == ["First", "Second"]
    assert detail.user_id == seller.id


def test_owner_detail_marks_every_module(test_db, seller, make_course):
    course = make_course(seller)

    detail = CatalogService(test_db).get_course_detail(course.id, seller.id)
    assert all(module.has_access for module in detail.modules)


def test_detail_of_unknown_course(test_db, buyer):
    with pytest.raises(NotFoundException):
        CatalogService(test_db).get_course_detail("missing", buyer.id)
