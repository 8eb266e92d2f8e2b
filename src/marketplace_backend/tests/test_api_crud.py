"""
Tests for the generic CRUD routers and the permission handlers behind them.
"""

from unittest.mock import patch

from marketplace_backend.model import Lesson, Module, ModuleAccess, Product
from marketplace_backend.permissions.principal import SELLER_ROLE
from marketplace_backend.tests.utils import auth_headers, module_ids_of


class TestProducts:

    def test_seller_creates_product_as_owner(self, client, seller):
        response = client.post("/produtos", headers=auth_headers(seller),
                               json={"name": "Python 101", "category": "Programming", "user_id": "someone-else"})
        assert response.status_code == 201
        body = response.json()
        assert body["user_id"] == seller.id
        assert body["user_access_ids"] == []

    def test_buyer_cannot_create_product(self, client, buyer):
        response = client.post("/produtos", headers=auth_headers(buyer), json={"name": "Nope"})
        assert response.status_code == 403

    def test_list_sets_total_count(self, client, seller, buyer, make_course):
        for i in range(3):
            make_course(seller, name=f"Course {i}", modules=0)

        response = client.get("/produtos", headers=auth_headers(buyer), params={"limit": 2})
        assert response.status_code == 200
        assert len(response.json()) == 2
        assert response.headers["X-Total-Count"] == "3"

    def test_update_rules(self, client, seller, buyer, make_user, make_course):
        course = make_course(seller)
        other_seller = make_user(name="Other Seller", role=SELLER_ROLE)

        assert client.patch(f"/produtos/{course.id}", headers=auth_headers(other_seller), json={"name": "X"}).status_code == 403
        assert client.patch(f"/produtos/{course.id}", headers=auth_headers(buyer), json={"name": "X"}).status_code == 403
        assert client.patch("/produtos/missing", headers=auth_headers(seller), json={"name": "X"}).status_code == 404

        response = client.patch(f"/produtos/{course.id}", headers=auth_headers(seller), json={"name": "Renamed"})
        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"

    def test_blank_category_update_is_uncategorized(self, client, seller, buyer, make_course):
        course = make_course(seller, category="Design")

        response = client.patch(f"/produtos/{course.id}", headers=auth_headers(seller), json={"category": "   "})
        assert response.status_code == 200
        assert response.json()["category"] is None

        catalog = client.get("/cursos", headers=auth_headers(buyer)).json()
        assert list(catalog["unavailable"].keys()) == ["Uncategorized"]

    def test_get_is_not_stale_after_update(self, client, seller, make_course):
        course = make_course(seller, name="Before")
        headers = auth_headers(seller)

        assert client.get(f"/produtos/{course.id}", headers=headers).json()["name"] == "Before"
        client.patch(f"/produtos/{course.id}", headers=headers, json={"name": "After"})
        assert client.get(f"/produtos/{course.id}", headers=headers).json()["name"] == "After"

    def test_delete_does_not_reload_entity(self, client, seller, make_course):
        course = make_course(seller, modules=0)

        with patch("marketplace_backend.api.api_builder.get_id_db") as get_id_db:
            response = client.delete(f"/produtos/{course.id}", headers=auth_headers(seller))

        assert response.status_code == 204
        get_id_db.assert_not_called()

    def test_delete_cascades(self, client, test_db, seller, buyer, make_course):
        course = make_course(seller)
        m1, m2 = module_ids_of(course)
        course_id = course.id
        client.post(f"/produtos/{course_id}/access", headers=auth_headers(seller),
                    json={"user_id": buyer.id, "action": "grant", "module_id": m1})

        assert client.delete(f"/produtos/{course_id}", headers=auth_headers(buyer)).status_code == 403

        response = client.delete(f"/produtos/{course_id}", headers=auth_headers(seller))
        assert response.status_code == 204

        assert client.get(f"/produtos/{course_id}", headers=auth_headers(buyer)).status_code == 404
        assert client.get(f"/modules/{m1}", headers=auth_headers(buyer)).status_code == 404
        assert test_db.query(Lesson).filter(Lesson.module_id.in_([m1, m2])).count() == 0
        assert test_db.query(ModuleAccess).count() == 0

        me = client.get("/me", headers=auth_headers(buyer)).json()
        assert me["accessible_course_ids"] == []


class TestModulesAndLessons:

    def test_owner_manages_structure(self, client, seller, make_course):
        course = make_course(seller, modules=0)
        headers = auth_headers(seller)

        module = client.post("/modules", headers=headers, json={"course_id": course.id, "title": "Intro", "order": 1})
        assert module.status_code == 201
        module_id = module.json()["id"]

        lesson = client.post("/lessons", headers=headers, json={"module_id": module_id, "title": "Welcome"})
        assert lesson.status_code == 201

        listed = client.get("/modules", headers=headers, params={"course_id": course.id})
        assert [m["id"] for m in listed.json()] == [module_id]

        updated = client.patch(f"/lessons/{lesson.json()['id']}", headers=headers, json={"order": 3})
        assert updated.json()["order"] == 3

    def test_non_owner_cannot_touch_structure(self, client, seller, make_user, make_course):
        course = make_course(seller)
        module_id = module_ids_of(course)[0]
        intruder = make_user(name="Intruder", role=SELLER_ROLE)
        headers = auth_headers(intruder)

        assert client.post("/modules", headers=headers, json={"course_id": course.id, "title": "X"}).status_code == 403
        assert client.post("/lessons", headers=headers, json={"module_id": module_id, "title": "X"}).status_code == 403
        assert client.patch(f"/modules/{module_id}", headers=headers, json={"title": "X"}).status_code == 403
        assert client.delete(f"/modules/{module_id}", headers=headers).status_code == 403

    def test_create_under_unknown_parent(self, client, seller):
        headers = auth_headers(seller)
        assert client.post("/modules", headers=headers, json={"course_id": "missing", "title": "X"}).status_code == 404
        assert client.post("/lessons", headers=headers, json={"module_id": "missing", "title": "X"}).status_code == 404

    def test_delete_module_reconciles_access(self, client, test_db, seller, buyer, make_course):
        course = make_course(seller)
        m1, m2 = module_ids_of(course)
        course_id = course.id
        client.post(f"/produtos/{course_id}/access", headers=auth_headers(seller),
                    json={"user_id": buyer.id, "action": "grant", "module_id": m1})

        assert client.delete(f"/modules/{m1}", headers=auth_headers(seller)).status_code == 204

        assert test_db.query(Module).filter(Module.id == m1).first() is None
        assert client.get("/me", headers=auth_headers(buyer)).json()["accessible_course_ids"] == []
        product = client.get(f"/produtos/{course_id}", headers=auth_headers(seller)).json()
        assert product["user_access_ids"] == []
        assert test_db.query(Product).filter(Product.id == course_id).count() == 1


class TestUsers:

    def test_seller_sees_directory(self, client, seller, buyer):
        response = client.get("/users", headers=auth_headers(seller))
        assert response.status_code == 200
        assert sorted(u["id"] for u in response.json()) == sorted([seller.id, buyer.id])

    def test_buyer_sees_only_self(self, client, seller, buyer):
        response = client.get("/users", headers=auth_headers(buyer))
        assert [u["id"] for u in response.json()] == [buyer.id]
        assert client.get(f"/users/{seller.id}", headers=auth_headers(buyer)).status_code == 404
