import unittest
from unittest import mock

from bson import ObjectId
from fastapi.testclient import TestClient

from herbs_backend.app import create_app
from herbs_backend.config import Settings
from herbs_backend.db import CONTACTS, PRODUCTS, InMemoryDocumentStore
from herbs_backend.storage import InMemoryAssetStore

ADMIN = {"Authorization": "Bearer test-admin-token"}
PNG = ("leaf.png", b"\x89PNG\r\n\x1a\nfake", "image/png")


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.settings = Settings(
            admin_tokens=["test-admin-token"],
            use_in_memory_backends=True,
            max_upload_bytes=1024,
        )
        self.store = InMemoryDocumentStore()
        self.assets = InMemoryAssetStore()
        self.client = TestClient(
            create_app(settings=self.settings, store=self.store, assets=self.assets)
        )

    def create_category(self, name="Herbs"):
        response = self.client.post("/api/categories", json={"name": name}, headers=ADMIN)
        self.assertEqual(response.status_code, 201, response.json())
        return response.json()["data"]

    def create_product(self, category_id, name="Mint", files=None, **fields):
        data = {"name": name, "description": "Fresh leaves", "category": category_id}
        data.update(fields)
        response = self.client.post(
            "/api/products", data=data, files=files, headers=ADMIN
        )
        self.assertEqual(response.status_code, 201, response.json())
        return response.json()["data"]


class ServiceTests(ApiTestCase):
    def test_health_and_root(self):
        health = self.client.get("/api/health")
        self.assertEqual(health.status_code, 200)
        self.assertEqual(health.json()["status"], "OK")

        root = self.client.get("/")
        self.assertTrue(root.json()["success"])
        self.assertEqual(root.json()["endpoints"]["products"], "/api/products")

    def test_unknown_route(self):
        response = self.client.get("/api/nowhere")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(
            response.json(), {"success": False, "message": "Route not found"}
        )

    def test_admin_gate(self):
        missing = self.client.post("/api/categories", json={"name": "Seeds"})
        self.assertEqual(missing.status_code, 401)
        self.assertFalse(missing.json()["success"])

        wrong = self.client.post(
            "/api/categories",
            json={"name": "Seeds"},
            headers={"Authorization": "Bearer nope"},
        )
        self.assertEqual(wrong.status_code, 403)
        self.assertEqual(self.store.count("categories"), 0)

    def test_response_time_header(self):
        response = self.client.get("/api/health")
        self.assertIn("X-Response-Time", response.headers)


class CategoryApiTests(ApiTestCase):
    def test_create_list_with_counts(self):
        herbs = self.create_category("Herbs")
        self.create_category("Seeds")
        self.assertEqual(herbs["slug"], "herbs")
        self.assertTrue(herbs["isActive"])
        self.create_product(herbs["_id"])

        response = self.client.get("/api/categories")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        counts = {item["name"]: item["productCount"] for item in payload["data"]}
        self.assertEqual(counts, {"Herbs": 1, "Seeds": 0})
        self.assertEqual(payload["pagination"]["limit"], 50)

    def test_duplicate_name_case_insensitive(self):
        self.create_category("Herbs")
        response = self.client.post(
            "/api/categories", json={"name": "hERBS"}, headers=ADMIN
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Category name already exists")

    def test_validation_errors(self):
        response = self.client.post(
            "/api/categories", json={"name": "x" * 60}, headers=ADMIN
        )
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body["message"], "Validation failed")
        self.assertEqual(body["errors"][0]["field"], "name")

    def test_update_renames_and_reslugs(self):
        category = self.create_category("Dried Herbs")
        response = self.client.put(
            f"/api/categories/{category['_id']}",
            json={"name": "Fresh Herbs", "isActive": "false"},
            headers=ADMIN,
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["slug"], "fresh-herbs")
        self.assertFalse(data["isActive"])

    def test_delete_guard(self):
        category = self.create_category("Herbs")
        for index in range(3):
            self.create_product(category["_id"], name=f"Herb {index}")

        refused = self.client.delete(f"/api/categories/{category['_id']}", headers=ADMIN)
        self.assertEqual(refused.status_code, 400)
        self.assertIn("3", refused.json()["message"])
        self.assertIn("Cannot delete category", refused.json()["message"])

        empty = self.create_category("Seeds")
        deleted = self.client.delete(f"/api/categories/{empty['_id']}", headers=ADMIN)
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(deleted.json()["message"], "Category deleted successfully")

    def test_detail_and_overview(self):
        category = self.create_category("Herbs")
        self.create_product(category["_id"], price="10", featured="true")
        self.create_product(category["_id"], name="Sage", price="20", inStock="false")

        detail = self.client.get(f"/api/categories/{category['_id']}").json()["data"]
        self.assertEqual(detail["category"]["name"], "Herbs")
        self.assertEqual(len(detail["products"]), 2)
        self.assertEqual(
            detail["stats"], {"total": 2, "inStock": 1, "featured": 1, "avgPrice": 15.0}
        )

        self.assertEqual(self.client.get("/api/categories/stats/overview").status_code, 401)
        overview = self.client.get(
            "/api/categories/stats/overview", headers=ADMIN
        ).json()["data"]
        self.assertEqual(overview["totalCategories"], 1)
        self.assertEqual(overview["overallStats"]["totalProducts"], 2)
        self.assertEqual(overview["categoryStats"][0]["outOfStock"], 1)

    def test_invalid_and_missing_ids(self):
        invalid = self.client.get("/api/categories/not-an-id")
        self.assertEqual(invalid.status_code, 400)
        self.assertEqual(invalid.json()["message"], "Invalid category ID")

        missing = self.client.get(f"/api/categories/{ObjectId()}")
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json()["message"], "Category not found")


class ProductApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.category = self.create_category("Herbs")

    def test_create_with_placeholder_and_populated_category(self):
        product = self.create_product(self.category["_id"], tags="fresh, green")
        self.assertEqual(product["image"], self.settings.placeholder_image_url)
        self.assertEqual(
            product["category"],
            {"_id": self.category["_id"], "name": "Herbs", "slug": "herbs"},
        )
        self.assertEqual(product["tags"], ["fresh", "green"])
        self.assertTrue(product["inStock"])
        self.assertFalse(product["featured"])

        fetched = self.client.get(f"/api/products/{product['_id']}").json()["data"]
        self.assertEqual(fetched["category"]["slug"], "herbs")

    def test_create_requires_existing_category(self):
        response = self.client.post(
            "/api/products",
            data={"name": "Mint", "description": "d", "category": str(ObjectId())},
            headers=ADMIN,
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Category not found")

        malformed = self.client.post(
            "/api/products",
            data={"name": "Mint", "description": "d", "category": "bad"},
            headers=ADMIN,
        )
        self.assertEqual(malformed.status_code, 400)
        self.assertEqual(malformed.json()["errors"][0]["field"], "category")

    def test_image_upload_and_replacement_cleanup(self):
        product = self.create_product(self.category["_id"], files={"image": PNG})
        first_ref = product["imagePublicId"]
        self.assertIn(first_ref, self.assets.stored_objects)
        self.assertEqual(product["image"], self.assets.url_for(first_ref))

        response = self.client.put(
            f"/api/products/{product['_id']}",
            data={"price": "3.5"},
            files={"image": ("new.jpg", b"jpegdata", "image/jpeg")},
            headers=ADMIN,
        )
        self.assertEqual(response.status_code, 200)
        updated = response.json()["data"]
        self.assertNotEqual(updated["imagePublicId"], first_ref)
        self.assertEqual(updated["price"], 3.5)
        self.assertEqual(self.assets.deleted, [first_ref])

    def test_upload_rejected_by_type_and_size(self):
        wrong_type = self.client.post(
            "/api/products",
            data={"name": "Mint", "description": "d", "category": self.category["_id"]},
            files={"image": ("notes.txt", b"hello", "text/plain")},
            headers=ADMIN,
        )
        self.assertEqual(wrong_type.status_code, 400)

        too_big = self.client.post(
            "/api/products",
            data={"name": "Mint", "description": "d", "category": self.category["_id"]},
            files={"image": ("big.png", b"x" * 2048, "image/png")},
            headers=ADMIN,
        )
        self.assertEqual(too_big.status_code, 400)
        self.assertEqual(self.store.count(PRODUCTS), 0)

    def test_delete_cleans_up_image_even_if_host_fails(self):
        product = self.create_product(self.category["_id"], files={"image": PNG})
        # Remove the object behind the store's back so the cleanup fails.
        self.assets.stored_objects.clear()
        response = self.client.delete(f"/api/products/{product['_id']}", headers=ADMIN)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.store.count(PRODUCTS), 0)

    def test_in_stock_filter(self):
        self.create_product(self.category["_id"], name="Mint", inStock="true")
        self.create_product(self.category["_id"], name="Sage", inStock="false")

        in_stock = self.client.get("/api/products", params={"inStock": "true"}).json()
        self.assertEqual([item["name"] for item in in_stock["data"]], ["Mint"])

        everything = self.client.get("/api/products").json()
        self.assertEqual(len(everything["data"]), 2)

        bad = self.client.get("/api/products", params={"inStock": "maybe"})
        self.assertEqual(bad.status_code, 400)

    def test_pagination(self):
        for index in range(25):
            self.store.insert(
                PRODUCTS,
                {"name": f"P{index}", "description": "d", "category": ObjectId(self.category["_id"])},
            )
        page = self.client.get("/api/products", params={"limit": 10}).json()
        self.assertEqual(page["pagination"], {"current": 1, "pages": 3, "total": 25, "limit": 10})

        beyond = self.client.get("/api/products", params={"limit": 10, "page": 4})
        self.assertEqual(beyond.status_code, 200)
        self.assertEqual(beyond.json()["data"], [])

        capped = self.client.get("/api/products", params={"limit": 500}).json()
        self.assertEqual(capped["pagination"]["limit"], 100)

        for params in ({"page": 0}, {"limit": -1}, {"page": "two"}, {"sortBy": "secret"}):
            self.assertEqual(self.client.get("/api/products", params=params).status_code, 400)

    def test_search_and_sort(self):
        self.create_product(self.category["_id"], name="Sweet Basil", price="3")
        self.create_product(self.category["_id"], name="Peppermint", price="1")
        self.create_product(self.category["_id"], name="Thyme", price="2")

        found = self.client.get("/api/products", params={"search": "basil"}).json()
        self.assertEqual([item["name"] for item in found["data"]], ["Sweet Basil"])
        partial = self.client.get("/api/products", params={"search": "mint"}).json()
        self.assertEqual(partial["data"], [])

        by_price = self.client.get(
            "/api/products", params={"sortBy": "price", "sortOrder": "asc"}
        ).json()
        self.assertEqual(
            [item["name"] for item in by_price["data"]], ["Peppermint", "Thyme", "Sweet Basil"]
        )

    def test_non_finite_price_rejected(self):
        for price in ("nan", "inf", "-inf", "1e400"):
            response = self.client.post(
                "/api/products",
                data={
                    "name": "Mint",
                    "description": "d",
                    "category": self.category["_id"],
                    "price": price,
                },
                headers=ADMIN,
            )
            self.assertEqual(response.status_code, 400, price)
            self.assertEqual(response.json()["errors"][0]["field"], "price")
        self.assertEqual(self.store.count(PRODUCTS), 0)

    def test_invalid_category_filter_is_ignored(self):
        self.create_product(self.category["_id"])
        response = self.client.get("/api/products", params={"category": "garbage"})
        self.assertEqual(len(response.json()["data"]), 1)

    def test_invalid_and_missing_product(self):
        self.assertEqual(
            self.client.get("/api/products/xyz").json()["message"], "Invalid product ID"
        )
        self.assertEqual(self.client.get(f"/api/products/{ObjectId()}").status_code, 404)


class TeamApiTests(ApiTestCase):
    def member_form(self, **overrides):
        data = {
            "name": "Jane Doe",
            "position": "Head Grower",
            "email": "Jane@HerbsFarm.com",
            "phone": "+20100000",
            "whatsapp": "+20100000",
            "imageUrl": "https://cdn.herbs.io/jane.png",
        }
        data.update(overrides)
        return data

    def test_duplicate_email_conflict(self):
        first = self.client.post("/api/team", data=self.member_form(), headers=ADMIN)
        self.assertEqual(first.status_code, 201)
        self.assertEqual(first.json()["data"]["email"], "jane@herbsfarm.com")

        duplicate = self.client.post(
            "/api/team",
            data=self.member_form(name="Other", email="JANE@herbsfarm.com"),
            headers=ADMIN,
        )
        self.assertEqual(duplicate.status_code, 400)
        self.assertEqual(duplicate.json()["message"], "Email already exists")

        listing = self.client.get("/api/team").json()
        self.assertEqual([item["name"] for item in listing["data"]], ["Jane Doe"])

    def test_upload_discarded_when_insert_hits_duplicate_email(self):
        self.client.post("/api/team", data=self.member_form(), headers=ADMIN)
        form = self.member_form(name="Twin")
        del form["imageUrl"]
        # Let the request slip past the email pre-check, as a concurrent insert would.
        with mock.patch.object(self.store, "find_one", return_value=None):
            response = self.client.post(
                "/api/team", data=form, files={"image": PNG}, headers=ADMIN
            )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Email already exists")
        self.assertEqual(self.assets.stored_objects, {})
        self.assertEqual(len(self.assets.deleted), 1)

    def test_upload_discarded_when_update_hits_duplicate_email(self):
        self.client.post("/api/team", data=self.member_form(), headers=ADMIN)
        other = self.client.post(
            "/api/team",
            data=self.member_form(email="sam@herbsfarm.com", name="Sam"),
            headers=ADMIN,
        ).json()["data"]
        with mock.patch.object(self.store, "find_one", return_value=None):
            response = self.client.put(
                f"/api/team/{other['_id']}",
                data={"email": "jane@herbsfarm.com"},
                files={"image": PNG},
                headers=ADMIN,
            )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.assets.stored_objects, {})
        stored = self.store.get("team_members", other["_id"])
        self.assertEqual(stored["email"], "sam@herbsfarm.com")

    def test_image_required_on_create(self):
        form = self.member_form()
        del form["imageUrl"]
        response = self.client.post("/api/team", data=form, headers=ADMIN)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Team member image is required")

    def test_switch_to_image_url_discards_uploaded_image(self):
        form = self.member_form()
        del form["imageUrl"]
        created = self.client.post(
            "/api/team", data=form, files={"image": PNG}, headers=ADMIN
        ).json()["data"]

        response = self.client.put(
            f"/api/team/{created['_id']}",
            data={"imageUrl": "https://cdn.herbs.io/new.png", "department": "Farm"},
            headers=ADMIN,
        )
        self.assertEqual(response.status_code, 200)
        updated = response.json()["data"]
        self.assertEqual(updated["image"], "https://cdn.herbs.io/new.png")
        self.assertNotIn("imagePublicId", updated)
        self.assertEqual(self.assets.deleted, [created["imagePublicId"]])

    def test_update_email_conflict(self):
        self.client.post("/api/team", data=self.member_form(), headers=ADMIN)
        other = self.client.post(
            "/api/team",
            data=self.member_form(email="sam@herbsfarm.com", name="Sam"),
            headers=ADMIN,
        ).json()["data"]
        response = self.client.put(
            f"/api/team/{other['_id']}",
            data={"email": "jane@herbsfarm.com"},
            headers=ADMIN,
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Email already exists")

    def test_department_filter_is_escaped_regex(self):
        self.client.post(
            "/api/team", data=self.member_form(department="Sales (EU)"), headers=ADMIN
        )
        self.client.post(
            "/api/team",
            data=self.member_form(email="b@herbsfarm.com", department="Farm"),
            headers=ADMIN,
        )
        response = self.client.get("/api/team", params={"department": "sales (eu"})
        self.assertEqual(len(response.json()["data"]), 1)


class CertificateApiTests(ApiTestCase):
    def test_pdf_upload_and_defaults(self):
        response = self.client.post(
            "/api/certificates",
            data={"name": "EU Organic", "description": "Certified organic farm"},
            files={"image": ("cert.pdf", b"%PDF-1.4", "application/pdf")},
            headers=ADMIN,
        )
        self.assertEqual(response.status_code, 201, response.json())
        data = response.json()["data"]
        self.assertEqual(data["category"], "other")
        self.assertTrue(data["isActive"])
        self.assertTrue(data["imagePublicId"].endswith(".pdf"))

        self.client.delete(f"/api/certificates/{data['_id']}", headers=ADMIN)
        self.assertEqual(self.assets.deleted, [data["imagePublicId"]])

    def test_category_filter_validated(self):
        self.assertEqual(
            self.client.get("/api/certificates", params={"category": "gold"}).status_code,
            400,
        )
        self.assertEqual(
            self.client.get("/api/certificates", params={"category": "organic"}).status_code,
            200,
        )


class ContactApiTests(ApiTestCase):
    def test_excluded_types_rejected_and_hidden(self):
        rejected = self.client.post(
            "/api/contact",
            json={"type": "Facebook", "label": "FB", "value": "fb.com/herbs"},
            headers=ADMIN,
        )
        self.assertEqual(rejected.status_code, 400)

        created = self.client.post(
            "/api/contact",
            json={"type": "phone", "label": "Office", "value": "+20 100"},
            headers=ADMIN,
        )
        self.assertEqual(created.status_code, 201)
        # Legacy rows written before the rule still never surface.
        self.store.insert(CONTACTS, {"type": "website", "label": "Site", "value": "x"})

        listing = self.client.get("/api/contact").json()
        self.assertEqual([item["type"] for item in listing["data"]], ["phone"])
        self.assertEqual(listing["meta"], {"total": 1, "sortBy": "createdAt", "sortOrder": "desc"})

    def test_sorting_and_types(self):
        for label in ("b", "a"):
            self.client.post(
                "/api/contact",
                json={"type": "email", "label": label, "value": f"{label}@herbsfarm.com"},
                headers=ADMIN,
            )
        listing = self.client.get(
            "/api/contact", params={"sortBy": "label", "sortOrder": "asc"}
        ).json()
        self.assertEqual([item["label"] for item in listing["data"]], ["a", "b"])
        self.assertEqual(
            self.client.get("/api/contact", params={"sortBy": "value"}).status_code, 400
        )

        types = self.client.get("/api/contact/types").json()["data"]
        self.assertIn("whatsapp", types["allowed"])
        self.assertIn("tiktok", types["excluded"])

    def test_update_and_delete(self):
        contact = self.client.post(
            "/api/contact",
            json={"type": "phone", "label": "Office", "value": "1", "icon": "phone"},
            headers=ADMIN,
        ).json()["data"]
        updated = self.client.put(
            f"/api/contact/{contact['_id']}", json={"label": "HQ"}, headers=ADMIN
        ).json()["data"]
        self.assertEqual(updated["label"], "HQ")
        self.assertEqual(updated["value"], "1")

        response = self.client.delete(f"/api/contact/{contact['_id']}", headers=ADMIN)
        self.assertEqual(response.status_code, 200)
        missing = self.client.get(f"/api/contact/{contact['_id']}")
        self.assertEqual(missing.json()["message"], "Contact method not found")


class MessageApiTests(ApiTestCase):
    def send(self, **overrides):
        body = {
            "name": "Lee",
            "email": "lee@herbsfarm.com",
            "subject": "Hello",
            "message": "Just saying hi",
        }
        body.update(overrides)
        return self.client.post("/api/messages", json=body)

    def test_public_create_classifies(self):
        response = self.send(subject="Urgent request")
        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertEqual(data["priority"], "CEO")
        self.assertEqual(set(data), {"id", "name", "subject", "priority", "createdAt"})

        stored = self.store.get("messages", data["id"])
        self.assertEqual(stored["ipAddress"], "testclient")
        self.assertEqual(stored["category"], "general")
        self.assertFalse(stored["isRead"])

        self.assertEqual(self.send(category="complaint").json()["data"]["priority"], "high")
        self.assertEqual(self.send().json()["data"]["priority"], "medium")

    def test_source_defaults_and_is_validated(self):
        default_id = self.send().json()["data"]["id"]
        self.assertEqual(self.store.get("messages", default_id)["source"], "website")

        phoned_id = self.send(source="phone").json()["data"]["id"]
        self.assertEqual(self.store.get("messages", phoned_id)["source"], "phone")

        rejected = self.send(source="fax")
        self.assertEqual(rejected.status_code, 400)
        self.assertEqual(rejected.json()["errors"][0]["field"], "source")

    def test_invalid_message(self):
        response = self.send(email="nope", category="spam")
        self.assertEqual(response.status_code, 400)
        fields = {error["field"] for error in response.json()["errors"]}
        self.assertEqual(fields, {"email", "category"})

    def test_admin_listing_with_stats(self):
        self.send(category="complaint")
        self.send()
        self.assertEqual(self.client.get("/api/messages").status_code, 401)

        listing = self.client.get("/api/messages", headers=ADMIN).json()
        self.assertEqual(len(listing["data"]), 2)
        self.assertEqual(
            listing["stats"], {"total": 2, "unread": 2, "unreplied": 2, "highPriority": 1}
        )

        high = self.client.get(
            "/api/messages", params={"priority": "high"}, headers=ADMIN
        ).json()
        self.assertEqual(len(high["data"]), 1)
        invalid = self.client.get(
            "/api/messages", params={"priority": "urgent"}, headers=ADMIN
        )
        self.assertEqual(invalid.status_code, 400)

    def test_get_marks_read(self):
        message_id = self.send().json()["data"]["id"]
        data = self.client.get(f"/api/messages/{message_id}", headers=ADMIN).json()["data"]
        self.assertTrue(data["isRead"])
        self.assertIn("readAt", data)

        unread = self.client.get(
            "/api/messages", params={"isRead": "false"}, headers=ADMIN
        ).json()
        self.assertEqual(unread["data"], [])

    def test_update_note_delete(self):
        message_id = self.send().json()["data"]["id"]
        updated = self.client.put(
            f"/api/messages/{message_id}",
            json={"replied": True, "priority": "low"},
            headers=ADMIN,
        ).json()["data"]
        self.assertTrue(updated["replied"])
        self.assertIn("repliedAt", updated)
        self.assertEqual(updated["priority"], "low")

        noted = self.client.post(
            f"/api/messages/{message_id}/notes",
            json={"content": "Called back"},
            headers=ADMIN,
        )
        self.assertEqual(noted.status_code, 201)
        self.assertEqual(noted.json()["data"]["notes"][0]["content"], "Called back")

        empty_note = self.client.post(
            f"/api/messages/{message_id}/notes", json={"content": ""}, headers=ADMIN
        )
        self.assertEqual(empty_note.status_code, 400)

        deleted = self.client.delete(f"/api/messages/{message_id}", headers=ADMIN)
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(
            self.client.get(f"/api/messages/{message_id}", headers=ADMIN).status_code, 404
        )


class DashboardApiTests(ApiTestCase):
    def test_overview(self):
        category = self.create_category("Herbs")
        self.create_product(category["_id"])
        self.client.post(
            "/api/messages",
            json={
                "name": "Lee",
                "email": "lee@herbsfarm.com",
                "subject": "Hi",
                "message": "Hello",
            },
        )
        self.assertEqual(self.client.get("/api/dashboard/overview").status_code, 401)

        data = self.client.get("/api/dashboard/overview", headers=ADMIN).json()["data"]
        self.assertEqual(data["stats"]["categories"]["count"], 1)
        self.assertEqual(data["stats"]["products"]["count"], 1)
        self.assertEqual(data["stats"]["unreadMessages"]["count"], 1)
        self.assertEqual(len(data["recentActivities"]), 3)
        self.assertTrue(
            all(entry["time"].endswith("ago") for entry in data["recentActivities"])
        )


if __name__ == "__main__":
    unittest.main()
