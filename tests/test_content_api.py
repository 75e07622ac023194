"""
Integration tests for page content, the contact form and community rules.
"""

import pytest_asyncio

from app.utils.datetime import now_ms


def contact_body(**overrides):
    body = {
        "name": "Sara",
        "email": "sara@example.com",
        "subject": "Server question",
        "message": "When does the next season start?",
        "formStartTime": now_ms() - 5000,
        "hp_website": "",
    }
    body.update(overrides)
    return body


@pytest_asyncio.fixture
async def admin_headers(make_user):
    _, headers = await make_user("boss", roles=["admin"])
    return headers


class TestPageContent:

    async def test_unset_page_is_empty(self, client):
        response = await client.get("/api/content", params={"type": "about"})

        assert response.status_code == 200
        assert response.json() == {"type": "about", "data": {}, "updated_at": None}

    async def test_admin_saves_page(self, client, admin_headers):
        payload = {"type": "about", "data": {"title": {"en": "About us", "ar": "من نحن"}}}

        response = await client.put("/api/admin/content", json=payload, headers=admin_headers)
        assert response.status_code == 200

        response = await client.get("/api/content", params={"type": "about"})
        assert response.json()["data"]["title"]["en"] == "About us"
        assert response.json()["updated_at"] is not None

        payload["data"] = {"title": {"en": "About", "ar": ""}}
        await client.put("/api/admin/content", json=payload, headers=admin_headers)
        response = await client.get("/api/admin/content", params={"type": "about"}, headers=admin_headers)
        assert response.json()["data"] == {"title": {"en": "About", "ar": ""}}

    async def test_invalid_type(self, client):
        response = await client.get("/api/content", params={"type": "../etc"})

        assert response.status_code == 422

    async def test_regular_user_cannot_edit(self, client, make_user):
        _, headers = await make_user()

        response = await client.put("/api/admin/content", json={"type": "about", "data": {}}, headers=headers)

        assert response.status_code == 403


class TestContactForm:

    async def test_submit_and_list(self, client, admin_headers):
        response = await client.post("/api/content/contact/submit", json=contact_body())

        assert response.status_code == 201
        assert response.json()["status"] == "new"

        contacts = (await client.get("/api/admin/contact", headers=admin_headers)).json()
        assert [c["subject"] for c in contacts] == ["Server question"]

    async def test_missing_field(self, client):
        response = await client.post("/api/content/contact/submit", json=contact_body(subject="  "))

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "All fields are required"

    async def test_invalid_email(self, client):
        response = await client.post("/api/content/contact/submit", json=contact_body(email="not-an-email"))

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "Validation failed"

    async def test_script_rejected(self, client):
        response = await client.post(
            "/api/content/contact/submit", json=contact_body(message="<script>alert(1)</script>")
        )

        assert response.status_code == 400

    async def test_honeypot(self, client):
        response = await client.post("/api/content/contact/submit", json=contact_body(hp_website="spam.example"))

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid form submission"}

    async def test_too_fast(self, client):
        response = await client.post("/api/content/contact/submit", json=contact_body(formStartTime=now_ms()))

        assert response.status_code == 400
        assert response.json() == {"error": "Form submitted too quickly"}

    async def test_contacts_require_permission(self, client, make_user):
        _, headers = await make_user()

        assert (await client.get("/api/admin/contact", headers=headers)).status_code == 403


class TestRules:

    async def create_category(self, client, headers, name="General", sort_order=0, is_active=True):
        response = await client.post(
            "/api/admin/rules/categories",
            json={"name": {"en": name, "ar": ""}, "sort_order": sort_order, "is_active": is_active},
            headers=headers,
        )
        assert response.status_code == 201
        return response.json()

    async def create_rule(self, client, headers, category_id, title="Be kind", **extra):
        body = {
            "category_id": category_id,
            "title": {"en": title, "ar": ""},
            "content": {"en": "No harassment", "ar": ""},
        }
        body.update(extra)
        return await client.post("/api/admin/rules", json=body, headers=headers)

    async def test_tree_is_ordered_and_active_only(self, client, admin_headers):
        second = await self.create_category(client, admin_headers, "Gameplay", sort_order=2)
        first = await self.create_category(client, admin_headers, "General", sort_order=1)
        await self.create_category(client, admin_headers, "Hidden", is_active=False)
        await self.create_rule(client, admin_headers, first["category_id"], "Be kind")
        await self.create_rule(client, admin_headers, first["category_id"], "Draft", is_active=False)
        await self.create_rule(client, admin_headers, second["category_id"], "No cheating")

        tree = (await client.get("/api/rules")).json()

        assert [c["name"]["en"] for c in tree] == ["General", "Gameplay"]
        assert [r["title"]["en"] for r in tree[0]["rules"]] == ["Be kind"]
        assert [r["title"]["en"] for r in tree[1]["rules"]] == ["No cheating"]
        assert len((await client.get("/api/rules/categories")).json()) == 2

    async def test_rule_needs_existing_category(self, client, admin_headers):
        response = await self.create_rule(client, admin_headers, 999)

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "Category not found"

    async def test_update_and_delete_rule(self, client, admin_headers):
        category = await self.create_category(client, admin_headers)
        rule = (await self.create_rule(client, admin_headers, category["category_id"])).json()

        response = await client.put(
            f"/api/admin/rules/{rule['rule_id']}", json={"title": {"en": "Be nice", "ar": ""}},
            headers=admin_headers,
        )
        assert response.json()["title"]["en"] == "Be nice"

        assert (await client.delete(f"/api/admin/rules/{rule['rule_id']}", headers=admin_headers)).status_code == 200
        assert (await client.delete(f"/api/admin/rules/{rule['rule_id']}", headers=admin_headers)).status_code == 404

    async def test_delete_category_removes_rules(self, client, admin_headers):
        category = await self.create_category(client, admin_headers)
        await self.create_rule(client, admin_headers, category["category_id"])

        response = await client.delete(
            f"/api/admin/rules/categories/{category['category_id']}", headers=admin_headers
        )

        assert response.status_code == 200
        assert (await client.get("/api/rules")).json() == []

    async def test_regular_user_cannot_manage(self, client, make_user):
        _, headers = await make_user()

        response = await client.post(
            "/api/admin/rules/categories", json={"name": {"en": "General", "ar": ""}}, headers=headers
        )

        assert response.status_code == 403
