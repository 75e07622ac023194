"""
Integration tests for job postings and applications.
"""

from datetime import timedelta

import pytest_asyncio

from app.models.job import ApplicationStatus, JobApplication
from app.schemas.job import JobCreateRequest
from app.services.job_service import JobService, form_field_key
from app.utils.datetime import now_ms


def job_payload(**overrides):
    payload = {
        "title": {"en": "Moderator", "ar": "مشرف"},
        "description": {"en": "Keep the community friendly", "ar": ""},
        "category": "community",
        "requirements": [{"en": "Active on Discord", "ar": ""}],
    }
    payload.update(overrides)
    return payload


def application_body(job_id, **overrides):
    body = {
        "jobId": job_id,
        "name": "Sara",
        "email": "sara@example.com",
        "discord": "sara#1234",
        "experience": "Two years moderating servers",
        "whyJoin": "I enjoy helping people",
        "availability": "Weekends",
        "formStartTime": now_ms() - 10_000,
        "hp_company": "",
    }
    body.update(overrides)
    return body


@pytest_asyncio.fixture
async def admin_headers(make_user):
    _, headers = await make_user("boss", roles=["admin"])
    return headers


@pytest_asyncio.fixture
async def create_job(session):
    async def _create_job(**overrides):
        return await JobService().create_job(session, JobCreateRequest(**job_payload(**overrides)))

    return _create_job


def test_form_field_key():
    assert form_field_key("Favorite Game") == "field_favorite_game"
    assert form_field_key("  Hours  per   week ") == "field_hours_per_week"


class TestJobs:

    async def test_create_job_requires_permission(self, client, make_user):
        _, headers = await make_user("member")

        response = await client.post("/api/jobs", json=job_payload(), headers=headers)

        assert response.status_code == 403

    async def test_create_and_get(self, client, admin_headers):
        created = await client.post("/api/jobs", json=job_payload(), headers=admin_headers)

        assert created.status_code == 201
        job = created.json()
        assert job["title"] == {"en": "Moderator", "ar": "مشرف"}
        assert job["is_open"] is True

        fetched = await client.get(f"/api/jobs/{job['job_id']}")
        assert fetched.status_code == 200
        assert fetched.json()["requirements"] == [{"en": "Active on Discord", "ar": ""}]

    async def test_list_only_open_featured_first(self, client, create_job):
        await create_job(title={"en": "Closed", "ar": ""}, is_open=False)
        await create_job(title={"en": "Regular", "ar": ""})
        await create_job(title={"en": "Featured", "ar": ""}, is_featured=True)

        response = await client.get("/api/jobs")

        titles = [job["title"]["en"] for job in response.json()]
        assert titles[0] == "Featured"
        assert "Closed" not in titles
        assert len(titles) == 2

    async def test_get_missing_job(self, client):
        response = await client.get("/api/jobs/999")

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "Job not found"


class TestStandardApplication:

    async def test_anonymous_application(self, client, create_job):
        job = await create_job()

        response = await client.post("/api/applications", json=application_body(job.job_id))

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["user_id"] is None
        assert data["why_join"] == "I enjoy helping people"

    async def test_missing_fields(self, client, create_job):
        job = await create_job()

        response = await client.post("/api/applications", json=application_body(job.job_id, discord=" "))

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "Missing required fields"

    async def test_invalid_email(self, client, create_job):
        job = await create_job()

        response = await client.post(
            "/api/applications", json=application_body(job.job_id, email="not-an-email")
        )

        assert response.status_code == 400
        assert response.json()["detail"]["errors"] == ["email format is invalid"]

    async def test_closed_job(self, client, create_job):
        job = await create_job(is_open=False)

        response = await client.post("/api/applications", json=application_body(job.job_id))

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "This job is not accepting applications"

    async def test_unknown_job(self, client):
        response = await client.post("/api/applications", json=application_body(999))

        assert response.status_code == 404

    async def test_missing_job_id(self, client):
        body = application_body(1)
        body.pop("jobId")

        response = await client.post("/api/applications", json=body)

        assert response.status_code == 422

    async def test_gate_timing(self, client, create_job):
        job = await create_job()

        response = await client.post(
            "/api/applications", json=application_body(job.job_id, formStartTime=now_ms())
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Form submitted too quickly"}


class TestCustomFormApplication:

    @pytest_asyncio.fixture
    async def custom_job(self, create_job):
        return await create_job(form_fields=[
            {"label": {"en": "Favorite Game", "ar": ""}, "type": "text", "required": True},
            {"label": {"en": "Hours per week", "ar": ""}, "type": "select",
             "options": ["<5", "5-10"]},
        ])

    async def test_answers_stored(self, client, custom_job):
        response = await client.post("/api/applications", json={
            "jobId": custom_job.job_id,
            "field_favorite_game": "  Chess ",
            "field_hours_per_week": 10,
            "formStartTime": now_ms() - 10_000,
        })

        assert response.status_code == 201
        data = response.json()
        assert data["answers"] == {"field_favorite_game": "Chess", "field_hours_per_week": 10}
        assert data["name"] is None

    async def test_required_custom_field(self, client, custom_job):
        response = await client.post("/api/applications", json={
            "jobId": custom_job.job_id,
            "formStartTime": now_ms() - 10_000,
        })

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "Favorite Game is required"


class TestReapply:

    async def test_duplicate_pending(self, client, create_job, make_user):
        job = await create_job()
        _, headers = await make_user("member")
        await client.post("/api/applications", json=application_body(job.job_id), headers=headers)

        response = await client.post("/api/applications", json=application_body(job.job_id), headers=headers)

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "You have already applied for this job"

    async def test_rejected_cooldown(self, client, create_job, make_user, admin_headers):
        job = await create_job()
        _, headers = await make_user("member")
        first = await client.post("/api/applications", json=application_body(job.job_id), headers=headers)
        await client.put(
            f"/api/applications/{first.json()['application_id']}/status",
            json={"status": "rejected"},
            headers=admin_headers,
        )

        response = await client.post("/api/applications", json=application_body(job.job_id), headers=headers)

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == (
            "Your previous application was rejected. Please wait 24 more hours before applying again."
        )

    async def test_rejected_after_cooldown(self, client, create_job, make_user, session):
        job = await create_job()
        user, headers = await make_user("member")
        old = JobApplication(job_id=job.job_id, user_id=user.user_id, status=ApplicationStatus.REJECTED)
        session.add(old)
        await session.commit()
        await session.refresh(old)
        old.updated_at = old.created_at = old.created_at - timedelta(hours=25)
        await session.commit()

        response = await client.post("/api/applications", json=application_body(job.job_id), headers=headers)

        assert response.status_code == 201
        assert response.json()["user_id"] == user.user_id


class TestReview:

    async def test_list_and_filter(self, client, create_job, admin_headers):
        first_job = await create_job()
        second_job = await create_job(title={"en": "Designer", "ar": ""})
        await client.post("/api/applications", json=application_body(first_job.job_id))
        second = await client.post("/api/applications", json=application_body(second_job.job_id))
        await client.put(
            f"/api/applications/{second.json()['application_id']}/status",
            json={"status": "approved"},
            headers=admin_headers,
        )

        everything = await client.get("/api/applications", headers=admin_headers)
        by_job = await client.get(f"/api/applications?jobId={first_job.job_id}", headers=admin_headers)
        approved = await client.get("/api/applications?status=approved", headers=admin_headers)

        assert len(everything.json()) == 2
        assert [a["job_id"] for a in by_job.json()] == [first_job.job_id]
        assert [a["application_id"] for a in approved.json()] == [second.json()["application_id"]]

    async def test_list_requires_permission(self, client, make_user):
        _, headers = await make_user("member")

        response = await client.get("/api/applications", headers=headers)

        assert response.status_code == 403

    async def test_update_missing_application(self, client, admin_headers):
        response = await client.put(
            "/api/applications/999/status", json={"status": "approved"}, headers=admin_headers
        )

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "Application not found"

    async def test_invalid_status(self, client, admin_headers, create_job):
        response = await client.put(
            "/api/applications/1/status", json={"status": "archived"}, headers=admin_headers
        )

        assert response.status_code == 422
