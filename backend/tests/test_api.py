"""HTTP surface: auth, error bodies and the main member flows."""

import datetime

import httpx
import pytest

from conftest import category, option
from memberdir.core.database import get_db_session
from memberdir.main import app
from memberdir.models.profile import ApprovalStatus
from memberdir.models.user import AccountStatus
from memberdir.routers.admin import get_reminder_notifier
from memberdir.services.payments import BillingEvent, WebhookVerificationError, get_webhook_verifier
from memberdir.services.reminders import STALE_AFTER
from memberdir.services.taxonomy import get_taxonomy_cache


class SilentNotifier:
    def __init__(self):
        self.sent = []

    async def send_need_reminder(self, *, to, profile_name, project_title, project_id):
        self.sent.append(project_id)


@pytest.fixture
def notifier():
    return SilentNotifier()


@pytest.fixture
async def client(session_factory, taxonomy_cache, notifier):
    async def test_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = test_session
    app.dependency_overrides[get_taxonomy_cache] = lambda: taxonomy_cache
    app.dependency_overrides[get_reminder_notifier] = lambda: notifier

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


# ── System / auth ───────────────────────────────────────────
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.parametrize(
    "headers",
    [{}, {"Authorization": "Token abc"}, {"Authorization": "Bearer md_live_nope"}],
)
async def test_protected_routes_require_a_valid_token(client, headers):
    response = await client.get("/api/profiles/me", headers=headers)
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


async def test_taxonomy_is_public(client, taxonomy):
    response = await client.get("/api/needs/taxonomy")

    assert response.status_code == 200
    body = response.json()
    assert body[0]["slug"] == "capital-financial"
    assert body[0]["options"][0]["slug"] == "seeking-preseed-seed"


async def test_admin_routes_reject_members(client, make):
    user, _ = await make.member("ada")
    response = await client.get("/admin/profiles/pending", headers=bearer(await make.token(user)))

    assert response.status_code == 403
    assert response.json() == {"error": "Admin access required", "code": "forbidden"}


# ── Profile flow ────────────────────────────────────────────
async def test_profile_signup_review_and_approval(client, make):
    user = await make.user("ada@example.com", status=AccountStatus.pending)
    member = bearer(await make.token(user))
    admin = bearer(await make.token(await make.admin()))

    created = await client.post(
        "/api/profiles", json={"name": "Ada Lovelace", "handle": "Ada"}, headers=member
    )
    assert created.status_code == 201
    assert created.json()["approval_status"] == "draft"
    assert created.json()["email"] == "ada@example.com"
    profile_id = created.json()["id"]

    # A pending account cannot browse the directory yet.
    directory = await client.get("/api/profiles", headers=member)
    assert directory.status_code == 403
    assert directory.json()["reason"] == "account_not_approved"

    submitted = await client.post("/api/profiles/me/submit", headers=member)
    assert submitted.json()["approval_status"] == "pending_review"

    blocked = await client.put("/api/profiles/me", json={"bio": "Hi"}, headers=member)
    assert blocked.status_code == 403
    assert blocked.json()["reason"] == "pending_review"

    queue = await client.get("/admin/profiles/pending", headers=admin)
    assert [p["id"] for p in queue.json()] == [profile_id]

    approved = await client.post(f"/admin/profiles/{profile_id}/approve", headers=admin)
    assert approved.status_code == 200
    assert approved.json()["approval_status"] == "approved"

    again = await client.post(f"/admin/profiles/{profile_id}/approve", headers=admin)
    assert again.status_code == 409
    assert again.json()["code"] == "state_conflict"
    assert again.json()["reason"] == "approved"

    directory = await client.get("/api/profiles", headers=member)
    assert directory.status_code == 200
    assert directory.json()["meta"]["total"] == 1

    edited = await client.put("/api/profiles/me", json={"handle": "countess"}, headers=member)
    assert edited.json()["requires_reapproval"] is True
    assert edited.json()["profile"]["approval_status"] == "pending_review"


async def test_public_profile_hides_private_fields(client, make):
    await make.member("ada")
    viewer, _ = await make.member("grace")

    response = await client.get("/api/profiles/ada", headers=bearer(await make.token(viewer)))

    assert response.status_code == 200
    body = response.json()
    assert body["handle"] == "ada"
    assert "email" not in body
    assert "approval_status" not in body


async def test_unapproved_profile_is_404(client, make):
    await make.member("ada", profile=ApprovalStatus.rejected)
    viewer, _ = await make.member("grace")

    response = await client.get("/api/profiles/ada", headers=bearer(await make.token(viewer)))

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


async def test_create_profile_validation_reason(client, make):
    user = await make.user()
    response = await client.post(
        "/api/profiles",
        json={"name": "Ada", "handle": "no spaces"},
        headers=bearer(await make.token(user)),
    )
    assert response.status_code == 400
    assert response.json()["reason"] == "invalid-handle"


# ── Projects and needs ──────────────────────────────────────
async def test_project_needs_flow(client, make, taxonomy):
    user, _ = await make.member("ada")
    owner = bearer(await make.token(user))
    viewer_user, _ = await make.member("grace", profile=ApprovalStatus.draft)
    viewer = bearer(await make.token(viewer_user))

    created = await client.post("/api/projects", json={"title": "Engine"}, headers=owner)
    assert created.status_code == 201
    project_id = created.json()["id"]
    assert created.json()["created_by"]["handle"] == "ada"

    capital = category(taxonomy, "capital-financial")
    replaced = await client.put(
        f"/api/projects/{project_id}/needs",
        json={
            "needs": [
                {
                    "category_id": str(capital.id),
                    "option_ids": [str(option(taxonomy, "capital-financial", "intro-vcs").id)],
                    "context_text": "Raising a small round",
                }
            ]
        },
        headers=owner,
    )
    assert replaced.status_code == 200
    assert replaced.json()[0]["options"][0]["slug"] == "intro-vcs"

    rejected = await client.put(
        f"/api/projects/{project_id}/needs",
        json={
            "needs": [
                {
                    "category_id": str(capital.id),
                    "option_ids": [str(option(taxonomy, "people-partners", "advisors-mentors").id)],
                }
            ]
        },
        headers=owner,
    )
    assert rejected.status_code == 400
    assert rejected.json()["reason"] == "option-category-mismatch"

    # A member whose own profile is still a draft can read approved projects.
    seen = await client.get(f"/api/projects/{project_id}/needs", headers=viewer)
    assert seen.status_code == 200
    assert [n["category_slug"] for n in seen.json()] == ["capital-financial"]

    not_owner = await client.put(
        f"/api/projects/{project_id}/needs", json={"needs": []}, headers=viewer
    )
    assert not_owner.status_code == 403


async def test_project_of_unapproved_creator_is_404(client, make):
    _, hidden = await make.member("ada", profile=ApprovalStatus.pending_review)
    project = await make.project(hidden)
    viewer, _ = await make.member("grace")

    response = await client.get(f"/api/projects/{project.id}", headers=bearer(await make.token(viewer)))

    assert response.status_code == 404


# ── Admin tasks ─────────────────────────────────────────────
async def test_reminder_sweep_endpoint(client, make, taxonomy, notifier):
    _, profile = await make.member("ada")
    project = await make.project(profile)
    await make.need(
        project,
        category(taxonomy, "capital-financial").id,
        [option(taxonomy, "capital-financial", "intro-angels").id],
        updated_at=datetime.datetime.now(datetime.timezone.utc) - STALE_AFTER - datetime.timedelta(days=1),
    )
    admin = bearer(await make.token(await make.admin()))

    first = await client.post("/admin/tasks/send-need-reminders", headers=admin)
    second = await client.post("/admin/tasks/send-need-reminders", headers=admin)

    assert first.status_code == 200
    assert first.json()["sent"] == 1
    assert first.json()["results"][0]["status"] == "sent"
    assert second.json()["total_eligible"] == 0
    assert notifier.sent == [project.id]


async def test_suspend_endpoint(client, make):
    user, _ = await make.member("ada")
    admin = bearer(await make.token(await make.admin()))

    response = await client.post(f"/admin/users/{user.id}/suspend", headers=admin)
    assert response.status_code == 200
    assert response.json()["status"] == "suspended"

    # A suspended member keeps their token but loses directory access.
    directory = await client.get("/api/profiles", headers=bearer(await make.token(user)))
    assert directory.status_code == 403
    assert directory.json()["reason"] == "account_suspended"


# ── Payment webhooks ────────────────────────────────────────
class FakeVerifier:
    """Accepts one signature and answers with a fixed event."""

    def __init__(self, event):
        self.event = event

    def verify(self, payload, signature):
        if signature != "t=1,v1=good":
            raise WebhookVerificationError("Invalid webhook signature")
        return self.event


def stripe_headers(signature="t=1,v1=good"):
    return {"Stripe-Signature": signature, "Content-Type": "application/json"}


async def test_checkout_webhook_grants_employer(client, make, session):
    user, _ = await make.member("ada")
    app.dependency_overrides[get_webhook_verifier] = lambda: FakeVerifier(
        BillingEvent("checkout.session.completed", "cus_123", "ada@example.com")
    )

    response = await client.post("/webhooks/stripe", content=b"{}", headers=stripe_headers())

    assert response.status_code == 200
    assert response.json() == {"received": True, "applied": True}
    await session.refresh(user)
    assert user.is_employer
    assert user.stripe_customer_id == "cus_123"


async def test_webhook_rejects_bad_or_missing_signature(client, make):
    app.dependency_overrides[get_webhook_verifier] = lambda: FakeVerifier(
        BillingEvent("checkout.session.completed", "cus_123", "ada@example.com")
    )

    bad = await client.post("/webhooks/stripe", content=b"{}", headers=stripe_headers("t=1,v1=bad"))
    missing = await client.post("/webhooks/stripe", content=b"{}")

    assert bad.status_code == 400
    assert bad.json()["reason"] == "invalid-signature"
    assert missing.status_code == 400
    assert missing.json()["reason"] == "missing-signature"


async def test_unhandled_webhook_event_is_acknowledged(client):
    app.dependency_overrides[get_webhook_verifier] = lambda: FakeVerifier(
        BillingEvent("customer.created", "cus_123")
    )

    response = await client.post("/webhooks/stripe", content=b"{}", headers=stripe_headers())

    assert response.status_code == 200
    assert response.json()["applied"] is False


# ── Bookmarks ───────────────────────────────────────────────
async def test_favorites_flow(client, make):
    user, _ = await make.member("grace")
    member = bearer(await make.token(user))
    _, ada = await make.member("ada", bio="Analyst")

    added = await client.post(f"/api/favorites/{ada.id}", headers=member)
    again = await client.post(f"/api/favorites/{ada.id}", headers=member)
    assert added.status_code == 201
    assert again.status_code == 200
    assert again.json()["id"] == added.json()["id"]

    listed = await client.get("/api/favorites", headers=member)
    assert [f["profile"]["handle"] for f in listed.json()] == ["ada"]
    assert listed.json()[0]["profile"]["bio"] == "Analyst"

    check = await client.get(f"/api/favorites/check/{ada.id}", headers=member)
    assert check.json() == {"favorited": True}

    removed = await client.delete(f"/api/favorites/{ada.id}", headers=member)
    assert removed.status_code == 204
    gone = await client.delete(f"/api/favorites/{ada.id}", headers=member)
    assert gone.status_code == 404


async def test_follows_flow(client, make):
    user, _ = await make.member("grace")
    member = bearer(await make.token(user))
    _, ada = await make.member("ada")
    project = await make.project(ada, "Difference Engine")

    followed = await client.post(f"/api/follows/{project.id}", headers=member)
    assert followed.status_code == 201

    listed = await client.get("/api/follows", headers=member)
    body = listed.json()
    assert body[0]["project"]["title"] == "Difference Engine"
    assert body[0]["project"]["created_by"]["handle"] == "ada"

    check = await client.get(f"/api/follows/check/{project.id}", headers=member)
    assert check.json() == {"following": True}

    assert (await client.delete(f"/api/follows/{project.id}", headers=member)).status_code == 204


async def test_bookmarks_require_an_approved_account(client, make):
    pending, _ = await make.member("grace", account=AccountStatus.pending, profile=ApprovalStatus.draft)

    response = await client.get("/api/favorites", headers=bearer(await make.token(pending)))

    assert response.status_code == 403
    assert response.json()["reason"] == "account_not_approved"
