"""End-to-end tests for the FastAPI routes over an in-memory database."""

import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from intelboard.api.app import create_app
from intelboard.core.ai import parse_architecture
from intelboard.core.seed import DEMO_DOMAIN, DEMO_PASSWORD, ensure_default_admin, seed_demo_data
from intelboard.setting import IntelBoardSettings


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def llm():
    llm = MagicMock()
    response = MagicMock()
    response.message.content = json.dumps({"jobTitle": "Data Engineer", "skills": [{"name": "Kafka"}]})
    llm.chat.return_value = response
    return llm


@pytest.fixture
def app(db_manager, llm):
    ensure_default_admin(db_manager)
    seed_demo_data(db_manager)
    return create_app(db_manager, settings=IntelBoardSettings(), llm=llm)


def _login(app, email, password):
    client = TestClient(app)
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return client


@pytest.fixture
def admin(app):
    return _login(app, "admin@intelboard.com", "admin123")


@pytest.fixture
def erik(app):
    return _login(app, f"erik@{DEMO_DOMAIN}", DEMO_PASSWORD)


# ── Tests: Health and auth ────────────────────────────────────────────────


class TestAuthRoutes:

    def test_health(self, app):
        resp = TestClient(app).get("/api/health")
        assert resp.json() == {"status": "ok", "service": "intelboard", "database": "ok"}

    def test_me_without_session_is_anonymous(self, app):
        resp = TestClient(app).get("/api/auth/me")

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "authenticated": False, "user": None}

    def test_requires_session(self, app):
        resp = TestClient(app).get("/api/requests")
        assert resp.status_code == 401

    def test_register_and_login_guest(self, app):
        client = TestClient(app)

        registered = client.post(
            "/api/auth/register",
            json={"name": "Solo", "email": "solo@gmail.com", "password": "secret123"},
        ).json()
        assert registered["success"] is True
        assert registered["approval_status"] == "APPROVED"

        client.post("/api/auth/login", json={"email": "solo@gmail.com", "password": "secret123"})
        me = client.get("/api/auth/me").json()
        assert me["authenticated"] is True
        assert me["user"]["role"] == "Guest"

        client.post("/api/auth/logout")
        assert client.get("/api/auth/me").json()["authenticated"] is False

    def test_pending_corporate_account_cannot_login(self, app):
        client = TestClient(app)
        client.post(
            "/api/auth/register",
            json={"name": "New", "email": f"new@{DEMO_DOMAIN}", "password": "secret123"},
        )

        resp = client.post("/api/auth/login", json={"email": f"new@{DEMO_DOMAIN}", "password": "secret123"})

        assert resp.status_code == 401
        assert resp.json() == {"success": False, "error": "Account is pending"}

    def test_wrong_password(self, app):
        resp = TestClient(app).post("/api/auth/login", json={"email": "admin@intelboard.com", "password": "nope"})
        assert resp.status_code == 401

    def test_update_my_profile(self, erik):
        resp = erik.patch("/api/users/me", json={"job_title": "Buyer", "availability": "Busy"})

        assert resp.json()["user"]["job_title"] == "Buyer"
        assert erik.patch("/api/users/me", json={"availability": "Sleeping"}).status_code == 400


# ── Tests: Requests ───────────────────────────────────────────────────────


class TestRequestRoutes:

    def test_customer_creates_and_sees_company_requests(self, erik):
        created = erik.post(
            "/api/requests",
            json={"title": "CRM cleanup", "description": "Deduplicate accounts", "category": "CRM"},
        ).json()["request"]

        listed = erik.get("/api/requests").json()

        # Two seeded requests plus the new one
        assert listed["count"] == 3
        assert created["id"] in {r["id"] for r in listed["requests"]}

    def test_matching_and_assignment(self, admin, erik):
        requests = admin.get("/api/requests").json()["requests"]
        cloud = next(r for r in requests if r["title"] == "Migrate plant data to the cloud")

        matches = admin.get(f"/api/requests/{cloud['id']}/matches").json()["matches"]
        assert [(m["id"], m["score"]) for m in matches] == [("spec-cloud", 80), ("spec-crm", 40)]

        # Customers lack the assignment permission
        denied = erik.post(f"/api/requests/{cloud['id']}/assign", json={"specialist_id": "spec-cloud"})
        assert denied.status_code == 403

        assigned = admin.post(f"/api/requests/{cloud['id']}/assign", json={"specialist_id": "spec-cloud"})
        assert assigned.json()["request"]["status"] == "Submitted for Review"

    def test_feedback_and_board(self, erik):
        erik.post("/api/requests/feedback", json={"message": "Love it", "url": "/board"})

        columns = erik.get("/api/requests/board").json()["columns"]

        assert [r["title"] for r in columns["Submitted for Review"]] == ["Feedback: Love it"]
        assert len(columns["New"]) == 2

    def test_duplicate_request_id_is_409(self, erik):
        payload = {"id": "dup", "title": "CRM cleanup", "description": "Deduplicate accounts"}
        assert erik.post("/api/requests", json=payload).status_code == 200

        resp = erik.post("/api/requests", json=payload)

        assert resp.status_code == 409
        assert resp.json() == {"success": False, "error": "Request dup already exists"}

    def test_cannot_link_a_colleagues_private_project(self, app, erik):
        colleague = _login(app, f"admin@{DEMO_DOMAIN}", DEMO_PASSWORD)
        private = colleague.post("/api/flora/projects", json={"name": "Board only"}).json()["project"]
        req = erik.get("/api/requests").json()["requests"][0]

        resp = erik.post(f"/api/requests/{req['id']}/link-project", json={"project_id": private["id"]})

        assert resp.status_code == 403
        shared = colleague.get(f"/api/flora/projects/{private['id']}").json()["project"]["sharedWith"]
        assert shared == []

    def test_invalid_status_is_a_json_error(self, erik):
        req = erik.get("/api/requests").json()["requests"][0]

        resp = erik.post(f"/api/requests/{req['id']}/status", json={"status": "Archived"})

        assert resp.status_code == 400
        assert resp.json()["success"] is False


# ── Tests: IT Flora ───────────────────────────────────────────────────────


class TestFloraRoutes:

    def test_landscape_flow(self, erik):
        crm = erik.post(
            "/api/flora/systems",
            json={"system": {"name": "CRM", "type": "Source System", "assets": [{"id": "acct", "name": "accounts"}]}},
        ).json()["system"]
        dwh = erik.post("/api/flora/systems", json={"system": {"name": "DWH", "type": "Data Warehouse"}}).json()["system"]
        erik.post("/api/flora/integrations", json={"sourceAssetId": "acct", "targetSystemId": dwh["id"]})

        lineage = erik.get("/api/flora/assets/acct/lineage").json()
        assert [h["targetSystemId"] for h in lineage["downstream"]] == [dwh["id"]]

        catalogue = erik.get("/api/flora/catalogue", params={"q": "acc"}).json()
        assert catalogue["count"] == 1
        assert catalogue["assets"][0]["systemName"] == "CRM"

        removed = erik.delete(f"/api/flora/systems/{crm['id']}").json()
        assert removed["integrations_removed"] == 1

        document = erik.get("/api/flora").json()
        assert document["scope"].startswith("company:")
        assert document["document"]["version"] == 4

    def test_company_members_share_a_landscape(self, app, erik):
        erik.post("/api/flora/systems", json={"system": {"name": "ERP"}})
        colleague = _login(app, f"admin@{DEMO_DOMAIN}", DEMO_PASSWORD)

        systems = colleague.get("/api/flora/search", params={"q": "erp"}).json()["systems"]

        assert [s["name"] for s in systems] == ["ERP"]

    def test_project_access(self, app, erik):
        project = erik.post("/api/flora/projects", json={"name": "Cloud move"}).json()["project"]
        colleague = _login(app, f"admin@{DEMO_DOMAIN}", DEMO_PASSWORD)

        # Admins may view but not delete someone else's project
        assert colleague.get(f"/api/flora/projects/{project['id']}").status_code == 200
        resp = colleague.delete(f"/api/flora/projects/{project['id']}")
        assert resp.status_code == 403
        assert resp.json()["error"] == "Access denied: requires owner access"

        assert erik.delete(f"/api/flora/projects/{project['id']}").json() == {"success": True}

    def test_missing_system_is_404(self, erik):
        resp = erik.delete("/api/flora/systems/ghost")
        assert resp.status_code == 404
        assert resp.json()["success"] is False

    def test_contract_import(self, erik):
        text = "Source system: Core Banking\nTarget system: DWH\nIntegration type: Batch\n## Core Banking\nTable: CUSTOMERS\n"

        preview = erik.post("/api/flora/import/preview", json={"text": text}).json()
        assert preview["conflicts"] == []
        assert preview["result"]["totalAssets"] == 1

        applied = erik.post("/api/flora/import", json={"parsed": preview["result"]}).json()
        assert applied["systemsImported"] == 2
        assert applied["integrationsCreated"] == 1

        again = erik.post("/api/flora/import/preview", json={"text": text}).json()
        assert {c["newSystem"] for c in again["conflicts"]} == {"Core Banking", "DWH"}

    def test_import_needs_input(self, erik):
        assert erik.post("/api/flora/import", json={}).status_code == 400

    def test_non_docx_contract_upload(self, erik):
        resp = erik.post(
            "/api/flora/import/preview-file",
            files={"file": ("contract.pdf", b"%PDF", "application/pdf")},
        )
        assert resp.status_code == 400


# ── Tests: AI ─────────────────────────────────────────────────────────────


class TestAiRoutes:

    def test_profile_from_text(self, erik, llm):
        text = "Seasoned data engineer with a decade of Kafka and Python experience in retail."

        resp = erik.post("/api/ai/profile/text", json={"text": text}).json()

        assert resp == {"success": True, "data": {"jobTitle": "Data Engineer", "skills": [{"name": "Kafka"}]}}
        assert llm.chat.call_args.kwargs["gateway_purpose"] == "profile"

    def test_provider_failure_is_502(self, erik, llm):
        llm.chat.side_effect = RuntimeError("provider down")

        resp = erik.post("/api/ai/architect/follow-up", json={"context": "Shop", "history": []})

        assert resp.status_code == 502

    def test_apply_generated_architecture(self, erik):
        architecture = {
            "systems": [
                {"name": "Orders", "type": "Source System", "assets": [{"name": "orders"}]},
                {"name": "Lake", "type": "Data Lake", "assets": []},
            ],
            "integrations": [{"sourceSystemName": "Orders", "targetSystemName": "Lake"}],
        }
        payload = parse_architecture(json.dumps(architecture)).to_dict()

        resp = erik.post("/api/ai/architect/apply", json={"architecture": payload}).json()

        assert resp == {"success": True, "systemsImported": 2, "integrationsCreated": 1}
        assert len(erik.get("/api/flora/search").json()["systems"]) == 2
