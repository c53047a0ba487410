"""Tests for RequestManager: CRUD, visibility and the specialist workflow."""

import pytest

from intelboard.api.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from intelboard.core.db import Company
from intelboard.core.flora import LandscapeManager
from intelboard.core.requests import RequestManager, build_board, board_column


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def rm(db_manager):
    return RequestManager(db_manager)


@pytest.fixture
def company(db_manager):
    with db_manager.get_session() as session:
        session.add(Company(id="acme", name="Acme", domain="acme.com"))
    return "acme"


def _create(rm, creator_id="cust", **overrides):
    data = {"title": "Kafka pipeline", "description": "Stream orders into the warehouse"}
    data.update(overrides)
    return rm.create_request(data, creator_id)


# ── Tests: CRUD ───────────────────────────────────────────────────────────


class TestCreate:

    def test_defaults(self, rm, make_user):
        make_user("cust")

        req = _create(rm)

        assert req["status"] == "New"
        assert req["industry"] == "Other"
        assert req["ac_status"] == "Draft"
        assert req["creator_id"] == "cust"
        assert req["created_at"]

    def test_duplicate_id_conflicts(self, rm, make_user):
        make_user("cust")
        _create(rm, id="dup")

        with pytest.raises(ConflictError):
            _create(rm, id="dup")

    def test_title_and_description_required(self, rm):
        with pytest.raises(ValidationError):
            rm.create_request({"title": "", "description": "x"}, "cust")

    def test_unknown_creator_gets_placeholder_guest(self, rm, db_manager):
        from intelboard.core.team import UserManager

        _create(rm, creator_id="c7@example.com")

        placeholder = UserManager(db_manager).get_user("c7@example.com")
        assert placeholder["role"] == "Guest"
        assert placeholder["name"] == "Guest User"

    def test_invalid_enums_rejected(self, rm, make_user):
        make_user("cust")
        with pytest.raises(ValidationError):
            _create(rm, urgency="Whenever")
        with pytest.raises(ValidationError):
            _create(rm, category="Gardening")

    def test_feedback_request(self, rm, make_user):
        make_user("cust")

        req = rm.create_feedback("cust", "The board does not refresh after assigning", url="/board")

        assert req["id"].startswith("fb-")
        assert req["tags"] == ["Feedback"]
        assert req["title"] == "Feedback: The board does not refresh after assigni..."
        assert "URL: /board" in req["description"]

    def test_feedback_needs_message(self, rm):
        with pytest.raises(ValidationError):
            rm.create_feedback("cust", "   ")


class TestUpdate:

    def test_update_fields(self, rm, make_user):
        make_user("cust")
        req = _create(rm)

        updated = rm.update_request(req["id"], {"budget": "10k", "tags": ["Kafka"]})

        assert updated["budget"] == "10k"
        assert updated["tags"] == ["Kafka"]

    def test_id_and_created_at_are_immutable(self, rm, make_user):
        make_user("cust")
        req = _create(rm)

        with pytest.raises(ValidationError):
            rm.update_request(req["id"], {"id": "other"})
        with pytest.raises(ValidationError):
            rm.update_request(req["id"], {"created_at": "2020-01-01"})

    def test_missing_request(self, rm):
        with pytest.raises(NotFoundError):
            rm.update_request("ghost", {"budget": "1"})


# ── Tests: Visibility ─────────────────────────────────────────────────────


class TestListRequests:

    def test_visibility_rules(self, rm, make_user, company):
        make_user("alice", company_id=company)
        make_user("bob", company_id=company)
        make_user("solo")
        make_user("spec", role="Specialist")
        make_user("admin", role="Admin")

        team_req = _create(rm, creator_id="alice")
        solo_req = _create(rm, creator_id="solo")
        rm.assign_specialist(solo_req["id"], "spec")

        def ids(user):
            return {r["id"] for r in rm.list_requests(user)}

        assert ids({"user_id": "bob", "role": "User", "company_id": company}) == {team_req["id"]}
        assert ids({"user_id": "solo", "role": "Guest"}) == {solo_req["id"]}
        assert ids({"user_id": "spec", "role": "Specialist"}) == {solo_req["id"]}
        assert ids({"user_id": "admin", "role": "Admin"}) == {team_req["id"], solo_req["id"]}
        assert rm.list_requests(None) == []

    def test_admin_filters(self, rm, make_user):
        make_user("c1")
        make_user("c2")
        _create(rm, creator_id="c1", category="IT")
        crm = _create(rm, creator_id="c2", category="CRM")
        admin = {"user_id": "admin", "role": "Admin"}

        assert [r["id"] for r in rm.list_requests(admin, categories=["CRM"])] == [crm["id"]]
        assert [r["id"] for r in rm.list_requests(admin, creator_ids=["c2"])] == [crm["id"]]


# ── Tests: Workflow ───────────────────────────────────────────────────────


class TestWorkflow:

    def test_submitted_requires_specialist(self, rm, make_user):
        make_user("cust")
        req = _create(rm)

        with pytest.raises(ValidationError):
            rm.move_status(req["id"], "Submitted for Review")

        assert rm.move_status(req["id"], "Done")["status"] == "Done"

    def test_unknown_status(self, rm, make_user):
        make_user("cust")
        req = _create(rm)
        with pytest.raises(ValidationError):
            rm.move_status(req["id"], "Archived")

    def test_assign_moves_to_submitted(self, rm, make_user):
        make_user("cust")
        req = _create(rm)

        assigned = rm.assign_specialist(req["id"], "spec")

        assert assigned["assigned_specialist_id"] == "spec"
        assert assigned["status"] == "Submitted for Review"

    def test_specialist_accepts(self, rm, make_user):
        make_user("cust")
        req = _create(rm)
        rm.assign_specialist(req["id"], "spec")

        accepted = rm.specialist_action(req["id"], "spec", "Accept")

        assert accepted["status"] == "Scope Approved"
        assert accepted["action_needed"] is True
        assert accepted["specialist_note"] == "Specialist has accepted the gig layout."

        assert rm.clear_action_needed(req["id"])["action_needed"] is False

    def test_specialist_asks_for_refinement(self, rm, make_user):
        make_user("cust")
        req = _create(rm)
        rm.assign_specialist(req["id"], "spec")

        with pytest.raises(ValidationError):
            rm.specialist_action(req["id"], "spec", "Ask", note="")

        asked = rm.specialist_action(req["id"], "spec", "Ask", note="  Which warehouse?  ")
        assert asked["status"] == "Scope Refinement Required"
        assert asked["specialist_note"] == "Which warehouse?"

    def test_only_assigned_specialist_may_respond(self, rm, make_user):
        make_user("cust")
        req = _create(rm)
        rm.assign_specialist(req["id"], "spec")

        with pytest.raises(AuthorizationError):
            rm.specialist_action(req["id"], "intruder", "Accept")


# ── Tests: Acceptance criteria ────────────────────────────────────────────


class TestAcceptanceCriteria:

    def test_add_edit_remove(self, rm, make_user):
        make_user("cust")
        req = _create(rm)

        rm.add_criterion(req["id"], "Latency under 5s", "Customer")
        rm.add_criterion(req["id"], "Replay from offsets", "Customer")
        rm.edit_criterion(req["id"], 0, "Latency under 2s", "Customer")
        updated = rm.remove_criterion(req["id"], 1, "Customer")

        assert updated["acceptance_criteria"] == ["Latency under 2s"]
        assert updated["ac_status"] == "Draft"

    def test_bad_index(self, rm, make_user):
        make_user("cust")
        req = _create(rm)
        with pytest.raises(ValidationError):
            rm.edit_criterion(req["id"], 3, "x", "Customer")

    def test_propose_appends_suggestions(self, rm, make_user):
        make_user("cust")
        req = _create(rm)

        proposed = rm.propose_criteria(req["id"], "Specialist")

        assert proposed["ac_status"] == "Proposed"
        assert proposed["acceptance_criteria"][0] == "Define clear success metrics for Kafka pipeline"
        assert len(proposed["acceptance_criteria"]) == 4

    def test_customer_locked_out_once_agreed(self, rm, make_user):
        make_user("cust")
        req = _create(rm)
        rm.add_criterion(req["id"], "Latency under 5s", "Customer")
        assert rm.approve_criteria(req["id"])["ac_status"] == "Agreed"

        with pytest.raises(AuthorizationError):
            rm.add_criterion(req["id"], "One more", "Customer")

        # Specialists may still refine; the criteria go back to Draft
        assert rm.add_criterion(req["id"], "One more", "Specialist")["ac_status"] == "Draft"


# ── Tests: Comments, attachments and IT Flora link ───────────────────────


class TestCollaboration:

    def test_comment(self, rm, make_user):
        make_user("cust")
        req = _create(rm)

        comment = rm.add_comment(req["id"], {"user_id": "cust", "name": "Cust", "role": "Customer"}, "Hello")

        assert comment["authorId"] == "cust"
        assert rm.get_request(req["id"])["comments"] == [comment]

    def test_empty_comment(self, rm, make_user):
        make_user("cust")
        req = _create(rm)
        with pytest.raises(ValidationError):
            rm.add_comment(req["id"], {"user_id": "cust"}, " ")

    def test_comment_timestamp_is_utc(self, rm, make_user):
        make_user("cust")
        req = _create(rm)

        comment = rm.add_comment(req["id"], {"user_id": "cust"}, "Looks good")

        assert comment["createdAt"].endswith("Z")
        assert "+00:00" not in comment["createdAt"]
        assert rm.get_request(req["id"])["created_at"].count("+") == 0

    def test_attachment(self, rm, make_user):
        make_user("cust")
        req = _create(rm)
        assert rm.add_attachment(req["id"], "spec.pdf")["attachments"] == ["spec.pdf"]

    def test_link_project_and_nda_share_the_project(self, rm, make_user, db_manager):
        make_user("cust")
        lm = LandscapeManager(db_manager)
        project = lm.mutate("user:cust", lambda store: store.add_project({"name": "Data platform"}, "cust"))
        req = _create(rm)
        rm.assign_specialist(req["id"], "spec")

        linked = rm.link_project(req["id"], project.id, lm, {"user_id": "cust", "role": "Customer"})
        assert linked["linked_project_id"] == project.id
        assert lm.load("user:cust").get_project(project.id).shared_with == ["admin1"]

        signed = rm.sign_nda(req["id"], "spec", lm)
        assert signed["specialist_nda_signed"] is True
        assert lm.load("user:cust").get_project(project.id).shared_with == ["admin1", "spec"]

    def test_link_project_needs_access_to_the_project(self, rm, make_user, db_manager, company):
        make_user("ann", company_id=company)
        make_user("bob", company_id=company)
        lm = LandscapeManager(db_manager)
        private = lm.mutate("company:acme", lambda store: store.add_project({"name": "Bob only"}, "bob"))
        req = _create(rm, creator_id="ann")

        with pytest.raises(AuthorizationError):
            rm.link_project(req["id"], private.id, lm, {"user_id": "ann", "role": "Customer"})

        assert lm.load("company:acme").get_project(private.id).shared_with == []
        assert rm.get_request(req["id"])["linked_project_id"] is None

    def test_nda_only_for_assigned_specialist(self, rm, make_user, db_manager):
        make_user("cust")
        req = _create(rm)
        rm.assign_specialist(req["id"], "spec")

        with pytest.raises(AuthorizationError):
            rm.sign_nda(req["id"], "other", LandscapeManager(db_manager))


# ── Tests: Board ──────────────────────────────────────────────────────────


class TestBoard:

    def test_submitted_is_new_for_specialists(self):
        req = {"status": "Submitted for Review", "tags": []}

        assert board_column(req, "Specialist") == "New"
        assert board_column(req, "Customer") == "Submitted for Review"

    def test_feedback_shows_as_submitted_for_customers(self):
        req = {"status": "New", "tags": ["Feedback"]}

        assert board_column(req, "Customer") == "Submitted for Review"
        assert board_column(req, "Admin") == "New"

    def test_build_board_has_every_column(self):
        board = build_board([{"id": "r1", "status": "Done"}], "Admin")

        assert list(board)[0] == "New"
        assert [r["id"] for r in board["Done"]] == ["r1"]
        assert board["Active Efforts"] == []
