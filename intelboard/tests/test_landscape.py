"""Tests for per-scope landscape persistence."""

import pytest

from intelboard.core.flora import FloraNotFound, LandscapeManager


class TestScopeFor:

    def test_company_members_share_a_scope(self):
        assert LandscapeManager.scope_for({"user_id": "u1", "company_id": "c1"}) == "company:c1"

    def test_individuals_get_their_own(self):
        assert LandscapeManager.scope_for({"user_id": "u1", "company_id": None}) == "user:u1"

    def test_anonymous(self):
        assert LandscapeManager.scope_for(None) == "user:anonymous"


class TestLandscapeManager:

    def test_empty_scope(self, db_manager):
        lm = LandscapeManager(db_manager)

        document = lm.get_document("user:u1")

        assert document == {"systems": [], "integrations": [], "projects": [], "version": 0}

    def test_mutate_persists_and_bumps_version(self, db_manager):
        lm = LandscapeManager(db_manager)

        system = lm.mutate("user:u1", lambda store: store.add_system({"name": "ERP"}, "u1"))
        assert lm.get_document("user:u1")["version"] == 1

        lm.mutate("user:u1", lambda store: store.update_system(system.id, {"name": "SAP"}))

        document = lm.get_document("user:u1")
        assert document["version"] == 2
        assert [s["name"] for s in document["systems"]] == ["SAP"]

    def test_failed_mutation_writes_nothing(self, db_manager):
        lm = LandscapeManager(db_manager)
        lm.mutate("user:u1", lambda store: store.add_system({"name": "ERP"}, "u1"))

        def broken(store):
            store.add_system({"name": "Half done"}, "u1")
            store.delete_system("missing")

        with pytest.raises(FloraNotFound):
            lm.mutate("user:u1", broken)

        document = lm.get_document("user:u1")
        assert document["version"] == 1
        assert [s["name"] for s in document["systems"]] == ["ERP"]

    def test_scopes_are_isolated(self, db_manager):
        lm = LandscapeManager(db_manager)
        lm.mutate("company:c1", lambda store: store.add_system({"name": "CRM"}, "u1"))

        assert lm.load("company:c2").systems == []
        assert [s.name for s in lm.load("company:c1").systems] == ["CRM"]
