"""Tests for the in-memory IT Flora store: CRUD, cascades and queries."""

import pytest

from intelboard.core.flora import (
    FloraIntegrityError,
    FloraNotFound,
    FloraStore,
    System,
    generate_bank_flora,
)


# ── Fixtures ──────────────────────────────────────────────────────────────


def _store_with_chain():
    """CRM.customers -> DWH, DWH.dim_customer -> Report."""
    store = FloraStore()
    crm = store.add_system(
        {"id": "crm", "name": "CRM", "type": "Source System", "assets": [{"id": "customers", "name": "customers"}]},
        "u1",
    )
    dwh = store.add_system(
        {"id": "dwh", "name": "DWH", "type": "Data Warehouse", "assets": [{"id": "dim", "name": "dim_customer"}]},
        "u1",
    )
    report = store.add_system({"id": "report", "name": "Report", "type": "PBI Report"}, "u1")
    store.add_integration({"id": "i1", "sourceAssetId": "customers", "targetSystemId": "dwh"})
    store.add_integration({"id": "i2", "sourceAssetId": "dim", "targetSystemId": "report"})
    return store, crm, dwh, report


# ── Tests: Systems ────────────────────────────────────────────────────────


class TestSystems:

    def test_add_system_sets_owner_and_clears_sharing(self):
        store = FloraStore()
        system = store.add_system({"name": "ERP", "ownerId": "someone", "sharedWith": ["x"]}, "u1")

        assert system.owner_id == "u1"
        assert system.shared_with == []
        assert system.type == "Other"

    def test_unknown_type_is_normalized(self):
        system = FloraStore().add_system({"name": "ERP", "type": "Mainframe"}, "u1")
        assert system.type == "Other"

    def test_add_system_to_project(self):
        store = FloraStore()
        project = store.add_project({"name": "Migration"}, "u1")

        system = store.add_system({"name": "ERP"}, "u1", project_id=project.id)

        assert project.system_ids == [system.id]

    def test_add_system_to_missing_project_adds_nothing(self):
        store = FloraStore()

        with pytest.raises(FloraNotFound):
            store.add_system({"name": "ERP"}, "u1", project_id="missing")
        assert store.systems == []

    def test_duplicate_asset_id_rejected(self):
        store, _, _, _ = _store_with_chain()

        with pytest.raises(FloraIntegrityError):
            store.add_system({"name": "Copy", "assets": [{"id": "customers", "name": "dup"}]}, "u1")

    def test_duplicate_asset_id_within_one_payload_rejected(self):
        store = FloraStore()
        assets = [{"id": "acct", "name": "accounts"}, {"id": "acct", "name": "accounts_v2"}]

        with pytest.raises(FloraIntegrityError):
            store.add_system({"name": "CRM", "assets": assets}, "u1")
        assert store.systems == []

    def test_import_rejects_asset_ids_shared_across_systems(self):
        store = FloraStore()
        systems = [
            System.from_dict({"id": "s1", "name": "S1", "assets": [{"id": "x", "name": "x"}]}),
            System.from_dict({"id": "s2", "name": "S2", "assets": [{"id": "x", "name": "x"}]}),
        ]

        with pytest.raises(FloraIntegrityError):
            store.import_systems(systems)
        assert store.systems == []

    def test_update_system(self):
        store, crm, _, _ = _store_with_chain()

        store.update_system("crm", {"name": "Salesforce", "description": "CRM of record"})

        assert crm.name == "Salesforce"
        assert crm.description == "CRM of record"

    def test_update_system_rejects_id_and_unknown_fields(self):
        store, _, _, _ = _store_with_chain()

        with pytest.raises(FloraIntegrityError):
            store.update_system("crm", {"id": "other"})
        with pytest.raises(FloraIntegrityError):
            store.update_system("crm", {"colour": "red"})

    def test_update_position(self):
        store, crm, _, _ = _store_with_chain()
        store.update_system_position("crm", 120, 45.5)
        assert crm.position == {"x": 120.0, "y": 45.5}

    def test_delete_system_cascades(self):
        store, _, _, _ = _store_with_chain()
        project = store.add_project({"name": "P", "systemIds": ["crm", "dwh"]}, "u1")

        removed = store.delete_system("dwh")

        # i1 targets dwh, i2 is sourced from dwh's asset
        assert removed == {"integrations_removed": 2, "projects_updated": 1}
        assert store.integrations == []
        assert project.system_ids == ["crm"]
        assert store.find_system("dwh") is None

    def test_delete_missing_system(self):
        with pytest.raises(FloraNotFound):
            FloraStore().delete_system("nope")


# ── Tests: Assets ─────────────────────────────────────────────────────────


class TestAssets:

    def test_add_asset_belongs_to_system(self):
        store, _, _, _ = _store_with_chain()

        asset = store.add_asset("report", {"name": "sales_dataset", "type": "Dataset"})

        assert asset.system_id == "report"
        assert store.find_asset(asset.id) is asset

    def test_update_asset_with_columns(self):
        store, _, _, _ = _store_with_chain()

        asset = store.update_asset("crm", "customers", {"columns": [{"name": "id", "type": "INT"}]})

        assert [c.name for c in asset.columns] == ["id"]

    def test_update_asset_cannot_move_systems(self):
        store, _, _, _ = _store_with_chain()
        with pytest.raises(FloraIntegrityError):
            store.update_asset("crm", "customers", {"systemId": "dwh"})

    def test_asset_must_be_in_named_system(self):
        store, _, _, _ = _store_with_chain()
        with pytest.raises(FloraNotFound):
            store.update_asset("dwh", "customers", {"name": "x"})

    def test_bulk_update(self):
        store, _, _, _ = _store_with_chain()
        store.add_asset("crm", {"id": "orders", "name": "orders"})

        updated = store.bulk_update_assets("crm", ["customers", "orders"], {"status": "Planned"})

        assert [a.status for a in updated] == ["Planned", "Planned"]

    def test_verify_asset(self):
        store, _, _, _ = _store_with_chain()
        assert store.verify_asset("crm", "customers").verification_status == "Verified"

    def test_delete_asset_drops_its_integrations(self):
        store, _, _, _ = _store_with_chain()

        removed = store.delete_asset("crm", "customers")

        assert removed == 1
        assert [i.id for i in store.integrations] == ["i2"]


# ── Tests: Integrations ───────────────────────────────────────────────────


class TestIntegrations:

    def test_references_must_exist(self):
        store, _, _, _ = _store_with_chain()

        with pytest.raises(FloraIntegrityError):
            store.add_integration({"sourceAssetId": "ghost", "targetSystemId": "dwh"})
        with pytest.raises(FloraIntegrityError):
            store.add_integration({"sourceAssetId": "customers", "targetSystemId": "ghost"})

    def test_update_revalidates_references(self):
        store, _, _, _ = _store_with_chain()

        with pytest.raises(FloraIntegrityError):
            store.update_integration("i1", {"targetSystemId": "ghost"})

        updated = store.update_integration("i1", {"targetSystemId": "report", "technology": "Kafka"})
        assert updated.target_system_id == "report"
        assert updated.technology == "Kafka"

    def test_remove(self):
        store, _, _, _ = _store_with_chain()
        store.remove_integration("i1")
        assert [i.id for i in store.integrations] == ["i2"]

        with pytest.raises(FloraNotFound):
            store.remove_integration("i1")


# ── Tests: Projects ───────────────────────────────────────────────────────


class TestProjects:

    def test_name_required(self):
        with pytest.raises(FloraIntegrityError):
            FloraStore().add_project({"name": ""}, "u1")

    def test_system_ids_must_exist(self):
        with pytest.raises(FloraIntegrityError):
            FloraStore().add_project({"name": "P", "systemIds": ["ghost"]}, "u1")

    def test_toggle_system(self):
        store, _, _, _ = _store_with_chain()
        project = store.add_project({"name": "P"}, "u1")

        assert store.toggle_system_in_project(project.id, "crm") is True
        assert project.system_ids == ["crm"]
        assert store.toggle_system_in_project(project.id, "crm") is False
        assert project.system_ids == []

    def test_share_is_idempotent(self):
        store = FloraStore()
        project = store.add_project({"name": "P"}, "u1")

        store.share_project(project.id, "u2")
        store.share_project(project.id, "u2")

        assert project.shared_with == ["u2"]

    def test_visible_projects(self):
        store = FloraStore()
        own = store.add_project({"name": "Own"}, "u1")
        shared = store.add_project({"name": "Shared"}, "u2")
        store.add_project({"name": "Private"}, "u3")
        store.share_project(shared.id, "u1")

        visible = store.visible_projects({"user_id": "u1", "role": "Customer"})
        assert {p.id for p in visible} == {own.id, shared.id}

        admin_view = store.visible_projects({"user_id": "a", "role": "Admin"})
        assert len(admin_view) == 3

    def test_project_view(self):
        store, _, _, _ = _store_with_chain()
        project = store.add_project({"name": "P", "systemIds": ["crm", "dwh"]}, "u1")

        view = store.project_view(project.id)

        assert {s["id"] for s in view["systems"]} == {"crm", "dwh"}
        assert [i["id"] for i in view["integrations"]] == ["i1"]


# ── Tests: Documents ──────────────────────────────────────────────────────


class TestDocuments:

    def test_add_and_remove(self):
        store, crm, _, _ = _store_with_chain()

        doc = store.add_document("crm", {"name": "contract.docx", "type": "docx", "uploadedBy": "u1"})
        assert crm.documents[0].id == doc.id
        assert doc.uploaded_at

        store.remove_document("crm", doc.id)
        assert crm.documents == []

        with pytest.raises(FloraNotFound):
            store.remove_document("crm", doc.id)


# ── Tests: Queries ────────────────────────────────────────────────────────


class TestQueries:

    def test_search_by_name_or_type(self):
        store, _, _, _ = _store_with_chain()

        assert [s.id for s in store.search_systems("crm")] == ["crm"]
        assert [s.id for s in store.search_systems("warehouse")] == ["dwh"]
        assert len(store.search_systems("")) == 3

    def test_catalogue_includes_system_name(self):
        store, _, _, _ = _store_with_chain()

        entries = store.catalogue("dim")

        assert len(entries) == 1
        assert entries[0]["id"] == "dim"
        assert entries[0]["systemName"] == "DWH"

    def test_catalogue_matches_system_name(self):
        store, _, _, _ = _store_with_chain()
        assert [e["id"] for e in store.catalogue("crm")] == ["customers"]

    def test_lineage_downstream_crosses_systems(self):
        store, _, _, _ = _store_with_chain()

        lineage = store.lineage("customers")

        assert lineage["systemId"] == "crm"
        assert lineage["upstream"] == []
        assert [(h["integrationId"], h["depth"]) for h in lineage["downstream"]] == [("i1", 1), ("i2", 2)]

    def test_lineage_upstream(self):
        store, _, _, _ = _store_with_chain()
        store.add_asset("report", {"id": "ds", "name": "dataset"})

        lineage = store.lineage("ds")

        assert [(h["integrationId"], h["sourceSystemId"], h["depth"]) for h in lineage["upstream"]] == [
            ("i2", "dwh", 1),
            ("i1", "crm", 2),
        ]

    def test_lineage_terminates_on_cycles(self):
        store, _, _, _ = _store_with_chain()
        store.add_asset("report", {"id": "ds", "name": "dataset"})
        store.add_integration({"id": "back", "sourceAssetId": "ds", "targetSystemId": "crm"})

        lineage = store.lineage("customers")

        assert {h["integrationId"] for h in lineage["downstream"]} == {"i1", "i2", "back"}

    def test_lineage_loop_back_to_origin_continues_from_its_other_assets(self):
        store = FloraStore()
        store.add_system({"id": "a", "name": "A", "assets": [{"id": "a1", "name": "a1"}, {"id": "a2", "name": "a2"}]}, "u1")
        store.add_system({"id": "b", "name": "B", "assets": [{"id": "b1", "name": "b1"}]}, "u1")
        store.add_system({"id": "c", "name": "C"}, "u1")
        store.add_integration({"id": "i1", "sourceAssetId": "a1", "targetSystemId": "b"})
        store.add_integration({"id": "i2", "sourceAssetId": "b1", "targetSystemId": "a"})
        store.add_integration({"id": "i3", "sourceAssetId": "a2", "targetSystemId": "c"})

        downstream = store.lineage("a1")["downstream"]

        assert [(h["integrationId"], h["depth"]) for h in downstream] == [("i1", 1), ("i2", 2), ("i3", 3)]

    def test_lineage_unknown_asset(self):
        with pytest.raises(FloraNotFound):
            FloraStore().lineage("ghost")


# ── Tests: Serialization and samples ─────────────────────────────────────


class TestDocumentShape:

    def test_round_trip_keeps_references(self):
        store, _, _, _ = _store_with_chain()

        restored = FloraStore.from_dict(store.to_dict())

        assert restored.to_dict() == store.to_dict()
        assert restored.find_asset("dim").system_id == "dwh"

    def test_bank_sample(self):
        store = FloraStore()

        systems = generate_bank_flora(store, "u1")

        assert len(systems) == 6
        assert len(store.integrations) == 4
        assert all(s.owner_id == "u1" for s in systems)

        core = store.find_system_by_name("Core Banking (T24)")
        customers = next(a for a in core.assets if a.name == "Customers")
        assert len(store.lineage(customers.id)["downstream"]) == 4
