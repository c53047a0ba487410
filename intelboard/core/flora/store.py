"""In-memory IT Flora landscape store.

Holds the systems, integrations and projects of one landscape and keeps
the references between them consistent:

- an integration always points at an existing asset and an existing system
- deleting a system drops its integrations (as source or target) and
  removes it from every project
- deleting an asset drops the integrations sourced from it
"""

import logging
from collections import deque
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..auth.rbac import can_view_project
from ..constants import VERIFIED
from .models import (
    Asset,
    Column,
    Integration,
    Project,
    System,
    SystemDocument,
    new_id,
    normalize_system_type,
    utc_now_iso,
)
from ...api.core.exceptions import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


class FloraNotFound(NotFoundError, LookupError):
    """A referenced system, asset, integration or project does not exist."""


class FloraIntegrityError(ConflictError, ValueError):
    """A mutation would break a reference between landscape records."""


# camelCase update key -> (attribute, converter)
_SYSTEM_FIELDS: Dict[str, tuple] = {
    "name": ("name", str),
    "type": ("type", normalize_system_type),
    "description": ("description", None),
    "position": ("position", lambda p: {"x": float(p.get("x", 0)), "y": float(p.get("y", 0))}),
    "ownerId": ("owner_id", str),
    "sharedWith": ("shared_with", list),
}

_ASSET_FIELDS: Dict[str, tuple] = {
    "name": ("name", str),
    "type": ("type", str),
    "status": ("status", str),
    "description": ("description", None),
    "schema": ("schema", None),
    "verificationStatus": ("verification_status", None),
    "columns": ("columns", lambda cols: [c if isinstance(c, Column) else Column.from_dict(c) for c in cols or []]),
}

_INTEGRATION_FIELDS: Dict[str, tuple] = {
    "sourceAssetId": ("source_asset_id", str),
    "targetSystemId": ("target_system_id", str),
    "description": ("description", None),
    "technology": ("technology", None),
    "mode": ("mode", None),
}

_PROJECT_FIELDS: Dict[str, tuple] = {
    "name": ("name", str),
    "description": ("description", None),
    "systemIds": ("system_ids", list),
    "ownerId": ("owner_id", str),
    "sharedWith": ("shared_with", list),
    "notes": ("notes", None),
    "projectImages": ("project_images", list),
    "flowData": ("flow_data", lambda f: {"nodes": list(f.get("nodes") or []), "edges": list(f.get("edges") or [])}),
}


def _apply_updates(obj: Any, updates: Dict[str, Any], fields: Dict[str, tuple], kind: str) -> None:
    unknown = set(updates) - set(fields)
    if unknown:
        raise FloraIntegrityError(f"Cannot update {kind} fields: {', '.join(sorted(unknown))}")
    for key, value in updates.items():
        attr, convert = fields[key]
        if convert is not None and value is not None:
            value = convert(value)
        setattr(obj, attr, value)


class FloraStore:
    """A single landscape document with referential bookkeeping."""

    def __init__(
        self,
        systems: Optional[List[System]] = None,
        integrations: Optional[List[Integration]] = None,
        projects: Optional[List[Project]] = None,
    ):
        self.systems: List[System] = list(systems or [])
        self.integrations: List[Integration] = list(integrations or [])
        self.projects: List[Project] = list(projects or [])

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "systems": [s.to_dict() for s in self.systems],
            "integrations": [i.to_dict() for i in self.integrations],
            "projects": [p.to_dict() for p in self.projects],
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "FloraStore":
        data = data or {}
        return cls(
            systems=[System.from_dict(s) for s in data.get("systems") or []],
            integrations=[Integration.from_dict(i) for i in data.get("integrations") or []],
            projects=[Project.from_dict(p) for p in data.get("projects") or []],
        )

    # =========================================================================
    # Lookups
    # =========================================================================

    def find_system(self, system_id: str) -> Optional[System]:
        return next((s for s in self.systems if s.id == system_id), None)

    def get_system(self, system_id: str) -> System:
        system = self.find_system(system_id)
        if system is None:
            raise FloraNotFound(f"System {system_id} not found")
        return system

    def find_asset(self, asset_id: str) -> Optional[Asset]:
        for system in self.systems:
            for asset in system.assets:
                if asset.id == asset_id:
                    return asset
        return None

    def get_asset(self, asset_id: str) -> Asset:
        asset = self.find_asset(asset_id)
        if asset is None:
            raise FloraNotFound(f"Asset {asset_id} not found")
        return asset

    def find_system_by_name(self, name: str) -> Optional[System]:
        lowered = name.strip().lower()
        return next((s for s in self.systems if s.name.lower() == lowered), None)

    def get_integration(self, integration_id: str) -> Integration:
        integration = next((i for i in self.integrations if i.id == integration_id), None)
        if integration is None:
            raise FloraNotFound(f"Integration {integration_id} not found")
        return integration

    def get_project(self, project_id: str) -> Project:
        project = next((p for p in self.projects if p.id == project_id), None)
        if project is None:
            raise FloraNotFound(f"Project {project_id} not found")
        return project

    def _system_asset(self, system_id: str, asset_id: str) -> Asset:
        system = self.get_system(system_id)
        asset = next((a for a in system.assets if a.id == asset_id), None)
        if asset is None:
            raise FloraNotFound(f"Asset {asset_id} not found in system {system_id}")
        return asset

    # =========================================================================
    # Systems
    # =========================================================================

    def add_system(self, data: Dict[str, Any], owner_id: str, project_id: Optional[str] = None) -> System:
        """Add a system; optionally attach it to a project."""
        system = System.from_dict({**data, "ownerId": owner_id or "unknown", "sharedWith": []})
        if self.find_system(system.id):
            raise FloraIntegrityError(f"System {system.id} already exists")
        self._check_new_asset_ids(system.assets)

        project = self.get_project(project_id) if project_id else None

        self.systems.append(system)
        if project is not None:
            project.system_ids = project.system_ids + [system.id]

        logger.debug(f"Added system {system.id} ({system.name})")
        return system

    def update_system(self, system_id: str, updates: Dict[str, Any]) -> System:
        if "id" in updates or "assets" in updates:
            raise FloraIntegrityError("System id and assets cannot be changed through update")
        system = self.get_system(system_id)
        _apply_updates(system, updates, _SYSTEM_FIELDS, "system")
        return system

    def update_system_position(self, system_id: str, x: float, y: float) -> System:
        system = self.get_system(system_id)
        system.position = {"x": float(x), "y": float(y)}
        return system

    def delete_system(self, system_id: str) -> Dict[str, int]:
        """Delete a system with its integrations and project memberships."""
        system = self.get_system(system_id)
        asset_ids = {a.id for a in system.assets}

        before = len(self.integrations)
        self.integrations = [
            i for i in self.integrations
            if i.target_system_id != system_id and i.source_asset_id not in asset_ids
        ]
        removed_integrations = before - len(self.integrations)

        touched_projects = 0
        for project in self.projects:
            if system_id in project.system_ids:
                project.system_ids = [sid for sid in project.system_ids if sid != system_id]
                touched_projects += 1

        self.systems = [s for s in self.systems if s.id != system_id]

        logger.info(
            f"Deleted system {system_id} ({system.name}): "
            f"{removed_integrations} integrations, {touched_projects} projects updated"
        )
        return {"integrations_removed": removed_integrations, "projects_updated": touched_projects}

    def import_systems(self, systems: Iterable[System], project_id: Optional[str] = None) -> List[System]:
        """Append fully-formed systems (parser or architect output)."""
        systems = list(systems)
        existing_ids = {s.id for s in self.systems}
        incoming_ids = [s.id for s in systems]
        if len(set(incoming_ids)) != len(incoming_ids) or existing_ids & set(incoming_ids):
            raise FloraIntegrityError("Imported systems contain duplicate ids")

        project = self.get_project(project_id) if project_id else None

        for system in systems:
            for asset in system.assets:
                asset.system_id = system.id
        self._check_new_asset_ids([a for s in systems for a in s.assets])
        self.systems.extend(systems)

        if project is not None:
            project.system_ids = project.system_ids + incoming_ids

        logger.info(f"Imported {len(systems)} systems")
        return systems

    # =========================================================================
    # Assets
    # =========================================================================

    def add_asset(self, system_id: str, data: Dict[str, Any]) -> Asset:
        system = self.get_system(system_id)
        asset = Asset.from_dict(data, system_id)
        self._check_new_asset_ids([asset])
        system.assets.append(asset)
        return asset

    def update_asset(self, system_id: str, asset_id: str, updates: Dict[str, Any]) -> Asset:
        if "id" in updates or "systemId" in updates:
            raise FloraIntegrityError("Asset id and systemId cannot be changed")
        asset = self._system_asset(system_id, asset_id)
        _apply_updates(asset, updates, _ASSET_FIELDS, "asset")
        return asset

    def bulk_update_assets(self, system_id: str, asset_ids: List[str], updates: Dict[str, Any]) -> List[Asset]:
        """Apply the same updates to several assets of one system."""
        if "id" in updates or "systemId" in updates:
            raise FloraIntegrityError("Asset id and systemId cannot be changed")
        assets = [self._system_asset(system_id, aid) for aid in asset_ids]
        for asset in assets:
            _apply_updates(asset, updates, _ASSET_FIELDS, "asset")
        return assets

    def verify_asset(self, system_id: str, asset_id: str) -> Asset:
        asset = self._system_asset(system_id, asset_id)
        asset.verification_status = VERIFIED
        return asset

    def delete_asset(self, system_id: str, asset_id: str) -> int:
        """Delete an asset and the integrations sourced from it."""
        system = self.get_system(system_id)
        self._system_asset(system_id, asset_id)
        system.assets = [a for a in system.assets if a.id != asset_id]

        before = len(self.integrations)
        self.integrations = [i for i in self.integrations if i.source_asset_id != asset_id]
        return before - len(self.integrations)

    def _check_new_asset_ids(self, assets: Iterable[Asset]) -> None:
        seen = set()
        for asset in assets:
            if asset.id in seen or self.find_asset(asset.id):
                raise FloraIntegrityError(f"Asset {asset.id} already exists")
            seen.add(asset.id)

    # =========================================================================
    # Integrations
    # =========================================================================

    def add_integration(self, data: Dict[str, Any]) -> Integration:
        integration = Integration.from_dict(data)
        self._check_integration_refs(integration.source_asset_id, integration.target_system_id)
        if any(i.id == integration.id for i in self.integrations):
            raise FloraIntegrityError(f"Integration {integration.id} already exists")
        self.integrations.append(integration)
        return integration

    def update_integration(self, integration_id: str, updates: Dict[str, Any]) -> Integration:
        if "id" in updates:
            raise FloraIntegrityError("Integration id cannot be changed")
        integration = self.get_integration(integration_id)
        self._check_integration_refs(
            updates.get("sourceAssetId", integration.source_asset_id),
            updates.get("targetSystemId", integration.target_system_id),
        )
        _apply_updates(integration, updates, _INTEGRATION_FIELDS, "integration")
        return integration

    def remove_integration(self, integration_id: str) -> None:
        self.get_integration(integration_id)
        self.integrations = [i for i in self.integrations if i.id != integration_id]

    def _check_integration_refs(self, source_asset_id: str, target_system_id: str) -> None:
        if self.find_asset(source_asset_id) is None:
            raise FloraIntegrityError(f"Source asset {source_asset_id} does not exist")
        if self.find_system(target_system_id) is None:
            raise FloraIntegrityError(f"Target system {target_system_id} does not exist")

    # =========================================================================
    # Projects
    # =========================================================================

    def add_project(self, data: Dict[str, Any], owner_id: str) -> Project:
        if not data.get("name"):
            raise FloraIntegrityError("Project name is required")
        project = Project.from_dict({
            **data,
            "id": data.get("id") or new_id(),
            "ownerId": data.get("ownerId") or owner_id or "unknown",
            "sharedWith": [],
        })
        if any(p.id == project.id for p in self.projects):
            raise FloraIntegrityError(f"Project {project.id} already exists")
        self._check_system_ids(project.system_ids)
        self.projects.append(project)
        return project

    def update_project(self, project_id: str, updates: Dict[str, Any]) -> Project:
        if "id" in updates:
            raise FloraIntegrityError("Project id cannot be changed")
        project = self.get_project(project_id)
        if "systemIds" in updates:
            self._check_system_ids(updates["systemIds"] or [])
        _apply_updates(project, updates, _PROJECT_FIELDS, "project")
        return project

    def delete_project(self, project_id: str) -> None:
        self.get_project(project_id)
        self.projects = [p for p in self.projects if p.id != project_id]

    def toggle_system_in_project(self, project_id: str, system_id: str) -> bool:
        """Add or remove a system from a project. Returns True when now included."""
        project = self.get_project(project_id)
        if system_id in project.system_ids:
            project.system_ids = [sid for sid in project.system_ids if sid != system_id]
            return False
        self.get_system(system_id)
        project.system_ids = project.system_ids + [system_id]
        return True

    def share_project(self, project_id: str, user_id: str) -> Project:
        project = self.get_project(project_id)
        if user_id not in project.shared_with:
            project.shared_with = project.shared_with + [user_id]
        return project

    def visible_projects(self, user: Optional[dict]) -> List[Project]:
        return [p for p in self.projects if can_view_project(user, p.to_dict())]

    def _check_system_ids(self, system_ids: Iterable[str]) -> None:
        for sid in system_ids:
            if self.find_system(sid) is None:
                raise FloraIntegrityError(f"System {sid} does not exist")

    # =========================================================================
    # Documents
    # =========================================================================

    def add_document(self, system_id: str, data: Dict[str, Any]) -> SystemDocument:
        system = self.get_system(system_id)
        document = SystemDocument.from_dict({**data, "id": new_id(), "uploadedAt": utc_now_iso()})
        system.documents.append(document)
        return document

    def remove_document(self, system_id: str, document_id: str) -> None:
        system = self.get_system(system_id)
        if not any(d.id == document_id for d in system.documents):
            raise FloraNotFound(f"Document {document_id} not found in system {system_id}")
        system.documents = [d for d in system.documents if d.id != document_id]

    # =========================================================================
    # Queries
    # =========================================================================

    def search_systems(self, query: str = "") -> List[System]:
        needle = (query or "").lower()
        if not needle:
            return list(self.systems)
        return [s for s in self.systems if needle in s.name.lower() or needle in s.type.lower()]

    def catalogue(self, query: str = "") -> List[Dict[str, Any]]:
        """Every asset with its system name, filtered by a substring."""
        needle = (query or "").lower()
        entries = []
        for system in self.systems:
            for asset in system.assets:
                if needle and not (
                    needle in asset.name.lower()
                    or needle in system.name.lower()
                    or (asset.schema and needle in asset.schema.lower())
                ):
                    continue
                entries.append({**asset.to_dict(), "systemName": system.name})
        return entries

    def lineage(self, asset_id: str) -> Dict[str, Any]:
        """Walk integrations upstream and downstream from an asset.

        Downstream follows integrations sourced from the asset into target
        systems and continues from every asset of each reached system.
        Upstream follows integrations targeting the asset's system back to
        their source systems. Each system is expanded at most once, the origin
        system included, and each integration is reported once.
        """
        asset = self.get_asset(asset_id)
        origin = asset.system_id

        downstream = self._walk(
            start=[(asset.id, 0)],
            visited=set(),
            edges=lambda aid: [i for i in self.integrations if i.source_asset_id == aid],
            next_system=lambda i: i.target_system_id,
            expand=lambda system_id: [a.id for a in self.get_system(system_id).assets],
        )
        upstream = self._walk(
            start=[(origin, 0)],
            visited={origin},
            edges=lambda sid: [i for i in self.integrations if i.target_system_id == sid],
            next_system=lambda i: self.get_asset(i.source_asset_id).system_id,
            expand=lambda system_id: [system_id],
        )

        return {
            "asset": asset.to_dict(),
            "systemId": origin,
            "upstream": upstream,
            "downstream": downstream,
        }

    def _walk(
        self,
        start: List[tuple],
        visited: set,
        edges: Callable[[str], List[Integration]],
        next_system: Callable[[Integration], str],
        expand: Callable[[str], List[str]],
    ) -> List[Dict[str, Any]]:
        hops = []
        seen = set()
        queue = deque(start)
        while queue:
            key, depth = queue.popleft()
            for integration in edges(key):
                if integration.id in seen:
                    continue
                seen.add(integration.id)
                reached = next_system(integration)
                source = self.get_asset(integration.source_asset_id)
                hops.append({
                    "integrationId": integration.id,
                    "sourceAssetId": source.id,
                    "sourceSystemId": source.system_id,
                    "targetSystemId": integration.target_system_id,
                    "depth": depth + 1,
                })
                if reached not in visited:
                    visited.add(reached)
                    for nxt in expand(reached):
                        queue.append((nxt, depth + 1))
        return hops

    def project_view(self, project_id: str) -> Dict[str, Any]:
        """The project's systems plus the integrations among them."""
        project = self.get_project(project_id)
        member_ids = set(project.system_ids)
        systems = [s for s in self.systems if s.id in member_ids]
        member_assets = {a.id for s in systems for a in s.assets}
        integrations = [
            i for i in self.integrations
            if i.source_asset_id in member_assets and i.target_system_id in member_ids
        ]
        return {
            "project": project.to_dict(),
            "systems": [s.to_dict() for s in systems],
            "integrations": [i.to_dict() for i in integrations],
        }
