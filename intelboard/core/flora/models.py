"""Data models for the IT Flora landscape document.

Wire format uses the camelCase keys the diagram client reads
(``systemId``, ``sourceAssetId`` ...); attributes are snake_case.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from ..constants import ASSET_EXISTING, SYSTEM_TYPES


def new_id() -> str:
    return str(uuid4())


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class Column:
    name: str
    type: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Column":
        return cls(name=data.get("name", ""), type=data.get("type", ""))


@dataclass
class SystemDocument:
    id: str
    name: str
    type: str
    content: str
    uploaded_by: str
    uploaded_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "content": self.content,
            "uploadedBy": self.uploaded_by,
            "uploadedAt": self.uploaded_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SystemDocument":
        return cls(
            id=data.get("id") or new_id(),
            name=data.get("name", ""),
            type=data.get("type", ""),
            content=data.get("content", ""),
            uploaded_by=data.get("uploadedBy", ""),
            uploaded_at=data.get("uploadedAt") or utc_now_iso(),
        )


@dataclass
class Asset:
    """A data object (table, view, topic ...) owned by a system."""
    id: str
    name: str
    type: str
    system_id: str
    status: str = ASSET_EXISTING
    description: Optional[str] = None
    schema: Optional[str] = None
    verification_status: Optional[str] = None
    columns: List[Column] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "systemId": self.system_id,
            "status": self.status,
            "description": self.description,
            "schema": self.schema,
            "verificationStatus": self.verification_status,
            "columns": [c.to_dict() for c in self.columns],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], system_id: Optional[str] = None) -> "Asset":
        return cls(
            id=data.get("id") or new_id(),
            name=data.get("name", ""),
            type=data.get("type") or "Table",
            system_id=system_id or data.get("systemId", ""),
            status=data.get("status") or ASSET_EXISTING,
            description=data.get("description"),
            schema=data.get("schema"),
            verification_status=data.get("verificationStatus"),
            columns=[Column.from_dict(c) for c in data.get("columns") or []],
        )


@dataclass
class System:
    """A landscape component: source system, warehouse, report ..."""
    id: str
    name: str
    type: str = "Other"
    description: Optional[str] = None
    assets: List[Asset] = field(default_factory=list)
    documents: List[SystemDocument] = field(default_factory=list)
    position: Dict[str, float] = field(default_factory=lambda: {"x": 0.0, "y": 0.0})
    owner_id: str = "unknown"
    shared_with: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "assets": [a.to_dict() for a in self.assets],
            "documents": [d.to_dict() for d in self.documents],
            "position": dict(self.position),
            "ownerId": self.owner_id,
            "sharedWith": list(self.shared_with),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "System":
        system_id = data.get("id") or new_id()
        position = data.get("position") or {}
        return cls(
            id=system_id,
            name=data.get("name", ""),
            type=normalize_system_type(data.get("type")),
            description=data.get("description"),
            assets=[Asset.from_dict(a, system_id) for a in data.get("assets") or []],
            documents=[SystemDocument.from_dict(d) for d in data.get("documents") or []],
            position={"x": float(position.get("x", 0)), "y": float(position.get("y", 0))},
            owner_id=data.get("ownerId") or "unknown",
            shared_with=list(data.get("sharedWith") or []),
        )


@dataclass
class Integration:
    """Directed edge from a source asset to a target system."""
    id: str
    source_asset_id: str
    target_system_id: str
    description: Optional[str] = None
    technology: Optional[str] = None
    mode: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sourceAssetId": self.source_asset_id,
            "targetSystemId": self.target_system_id,
            "description": self.description,
            "technology": self.technology,
            "mode": self.mode,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Integration":
        return cls(
            id=data.get("id") or new_id(),
            source_asset_id=data.get("sourceAssetId", ""),
            target_system_id=data.get("targetSystemId", ""),
            description=data.get("description"),
            technology=data.get("technology"),
            mode=data.get("mode"),
        )


@dataclass
class Project:
    """A named view over a subset of systems, with its own canvas state."""
    id: str
    name: str
    owner_id: str
    description: Optional[str] = None
    system_ids: List[str] = field(default_factory=list)
    shared_with: List[str] = field(default_factory=list)
    notes: Optional[str] = None
    project_images: List[str] = field(default_factory=list)
    flow_data: Dict[str, list] = field(default_factory=lambda: {"nodes": [], "edges": []})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "systemIds": list(self.system_ids),
            "ownerId": self.owner_id,
            "sharedWith": list(self.shared_with),
            "notes": self.notes,
            "projectImages": list(self.project_images),
            "flowData": {
                "nodes": list(self.flow_data.get("nodes", [])),
                "edges": list(self.flow_data.get("edges", [])),
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        flow = data.get("flowData") or {}
        return cls(
            id=data.get("id") or new_id(),
            name=data.get("name", ""),
            owner_id=data.get("ownerId") or "unknown",
            description=data.get("description"),
            system_ids=list(data.get("systemIds") or []),
            shared_with=list(data.get("sharedWith") or []),
            notes=data.get("notes"),
            project_images=list(data.get("projectImages") or []),
            flow_data={"nodes": list(flow.get("nodes") or []), "edges": list(flow.get("edges") or [])},
        )


def normalize_system_type(value: Optional[str]) -> str:
    return value if value in SYSTEM_TYPES else "Other"
