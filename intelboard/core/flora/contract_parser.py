"""Line-based data-contract text parser.

Turns a pasted or uploaded data-contract document into candidate
systems, assets (with columns) and integrations, then merges them into
a landscape. No LLM involved: every rule is a regex over one line, so
the same text always yields the same shape (ids and canvas positions
aside).
"""

import logging
import random
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..constants import ASSET_PLANNED, UNVERIFIED
from .models import Asset, Column, System, SystemDocument, new_id, utc_now_iso
from .store import FloraStore
from ...api.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

PARSER_OWNER = "ai-parser"
FALLBACK_SYSTEM_NAME = "Imported System"
DOCUMENT_PLACEHOLDER = "Metadata Only (File Content Not Persisted)"
RESOLUTIONS = ("merge", "overwrite")

# Global integration metadata
_SOURCE_RE = re.compile(r"^Source system:\s*(.+?)(?:\s*\(|$)", re.IGNORECASE)
_TARGET_RE = re.compile(r"^Target system:\s*(.+?)(?:\s*\(|$)", re.IGNORECASE)
_INTEGRATION_TYPE_RE = re.compile(r"^Integration type:\s*(.+)$", re.IGNORECASE)
_PURPOSE_RE = re.compile(r"^Purpose:\s*(.+)$", re.IGNORECASE)

# System headers
_SYSTEM_HEADER_RES = (
    re.compile(
        r"^(?:(?:Source|Target)\s+)?(?:System|App|Service|Data Product Name):\s*(.+?)(?:\s*\(|$)",
        re.IGNORECASE,
    ),
    re.compile(r"^##(?!#)\s*(.+?)(?:\s*System)?$", re.IGNORECASE),
    re.compile(r"^(.+?)\s*\((?:System|App|Service)\)$", re.IGNORECASE),
)

# "2. Tables in Core Banking:" -> switch to a known system
_SECTION_SYSTEM_RE = re.compile(r"^(?:[\d.]+|#+)\s+.*(?:in|for|of)\s+(.+?)(?::|$)", re.IGNORECASE)

_SOURCE_TABLE_HEADER_RE = re.compile(r"^Source\s+Type\s+Description", re.IGNORECASE)
_SOURCE_TABLE_ROW_RE = re.compile(r"^([A-Z][\w\s()]+?)(?:\t|\s{2,})([A-Z][\w\s]+)(?:(?:\t|\s{2,})(.+))?$")

_DATA_STRUCTURE_RE = re.compile(r"^[\d.]+\s*Data Structure", re.IGNORECASE)
_SCHEMA_RE = re.compile(r"^(?:Schema:|###)\s*(.+)$", re.IGNORECASE)

# Assets
_TYPED_ASSET_RE = re.compile(r"^(?:[\d.]+\s+)?(Table|View|File|Report|API|Topic):\s*(.+)$", re.IGNORECASE)
_QUALIFIED_NAME_RE = re.compile(r"^(\w+)\.(.+)$")
_TABLE_NAME_RE = re.compile(r"^(?:Table name|Name):\s*(?:(\w+)\.)?(.+)$", re.IGNORECASE)
_LIST_ASSET_RE = re.compile(r"^[-*]\s*(.+?)\s*\((.+?)\)$")

# Columns
_COLUMN_HEADER_RE = re.compile(r"^(?:Column|Field)\s+(?:Type|Format)", re.IGNORECASE)
_COLUMN_RE = re.compile(
    r"^([a-zA-Z0-9_]+)\s+([a-zA-Z0-9_]+(?:\(\d+(?:,\d+)?\))?|Enum(?::\s*\[.*?\])?)",
    re.IGNORECASE,
)
_RESERVED_COLUMN_NAMES = frozenset({"Table", "View", "Field", "Column"})


@dataclass
class ParsedIntegration:
    """An integration named by system, resolved to ids on import."""
    source_system: str
    target_system: str
    type: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceSystem": self.source_system,
            "targetSystem": self.target_system,
            "type": self.type,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedIntegration":
        return cls(
            source_system=data.get("sourceSystem", ""),
            target_system=data.get("targetSystem", ""),
            type=data.get("type"),
            description=data.get("description"),
        )


@dataclass
class ParsedResult:
    systems: List[System] = field(default_factory=list)
    integrations: List[ParsedIntegration] = field(default_factory=list)

    @property
    def total_assets(self) -> int:
        return sum(len(s.assets) for s in self.systems)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "systems": [s.to_dict() for s in self.systems],
            "integrations": [i.to_dict() for i in self.integrations],
            "totalAssets": self.total_assets,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedResult":
        return cls(
            systems=[System.from_dict(s) for s in data.get("systems") or []],
            integrations=[ParsedIntegration.from_dict(i) for i in data.get("integrations") or []],
        )


class _ContractParser:
    """Single-pass state machine over the document lines."""

    def __init__(self):
        self.systems: List[System] = []
        self.current: Optional[System] = None
        self.main: Optional[System] = None
        self.schema: Optional[str] = None
        self.in_source_table = False
        self.source_system: Optional[str] = None
        self.target_system: Optional[str] = None
        self.integration_type: Optional[str] = None
        self.purpose: Optional[str] = None

    def system(self, name: str, system_type: str = "Other") -> System:
        name = name.strip()
        existing = next((s for s in self.systems if s.name.lower() == name.lower()), None)
        if existing:
            return existing
        system = System(
            id=new_id(),
            name=name,
            type=system_type,
            position={"x": random.uniform(0, 500), "y": random.uniform(0, 500)},
            owner_id=PARSER_OWNER,
        )
        self.systems.append(system)
        return system

    def asset(self, name: str, asset_type: str, schema: Optional[str] = None) -> Asset:
        asset = Asset(
            id=new_id(),
            name=name.strip(),
            type=asset_type,
            system_id=self.current.id,
            status=ASSET_PLANNED,
            schema=schema,
            verification_status=UNVERIFIED,
        )
        self.current.assets.append(asset)
        return asset

    def feed(self, line: str) -> None:
        stripped = line.strip()
        if not stripped:
            self.in_source_table = False
            return

        is_metadata = self._metadata(stripped)

        for pattern in _SYSTEM_HEADER_RES:
            match = pattern.match(stripped)
            if match:
                name = re.sub(r"[:#]", "", match.group(1)).strip()
                if name:
                    self.current = self.system(name)
                    self.main = self.main or self.current
                    self.schema = None
                    self.in_source_table = False
                    return

        if is_metadata:
            return

        match = _SECTION_SYSTEM_RE.match(stripped)
        if match:
            mentioned = match.group(1).strip().lower()
            known = next(
                (s for s in self.systems if s.name.lower() in mentioned or mentioned in s.name.lower()),
                None,
            )
            if known:
                self.current = known
                self.schema = None
                self.in_source_table = False
                return

        if _SOURCE_TABLE_HEADER_RE.match(stripped):
            self.in_source_table = True
            return

        if self.in_source_table:
            row = _SOURCE_TABLE_ROW_RE.match(stripped)
            if row and not stripped.startswith("-") and not re.match(r"^\d+\.", stripped):
                name = re.sub(r"\s*\(.*?\)$", "", row.group(1)).strip()
                if name not in ("Field", "Source"):
                    self.system(name, "Source System")
                return
            self.in_source_table = False

        if _DATA_STRUCTURE_RE.match(stripped) and self.main:
            self.current = self.main
            self.schema = None
            return

        match = _SCHEMA_RE.match(stripped)
        if match and self.current:
            self.schema = match.group(1).strip()
            return

        if self.current:
            self._asset_or_column(stripped)

    def _metadata(self, stripped: str) -> bool:
        for pattern, attr in (
            (_SOURCE_RE, "source_system"),
            (_TARGET_RE, "target_system"),
            (_INTEGRATION_TYPE_RE, "integration_type"),
            (_PURPOSE_RE, "purpose"),
        ):
            match = pattern.match(stripped)
            if match:
                setattr(self, attr, match.group(1).strip())
                return True
        return False

    def _asset_or_column(self, stripped: str) -> None:
        match = _TYPED_ASSET_RE.match(stripped)
        if match:
            asset_type, name_part = match.group(1), match.group(2)
            qualified = _QUALIFIED_NAME_RE.match(name_part)
            if qualified:
                self.asset(qualified.group(2), asset_type, qualified.group(1))
            else:
                self.asset(name_part, asset_type, self.schema)
            return

        match = _TABLE_NAME_RE.match(stripped)
        if match:
            schema = match.group(1) or self.schema
            name = match.group(2).strip()
            last = self.current.assets[-1] if self.current.assets else None
            if last and (last.name == name or last.name in name):
                if schema:
                    last.schema = schema
                last.name = name
            else:
                is_view = stripped.lower().startswith("view")
                self.asset(name, "View" if is_view else "Table", schema)
            return

        match = _LIST_ASSET_RE.match(stripped)
        if match:
            self.asset(match.group(1), match.group(2), self.schema)
            return

        if not self.current.assets or _COLUMN_HEADER_RE.match(stripped):
            return

        match = _COLUMN_RE.match(stripped)
        if match and match.group(1) not in _RESERVED_COLUMN_NAMES:
            self.current.assets[-1].columns.append(Column(name=match.group(1), type=match.group(2)))

    def fallback(self, lines: List[str]) -> None:
        """Bullet lines become tables of a generic system."""
        bullets = [l.strip() for l in lines if l.strip().startswith(("-", "*"))]
        if not bullets:
            return
        self.current = self.system(FALLBACK_SYSTEM_NAME)
        for bullet in bullets:
            self.asset(re.sub(r"^[-*]\s*", "", bullet), "Table")

    def integrations(self) -> List[ParsedIntegration]:
        if self.source_system and self.target_system:
            return [ParsedIntegration(
                source_system=self.source_system,
                target_system=self.target_system,
                type=self.integration_type,
                description=self.purpose,
            )]
        return []


def parse_contract_text(text: str) -> ParsedResult:
    """Parse data-contract text into systems, assets and integrations."""
    lines = (text or "").split("\n")
    parser = _ContractParser()
    for line in lines:
        parser.feed(line)

    if not parser.systems:
        parser.fallback(lines)

    result = ParsedResult(systems=parser.systems, integrations=parser.integrations())
    logger.info(
        f"Parsed contract: {len(result.systems)} systems, "
        f"{result.total_assets} assets, {len(result.integrations)} integrations"
    )
    return result


def plan_import(parsed: ParsedResult, store: FloraStore) -> List[Tuple[System, System]]:
    """Pairs of (parsed system, existing system) that share a name."""
    conflicts = []
    for system in parsed.systems:
        existing = store.find_system_by_name(system.name)
        if existing is not None:
            conflicts.append((system, existing))
    return conflicts


def apply_import(
    store: FloraStore,
    parsed: ParsedResult,
    resolution: str = "merge",
    project_id: Optional[str] = None,
    document: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Merge a parse result into the landscape.

    ``document`` is the uploaded file's metadata (``name``, ``type``,
    ``uploadedBy``); only the metadata is attached to the new systems.
    """
    if resolution not in RESOLUTIONS:
        raise ValidationError(f"Unknown resolution: {resolution}")

    conflicts = plan_import(parsed, store)
    conflicting_ids = {new.id for new, _ in conflicts}

    if document:
        attached = SystemDocument(
            id=new_id(),
            name=document.get("name", ""),
            type=document.get("type", ""),
            content=DOCUMENT_PLACEHOLDER,
            uploaded_by=document.get("uploadedBy", ""),
            uploaded_at=utc_now_iso(),
        )
        for system in parsed.systems:
            system.documents = [attached]

    new_systems = [s for s in parsed.systems if s.id not in conflicting_ids]
    if new_systems:
        store.import_systems(new_systems, project_id=project_id)

    assets_added = 0
    for new, existing in conflicts:
        if resolution == "overwrite":
            store.update_system(existing.id, {"description": new.description, "type": new.type})
            candidates = new.assets
        else:
            known = {a.name.lower() for a in existing.assets}
            candidates = [a for a in new.assets if a.name.lower() not in known]
        for asset in candidates:
            store.add_asset(existing.id, {**asset.to_dict(), "id": new_id(), "verificationStatus": UNVERIFIED})
            assets_added += 1

    integrations_created = 0
    for parsed_integration in parsed.integrations:
        source = store.find_system_by_name(parsed_integration.source_system)
        target = store.find_system_by_name(parsed_integration.target_system)
        if source is None or target is None or not source.assets:
            logger.debug(
                f"Skipping integration {parsed_integration.source_system} -> "
                f"{parsed_integration.target_system}: unresolved"
            )
            continue
        store.add_integration({
            "sourceAssetId": source.assets[0].id,
            "targetSystemId": target.id,
            "technology": parsed_integration.type,
            "description": parsed_integration.description,
        })
        integrations_created += 1

    summary = {
        "systemsImported": len(new_systems),
        "assetsAdded": assets_added,
        "integrationsCreated": integrations_created,
        "conflicts": [existing.name for _, existing in conflicts],
    }
    logger.info(f"Applied contract import ({resolution}): {summary}")
    return summary
