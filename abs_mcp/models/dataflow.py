"""
Dataflow domain records for abs-mcp server.

A DataFlow describes one published ABS dataset. The DataFlowCache is the
snapshot of every dataflow the API listed at ``last_updated``; it is what
gets persisted to the cache file.

The dictionary form of both types (``to_dict`` / ``from_dict``) is the
on-disk JSON format and uses the SDMX attribute names (``agencyID``,
``lastUpdated``).
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


@dataclass(frozen=True)
class StructureRef:
    """Reference to the data structure definition governing a dataflow."""
    id: str
    version: str
    agency_id: str

    def to_dict(self) -> dict:
        return {"id": self.id, "version": self.version, "agencyID": self.agency_id}

    @classmethod
    def from_dict(cls, data: dict) -> 'StructureRef':
        return cls(
            id=data["id"],
            version=data["version"],
            agency_id=data["agencyID"]
        )


@dataclass(frozen=True)
class DataFlow:
    """A dataset descriptor discovered from the ABS dataflow listing."""
    id: str
    agency_id: str
    version: str
    name: str = ""
    description: str = ""
    structure: Optional[StructureRef] = None

    @property
    def identifier(self) -> str:
        """The ``agencyID,id,version`` token used to address this flow in data queries."""
        return f"{self.agency_id},{self.id},{self.version}"

    def to_dict(self) -> dict:
        """Serialize; ``structure`` is left out entirely when there is none."""
        data: dict[str, Any] = {
            "id": self.id,
            "agencyID": self.agency_id,
            "version": self.version,
            "name": self.name,
            "description": self.description,
        }
        if self.structure is not None:
            data["structure"] = self.structure.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'DataFlow':
        structure = data.get("structure")
        return cls(
            id=data["id"],
            agency_id=data["agencyID"],
            version=data["version"],
            name=data.get("name") or "",
            description=data.get("description") or "",
            structure=StructureRef.from_dict(structure) if structure else None
        )


@dataclass(frozen=True)
class DataFlowCache:
    """The dataflow listing together with the time it was fetched."""
    last_updated: datetime
    flows: tuple[DataFlow, ...] = field(default_factory=tuple)

    @classmethod
    def create(cls, flows: list[DataFlow]) -> 'DataFlowCache':
        """Snapshot freshly fetched flows, stamped with the current time."""
        return cls(last_updated=datetime.now(timezone.utc), flows=tuple(flows))

    def age(self, now: Optional[datetime] = None) -> float:
        """Age of the snapshot in seconds."""
        now = now or datetime.now(timezone.utc)
        return (now - self.last_updated).total_seconds()

    @property
    def age_hours(self) -> float:
        return self.age() / 3600

    def to_dict(self) -> dict:
        return {
            "lastUpdated": self.last_updated.isoformat(),
            "flows": [flow.to_dict() for flow in self.flows],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'DataFlowCache':
        """
        Rebuild a snapshot from its JSON form.

        Timestamps written without an offset are read as UTC so that age
        arithmetic against an aware "now" keeps working.

        Raises:
            KeyError: If either top-level field is missing
            ValueError: If ``lastUpdated`` is not an ISO-8601 timestamp
        """
        last_updated = _parse_timestamp(data["lastUpdated"])
        return cls(
            last_updated=last_updated,
            flows=tuple(DataFlow.from_dict(flow) for flow in data["flows"])
        )


def _parse_timestamp(value: str) -> datetime:
    # fromisoformat only learned the "Z" suffix in 3.11
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
