"""
Server set member records

The JSON written into each member znode mimics the Finagle server set
structure so that clients in other languages can read it:

    {"serviceEndpoint": {"host": "10.0.0.5", "port": 8080},
     "additionalEndpoints": {},
     "shard": 0,
     "status": "ALIVE"}
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .errors import MemberDataError


class Status(Enum):
    """Member status. Only ALIVE is acted upon here."""
    DEAD = "DEAD"
    STARTING = "STARTING"
    ALIVE = "ALIVE"
    STOPPING = "STOPPING"
    STOPPED = "STOPPED"
    WARNING = "WARNING"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Status":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class Endpoint:
    host: str
    port: int

    def to_dict(self) -> Dict[str, Any]:
        return {"host": self.host, "port": self.port}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Endpoint":
        return cls(host=str(data["host"]), port=int(data["port"]))

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass
class Entity:
    """Structure of the data in each member znode."""
    service_endpoint: Endpoint
    additional_endpoints: Dict[str, Endpoint] = field(default_factory=dict)
    shard: int = 0
    status: Status = Status.ALIVE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary using the server set field names."""
        return {
            "serviceEndpoint": self.service_endpoint.to_dict(),
            "additionalEndpoints": {
                name: ep.to_dict() for name, ep in self.additional_endpoints.items()
            },
            "shard": self.shard,
            "status": self.status.value,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    def to_bytes(self) -> bytes:
        """Znode payload: UTF-8 encoded JSON."""
        return self.to_json().encode("utf-8")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entity":
        """Create from a decoded member payload.

        Producers that omit ``additionalEndpoints`` or ``shard`` get the
        defaults; an unrecognised status becomes UNKNOWN.
        """
        try:
            service_endpoint = Endpoint.from_dict(data["serviceEndpoint"])
            additional = {
                name: Endpoint.from_dict(ep)
                for name, ep in (data.get("additionalEndpoints") or {}).items()
            }
            shard = int(data.get("shard") or 0)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise MemberDataError(f"invalid server set entity: {exc!r}") from exc
        return cls(
            service_endpoint=service_endpoint,
            additional_endpoints=additional,
            shard=shard,
            status=Status.parse(data.get("status")),
        )

    @classmethod
    def from_json(cls, payload: str | bytes) -> "Entity":
        try:
            if isinstance(payload, bytes):
                payload = payload.decode("utf-8")
            data = json.loads(payload)
        except ValueError as exc:
            raise MemberDataError(f"member payload is not JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise MemberDataError("member payload is not a JSON object")
        return cls.from_dict(data)


def new_entity(host: str, port: int) -> Entity:
    """Record announcing *host*:*port* as an ALIVE member of shard 0."""
    return Entity(service_endpoint=Endpoint(host, port))
