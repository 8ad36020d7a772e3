from __future__ import annotations

import enum
import uuid as uuid_mod
from dataclasses import dataclass
from typing import Any, Optional, Type


def coerce_uuid(value: Any) -> uuid_mod.UUID:
    """Accept a UUID or its string form; raise ValueError on anything else."""
    if isinstance(value, uuid_mod.UUID):
        return value
    if isinstance(value, str) and value.strip():
        return uuid_mod.UUID(value.strip())
    raise ValueError(f"not a player uuid: {value!r}")


@dataclass(frozen=True)
class PlayerRecord:
    uuid: uuid_mod.UUID
    name: Optional[str] = None
    active: bool = True

    @property
    def key(self) -> str:
        # canonical form used as the primary key in the store
        return str(self.uuid)

    @classmethod
    def from_json(cls, obj: dict) -> "PlayerRecord":
        """Build a record from a whitelist.json / ops.json entry."""
        return cls(uuid=coerce_uuid(obj.get("uuid")), name=obj.get("name") or None, active=True)


@dataclass(frozen=True)
class WhitelistEntry(PlayerRecord):
    """A whitelisted player."""


@dataclass(frozen=True)
class OperatorEntry(PlayerRecord):
    """An opped player."""


class PlayerTable(enum.Enum):
    WHITELIST = "whitelist"
    OPERATORS = "op"

    @property
    def record_type(self) -> Type[PlayerRecord]:
        return WhitelistEntry if self is PlayerTable.WHITELIST else OperatorEntry

    @property
    def label(self) -> str:
        return "whitelist" if self is PlayerTable.WHITELIST else "op list"
