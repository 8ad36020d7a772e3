from __future__ import annotations

import enum
import uuid as uuid_mod
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

# on_add / on_remove: called with (uuid, name); may return an awaitable
PlayerCallback = Callable[[uuid_mod.UUID, Optional[str]], Union[None, Awaitable[None]]]


class ChangeKind(str, enum.Enum):
    ADDED = "added"
    REMOVED = "removed"


@dataclass(frozen=True)
class PlayerChange:
    kind: ChangeKind
    uuid: uuid_mod.UUID
    name: Optional[str]


class ChangeRecorder:
    """Collects pull callbacks as tagged PlayerChange events, in call order."""

    def __init__(self):
        self.changes: list[PlayerChange] = []

    def on_add(self, uuid: uuid_mod.UUID, name: Optional[str]) -> None:
        self.changes.append(PlayerChange(ChangeKind.ADDED, uuid, name))

    def on_remove(self, uuid: uuid_mod.UUID, name: Optional[str]) -> None:
        self.changes.append(PlayerChange(ChangeKind.REMOVED, uuid, name))

    def of_kind(self, kind: ChangeKind) -> list[PlayerChange]:
        return [c for c in self.changes if c.kind is kind]
