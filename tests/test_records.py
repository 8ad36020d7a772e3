import dataclasses
import uuid

import pytest

from whitelist_sync.models.events import ChangeKind, ChangeRecorder
from whitelist_sync.models.records import OperatorEntry, PlayerTable, WhitelistEntry, coerce_uuid

from conftest import ALICE, BOB


def test_coerce_uuid_accepts_string_and_uuid():
    assert coerce_uuid(str(ALICE)) == ALICE
    assert coerce_uuid(f"  {str(ALICE).upper()} ") == ALICE
    assert coerce_uuid(ALICE) is ALICE


@pytest.mark.parametrize("bad", [None, "", "   ", "not-a-uuid", 42])
def test_coerce_uuid_rejects_garbage(bad):
    with pytest.raises(ValueError):
        coerce_uuid(bad)


def test_from_json_parses_server_file_entry():
    entry = WhitelistEntry.from_json({"uuid": str(ALICE), "name": "Alice"})
    assert entry == WhitelistEntry(uuid=ALICE, name="Alice", active=True)
    assert entry.key == str(ALICE)

    op = OperatorEntry.from_json({"uuid": str(BOB), "name": "Bob", "level": 4, "bypassesPlayerLimit": False})
    assert isinstance(op, OperatorEntry)
    assert op.name == "Bob"


def test_records_are_immutable():
    entry = WhitelistEntry(uuid=ALICE, name="Alice")
    with pytest.raises(dataclasses.FrozenInstanceError):
        entry.name = "Eve"


def test_variants_are_distinct():
    assert WhitelistEntry(uuid=ALICE) != OperatorEntry(uuid=ALICE)
    assert PlayerTable.WHITELIST.record_type is WhitelistEntry
    assert PlayerTable.OPERATORS.record_type is OperatorEntry


def test_change_recorder_keeps_call_order():
    rec = ChangeRecorder()
    rec.on_add(ALICE, "Alice")
    rec.on_remove(BOB, "Bob")
    rec.on_add(uuid.UUID(int=1), None)
    assert [c.kind for c in rec.changes] == [ChangeKind.ADDED, ChangeKind.REMOVED, ChangeKind.ADDED]
    assert [c.uuid for c in rec.of_kind(ChangeKind.REMOVED)] == [BOB]
