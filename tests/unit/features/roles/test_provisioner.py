"""Unit tests for role catalog reconciliation."""

from __future__ import annotations

import logging

import pytest

from rolekeeper.core.errors import StoreConflictError, StoreError
from rolekeeper.core.types import Role, RoleDefinition
from rolekeeper.features.roles.provisioner import ProvisionStatus, RoleProvisioner
from rolekeeper.infra.memory import MemoryRoleStore

PROVISIONER_LOGGER = "rolekeeper.features.roles.provisioner"


def _definition(short_name: str, scopes: list[str] | None = None) -> RoleDefinition:
    return RoleDefinition(
        short_name=short_name,
        display_name=short_name.title(),
        scopes=scopes or [f"read:{short_name}"],
    )


class RecordingRoleStore:
    """Role store fake that records writes and can fail on demand."""

    def __init__(
        self,
        existing: list[Role] | None = None,
        *,
        find_error: Exception | None = None,
        insert_error: Exception | None = None,
        replace_error: Exception | None = None,
    ) -> None:
        self.existing = existing or []
        self.find_error = find_error
        self.insert_error = insert_error
        self.replace_error = replace_error
        self.inserted: list[RoleDefinition] = []
        self.replaced: list[tuple[str, RoleDefinition]] = []

    async def find(self, filter=None, *, limit=None) -> list[Role]:
        if self.find_error is not None:
            raise self.find_error
        short_name = (filter or {}).get("short_name")
        found = [role for role in self.existing if short_name in (None, role.short_name)]
        return found if limit is None else found[:limit]

    async def insert(self, role: RoleDefinition) -> Role:
        self.inserted.append(role)
        if self.insert_error is not None:
            raise self.insert_error
        return Role(id=f"id-{role.short_name}", **role.model_dump())

    async def replace(self, role_id: str, role: RoleDefinition) -> None:
        self.replaced.append((role_id, role))
        if self.replace_error is not None:
            raise self.replace_error


def _warnings(caplog: pytest.LogCaptureFixture) -> list[logging.LogRecord]:
    return [
        record
        for record in caplog.records
        if record.name == PROVISIONER_LOGGER and record.levelno == logging.WARNING
    ]


@pytest.mark.asyncio
async def test_unseen_short_name_is_inserted_once() -> None:
    store = RecordingRoleStore()

    outcomes = await RoleProvisioner(roles=store).reconcile([_definition("editor")])

    assert [role.short_name for role in store.inserted] == ["editor"]
    assert store.replaced == []
    assert outcomes[0].status is ProvisionStatus.INSERTED
    assert outcomes[0].role_id == "id-editor"
    assert outcomes[0].succeeded


@pytest.mark.asyncio
async def test_existing_short_name_is_replaced_by_id() -> None:
    existing = Role(id="role-7", short_name="editor", display_name="Old", scopes=["read:old"])
    store = RecordingRoleStore([existing])
    definition = _definition("editor", ["write:content"])

    outcomes = await RoleProvisioner(roles=store).reconcile([definition])

    assert store.inserted == []
    assert store.replaced == [("role-7", definition)]
    assert outcomes[0].status is ProvisionStatus.REPLACED
    assert outcomes[0].role_id == "role-7"


@pytest.mark.asyncio
async def test_insert_conflict_is_silent(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG)
    store = RecordingRoleStore(insert_error=StoreConflictError("duplicate key"))

    outcomes = await RoleProvisioner(roles=store).reconcile([_definition("editor")])

    assert outcomes[0].status is ProvisionStatus.CONFLICT
    assert _warnings(caplog) == []


@pytest.mark.asyncio
async def test_replace_conflict_is_silent(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG)
    existing = Role(id="role-7", short_name="editor", display_name="Editor", scopes=[])
    store = RecordingRoleStore([existing], replace_error=StoreConflictError("duplicate key"))

    outcomes = await RoleProvisioner(roles=store).reconcile([_definition("editor")])

    assert outcomes[0].status is ProvisionStatus.CONFLICT
    assert _warnings(caplog) == []


@pytest.mark.asyncio
async def test_insert_failure_logs_one_warning(caplog: pytest.LogCaptureFixture) -> None:
    store = RecordingRoleStore(insert_error=StoreError("disk full"))

    outcomes = await RoleProvisioner(roles=store).reconcile([_definition("editor")])

    warnings = _warnings(caplog)
    assert len(warnings) == 1
    assert warnings[0].getMessage() == "failed to add 'editor' role, disk full"
    assert warnings[0].short_name == "editor"
    assert outcomes[0].status is ProvisionStatus.FAILED
    assert outcomes[0].error == "disk full"


@pytest.mark.asyncio
async def test_replace_failure_logs_one_warning(caplog: pytest.LogCaptureFixture) -> None:
    existing = Role(id="role-7", short_name="editor", display_name="Editor", scopes=[])
    store = RecordingRoleStore([existing], replace_error=RuntimeError("timeout"))

    await RoleProvisioner(roles=store).reconcile([_definition("editor")])

    warnings = _warnings(caplog)
    assert len(warnings) == 1
    assert "editor" in warnings[0].getMessage()
    assert "update" in warnings[0].getMessage()


@pytest.mark.asyncio
async def test_all_failures_still_resolve(caplog: pytest.LogCaptureFixture) -> None:
    store = RecordingRoleStore(find_error=StoreError("offline"))
    definitions = [_definition(name) for name in ("one", "two", "three")]

    outcomes = await RoleProvisioner(roles=store).reconcile(definitions)

    assert [outcome.short_name for outcome in outcomes] == ["one", "two", "three"]
    assert all(outcome.status is ProvisionStatus.FAILED for outcome in outcomes)
    assert len(_warnings(caplog)) == 3


@pytest.mark.asyncio
async def test_one_failure_does_not_stop_the_others() -> None:
    existing = Role(id="role-1", short_name="kept", display_name="Kept", scopes=[])
    store = RecordingRoleStore([existing], insert_error=StoreError("boom"))

    outcomes = await RoleProvisioner(roles=store).reconcile(
        [_definition("kept"), _definition("fresh")]
    )

    assert [outcome.status for outcome in outcomes] == [
        ProvisionStatus.REPLACED,
        ProvisionStatus.FAILED,
    ]


@pytest.mark.asyncio
async def test_reconcile_is_idempotent_against_memory_store() -> None:
    store = MemoryRoleStore()
    provisioner = RoleProvisioner(roles=store)
    definitions = [_definition("editor"), _definition("viewer")]

    first = await provisioner.reconcile(definitions)
    second = await provisioner.reconcile(definitions)

    assert {outcome.status for outcome in first} == {ProvisionStatus.INSERTED}
    assert {outcome.status for outcome in second} == {ProvisionStatus.REPLACED}
    assert [outcome.role_id for outcome in first] == [outcome.role_id for outcome in second]
    assert len(await store.find()) == 2


@pytest.mark.asyncio
async def test_multiple_super_definitions_warn(caplog: pytest.LogCaptureFixture) -> None:
    definitions = [_definition("root", ["*:*"]), _definition("admin", ["*:*"])]

    await RoleProvisioner(roles=MemoryRoleStore()).reconcile(definitions)

    messages = [record.getMessage() for record in _warnings(caplog)]
    assert messages == ["roles.provision.multiple_super"]


@pytest.mark.asyncio
async def test_empty_catalog() -> None:
    assert await RoleProvisioner(roles=RecordingRoleStore()).reconcile([]) == []


@pytest.mark.asyncio
async def test_malformed_entry_fails_alone(caplog: pytest.LogCaptureFixture) -> None:
    store = MemoryRoleStore()
    entries = [
        {"shortName": "editor", "displayName": "Editor", "scopes": ["write:content"]},
        {"shortName": "viewer", "scopes": ["read:content"]},
    ]

    outcomes = await RoleProvisioner(roles=store).reconcile(entries)

    assert [(outcome.short_name, outcome.status) for outcome in outcomes] == [
        ("editor", ProvisionStatus.INSERTED),
        ("viewer", ProvisionStatus.FAILED),
    ]
    warnings = _warnings(caplog)
    assert len(warnings) == 1
    assert warnings[0].getMessage() == "failed to add 'viewer' role, displayName: Field required"
    assert [role.short_name for role in await store.find()] == ["editor"]


@pytest.mark.asyncio
async def test_entry_without_mapping_shape_is_reported_unnamed(
    caplog: pytest.LogCaptureFixture,
) -> None:
    outcomes = await RoleProvisioner(roles=MemoryRoleStore()).reconcile(["editor"])

    assert outcomes[0].short_name == "<unnamed>"
    assert outcomes[0].status is ProvisionStatus.FAILED
    assert len(_warnings(caplog)) == 1


@pytest.mark.asyncio
async def test_duplicate_entries_settle_per_item(caplog: pytest.LogCaptureFixture) -> None:
    store = MemoryRoleStore()
    entries = [
        {"shortName": "editor", "displayName": "Editor", "scopes": ["write:content"]},
        {"shortName": "viewer", "displayName": "Viewer", "scopes": ["read:content"]},
        {"shortName": "editor", "displayName": "Editor again", "scopes": ["write:content"]},
    ]

    outcomes = await RoleProvisioner(roles=store).reconcile(entries)

    assert [outcome.short_name for outcome in outcomes] == ["editor", "viewer", "editor"]
    assert outcomes[0].status is ProvisionStatus.INSERTED
    assert outcomes[1].status is ProvisionStatus.INSERTED
    assert outcomes[2].status in (ProvisionStatus.REPLACED, ProvisionStatus.CONFLICT)
    assert _warnings(caplog) == []
    assert sorted(role.short_name for role in await store.find()) == ["editor", "viewer"]
