"""
Unit tests for the TTLock sync service and its operation state machine.
"""

import asyncio
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from lockmaster.models.enums import OperationState
from lockmaster.models.schemas import TTLockCredentialRequest
from lockmaster.services.sync_service import (
    SyncOperation,
    determine_lock_type,
    extract_building,
    extract_unit,
)
from lockmaster.utils.exceptions import (
    OperationInProgressError,
    TTLockError,
    TTLockNotConfiguredError,
    ValidationFailedError,
)
from tests.factories import create_lock, create_user, ttlock_lock


# ============================================================================
# Name parsing
# ============================================================================

class TestNameParsing:

    @pytest.mark.parametrize("name, building", [
        ("Building A Main Entrance", "Building A"),
        ("building 12 gym", "Building 12"),
        ("Pool Gate", None),
    ])
    def test_extract_building(self, name, building):
        assert extract_building(name) == building

    @pytest.mark.parametrize("name, unit", [
        ("Unit 101 Front Door", "101"),
        ("Apartment 4B", "4B"),
        ("Door 12A", "12A"),
        ("Pool Gate", ""),
    ])
    def test_extract_unit(self, name, unit):
        assert extract_unit(name) == unit

    @pytest.mark.parametrize("name, lock_type", [
        ("Main Lobby", "main_entrance"),
        ("North Entrance", "main_entrance"),
        ("Apartment 4B", "unit_door"),
        ("Gym Door", "amenity"),
        ("Storage", "unit_door"),
    ])
    def test_determine_lock_type(self, name, lock_type):
        assert determine_lock_type(name) == lock_type


# ============================================================================
# State machine
# ============================================================================

class TestSyncOperation:

    def test_starts_idle(self):
        assert SyncOperation("sync").state is OperationState.IDLE

    def test_success_path(self):
        op = SyncOperation("sync")
        op.begin()
        assert op.state is OperationState.PENDING
        op.succeed()
        assert op.state is OperationState.SUCCESS
        assert op.finished_at is not None

    def test_failure_keeps_error(self):
        op = SyncOperation("sync")
        op.begin()
        op.fail("boom")
        snapshot = op.snapshot()
        assert snapshot.state == "failure"
        assert snapshot.error == "boom"

    def test_cannot_begin_twice(self):
        op = SyncOperation("sync")
        op.begin()
        with pytest.raises(OperationInProgressError):
            op.begin()

    def test_cannot_finish_when_idle(self):
        with pytest.raises(OperationInProgressError):
            SyncOperation("sync").succeed()

    def test_restart_after_finish(self):
        op = SyncOperation("sync")
        op.begin()
        op.cancel()
        op.begin()
        assert op.state is OperationState.PENDING
        assert op.error is None


# ============================================================================
# Service
# ============================================================================

class TestTTLockSyncService:

    @pytest.mark.asyncio
    async def test_connect_records_account(self, sync_service):
        status = await sync_service.connect()
        assert status.connected
        assert status.account.username == "manager@example.com"
        assert sync_service.operations["connect"].state is OperationState.SUCCESS

    @pytest.mark.asyncio
    async def test_failed_connect_leaves_disconnected(self, sync_service, fake_ttlock):
        fake_ttlock.fail_auth = True
        with pytest.raises(TTLockError):
            await sync_service.connect()
        status = sync_service.status()
        assert not status.connected
        assert sync_service.operations["connect"].state is OperationState.FAILURE

    @pytest.mark.asyncio
    async def test_discover_requires_account(self, sync_service):
        with pytest.raises(TTLockNotConfiguredError):
            await sync_service.discover_locks()

    @pytest.mark.asyncio
    async def test_import_maps_and_skips_existing(self, sync_service, fake_ttlock, entities):
        create_lock(entities, lock_id="1002", lock_name="Already here")
        fake_ttlock.locks = [
            ttlock_lock(1001, "Building A Main Entrance", electricQuantity=15, isOnline=False),
            ttlock_lock(1002, "Building A Unit 101"),
            ttlock_lock(1003, "Pool Gate"),
        ]
        await sync_service.connect()
        await sync_service.discover_locks()

        result = sync_service.import_locks(entities)

        assert result.imported == 2
        assert result.skipped == 1
        main = entities.locks.filter({"lock_id": "1001"})[0]
        assert main.lock_type == "main_entrance"
        assert main.status == "offline"
        assert main.battery_level == 15
        assert main.ttlock_mac == "AA:BB:CC:DD:EE:FF"
        assert entities.buildings.get(main.building_id).name == "Building A"
        pool = entities.locks.filter({"lock_id": "1003"})[0]
        assert entities.buildings.get(pool.building_id).name == "IMPORTED"

    @pytest.mark.asyncio
    async def test_import_selected_ids(self, sync_service, fake_ttlock, entities):
        fake_ttlock.locks = [ttlock_lock(1, "Unit 1"), ttlock_lock(2, "Unit 2")]
        await sync_service.connect()
        await sync_service.discover_locks()

        result = sync_service.import_locks(entities, [2])

        assert result.imported == 1
        assert [lock.lock_id for lock in entities.locks.list()] == ["2"]

    @pytest.mark.asyncio
    async def test_background_sync_imports(self, sync_service, fake_ttlock, database):
        fake_ttlock.locks = [ttlock_lock(501, "Apartment 5C")]
        await sync_service.connect()

        sync_service.start_sync()
        result = await sync_service.wait_for_sync()

        assert result.imported == 1
        assert sync_service.operations["sync"].state is OperationState.SUCCESS
        assert sync_service.status().last_sync is not None

    @pytest.mark.asyncio
    async def test_second_sync_while_pending_is_refused(self, sync_service, fake_ttlock):
        fake_ttlock.list_delay = 5
        await sync_service.connect()
        sync_service.start_sync()
        await asyncio.sleep(0)

        with pytest.raises(OperationInProgressError):
            sync_service.start_sync()

        sync_service.cancel()
        await sync_service.wait_for_sync()

    @pytest.mark.asyncio
    async def test_cancel_running_sync(self, sync_service, fake_ttlock):
        fake_ttlock.list_delay = 5
        await sync_service.connect()
        sync_service.start_sync()
        await asyncio.sleep(0)

        status = sync_service.cancel()

        assert await sync_service.wait_for_sync() is None
        assert sync_service.operations["sync"].state is OperationState.CANCELLED
        assert any(op.state == "cancelled" for op in status.operations)

    def test_cancel_without_sync_is_refused(self, sync_service):
        with pytest.raises(OperationInProgressError):
            sync_service.cancel()

    @pytest.mark.asyncio
    async def test_create_passcode_credential(self, sync_service, fake_ttlock, entities):
        user = create_user(entities)
        lock = create_lock(entities, lock_id="4242")
        await sync_service.connect()

        credential = await sync_service.create_credential(entities, TTLockCredentialRequest(
            lock_id=lock.id, user_id=user.id, credential_type="pin", key_name="Cleaner",
            pin="135790", start_date=datetime(2024, 3, 1, 9), end_date=datetime(2024, 3, 8, 9),
        ))

        assert fake_ttlock.passcodes[0][:3] == (4242, "135790", "Cleaner")
        assert credential.credential_value == "135790"
        assert credential.ttlock_credential_id == "9001"
        assert credential.valid_until == datetime(2024, 3, 8, 9)

    @pytest.mark.asyncio
    async def test_card_credential_needs_number(self, sync_service, entities):
        user = create_user(entities)
        lock = create_lock(entities, lock_id="4242")
        await sync_service.connect()

        with pytest.raises(ValidationFailedError, match="card_number"):
            await sync_service.create_credential(entities, TTLockCredentialRequest(
                lock_id=lock.id, user_id=user.id, credential_type="rfid_card", key_name="Fob",
                start_date=datetime(2024, 3, 1), end_date=datetime(2024, 3, 8),
            ))

    @pytest.mark.asyncio
    async def test_non_vendor_lock_is_rejected(self, sync_service, entities):
        user = create_user(entities)
        lock = create_lock(entities, lock_id="manual-door")
        await sync_service.connect()

        with pytest.raises(ValidationFailedError, match="not a TTLock device"):
            await sync_service.create_credential(entities, TTLockCredentialRequest(
                lock_id=lock.id, user_id=user.id, credential_type="pin", key_name="Guest",
                pin="2468", start_date=datetime(2024, 3, 1), end_date=datetime(2024, 3, 8),
            ))

    @pytest.mark.asyncio
    async def test_invalid_pin_never_reaches_the_lock(self, sync_service, fake_ttlock, entities):
        user = create_user(entities)
        lock = create_lock(entities, lock_id="4242")
        await sync_service.connect()
        request = TTLockCredentialRequest.model_construct(
            lock_id=lock.id, user_id=user.id, credential_type="pin", key_name="Guest",
            pin="123456789", card_number=None,
            start_date=datetime(2024, 1, 1), end_date=datetime(2024, 2, 1),
        )

        with pytest.raises(ValidationFailedError, match="4 to 8 digits"):
            await sync_service.create_credential(entities, request)

        assert fake_ttlock.passcodes == []
        assert entities.credentials.list() == []

    def test_pin_schema_matches_local_rules(self):
        with pytest.raises(PydanticValidationError):
            TTLockCredentialRequest(
                lock_id="l", user_id="u", key_name="Guest", pin="12ab",
                start_date=datetime(2024, 1, 1), end_date=datetime(2024, 2, 1),
            )

    @pytest.mark.asyncio
    async def test_mixed_offset_window_is_compared_in_utc(self, sync_service, fake_ttlock, entities):
        user = create_user(entities)
        lock = create_lock(entities, lock_id="4242")
        await sync_service.connect()

        credential = await sync_service.create_credential(entities, TTLockCredentialRequest(
            lock_id=lock.id, user_id=user.id, credential_type="pin", key_name="Guest",
            pin="2468", start_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
            end_date=datetime(2024, 2, 1),
        ))

        assert credential.ttlock_credential_id == "9001"
        assert len(fake_ttlock.passcodes) == 1

    @pytest.mark.asyncio
    async def test_reversed_window_is_rejected_before_push(self, sync_service, fake_ttlock, entities):
        user = create_user(entities)
        lock = create_lock(entities, lock_id="4242")
        await sync_service.connect()

        with pytest.raises(ValidationFailedError, match="valid_until"):
            await sync_service.create_credential(entities, TTLockCredentialRequest(
                lock_id=lock.id, user_id=user.id, credential_type="pin", key_name="Guest",
                pin="2468", start_date=datetime(2024, 2, 1, tzinfo=timezone.utc),
                end_date=datetime(2024, 1, 1),
            ))
        assert fake_ttlock.passcodes == []

    @pytest.mark.asyncio
    async def test_refused_operation_leaves_no_pending_coroutine(self, sync_service):
        built = []

        async def work():
            built.append(True)

        sync_service.operations["discover"].begin()

        with pytest.raises(OperationInProgressError):
            await sync_service._run("discover", work)
        assert built == []
