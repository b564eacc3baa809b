from typing import Any, Dict, List, Optional, Tuple, Union
import logging

from ..database.database_service import database_service, TransactionAbort
from ..database.collections import appliance_path, appliances_path, room_path, rooms_path
from ..models.clinic_models import ApplianceInstance, ApplianceRef, ModuleDefinition, RoomIndexEntry
from ..models.schema_models import FieldSchema, RawValue, parse_field_schemas
from ..models.result_models import RegistrationError, RegistrationErrorCode
from .field_validation_service import validate
from .key_service import derive_key

logger = logging.getLogger(__name__)


class NameCollision(TransactionAbort):
    pass


class RoomNotFound(TransactionAbort):
    pass


class ApplianceService:
    def __init__(self, db=None):
        self.db = db or database_service

    async def register_appliance(
        self,
        clinic_id: str,
        room_id: str,
        module: ModuleDefinition,
        name: str,
        raw_setup_values: Dict[str, RawValue],
        record_schema: Optional[List[Union[FieldSchema, Dict[str, Any]]]] = None,
        created_by: Optional[str] = None,
    ) -> Tuple[bool, Optional[ApplianceInstance], Optional[RegistrationError]]:
        """Create an appliance in a room and append it to the room's applianceList.

        Validation happens before any store access. The collision check, the
        room read and both writes run in one transaction, so two concurrent
        registrations of the same name cannot both commit.
        """
        name = (name or "").strip()
        if not name:
            return False, None, RegistrationError(
                code=RegistrationErrorCode.NAME_REQUIRED,
                message="Please enter appliance name.",
            )

        ok, setup_values, field_error = validate(module.setup_schema, raw_setup_values or {})
        if not ok:
            return False, None, RegistrationError(
                code=RegistrationErrorCode.VALIDATION_FAILED,
                message=field_error.message,
                field_error=field_error,
            )

        appliance_id = derive_key(name, prefix="appliance")
        appliance = ApplianceInstance(
            id=appliance_id,
            clinic_id=clinic_id,
            room_id=room_id,
            name=name,
            type_key=module.type_key,
            type_label=module.type_label,
            official=module.official,
            setup_values=setup_values,
            record_schema=parse_field_schemas(record_schema or []),
            created_by=created_by,
        )

        target_path = appliance_path(clinic_id, room_id, appliance_id)
        parent_path = room_path(clinic_id, room_id)
        appliance_doc = {**appliance.to_firestore(), 'createdAt': self.db.server_timestamp()}
        entry = appliance.index_entry().to_firestore()

        def _register(txn):
            if txn.get(target_path) is not None:
                raise NameCollision(appliance_id)

            room = txn.get(parent_path)
            if room is None:
                raise RoomNotFound(room_id)

            current_list = room.get('applianceList')
            if not isinstance(current_list, list):
                current_list = []

            txn.create(target_path, appliance_doc)
            txn.update(parent_path, {'applianceList': current_list + [entry]})

        try:
            await self.db.run_transaction(_register)
        except NameCollision:
            logger.info(f"Appliance '{appliance_id}' already exists in room {room_id}")
            return False, None, RegistrationError(
                code=RegistrationErrorCode.NAME_COLLISION,
                message=f'An appliance named "{name}" already exists in this room. Choose a different name.',
                appliance_id=appliance_id,
            )
        except RoomNotFound:
            logger.info(f"Room {room_id} not found while adding '{appliance_id}'")
            return False, None, RegistrationError(
                code=RegistrationErrorCode.ROOM_NOT_FOUND,
                message="Room does not exist.",
                appliance_id=appliance_id,
            )
        except Exception as e:
            # Outcome unknown (e.g. timeout after commit): re-read before retrying
            logger.error(f"Error registering appliance '{appliance_id}' in room {room_id}: {e}")
            return False, None, RegistrationError(
                code=RegistrationErrorCode.STORE_ERROR,
                message=f"Failed to add appliance: {e}",
                appliance_id=appliance_id,
                retryable=True,
            )

        logger.info(f"Added appliance '{appliance_id}' ({module.type_key}) to room {room_id}")

        # Resolve the server timestamp; the write already succeeded either way
        got, stored, _ = await self.get_appliance(appliance.ref)
        if got and stored:
            return True, stored, None
        return True, appliance, None

    async def get_appliance(self, ref: ApplianceRef) -> Tuple[bool, Optional[ApplianceInstance], Optional[str]]:
        success, data, error = await self.db.get_document(
            appliances_path(ref.clinic_id, ref.room_id), ref.appliance_id
        )
        if not success:
            return False, None, error
        if data is None:
            return False, None, f"Appliance {ref.appliance_id} not found"
        return True, ApplianceInstance.from_firestore(ref, data), None

    async def list_room_appliances(self, clinic_id: str, room_id: str) -> Tuple[bool, List[RoomIndexEntry], Optional[str]]:
        """Read the room's applianceList projection, in insertion order."""
        success, room, error = await self.db.get_document(
            rooms_path(clinic_id), room_id
        )
        if not success:
            return False, [], error
        if room is None:
            return False, [], f"Room {room_id} not found"

        raw_list = room.get('applianceList')
        if not isinstance(raw_list, list):
            return True, [], None
        entries = [RoomIndexEntry.from_firestore(item) for item in raw_list if isinstance(item, dict)]
        return True, entries, None


appliance_service = ApplianceService()
