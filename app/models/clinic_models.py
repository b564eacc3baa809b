from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from .schema_models import FieldSchema, FieldValue, parse_field_schemas, schemas_to_firestore


# Module (equipment type) catalog entry
class ModuleDefinition(BaseModel):
    type_key: str
    type_label: str
    description: str = Field(default="")
    module_index: int = Field(default=0)
    official: bool = Field(default=False)  # shipped catalog vs clinic-defined
    setup_schema: List[FieldSchema] = Field(default_factory=list)
    created_by: Optional[str] = None

    @classmethod
    def from_firestore(cls, type_key: str, data: Dict[str, Any]) -> "ModuleDefinition":
        label = data.get('typeLabel') or data.get('moduleName') or type_key
        try:
            module_index = int(data.get('moduleIndex') or 0)
        except (TypeError, ValueError):
            module_index = 0
        return cls(
            type_key=data.get('typeKey') or type_key,
            type_label=str(label),
            description=str(data.get('description') or ''),
            module_index=module_index,
            official=bool(data.get('official', False)),
            setup_schema=parse_field_schemas(data.get('setupConfig')),
            created_by=data.get('createdBy'),
        )

    def to_firestore(self) -> Dict[str, Any]:
        doc = {
            'typeKey': self.type_key,
            'typeLabel': self.type_label,
            'moduleName': self.type_label,
            'description': self.description,
            'moduleIndex': self.module_index,
            'official': self.official,
            'setupConfig': schemas_to_firestore(self.setup_schema),
        }
        if self.created_by:
            doc['createdBy'] = self.created_by
        return doc


# Denormalized projection kept on rooms/{roomId}.applianceList
class RoomIndexEntry(BaseModel):
    id: str
    name: str
    type_key: str
    type_label: str

    def to_firestore(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'typeKey': self.type_key, 'typeLabel': self.type_label}

    @classmethod
    def from_firestore(cls, data: Dict[str, Any]) -> "RoomIndexEntry":
        return cls(
            id=str(data.get('id') or ''),
            name=str(data.get('name') or ''),
            type_key=str(data.get('typeKey') or ''),
            type_label=str(data.get('typeLabel') or ''),
        )


class ApplianceRef(BaseModel):
    clinic_id: str
    room_id: str
    appliance_id: str


class ApplianceInstance(BaseModel):
    id: str
    clinic_id: str
    room_id: str
    name: str
    type_key: str
    type_label: str
    official: bool = Field(default=False)
    setup_values: Dict[str, FieldValue] = Field(default_factory=dict)
    record_schema: List[FieldSchema] = Field(default_factory=list)
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def ref(self) -> ApplianceRef:
        return ApplianceRef(clinic_id=self.clinic_id, room_id=self.room_id, appliance_id=self.id)

    def index_entry(self) -> RoomIndexEntry:
        return RoomIndexEntry(id=self.id, name=self.name, type_key=self.type_key, type_label=self.type_label)

    def to_firestore(self) -> Dict[str, Any]:
        doc = {
            'applianceName': self.name,
            'typeKey': self.type_key,
            'typeLabel': self.type_label,
            'official': self.official,
            'setupConfigValues': dict(self.setup_values),
            'recordFields': schemas_to_firestore(self.record_schema),
        }
        if self.created_by:
            doc['createdBy'] = self.created_by
        return doc

    @classmethod
    def from_firestore(cls, ref: ApplianceRef, data: Dict[str, Any]) -> "ApplianceInstance":
        created_at = data.get('createdAt')
        return cls(
            id=ref.appliance_id,
            clinic_id=ref.clinic_id,
            room_id=ref.room_id,
            name=str(data.get('applianceName') or ''),
            type_key=str(data.get('typeKey') or ''),
            type_label=str(data.get('typeLabel') or ''),
            official=bool(data.get('official', False)),
            setup_values=dict(data.get('setupConfigValues') or {}),
            record_schema=parse_field_schemas(data.get('recordFields')),
            created_by=data.get('createdBy'),
            created_at=created_at if isinstance(created_at, datetime) else None,
        )


# Who submitted a record, snapshotted at write time
class SubmitterIdentity(BaseModel):
    uid: str
    name: Optional[str] = None
    clinic: Optional[str] = None


class RecordEntry(BaseModel):
    id: str
    appliance: ApplianceRef
    values: Dict[str, FieldValue] = Field(default_factory=dict)
    submitted_by: SubmitterIdentity
    cycle_number: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_firestore(cls, record_id: str, appliance: ApplianceRef, data: Dict[str, Any]) -> "RecordEntry":
        created_at = data.get('createdAt')
        cycle_number = data.get('cycleNumber')
        return cls(
            id=record_id,
            appliance=appliance,
            values=dict(data.get('values') or {}),
            submitted_by=SubmitterIdentity(
                uid=str(data.get('userID') or ''),
                name=data.get('username'),
                clinic=data.get('clinic'),
            ),
            cycle_number=cycle_number if isinstance(cycle_number, int) else None,
            created_at=created_at if isinstance(created_at, datetime) else None,
        )


# Sterilization unit whose daily cycles are counted
class CounterRef(BaseModel):
    clinic_id: str
    unit_id: str


class CycleAdvance(BaseModel):
    unit: CounterRef
    new_count: int  # absolute target, never a relative increment


class CycleCounterState(BaseModel):
    cycle_count: int = Field(default=0, ge=0)
    updated_at: Optional[datetime] = None

    @classmethod
    def from_firestore(cls, data: Dict[str, Any]) -> Optional["CycleCounterState"]:
        count = data.get('cycleCount')
        # bool is an int subclass; neither it nor a negative value is a count
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            return None
        updated_at = data.get('updatedAt')
        return cls(
            cycle_count=count,
            updated_at=updated_at if isinstance(updated_at, datetime) else None,
        )
