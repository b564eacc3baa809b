from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Union
from enum import Enum
import logging

logger = logging.getLogger(__name__)


class FieldType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"


# Values as typed by the user (text inputs, toggles, cleared inputs)
RawValue = Optional[Union[bool, str]]

# Values after normalization, as persisted
FieldValue = Optional[Union[bool, float, str]]


class FieldSchema(BaseModel):
    field: str = Field(..., min_length=1)
    type: FieldType = Field(default=FieldType.STRING)
    required: bool = Field(default=False)

    def to_firestore(self) -> Dict[str, Any]:
        return {"field": self.field, "type": self.type.value, "required": self.required}


def _coerce_type(value: Any) -> FieldType:
    try:
        return FieldType(str(value if value is not None else "string").strip().lower())
    except ValueError:
        return FieldType.STRING


def parse_field_schemas(raw: Any) -> List[FieldSchema]:
    """Ingest a stored field list, keeping every well-formed entry.

    Entries without a name, or whose trimmed name was already seen, are
    dropped. Unknown types fall back to ``string``.
    """
    if not isinstance(raw, (list, tuple)):
        return []

    schemas: List[FieldSchema] = []
    seen = set()
    for item in raw:
        if isinstance(item, FieldSchema):
            item = item.model_dump()
        if not isinstance(item, dict):
            logger.debug(f"Dropping non-object schema entry: {item!r}")
            continue

        name = str(item.get("field") or "").strip()
        if not name:
            continue
        if name in seen:
            logger.debug(f"Dropping duplicate schema field '{name}'")
            continue
        seen.add(name)

        required = item.get("required", False)
        if isinstance(required, str):
            required = required.strip().lower() == "true"

        schemas.append(FieldSchema(
            field=name,
            type=_coerce_type(item.get("type")),
            required=bool(required),
        ))
    return schemas


def schemas_to_firestore(schemas: List[FieldSchema]) -> List[Dict[str, Any]]:
    return [s.to_firestore() for s in schemas]
