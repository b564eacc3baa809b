from fastapi import APIRouter
from pydantic import BaseModel, Field
from typing import Dict, Any, List
from ..models.schema_models import parse_field_schemas
from ..services.field_validation_service import validate

router = APIRouter(
    prefix="/validate",
    tags=["Validation"],
)


class ValidateRequest(BaseModel):
    schema_fields: List[Dict[str, Any]] = Field(default_factory=list, alias="schema")
    values: Dict[str, Any] = Field(default_factory=dict)


@router.post("", response_model=Dict[str, Any])
async def validate_values(request: ValidateRequest):
    """Dry-run validation so the client can highlight a field before submitting"""
    schema = parse_field_schemas(request.schema_fields)
    ok, values, error = validate(schema, request.values)
    return {
        "success": ok,
        "data": values,
        "error": error.model_dump(mode="json") if error else None,
    }
