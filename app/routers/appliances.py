from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field
from typing import Dict, Any, List, Optional
from ..auth.dependencies import get_current_user
from ..services.appliance_service import appliance_service
from ..services.module_service import module_service
from ..models.clinic_models import ApplianceRef
from ..models.result_models import ModuleErrorCode, RegistrationErrorCode
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/clinics/{clinic_id}/rooms/{room_id}/appliances",
    tags=["Appliances"],
    responses={404: {"description": "Not found"}}
)


class ApplianceCreateRequest(BaseModel):
    type_key: str
    name: str
    setup_values: Dict[str, Any] = Field(default_factory=dict)
    record_schema: Optional[List[Dict[str, Any]]] = None


_STATUS_BY_CODE = {
    RegistrationErrorCode.NAME_REQUIRED: 400,
    RegistrationErrorCode.VALIDATION_FAILED: 400,
    RegistrationErrorCode.ROOM_NOT_FOUND: 404,
    RegistrationErrorCode.NAME_COLLISION: 409,
    RegistrationErrorCode.STORE_ERROR: 503,
}


@router.post("", response_model=Dict[str, Any], status_code=201)
async def register_appliance(
    clinic_id: str,
    room_id: str,
    request: ApplianceCreateRequest,
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    """Add an appliance of a catalog module to a room"""
    got, module, module_error = await module_service.get_module(request.type_key)
    if not got:
        status_code = 404 if module_error.code == ModuleErrorCode.NOT_FOUND else 503
        raise HTTPException(status_code=status_code, detail=module_error.model_dump(mode="json"))

    success, appliance, error = await appliance_service.register_appliance(
        clinic_id,
        room_id,
        module,
        request.name,
        request.setup_values,
        record_schema=request.record_schema,
        created_by=current_user.get("uid"),
    )
    if not success:
        raise HTTPException(status_code=_STATUS_BY_CODE[error.code], detail=error.model_dump(mode="json"))

    return {"success": True, "message": f'Added "{appliance.name}"', "data": appliance.model_dump(mode="json")}


@router.get("", response_model=Dict[str, Any])
async def list_appliances(
    clinic_id: str,
    room_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    success, entries, error = await appliance_service.list_room_appliances(clinic_id, room_id)
    if not success:
        raise HTTPException(status_code=404, detail=error)
    return {"success": True, "data": [e.model_dump() for e in entries], "count": len(entries)}


@router.get("/{appliance_id}", response_model=Dict[str, Any])
async def get_appliance(
    clinic_id: str,
    room_id: str,
    appliance_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    ref = ApplianceRef(clinic_id=clinic_id, room_id=room_id, appliance_id=appliance_id)
    success, appliance, error = await appliance_service.get_appliance(ref)
    if not success:
        raise HTTPException(status_code=404, detail=error or "Appliance not found")
    return {"success": True, "data": appliance.model_dump(mode="json")}
