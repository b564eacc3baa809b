from fastapi import APIRouter, HTTPException, Depends, Query
from pydantic import BaseModel, Field
from typing import Dict, Any, Optional
from ..auth.dependencies import get_current_user, get_submitter
from ..services.record_service import record_service
from ..models.clinic_models import ApplianceRef, CounterRef, CycleAdvance, SubmitterIdentity
from ..models.result_models import SubmissionErrorCode
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/clinics/{clinic_id}/rooms/{room_id}/appliances/{appliance_id}/records",
    tags=["Records"],
    responses={404: {"description": "Not found"}}
)


class CyclePayload(BaseModel):
    unit_id: str
    new_count: int


class RecordCreateRequest(BaseModel):
    values: Dict[str, Any] = Field(default_factory=dict)
    cycle: Optional[CyclePayload] = None
    record_id: Optional[str] = None  # client-chosen id makes retries idempotent


_STATUS_BY_CODE = {
    SubmissionErrorCode.VALIDATION_FAILED: 400,
    SubmissionErrorCode.INVALID_CYCLE: 400,
    SubmissionErrorCode.RECORD_EXISTS: 409,
    SubmissionErrorCode.STORE_ERROR: 503,
}


@router.post("", response_model=Dict[str, Any], status_code=201)
async def submit_record(
    clinic_id: str,
    room_id: str,
    appliance_id: str,
    request: RecordCreateRequest,
    submitter: SubmitterIdentity = Depends(get_submitter)
):
    """Validate against the appliance's record fields and append the record"""
    appliance = ApplianceRef(clinic_id=clinic_id, room_id=room_id, appliance_id=appliance_id)

    got, record_schema, error = await record_service.load_record_schema(appliance)
    if not got:
        raise HTTPException(status_code=404, detail=error or "Appliance not found")

    cycle_advance = None
    if request.cycle is not None:
        cycle_advance = CycleAdvance(
            unit=CounterRef(clinic_id=clinic_id, unit_id=request.cycle.unit_id),
            new_count=request.cycle.new_count,
        )

    success, entry, submission_error = await record_service.submit_record(
        appliance,
        record_schema,
        request.values,
        submitter,
        cycle_advance=cycle_advance,
        record_id=request.record_id,
    )
    if not success:
        raise HTTPException(
            status_code=_STATUS_BY_CODE[submission_error.code],
            detail=submission_error.model_dump(mode="json"),
        )
    return {"success": True, "message": "Record saved", "data": entry.model_dump(mode="json")}


@router.get("", response_model=Dict[str, Any])
async def list_records(
    clinic_id: str,
    room_id: str,
    appliance_id: str,
    limit: Optional[int] = Query(None, ge=1, le=500, description="Maximum records to return"),
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    appliance = ApplianceRef(clinic_id=clinic_id, room_id=room_id, appliance_id=appliance_id)
    success, entries, error = await record_service.list_records(appliance, limit=limit)
    if not success:
        raise HTTPException(status_code=503, detail=error)
    return {"success": True, "data": [e.model_dump(mode="json") for e in entries], "count": len(entries)}
