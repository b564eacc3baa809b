from fastapi import APIRouter, HTTPException, Depends
from typing import Dict, Any
from ..auth.dependencies import get_current_user
from ..services.cycle_counter_service import cycle_counter_service, CounterReadError
from ..models.clinic_models import CounterRef
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/clinics/{clinic_id}/cycles",
    tags=["Sterilizer Cycles"],
)


@router.get("/{unit_id}", response_model=Dict[str, Any])
async def get_cycle_count(
    clinic_id: str,
    unit_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    """Cycles run today on a unit and the number of the next cycle"""
    unit = CounterRef(clinic_id=clinic_id, unit_id=unit_id)
    try:
        count = await cycle_counter_service.current_cycle_count(unit)
    except CounterReadError as e:
        raise HTTPException(status_code=503, detail=f"Error loading cycle: {e}")
    return {"success": True, "data": {"unit_id": unit_id, "cycle_count": count, "next_cycle_number": count + 1}}
