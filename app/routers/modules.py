from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field
from typing import Dict, Any, List
from ..auth.dependencies import get_current_user
from ..services.module_service import module_service
from ..models.result_models import ModuleErrorCode
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/modules",
    tags=["Module Catalog"],
    responses={404: {"description": "Not found"}}
)


class ModuleCreateRequest(BaseModel):
    type_label: str
    description: str = ""
    official: bool = False
    module_index: int = 0
    setup_schema: List[Dict[str, Any]] = Field(default_factory=list)


_STATUS_BY_CODE = {
    ModuleErrorCode.LABEL_REQUIRED: 400,
    ModuleErrorCode.NOT_FOUND: 404,
    ModuleErrorCode.KEY_SPACE_EXHAUSTED: 409,
    ModuleErrorCode.STORE_ERROR: 503,
}


@router.get("", response_model=Dict[str, Any])
async def list_modules(current_user: Dict[str, Any] = Depends(get_current_user)):
    """List catalog modules ordered by moduleIndex"""
    success, modules, error = await module_service.list_modules()
    if not success:
        raise HTTPException(status_code=503, detail=error or "Failed to load modules")
    return {"success": True, "data": [m.model_dump() for m in modules], "count": len(modules)}


@router.get("/{type_key}", response_model=Dict[str, Any])
async def get_module(type_key: str, current_user: Dict[str, Any] = Depends(get_current_user)):
    success, module, error = await module_service.get_module(type_key)
    if not success:
        raise HTTPException(status_code=_STATUS_BY_CODE[error.code], detail=error.model_dump(mode="json"))
    return {"success": True, "data": module.model_dump()}


@router.post("", response_model=Dict[str, Any], status_code=201)
async def create_module(
    request: ModuleCreateRequest,
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    """Create a clinic-defined module; the key is suffixed -2, -3, ... when taken"""
    success, module, error = await module_service.create_module(
        request.type_label,
        setup_schema=request.setup_schema,
        description=request.description,
        official=request.official,
        module_index=request.module_index,
        created_by=current_user.get("uid"),
    )
    if not success:
        raise HTTPException(status_code=_STATUS_BY_CODE[error.code], detail=error.model_dump(mode="json"))
    return {"success": True, "message": "Module created", "data": module.model_dump()}
