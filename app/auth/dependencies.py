from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Any, Dict
from .firebase_auth import firebase_auth
from ..models.clinic_models import SubmitterIdentity
import logging

security = HTTPBearer()
logger = logging.getLogger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Dict[str, Any]:
    """
    Decoded Firebase ID token claims: uid, name, email and the custom
    ``clinic`` claim. Identity only, no role checks.
    """
    claims = await firebase_auth.verify_token(credentials.credentials)
    if not claims or not claims.get("uid"):
        logger.warning("[Auth] Rejected bearer token")
        raise _unauthorized("Invalid authentication credentials")

    logger.debug(f"[Auth] uid={claims.get('uid')} clinic={claims.get('clinic')}")
    return claims


def get_submitter(clinic_id: str, current_user: Dict[str, Any] = Depends(get_current_user)) -> SubmitterIdentity:
    """Identity stamped on records; falls back to the path clinic when the token has no claim."""
    return SubmitterIdentity(
        uid=current_user["uid"],
        name=current_user.get("name") or current_user.get("email"),
        clinic=current_user.get("clinic") or clinic_id,
    )
