from firebase_admin import auth
from typing import Any, Dict, Optional
import asyncio
import logging

from ..core.firebase_init import initialize_firebase, is_firebase_available

logger = logging.getLogger(__name__)


class FirebaseAuth:
    """Verifies Firebase ID tokens issued to clinic staff devices."""

    def _ensure_initialized(self):
        if not is_firebase_available() and not initialize_firebase():
            raise RuntimeError("Firebase is not initialized; cannot verify tokens")

    async def verify_token(self, token: str) -> Optional[Dict[str, Any]]:
        """Decoded claims, or None for any invalid, expired or revoked token."""
        try:
            self._ensure_initialized()
            # verify_id_token may fetch signing keys over the network
            return await asyncio.to_thread(auth.verify_id_token, token)
        except (auth.InvalidIdTokenError, auth.ExpiredIdTokenError, auth.RevokedIdTokenError) as e:
            logger.warning(f"Token rejected: {e}")
            return None
        except Exception as e:
            logger.error(f"Token verification failed: {e}")
            return None


firebase_auth = FirebaseAuth()
