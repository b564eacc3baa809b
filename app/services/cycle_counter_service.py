from typing import Optional, Tuple
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo
import logging

from ..core.config import settings
from ..database.database_service import database_service
from ..database.collections import cycle_counter_path, cycle_counters_path
from ..models.clinic_models import CounterRef, CycleCounterState
from .server_time_service import server_time_service

logger = logging.getLogger(__name__)


class CounterReadError(Exception):
    """The counter document could not be read (distinct from "never written")."""


# ----------------------------
# Time helpers (clinic TZ)
# ----------------------------
def clinic_timezone(name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(name or settings.CLINIC_TIMEZONE)


def clinic_day(instant: datetime, tz: Optional[ZoneInfo] = None) -> date:
    # Naive datetimes are treated as UTC, which is what Firestore stores
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(tz or clinic_timezone()).date()


def is_same_clinic_day(a: datetime, b: datetime, tz: Optional[ZoneInfo] = None) -> bool:
    tz = tz or clinic_timezone()
    return clinic_day(a, tz) == clinic_day(b, tz)


def derive_cycle_count(state: Optional[CycleCounterState], server_now: datetime,
                       tz: Optional[ZoneInfo] = None) -> int:
    """Cycles run today given the last written counter and the server instant.

    A counter stamped on an earlier clinic day reads as 0; it is only rewritten
    by the next successful cycle.
    """
    if state is None or state.updated_at is None:
        return 0
    if is_same_clinic_day(state.updated_at, server_now, tz):
        return state.cycle_count
    return 0


class CycleCounterService:
    def __init__(self, db=None, server_time=None, timezone_name: Optional[str] = None):
        self.db = db or database_service
        self.server_time = server_time or server_time_service
        self.tz = clinic_timezone(timezone_name)

    async def read_state(self, unit: CounterRef) -> Tuple[bool, Optional[CycleCounterState], Optional[str]]:
        """Read the counter document. (True, None, None) means it does not exist."""
        success, data, error = await self.db.get_document(cycle_counters_path(unit.clinic_id), unit.unit_id)
        if not success:
            return False, None, error
        if data is None:
            return True, None, None

        state = CycleCounterState.from_firestore(data)
        if state is None:
            logger.warning(f"Counter for unit {unit.unit_id} has no usable cycleCount, reading as 0")
        return True, state, None

    async def current_cycle_count(self, unit: CounterRef) -> int:
        success, state, error = await self.read_state(unit)
        if not success:
            logger.error(f"Failed to read cycle counter for unit {unit.unit_id}: {error}")
            raise CounterReadError(error or "Failed to read cycle counter")

        if state is None:
            # Unit has never completed a cycle
            return 0

        server_now = await self.server_time.get_server_now()
        count = derive_cycle_count(state, server_now, self.tz)
        logger.debug(
            f"Unit {unit.unit_id}: stored {state.cycle_count} at {state.updated_at}, "
            f"server now {server_now}, today {count}"
        )
        return count

    async def next_cycle_number(self, unit: CounterRef) -> int:
        return await self.current_cycle_count(unit) + 1

    def advance_cycle_count(self, batch, unit: CounterRef, new_count: int) -> None:
        """Stage ``cycleCount = new_count`` on ``batch``; the caller commits.

        Merge write so other fields on the counter document survive.
        """
        if isinstance(new_count, bool) or not isinstance(new_count, int) or new_count < 0:
            raise ValueError(f"Cycle count must be a non-negative integer, got {new_count!r}")

        batch.set(
            cycle_counter_path(unit.clinic_id, unit.unit_id),
            {'cycleCount': new_count, 'updatedAt': self.db.server_timestamp()},
            merge=True,
        )


cycle_counter_service = CycleCounterService()
