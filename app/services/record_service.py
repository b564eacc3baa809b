from typing import Any, Dict, List, Mapping, Optional, Tuple
import logging

from ..core.config import settings
from ..database.database_service import database_service
from ..database.collections import records_path
from ..models.clinic_models import ApplianceRef, CycleAdvance, RecordEntry, SubmitterIdentity
from ..models.schema_models import FieldSchema
from ..models.result_models import SubmissionError, SubmissionErrorCode
from .appliance_service import appliance_service
from .cycle_counter_service import cycle_counter_service
from .field_validation_service import validate

logger = logging.getLogger(__name__)


class RecordService:
    def __init__(self, db=None, cycle_counter=None, appliances=None):
        self.db = db or database_service
        self.cycle_counter = cycle_counter or cycle_counter_service
        self.appliances = appliances or appliance_service

    async def load_record_schema(self, appliance: ApplianceRef) -> Tuple[bool, List[FieldSchema], Optional[str]]:
        """Record-time schema of an appliance, as currently stored."""
        success, instance, error = await self.appliances.get_appliance(appliance)
        if not success or instance is None:
            return False, [], error
        return True, instance.record_schema, None

    async def submit_record(
        self,
        appliance: ApplianceRef,
        record_schema: List[FieldSchema],
        raw_values: Mapping[str, Any],
        submitter: SubmitterIdentity,
        cycle_advance: Optional[CycleAdvance] = None,
        record_id: Optional[str] = None,
    ) -> Tuple[bool, Optional[RecordEntry], Optional[SubmissionError]]:
        """Append a record and, for cycle workflows, move the unit's counter.

        Both writes go into one batch: a record is never stored without its
        counter update and vice versa. The record is created, never overwritten.
        Resubmitting an identical record under the same ``record_id`` returns the
        stored entry; different content under a taken id is ``RECORD_EXISTS``.
        """
        ok, values, field_error = validate(record_schema, raw_values or {})
        if not ok:
            return False, None, SubmissionError(
                code=SubmissionErrorCode.VALIDATION_FAILED,
                message=field_error.message,
                field_error=field_error,
            )

        if cycle_advance is not None and cycle_advance.new_count < 1:
            return False, None, SubmissionError(
                code=SubmissionErrorCode.INVALID_CYCLE,
                message="Invalid cycle number.",
            )

        collection = records_path(appliance.clinic_id, appliance.room_id, appliance.appliance_id)
        try:
            record_id = record_id or self.db.new_document_id(collection)
            payload: Dict[str, Any] = {
                'values': values,
                'username': submitter.name,
                'userID': submitter.uid,
                'clinic': submitter.clinic,
                'createdAt': self.db.server_timestamp(),
            }
            if cycle_advance is not None:
                payload['cycleNumber'] = cycle_advance.new_count

            batch = self.db.batch()
            batch.create(f"{collection}/{record_id}", payload)
            if cycle_advance is not None:
                self.cycle_counter.advance_cycle_count(batch, cycle_advance.unit, cycle_advance.new_count)

            committed, error = await self.db.commit_batch(batch)
        except Exception as e:
            committed, error = False, str(e)

        if not committed:
            # The create fails when the id is taken; a matching stored record is a replayed submission
            got, stored, _ = await self.db.get_document(collection, record_id)
            if got and stored is not None:
                existing = RecordEntry.from_firestore(record_id, appliance, stored)
                expected_cycle = cycle_advance.new_count if cycle_advance else None
                if (existing.values == values and existing.submitted_by.uid == submitter.uid
                        and existing.cycle_number == expected_cycle):
                    logger.info(f"Record {record_id} already stored, treating submission as a retry")
                    return True, existing, None

                logger.warning(f"Record id {record_id} is taken by a different record")
                return False, None, SubmissionError(
                    code=SubmissionErrorCode.RECORD_EXISTS,
                    message=f"A different record with id {record_id} already exists.",
                )

            logger.error(f"Record submission for {appliance.appliance_id} failed: {error}")
            return False, None, SubmissionError(
                code=SubmissionErrorCode.STORE_ERROR,
                message=f"Upload failed: {error}",
                retryable=True,
            )

        logger.info(
            f"Recorded {record_id} for appliance {appliance.appliance_id}"
            + (f" (cycle {cycle_advance.new_count} on unit {cycle_advance.unit.unit_id})" if cycle_advance else "")
        )

        # Re-read to resolve createdAt; the record is already committed
        got, stored, _ = await self.db.get_document(collection, record_id)
        if got and stored:
            return True, RecordEntry.from_firestore(record_id, appliance, stored), None

        return True, RecordEntry(
            id=record_id,
            appliance=appliance,
            values=values,
            submitted_by=submitter,
            cycle_number=cycle_advance.new_count if cycle_advance else None,
        ), None

    async def list_records(self, appliance: ApplianceRef, limit: Optional[int] = None) -> Tuple[bool, List[RecordEntry], Optional[str]]:
        """Newest records first."""
        success, docs, error = await self.db.query_documents(
            records_path(appliance.clinic_id, appliance.room_id, appliance.appliance_id),
            order_by='createdAt',
            descending=True,
            limit=limit or settings.RECORD_LIST_LIMIT,
        )
        if not success:
            return False, [], error
        return True, [RecordEntry.from_firestore(d.get('_doc_id'), appliance, d) for d in docs], None


record_service = RecordService()
