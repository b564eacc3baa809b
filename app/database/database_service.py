from typing import Any, Callable, Dict, List, Optional, Tuple
import asyncio
import logging

from firebase_admin import firestore

from ..core.firebase_init import initialize_firebase, is_firebase_available

logger = logging.getLogger(__name__)


class TransactionAbort(Exception):
    """Raised inside a transaction callback to abort without writing anything."""


class TransactionContext:
    """Reads and staged writes that belong to one Firestore transaction.

    Paths are slash separated document paths, e.g. ``clinics/c1/rooms/r1``.
    All reads must happen before the first write (Firestore rule).
    """

    def __init__(self, client, transaction):
        self._client = client
        self._transaction = transaction

    def get(self, path: str) -> Optional[Dict[str, Any]]:
        snap = self._client.document(path).get(transaction=self._transaction)
        if not snap.exists:
            return None
        return snap.to_dict() or {}

    def create(self, path: str, data: Dict[str, Any]) -> None:
        self._transaction.create(self._client.document(path), data)

    def set(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        self._transaction.set(self._client.document(path), data, merge=merge)

    def update(self, path: str, data: Dict[str, Any]) -> None:
        self._transaction.update(self._client.document(path), data)


class WriteBatchContext:
    """Blind writes committed together by ``DatabaseService.commit_batch``."""

    def __init__(self, client):
        self._client = client
        self._batch = client.batch()
        self.paths: List[str] = []

    def create(self, path: str, data: Dict[str, Any]) -> None:
        self._batch.create(self._client.document(path), data)
        self.paths.append(path)

    def set(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        self._batch.set(self._client.document(path), data, merge=merge)
        self.paths.append(path)

    def commit(self):
        return self._batch.commit()


class DatabaseService:
    """Async facade over the Firestore client.

    Plain operations return ``(success, data, error)`` tuples. Transactions and
    batches are the only way the clinic services mutate shared documents.
    """

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not is_firebase_available() and not initialize_firebase():
                raise RuntimeError("Firebase is not available")
            self._client = firestore.client()
        return self._client

    @staticmethod
    def server_timestamp():
        return firestore.SERVER_TIMESTAMP

    def new_document_id(self, collection_path: str) -> str:
        return self.client.collection(collection_path).document().id

    async def get_document(self, collection_path: str, document_id: str) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        try:
            ref = self.client.collection(collection_path).document(document_id)
            snap = await asyncio.to_thread(ref.get)
            if not snap.exists:
                # Missing is not an error; callers check for None data
                return True, None, None
            data = snap.to_dict() or {}
            data['_doc_id'] = snap.id
            return True, data, None
        except Exception as e:
            logger.error(f"Error reading {collection_path}/{document_id}: {e}")
            return False, None, str(e)

    async def set_document(self, collection_path: str, document_id: str, data: Dict[str, Any], merge: bool = False) -> Tuple[bool, Optional[str]]:
        try:
            ref = self.client.collection(collection_path).document(document_id)
            await asyncio.to_thread(ref.set, data, merge=merge)
            return True, None
        except Exception as e:
            logger.error(f"Error writing {collection_path}/{document_id}: {e}")
            return False, str(e)

    async def query_documents(
        self,
        collection_path: str,
        filters: Optional[List[Tuple[str, str, Any]]] = None,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> Tuple[bool, List[Dict[str, Any]], Optional[str]]:
        try:
            query = self.client.collection(collection_path)
            for field, op, value in filters or []:
                query = query.where(filter=firestore.FieldFilter(field, op, value))
            if order_by:
                direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
                query = query.order_by(order_by, direction=direction)
            if limit:
                query = query.limit(limit)

            snaps = await asyncio.to_thread(lambda: list(query.stream()))
            docs = []
            for snap in snaps:
                data = snap.to_dict() or {}
                data['_doc_id'] = snap.id
                docs.append(data)
            return True, docs, None
        except Exception as e:
            logger.error(f"Error querying {collection_path}: {e}")
            return False, [], str(e)

    async def run_transaction(self, callback: Callable[[TransactionContext], Any]) -> Any:
        """Run ``callback`` inside a Firestore transaction and return its result.

        The callback is synchronous and may be re-run by the SDK on contention,
        so it must not have side effects outside the TransactionContext.
        Exceptions (including TransactionAbort) propagate after rollback.
        """
        client = self.client

        def _run():
            transaction = client.transaction()

            @firestore.transactional
            def _txn(transaction):
                return callback(TransactionContext(client, transaction))

            return _txn(transaction)

        return await asyncio.to_thread(_run)

    def batch(self) -> WriteBatchContext:
        return WriteBatchContext(self.client)

    async def commit_batch(self, batch: WriteBatchContext) -> Tuple[bool, Optional[str]]:
        try:
            await asyncio.to_thread(batch.commit)
            return True, None
        except Exception as e:
            logger.error(f"Batch commit failed for {batch.paths}: {e}")
            return False, str(e)


database_service = DatabaseService()
