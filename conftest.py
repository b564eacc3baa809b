import asyncio
import copy
import itertools
from datetime import datetime, timezone

import pytest


SERVER_TIMESTAMP = object()


class FakeTransaction:
    def __init__(self, db):
        self._db = db
        self.read_versions = {}
        self.staged = []

    def get(self, path):
        self.read_versions[path] = self._db.versions.get(path, 0)
        doc = self._db.docs.get(path)
        return copy.deepcopy(doc) if doc is not None else None

    def create(self, path, data):
        self.staged.append(("create", path, data, False))

    def set(self, path, data, merge=False):
        self.staged.append(("set", path, data, merge))

    def update(self, path, data):
        self.staged.append(("update", path, data, True))


class FakeBatch:
    def __init__(self):
        self.staged = []
        self.paths = []

    def create(self, path, data):
        self.staged.append(("create", path, data, False))
        self.paths.append(path)

    def set(self, path, data, merge=False):
        self.staged.append(("set", path, data, merge))
        self.paths.append(path)


class FakeDB:
    """In-memory stand-in for DatabaseService.

    Transactions are optimistic like Firestore's: the callback runs against the
    current documents, the event loop is yielded, and the staged writes only
    apply if nothing the callback read has changed meanwhile; otherwise the
    callback is re-run.
    """

    def __init__(self, now=None):
        self.docs = {}
        self.versions = {}
        self.now = now or datetime(2025, 6, 1, 4, 0, tzinfo=timezone.utc)
        self.fail_commit = None
        self.fail_reads = None
        self.commits = 0
        self.retries = 0
        self._ids = itertools.count(1)

    # --- helpers -------------------------------------------------------
    def server_timestamp(self):
        return SERVER_TIMESTAMP

    def new_document_id(self, collection_path):
        return f"auto{next(self._ids):04d}"

    def _resolve(self, data):
        return {k: (self.now if v is SERVER_TIMESTAMP else copy.deepcopy(v)) for k, v in data.items()}

    def _apply(self, staged):
        for op, path, data, merge in staged:
            if op == "create" and path in self.docs:
                raise RuntimeError(f"ALREADY_EXISTS: {path}")
            if op == "update" and path not in self.docs:
                raise RuntimeError(f"NOT_FOUND: {path}")
        for op, path, data, merge in staged:
            resolved = self._resolve(data)
            if merge and path in self.docs:
                self.docs[path].update(resolved)
            else:
                self.docs[path] = resolved
            self.versions[path] = self.versions.get(path, 0) + 1
        self.commits += 1

    def put(self, path, data):
        self._apply([("set", path, data, False)])

    def children(self, collection_path):
        prefix = collection_path + "/"
        return {
            path[len(prefix):]: doc for path, doc in self.docs.items()
            if path.startswith(prefix) and "/" not in path[len(prefix):]
        }

    # --- DatabaseService surface --------------------------------------
    async def get_document(self, collection_path, document_id):
        await asyncio.sleep(0)
        if self.fail_reads:
            return False, None, self.fail_reads
        doc = self.docs.get(f"{collection_path}/{document_id}")
        if doc is None:
            return True, None, None
        data = copy.deepcopy(doc)
        data["_doc_id"] = document_id
        return True, data, None

    async def set_document(self, collection_path, document_id, data, merge=False):
        await asyncio.sleep(0)
        self._apply([("set", f"{collection_path}/{document_id}", data, merge)])
        return True, None

    async def query_documents(self, collection_path, filters=None, limit=None, order_by=None, descending=False):
        await asyncio.sleep(0)
        docs = []
        for doc_id, doc in self.children(collection_path).items():
            data = copy.deepcopy(doc)
            data["_doc_id"] = doc_id
            docs.append(data)
        if order_by:
            docs = [d for d in docs if order_by in d]
            docs.sort(key=lambda d: d[order_by], reverse=descending)
        if limit:
            docs = docs[:limit]
        return True, docs, None

    async def run_transaction(self, callback, max_attempts=5):
        for _ in range(max_attempts):
            txn = FakeTransaction(self)
            result = callback(txn)
            # Competing writers get to run between read and commit
            await asyncio.sleep(0)
            if all(self.versions.get(p, 0) == v for p, v in txn.read_versions.items()):
                self._apply(txn.staged)
                return result
            self.retries += 1
        raise RuntimeError("ABORTED: too much contention")

    def batch(self):
        return FakeBatch()

    async def commit_batch(self, batch):
        await asyncio.sleep(0)
        if self.fail_commit:
            return False, self.fail_commit
        try:
            self._apply(batch.staged)
        except RuntimeError as e:
            return False, str(e)
        return True, None


class FakeServerTime:
    def __init__(self, now):
        self.now = now
        self.calls = 0

    async def get_server_now(self, ttl_seconds=None):
        self.calls += 1
        return self.now


@pytest.fixture
def fake_db():
    return FakeDB()
