"""
MongoDB Backend

Wraps MongoDB collection operations behind BackendInterface.
Realtime notifications use MongoDB change streams, one watcher thread per
subscription.
"""

import logging
import threading
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from .base import BackendInterface, ChangeCallback, Subscription, WriteResult

logger = logging.getLogger(__name__)


def _to_object_id(record_id: Any) -> Any:
    """Convert string ids to ObjectId where possible."""
    if isinstance(record_id, str):
        try:
            return ObjectId(record_id)
        except InvalidId:
            return record_id
    return record_id


class ChangeStreamSubscription(Subscription):
    """
    Watches a collection on a daemon thread and calls back on every change.

    Resume/reconnect is left to pymongo; when the stream dies the
    subscription logs and stops.
    """

    def __init__(self, database: Database, table: str, callback: ChangeCallback):
        self._table = table
        self._callback = callback
        self._stream = database[table].watch()
        self._closed = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name=f"watch-{table}", daemon=True
        )
        self._thread.start()

    def _run(self) -> None:
        try:
            for _change in self._stream:
                if self._closed.is_set():
                    break
                try:
                    self._callback(self._table)
                except Exception as e:
                    logger.warning(f"[{self._table}] change callback failed: {e}")
        except PyMongoError as e:
            if not self._closed.is_set():
                logger.error(f"[{self._table}] change stream stopped: {e}")

    def close(self) -> None:
        self._closed.set()
        self._stream.close()


class MongoBackend(BackendInterface):
    """
    MongoDB implementation of the backend interface.

    Connection Management:
    - Uses singleton MongoClient for connection pooling
    - Client is created once and reused across requests
    - PyMongo handles connection pool internally

    Error Handling:
    - Fail-fast: All errors propagate to caller
    """

    _client: Optional[MongoClient] = None
    _db: Optional[Database] = None

    def __init__(self, mongodb_uri: str, database: str = "job_database"):
        """
        Initialize MongoDB backend with connection parameters.

        Args:
            mongodb_uri: MongoDB connection string
            database: Database name (default: "job_database")
        """
        self._mongodb_uri = mongodb_uri
        self._database_name = database

    def _get_db(self) -> Database:
        """
        Get the MongoDB database, creating the client if needed.

        Uses class-level singleton for connection pooling.
        """
        if MongoBackend._db is None:
            MongoBackend._client = MongoClient(self._mongodb_uri, serverSelectionTimeoutMS=5000)
            MongoBackend._db = MongoBackend._client[self._database_name]
            logger.info(f"MongoDB backend connected: {self._database_name}")
        return MongoBackend._db

    def query(
        self,
        table: str,
        filter: Optional[Dict[str, Any]] = None,
        sort: Optional[List[tuple]] = None,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        collection = self._get_db()[table]
        cursor = collection.find(filter or {})

        if sort:
            cursor = cursor.sort(sort)
        if limit > 0:
            cursor = cursor.limit(limit)

        return list(cursor)

    def insert(self, table: str, record: Dict[str, Any]) -> WriteResult:
        collection = self._get_db()[table]
        # insert_one mutates its argument with _id
        result = collection.insert_one(dict(record))

        return WriteResult(
            matched_count=0,
            modified_count=0,
            inserted_id=str(result.inserted_id) if result.inserted_id else None,
        )

    def update(self, table: str, record_id: Any, patch: Dict[str, Any]) -> WriteResult:
        collection = self._get_db()[table]
        result = collection.update_one({"_id": _to_object_id(record_id)}, {"$set": patch})

        return WriteResult(
            matched_count=result.matched_count,
            modified_count=result.modified_count,
        )

    def delete(self, table: str, filter: Dict[str, Any]) -> WriteResult:
        collection = self._get_db()[table]
        result = collection.delete_many(filter)

        return WriteResult(
            matched_count=result.deleted_count,
            modified_count=result.deleted_count,
        )

    def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        # Change streams require a replica set; the watch() call fails fast otherwise
        return ChangeStreamSubscription(self._get_db(), table, callback)

    @classmethod
    def reset_connection(cls) -> None:
        """
        Reset the connection pool.

        Used for testing or connection recovery.
        """
        if cls._client:
            cls._client.close()
        cls._client = None
        cls._db = None
        logger.info("MongoDB backend connection reset")
