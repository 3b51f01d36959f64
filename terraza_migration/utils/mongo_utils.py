# -*- coding: utf-8 -*-
"""
MongoDB document store utilities for the terrace collection.

Thin handle over one pymongo database exposing only the bulk primitives the
pipeline needs: conditional bulk update, bulk insert/delete, filtered find,
distinct, aggregation and "replace collection contents" (materialized view).
The handle is injected into every stage, so tests pass a mongomock client
instead of a live server.

Example:
    >>> store = DocumentStore.connect("mongodb://localhost:27017", "Madrid")
    >>> store.update_many("Terrazas", {"district": "CENTRO"}, {"$set": {"x": 1}})
    (412, 412)
    >>> store.close()
"""
# Standard library
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

# Third-party
from pymongo import MongoClient

# Project imports
from terraza_migration.utils.config import CONNECT_TIMEOUT_MS
from terraza_migration.utils.logger import get_logger

logger = get_logger(__name__)


def get_client(uri: str, timeout_ms: int = CONNECT_TIMEOUT_MS) -> MongoClient:
    """
    Create a MongoDB client and check the server answers.

    Args:
        uri: MongoDB connection URI (e.g., "mongodb://localhost:27017")
        timeout_ms: Server selection / connect timeout

    Returns:
        Connected MongoClient

    Raises:
        pymongo.errors.ConnectionFailure: Server unreachable
    """
    client = MongoClient(
        uri,
        serverSelectionTimeoutMS=timeout_ms,
        connectTimeoutMS=timeout_ms,
    )
    try:
        client.admin.command('ping')
    except Exception:
        client.close()
        raise
    return client


def close_client(client: Optional[MongoClient]) -> None:
    """Close MongoDB client (can be None)."""
    if client:
        client.close()


class DocumentStore:
    """
    Document-store collaborator bound to one database.

    Example:
        store = DocumentStore(mongomock.MongoClient(), "Madrid")
        store.insert_many("Terrazas", records)
    """

    def __init__(self, client, db_name: str):
        """
        Args:
            client: pymongo (or mongomock) client
            db_name: Database name
        """
        self.client = client
        self.db_name = db_name
        self.db = client[db_name]

    @classmethod
    def connect(cls, uri: str, db_name: str,
                timeout_ms: int = CONNECT_TIMEOUT_MS) -> "DocumentStore":
        """Connect and ping; raises ConnectionFailure if unreachable."""
        client = get_client(uri, timeout_ms)
        logger.info(f"Connected to MongoDB at {uri} (db={db_name})")
        return cls(client, db_name)

    def with_database(self, db_name: str) -> "DocumentStore":
        """Handle on another database sharing the same client."""
        return DocumentStore(self.client, db_name)

    def close(self):
        """Close the underlying client."""
        close_client(self.client)
        logger.info("MongoDB connection closed")

    # =========================================================================
    # WRITES
    # =========================================================================

    def update_many(self, collection: str, filter: Dict, update: Dict) -> Tuple[int, int]:
        """
        Bulk conditional update.

        Returns:
            (matched_count, modified_count)
        """
        result = self.db[collection].update_many(filter, update)
        return result.matched_count, result.modified_count

    def insert_many(self, collection: str, documents: Sequence[Dict]) -> int:
        """Bulk insert; returns number of inserted documents."""
        if not documents:
            return 0
        result = self.db[collection].insert_many(list(documents))
        return len(result.inserted_ids)

    def delete_all(self, collection: str) -> int:
        """Remove every document from collection."""
        result = self.db[collection].delete_many({})
        return result.deleted_count

    def replace_collection(self, collection: str, documents: Sequence[Dict]) -> int:
        """
        Replace collection contents (delete all, then insert).

        An empty document list leaves the collection empty.
        """
        deleted = self.delete_all(collection)
        inserted = self.insert_many(collection, documents)
        logger.debug(f"{collection}: replaced {deleted} documents with {inserted}")
        return inserted

    def materialize_view(self, source: str, filter: Dict, target: str) -> int:
        """
        Full-overwrite copy of the documents of source matching filter.

        Returns:
            Number of documents written to target
        """
        documents = self.find(source, filter)
        return self.replace_collection(target, documents)

    # =========================================================================
    # READS
    # =========================================================================

    def find(self, collection: str, filter: Optional[Dict] = None,
             limit: int = 0) -> List[Dict]:
        """Filtered find, materialized as a list (limit 0 = no limit)."""
        return list(self.iter_documents(collection, filter, limit))

    def iter_documents(self, collection: str, filter: Optional[Dict] = None,
                       limit: int = 0) -> Iterator[Dict]:
        """Filtered find as a cursor, in natural order."""
        cursor = self.db[collection].find(filter or {})
        if limit:
            cursor = cursor.limit(limit)
        return cursor

    def count(self, collection: str, filter: Optional[Dict] = None) -> int:
        return self.db[collection].count_documents(filter or {})

    def distinct(self, collection: str, field: str,
                 filter: Optional[Dict] = None) -> List[Any]:
        return self.db[collection].distinct(field, filter or {})

    def aggregate(self, collection: str, pipeline: List[Dict]) -> List[Dict]:
        return list(self.db[collection].aggregate(pipeline))
