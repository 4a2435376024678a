"""
Base repository class providing common CRUD operations.

All entity-specific repositories inherit from this base class.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

from bson import ObjectId
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult

from ats_connect.data.database import get_database_manager
from ats_connect.data.models.base import BaseDocument, utcnow
from ats_connect.utils.logger import get_logger

logger = get_logger(__name__)

# Type variable for document models
T = TypeVar("T", bound=BaseDocument)


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository providing common database operations.

    Subclasses must define the collection name and model class. A database
    handle may be injected; otherwise the shared DatabaseManager is used.
    """

    @property
    @abstractmethod
    def collection_name(self) -> str:
        """Name of the MongoDB collection."""
        pass

    @property
    @abstractmethod
    def model_class(self) -> type[T]:
        """Pydantic model class for this repository."""
        pass

    def __init__(self, database: Optional[Database] = None) -> None:
        """Initialize repository with database connection."""
        self._database = database
        self._db_manager = get_database_manager() if database is None else None

    # -------------------------------------------------------------------------
    # Collection Access
    # -------------------------------------------------------------------------

    def _get_sync_collection(self) -> Collection:
        """Get collection instance."""
        if self._database is not None:
            return self._database[self.collection_name]
        return self._db_manager.get_sync_collection(self.collection_name)

    # -------------------------------------------------------------------------
    # Document Conversion
    # -------------------------------------------------------------------------

    def _to_model(self, document: Optional[dict[str, Any]]) -> Optional[T]:
        """Convert MongoDB document to Pydantic model."""
        if document is None:
            return None
        return self.model_class.model_validate(document)

    def _to_models(self, documents: list[dict[str, Any]]) -> list[T]:
        """Convert list of MongoDB documents to Pydantic models."""
        return [self._to_model(doc) for doc in documents if doc is not None]

    def _to_document(self, model: T) -> dict[str, Any]:
        """Convert Pydantic model to MongoDB document."""
        return model.model_dump_mongo()

    @staticmethod
    def _to_object_id(id_value: str | ObjectId) -> ObjectId:
        """Convert string to ObjectId if needed."""
        if isinstance(id_value, ObjectId):
            return id_value
        return ObjectId(id_value)

    # -------------------------------------------------------------------------
    # CRUD Operations
    # -------------------------------------------------------------------------

    def create(self, model: T) -> T:
        """Create a new document."""
        collection = self._get_sync_collection()
        document = self._to_document(model)
        now = utcnow()
        document["created_at"] = now
        document["updated_at"] = now

        result: InsertOneResult = collection.insert_one(document)
        model.id = result.inserted_id
        model.created_at = now
        model.updated_at = now
        logger.debug(f"Created {self.collection_name} document: {result.inserted_id}")
        return model

    def get_by_id(self, id_value: str | ObjectId) -> Optional[T]:
        """Get a document by its ID."""
        if isinstance(id_value, str) and not ObjectId.is_valid(id_value):
            return None
        collection = self._get_sync_collection()
        document = collection.find_one({"_id": self._to_object_id(id_value)})
        return self._to_model(document)

    def find(
        self,
        query: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort_by: Optional[str] = None,
        sort_order: int = -1,
    ) -> list[T]:
        """Find documents matching a query."""
        collection = self._get_sync_collection()
        cursor = collection.find(query)

        if sort_by:
            cursor = cursor.sort(sort_by, sort_order)
        else:
            cursor = cursor.sort("created_at", -1)

        cursor = cursor.skip(skip).limit(limit)
        return self._to_models(list(cursor))

    def find_one(self, query: dict[str, Any]) -> Optional[T]:
        """Find a single document matching a query."""
        collection = self._get_sync_collection()
        document = collection.find_one(query)
        return self._to_model(document)

    def update(self, id_value: str | ObjectId, update_data: dict[str, Any]) -> Optional[T]:
        """Update a document by ID; returns None when no document matched."""
        collection = self._get_sync_collection()
        update_data["updated_at"] = utcnow()

        result: UpdateResult = collection.update_one(
            {"_id": self._to_object_id(id_value)},
            {"$set": update_data},
        )

        if result.matched_count > 0:
            logger.debug(f"Updated {self.collection_name} document: {id_value}")
            return self.get_by_id(id_value)
        return None

    def upsert(self, key: dict[str, Any], model: T) -> tuple[T, bool]:
        """
        Insert or overwrite the document identified by ``key``.

        The write is a single server-side upsert, so two writers racing on
        the same key leave one document. Returns the stored model and whether
        it was created.
        """
        collection = self._get_sync_collection()
        now = utcnow()
        document = model.model_dump(by_alias=True)
        document.pop("_id", None)
        document.pop("created_at", None)
        document["updated_at"] = now
        update = {"$set": document, "$setOnInsert": {"created_at": now}}

        try:
            result: UpdateResult = collection.update_one(key, update, upsert=True)
        except DuplicateKeyError:
            # Lost an insert race on the unique index; the row exists now
            result = collection.update_one(key, update, upsert=True)

        created = result.upserted_id is not None
        stored = self._to_model(collection.find_one(key))
        logger.debug(
            f"{'Created' if created else 'Updated'} {self.collection_name} document: {key}"
        )
        return stored, created

    def delete(self, id_value: str | ObjectId) -> bool:
        """Delete a document by ID."""
        collection = self._get_sync_collection()
        result: DeleteResult = collection.delete_one(
            {"_id": self._to_object_id(id_value)}
        )
        if result.deleted_count > 0:
            logger.debug(f"Deleted {self.collection_name} document: {id_value}")
            return True
        return False

    def delete_many(self, query: dict[str, Any]) -> int:
        """Delete every document matching a query."""
        collection = self._get_sync_collection()
        result: DeleteResult = collection.delete_many(query)
        logger.debug(f"Deleted {result.deleted_count} {self.collection_name} documents")
        return result.deleted_count

    def count(self, query: Optional[dict[str, Any]] = None) -> int:
        """Count documents matching a query."""
        collection = self._get_sync_collection()
        if query:
            return collection.count_documents(query)
        return collection.count_documents({})

    def exists(self, query: dict[str, Any]) -> bool:
        """Check if any document matches the query."""
        collection = self._get_sync_collection()
        return collection.count_documents(query, limit=1) > 0
