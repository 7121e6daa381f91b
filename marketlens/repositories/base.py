"""
Generic Repository Base Class
Async CRUD over a MongoDB collection for one domain model.
"""
from contextlib import contextmanager
from typing import Generic, TypeVar, Type, Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError
import datetime as dt

from ..models.base import MongoBaseModel
from ..utils.observability import logger

# Generic type for domain models
T = TypeVar("T", bound=MongoBaseModel)


class PersistenceFailed(Exception):
    """The document store rejected or could not complete an operation."""
    pass


def _object_id(document_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(document_id)
    except (InvalidId, TypeError):
        return None


class BaseRepository(Generic[T]):
    """
    Generic async repository for MongoDB collections.

    Usage:
        class ProjectRepository(BaseRepository[Project]):
            def __init__(self, database: AsyncIOMotorDatabase):
                super().__init__(database, "projects", Project)
    """

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        collection_name: str,
        model_class: Type[T]
    ):
        self.database = database
        self.collection: AsyncIOMotorCollection = database[collection_name]
        self.model_class = model_class
        self.collection_name = collection_name

    @contextmanager
    def _driver_errors(self, operation: str):
        try:
            yield
        except PyMongoError as e:
            logger.error(f"MongoDB {operation} failed on {self.collection_name}: {e}")
            raise PersistenceFailed(f"{operation} on {self.collection_name} failed: {e}") from e

    async def create(self, document: T) -> T:
        """
        Insert a new document with a single insert_one.

        Args:
            document: Domain model instance to persist

        Returns:
            The created document with `id` populated

        Raises:
            PersistenceFailed: Driver error
        """
        now = dt.datetime.now(dt.UTC)
        document.created_at = now
        document.updated_at = now

        doc_dict = document.model_dump(
            by_alias=True,
            exclude={"id"},
            exclude_none=True)

        with self._driver_errors("insert"):
            result = await self.collection.insert_one(doc_dict)

        document.id = str(result.inserted_id)
        logger.bind(document_id=document.id).debug(f"Created document in {self.collection_name}")
        return document

    async def find_by_id(self, document_id: str) -> Optional[T]:
        """
        Retrieve a document by its ObjectId string.

        Returns None when not found or when the id is not a valid ObjectId.
        """
        object_id = _object_id(document_id)
        if object_id is None:
            return None

        with self._driver_errors("find"):
            doc = await self.collection.find_one({"_id": object_id})

        if doc is None:
            return None
        return self._to_model(doc)

    async def find_one(self, filter_dict: Dict[str, Any], sort: Optional[List[tuple]] = None) -> Optional[T]:
        with self._driver_errors("find"):
            doc = await self.collection.find_one(filter_dict, sort=sort)

        if doc is None:
            return None
        return self._to_model(doc)

    async def find_many(
        self,
        filter_dict: Dict[str, Any],
        limit: int = 100,
        skip: int = 0,
        sort: Optional[List[tuple]] = None
    ) -> List[T]:
        """
        Retrieve multiple documents matching the filter.

        Args:
            filter_dict: MongoDB query filter
            limit: Maximum number of documents to return
            skip: Number of documents to skip (pagination)
            sort: List of (field, direction) tuples for sorting

        Returns:
            List of domain model instances
        """
        with self._driver_errors("find"):
            cursor = self.collection.find(filter_dict).skip(skip).limit(limit)
            if sort:
                cursor = cursor.sort(sort)
            docs = await cursor.to_list(length=limit)

        return [self._to_model(doc) for doc in docs]

    async def query(self, field: str, value: Any, limit: int = 100) -> List[T]:
        """All documents whose `field` equals `value`, oldest first."""
        return await self.find_many({field: value}, limit=limit, sort=[("created_at", 1)])

    async def update_fields(self, document_id: str, partial: Dict[str, Any]) -> Optional[T]:
        """
        Apply a partial update and return the updated document.

        Args:
            document_id: ObjectId string
            partial: Field -> new value ($set semantics)

        Returns:
            Updated domain model, or None if no document matched
        """
        object_id = _object_id(document_id)
        if object_id is None:
            return None

        changes = {**partial, "updated_at": dt.datetime.now(dt.UTC).isoformat()}
        changes.pop("_id", None)
        changes.pop("id", None)

        with self._driver_errors("update"):
            doc = await self.collection.find_one_and_update(
                {"_id": object_id},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )

        if doc is None:
            return None

        logger.bind(document_id=document_id, fields=sorted(partial)).debug(
            f"Updated document in {self.collection_name}"
        )
        return self._to_model(doc)

    async def delete(self, document_id: str) -> bool:
        """
        Delete a document by its ObjectId string.

        Returns:
            True if a document was deleted, False if not found
        """
        object_id = _object_id(document_id)
        if object_id is None:
            return False

        with self._driver_errors("delete"):
            result = await self.collection.delete_one({"_id": object_id})

        if result.deleted_count > 0:
            logger.bind(document_id=document_id).debug(f"Deleted document from {self.collection_name}")
            return True
        return False

    async def delete_many(self, filter_dict: Dict[str, Any]) -> int:
        with self._driver_errors("delete"):
            result = await self.collection.delete_many(filter_dict)
        return result.deleted_count

    async def count(self, filter_dict: Optional[Dict[str, Any]] = None) -> int:
        """Count documents matching the filter (all documents when None)."""
        with self._driver_errors("count"):
            return await self.collection.count_documents(filter_dict or {})

    def _to_model(self, doc: Dict[str, Any]) -> T:
        """Convert a raw MongoDB document into the domain model, dropping unknown keys."""
        if "_id" in doc:
            doc["_id"] = str(doc["_id"])

        model_fields = self.model_class.model_fields.keys()

        cleaned_doc = {
            k: v for k, v in doc.items()
            if k in model_fields or k == "_id"
        }

        return self.model_class.model_validate(cleaned_doc)
