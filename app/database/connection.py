import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import motor.motor_asyncio
from bson import ObjectId
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError
from pymongo.server_api import ServerApi

from app.core.config import mask_mongo_uri
from app.core.exceptions import DuplicateKey, StoreOperationFailed, StoreUnavailable, ValidationError

logger = logging.getLogger(__name__)

USERS = "users"
LOANS = "loans"
LOAN_APPLICATIONS = "loanApplications"

Sort = Sequence[Tuple[str, int]]


@dataclass(frozen=True)
class UpdateOutcome:
    matched_count: int
    modified_count: int
    upserted_id: Optional[Any] = None


# Converts an externally supplied id into an ObjectId or raises ValidationError
def parse_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise ValidationError("Invalid ID format")
    return ObjectId(value)


# Case-insensitive substring match on any of the given fields
def contains_text(fields: Iterable[str], text: str) -> Dict[str, Any]:
    pattern = {"$regex": re.escape(text), "$options": "i"}
    return {"$or": [{field: dict(pattern)} for field in fields]}


class MongoGateway:
    """Owns the single document-store connection shared by every request.

    ``connect`` is idempotent. A failed attempt leaves the gateway
    disconnected and is retried on the next call; accessors raise
    ``StoreUnavailable`` until a connection exists. Driver errors are
    reported as ``StoreOperationFailed`` with the driver's message.
    """

    def __init__(self, uri: Optional[str], db_name: str, client_factory=motor.motor_asyncio.AsyncIOMotorClient):
        self._uri = uri
        self._db_name = db_name
        self._client_factory = client_factory
        self._client = None
        self._database = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._database is not None

    async def connect(self):
        if self.is_connected:
            return self._database

        # Missing URI is reported once at startup
        if not self._uri:
            return None

        async with self._lock:
            if self.is_connected:
                return self._database

            logger.info(f"Attempting to connect to MongoDB at: {mask_mongo_uri(self._uri)}")
            client = None
            try:
                client = self._client_factory(
                    self._uri,
                    server_api=ServerApi("1", strict=True, deprecation_errors=True),
                )
                await client.admin.command("ping")
                database = client[self._db_name]
            except PyMongoError as e:
                logger.error(f"MongoDB connection error: {e}")
                logger.warning("Continuing to serve requests without a database connection")
                if client is not None:
                    client.close()
                return None

            try:
                await database[USERS].create_index([("email", ASCENDING)], unique=True)
            except PyMongoError as e:
                logger.warning(f"Could not ensure unique index on {USERS}.email: {e}")

            self._client = client
            self._database = database
            logger.info("MongoDB connected, database: %s", self._db_name)
            return database

    async def close(self):
        if self._client is not None:
            self._client.close()
            logger.info("MongoDB connection closed")
        self._client = None
        self._database = None

    def _collection(self, name: str):
        if self._database is None:
            raise StoreUnavailable()
        return self._database[name]

    async def find_many(
        self,
        collection: str,
        filter: Optional[Dict[str, Any]] = None,
        sort: Optional[Sort] = None,
        projection: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        coll = self._collection(collection)
        try:
            cursor = coll.find(filter or {}, projection)
            if sort:
                cursor = cursor.sort(list(sort))
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error(f"find on {collection} failed: {e}")
            raise StoreOperationFailed(str(e)) from e

    async def find_one(
        self,
        collection: str,
        filter: Dict[str, Any],
        projection: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        coll = self._collection(collection)
        try:
            return await coll.find_one(filter, projection)
        except PyMongoError as e:
            logger.error(f"find_one on {collection} failed: {e}")
            raise StoreOperationFailed(str(e)) from e

    async def insert_one(self, collection: str, document: Dict[str, Any]) -> ObjectId:
        coll = self._collection(collection)
        try:
            result = await coll.insert_one(document)
        except DuplicateKeyError as e:
            raise DuplicateKey(str(e)) from e
        except PyMongoError as e:
            logger.error(f"insert_one on {collection} failed: {e}")
            raise StoreOperationFailed(str(e)) from e
        return result.inserted_id

    async def update_one(
        self,
        collection: str,
        filter: Dict[str, Any],
        update: Dict[str, Any],
        upsert: bool = False,
    ) -> UpdateOutcome:
        coll = self._collection(collection)
        try:
            result = await coll.update_one(filter, update, upsert=upsert)
        except DuplicateKeyError as e:
            raise DuplicateKey(str(e)) from e
        except PyMongoError as e:
            logger.error(f"update_one on {collection} failed: {e}")
            raise StoreOperationFailed(str(e)) from e
        return UpdateOutcome(
            matched_count=result.matched_count,
            modified_count=result.modified_count,
            upserted_id=result.upserted_id,
        )

    async def delete_one(self, collection: str, filter: Dict[str, Any]) -> int:
        coll = self._collection(collection)
        try:
            result = await coll.delete_one(filter)
        except PyMongoError as e:
            logger.error(f"delete_one on {collection} failed: {e}")
            raise StoreOperationFailed(str(e)) from e
        return result.deleted_count
