# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
MongoDB registry store: read-only access to puroks, households and residents.
"""

import os
import logging
from datetime import datetime, date
from typing import List, Dict, Optional, Any, Callable

from pymongo import MongoClient, ASCENDING
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError
from bson import ObjectId
from bson.errors import InvalidId
from opentelemetry import trace

from domain.errors import RegistryUnavailable
from domain.query import RegistryQuery
from models.entities import Purok, Household, Resident

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

PUROKS = "puroks"
HOUSEHOLDS = "households"
RESIDENTS = "residents"

# Only the fields the analytics core reads
HOUSEHOLD_PROJECTION = {"_id": 1, "purokId": 1, "createdAt": 1}
RESIDENT_PROJECTION = {
    "_id": 1, "householdId": 1, "birthdate": 1, "sex": 1,
    "isPwd": 1, "occupationStatus": 1, "createdAt": 1
}
PUROK_PROJECTION = {"_id": 1, "name": 1, "code": 1, "createdAt": 1}


class MongoRegistryStore:
    """Registry reader backed by the registry's MongoDB collections."""

    def __init__(self, connection_string: str = None, database_name: str = None,
                 client: Optional[MongoClient] = None):
        """Initialize the store; the client connects lazily on first use."""
        self.connection_string = connection_string or os.getenv(
            'MONGODB_URI',
            'mongodb://localhost:27017/barangay_registry'
        )
        self.database_name = database_name or os.getenv('MONGODB_DATABASE', 'barangay_registry')
        self._client: Optional[MongoClient] = client
        self._database: Optional[Database] = None

        # Connection pool settings
        self.max_pool_size = int(os.getenv('MONGODB_MAX_POOL_SIZE', '10'))
        self.server_selection_timeout_ms = int(os.getenv('MONGODB_SERVER_SELECTION_TIMEOUT_MS', '5000'))

        logger.info(f"Registry store initialized for database: {self.database_name}")

    @property
    def client(self) -> MongoClient:
        """Get MongoDB client with connection pooling."""
        if self._client is None:
            self._client = MongoClient(
                self.connection_string,
                maxPoolSize=self.max_pool_size,
                serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                retryReads=True
            )
            logger.info("MongoDB client created")
        return self._client

    @property
    def database(self) -> Database:
        """Get MongoDB database."""
        if self._database is None:
            self._database = self.client[self.database_name]
        return self._database

    def get_collection(self, collection_name: str) -> Collection:
        """Get MongoDB collection."""
        return self.database[collection_name]

    def close_connection(self) -> None:
        """Close MongoDB connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._database = None
            logger.info("MongoDB connection closed")

    def health_check(self) -> Dict[str, Any]:
        """Check MongoDB connection health."""
        try:
            result = self.client.admin.command('ping')
            return {
                'status': 'healthy',
                'ping': result.get('ok') == 1,
                'database': self.database_name
            }
        except PyMongoError as e:
            logger.error(f"MongoDB health check failed: {e}")
            return {
                'status': 'unhealthy',
                'error': str(e),
                'database': self.database_name
            }

    # Query building

    @staticmethod
    def _active_filter() -> Dict[str, Any]:
        """Soft-deleted records carry a deletedAt timestamp."""
        return {"deletedAt": None}

    @staticmethod
    def _id_candidates(value: str) -> List[Any]:
        """Match ids stored either as strings or as ObjectIds."""
        candidates: List[Any] = [value]
        try:
            candidates.append(ObjectId(value))
        except (InvalidId, TypeError):
            pass
        return candidates

    def _id_filter(self, values) -> Dict[str, Any]:
        candidates: List[Any] = []
        for value in sorted(values):
            candidates.extend(self._id_candidates(value))
        return {"$in": candidates}

    @staticmethod
    def _created_filter(query: RegistryQuery) -> Dict[str, Any]:
        created: Dict[str, Any] = {}
        if query.created_from is not None:
            created["$gte"] = query.created_from
        if query.created_before is not None:
            created["$lt"] = query.created_before
        return {"createdAt": created} if created else {}

    def build_zone_filter(self, query: RegistryQuery) -> Dict[str, Any]:
        """Filter for the puroks collection."""
        mongo_filter = self._active_filter()
        if query.zone_id is not None:
            mongo_filter["_id"] = self._id_filter([query.zone_id])
        return mongo_filter

    def build_household_filter(self, query: RegistryQuery) -> Dict[str, Any]:
        """Filter for the households collection."""
        mongo_filter = self._active_filter()
        if query.zone_id is not None:
            mongo_filter["purokId"] = self._id_filter([query.zone_id])
        if query.household_ids is not None:
            mongo_filter["_id"] = self._id_filter(query.household_ids)
        mongo_filter.update(self._created_filter(query))
        return mongo_filter

    def build_resident_filter(self, query: RegistryQuery) -> Dict[str, Any]:
        """Filter for the residents collection; zone membership goes through household_ids."""
        mongo_filter = self._active_filter()
        if query.household_ids is not None:
            mongo_filter["householdId"] = self._id_filter(query.household_ids)
        mongo_filter.update(self._created_filter(query))
        return mongo_filter

    # Document conversion

    @staticmethod
    def _as_id(value: Any) -> Optional[str]:
        return str(value) if value is not None else None

    @staticmethod
    def _as_date(value: Any) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str):
            return date.fromisoformat(value[:10])
        return value

    def _to_purok(self, doc: Dict[str, Any]) -> Purok:
        return Purok(
            id=self._as_id(doc["_id"]),
            name=doc.get("name") or self._as_id(doc["_id"]),
            code=doc.get("code"),
            created_at=doc.get("createdAt") or datetime.min
        )

    def _to_household(self, doc: Dict[str, Any]) -> Household:
        return Household(
            id=self._as_id(doc["_id"]),
            purok_id=self._as_id(doc.get("purokId")),
            created_at=doc.get("createdAt") or datetime.min
        )

    def _to_resident(self, doc: Dict[str, Any]) -> Resident:
        return Resident(
            id=self._as_id(doc["_id"]),
            household_id=self._as_id(doc.get("householdId")),
            birthdate=self._as_date(doc["birthdate"]),
            sex=doc.get("sex", "other"),
            is_pwd=bool(doc.get("isPwd", False)),
            occupation_status=doc.get("occupationStatus") or "other",
            created_at=doc.get("createdAt") or datetime.min
        )

    def _find(self, collection: str, mongo_filter: Dict[str, Any],
              projection: Dict[str, int], convert: Callable[[Dict[str, Any]], Any]) -> List[Any]:
        with tracer.start_as_current_span(f"registry.find.{collection}") as span:
            span.set_attributes({
                "db.system": "mongodb",
                "db.collection": collection
            })
            try:
                documents = list(self.get_collection(collection).find(mongo_filter, projection))
            except PyMongoError as e:
                span.set_attribute("db.result", "error")
                logger.error(f"Registry read failed for {collection}: {e}")
                raise RegistryUnavailable(
                    f"Registry store unavailable while reading {collection}",
                    operation=collection
                ) from e

            span.set_attribute("db.documents", len(documents))
            return [convert(doc) for doc in documents]

    # RegistryReader

    def list_zones(self, query: RegistryQuery) -> List[Purok]:
        """List active puroks matching the query."""
        return self._find(PUROKS, self.build_zone_filter(query), PUROK_PROJECTION, self._to_purok)

    def list_households(self, query: RegistryQuery) -> List[Household]:
        """List active households matching the query."""
        return self._find(
            HOUSEHOLDS, self.build_household_filter(query), HOUSEHOLD_PROJECTION, self._to_household
        )

    def list_residents(self, query: RegistryQuery) -> List[Resident]:
        """List active residents matching the query."""
        return self._find(
            RESIDENTS, self.build_resident_filter(query), RESIDENT_PROJECTION, self._to_resident
        )

    # Index management

    def create_indexes(self) -> None:
        """Create the indexes the report queries rely on."""
        try:
            self.get_collection(PUROKS).create_index(
                [("deletedAt", ASCENDING), ("name", ASCENDING)], name="puroks_active_name"
            )
            households = self.get_collection(HOUSEHOLDS)
            households.create_index(
                [("purokId", ASCENDING), ("deletedAt", ASCENDING)], name="households_purok"
            )
            households.create_index(
                [("deletedAt", ASCENDING), ("createdAt", ASCENDING)], name="households_created"
            )
            residents = self.get_collection(RESIDENTS)
            residents.create_index(
                [("householdId", ASCENDING), ("deletedAt", ASCENDING)], name="residents_household"
            )
            residents.create_index(
                [("deletedAt", ASCENDING), ("createdAt", ASCENDING)], name="residents_created"
            )
            logger.info("Registry indexes created successfully")
        except PyMongoError as e:
            logger.error(f"Failed to create registry indexes: {e}")
            raise


# Singleton instance for application use
_registry_store: Optional[MongoRegistryStore] = None


def get_registry_store() -> MongoRegistryStore:
    """Get singleton registry store instance."""
    global _registry_store
    if _registry_store is None:
        _registry_store = MongoRegistryStore()
    return _registry_store


def close_registry_store() -> None:
    """Close the registry store connection (for cleanup)."""
    global _registry_store
    if _registry_store:
        _registry_store.close_connection()
        _registry_store = None
