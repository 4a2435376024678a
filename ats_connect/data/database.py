"""
Database connection manager for ATS Connect.

Provides MongoDB connection management through a shared PyMongo client and
creates the indexes the mirror store relies on for deduplication.
"""

from typing import Any, Optional
from urllib.parse import quote_plus

from pymongo import ASCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from ats_connect.utils.config import get_settings
from ats_connect.utils.constants import COLLECTIONS
from ats_connect.utils.logger import get_logger

logger = get_logger(__name__)


class DatabaseManager:
    """
    Manages the MongoDB connection.

    Implements singleton pattern for connection reuse.
    """

    _instance: Optional["DatabaseManager"] = None
    _sync_client: Optional[MongoClient] = None

    def __new__(cls) -> "DatabaseManager":
        """Ensure singleton instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Initialize database manager with settings."""
        if hasattr(self, "_initialized") and self._initialized:
            return

        self._settings = get_settings()
        self._db_name = self._settings.database.name
        self._uri = self._build_uri()
        self._initialized = True

    def _build_uri(self) -> str:
        """
        Build MongoDB connection URI from settings.

        Credentials are URL-encoded so special characters cannot alter the URI.
        """
        db_settings = self._settings.database

        host = db_settings.host.strip()
        if not host or any(c in host for c in [";", "&", "|", "$", "`"]):
            raise ValueError(f"Invalid database host: {host}")

        auth = ""
        if db_settings.username and db_settings.password:
            encoded_user = quote_plus(db_settings.username)
            encoded_pass = quote_plus(db_settings.password)
            auth = f"{encoded_user}:{encoded_pass}@"

        return f"mongodb://{auth}{host}:{db_settings.port}"

    # -------------------------------------------------------------------------
    # Client Access
    # -------------------------------------------------------------------------

    def get_sync_client(self) -> MongoClient:
        """Get or create the MongoDB client."""
        if self._sync_client is None:
            logger.info("Creating MongoDB client")
            try:
                self._sync_client = MongoClient(
                    self._uri,
                    serverSelectionTimeoutMS=5000,
                    connectTimeoutMS=5000,
                    maxPoolSize=50,
                    minPoolSize=5,
                )
            except Exception as e:
                self._sync_client = None
                logger.error(f"Failed to create MongoDB client: {e}")
                raise
        return self._sync_client

    def get_sync_database(self) -> Database:
        """Get the configured database."""
        return self.get_sync_client()[self._db_name]

    def get_sync_collection(self, collection_name: str) -> Any:
        """Get a collection by name."""
        return self.get_sync_database()[collection_name]

    def check_sync_connection(self) -> bool:
        """Check if the connection is healthy."""
        try:
            self.get_sync_client().admin.command("ping")
            return True
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error(f"Connection check failed: {e}")
            self._sync_client = None
            return False
        except Exception as e:
            logger.error(f"Unexpected connection error: {e}")
            self._sync_client = None
            return False

    # -------------------------------------------------------------------------
    # Lifecycle Management
    # -------------------------------------------------------------------------

    def close_all(self) -> None:
        """Close the MongoDB client."""
        if self._sync_client:
            logger.info("Closing MongoDB client")
            self._sync_client.close()
            self._sync_client = None

    # -------------------------------------------------------------------------
    # Index Management
    # -------------------------------------------------------------------------

    def ensure_indexes(self, database: Optional[Database] = None) -> None:
        """
        Create indexes for all collections.

        The unique compound indexes are the dedup keys of the mirror store;
        upserts rely on them to stay single-row under concurrent writers.
        """
        db = database if database is not None else self.get_sync_database()
        logger.info("Ensuring database indexes")

        connections = db[COLLECTIONS["connections"]]
        connections.create_index("owner_id")
        connections.create_index("provider")
        connections.create_index("is_active")

        field_mappings = db[COLLECTIONS["field_mappings"]]
        field_mappings.create_index(
            [("connection_id", ASCENDING), ("entity_type", ASCENDING), ("local_field", ASCENDING)],
            unique=True,
        )

        job_postings = db[COLLECTIONS["job_postings"]]
        job_postings.create_index(
            [("connection_id", ASCENDING), ("external_job_id", ASCENDING)], unique=True
        )
        job_postings.create_index("status")

        candidates = db[COLLECTIONS["candidates"]]
        candidates.create_index(
            [("connection_id", ASCENDING), ("external_candidate_id", ASCENDING)], unique=True
        )
        candidates.create_index("email")

        applications = db[COLLECTIONS["applications"]]
        applications.create_index(
            [("job_posting_id", ASCENDING), ("candidate_id", ASCENDING)], unique=True
        )
        applications.create_index(
            [("connection_id", ASCENDING), ("external_application_id", ASCENDING)]
        )
        applications.create_index("status")

        sync_logs = db[COLLECTIONS["sync_logs"]]
        sync_logs.create_index([("connection_id", ASCENDING), ("started_at", ASCENDING)])
        sync_logs.create_index("status")

        webhooks = db[COLLECTIONS["webhooks"]]
        webhooks.create_index([("connection_id", ASCENDING), ("status", ASCENDING)])
        webhooks.create_index("event_type")
        webhooks.create_index("received_at")

        logger.info("Database indexes created successfully")


# Global database manager instance
_db_manager: Optional[DatabaseManager] = None


def get_database_manager() -> DatabaseManager:
    """Get the global database manager instance."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager
