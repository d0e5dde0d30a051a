"""
MongoDB Connection Utility

MongoDB stores uploaded submission files in a GridFS bucket:
- Screenshots (jpeg/png/gif/webp)
- Documents attached to projects (pdf/txt/doc/docx)

The relational row only keeps the GridFS id (as a hex string), the original
filename, size and MIME type. Files are served back through GET /api/files/{id}.
"""
import logging
from typing import Optional, Tuple

import gridfs
from gridfs.errors import NoFile
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient
from pymongo.database import Database

from learnify.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None
_store = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri, serverSelectionTimeoutMS=5000)
    return _client


def get_mongo_db() -> Database:
    """Get the file storage database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[settings.mongodb_db]
    return _db


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


class FileNotFoundInStore(Exception):
    """Raised when a storage id does not resolve to a stored file."""


class GridFSFileStore:
    """Save, read and delete uploaded files in one GridFS bucket."""

    def __init__(self, db: Database, bucket_name: str):
        self.bucket = gridfs.GridFSBucket(db, bucket_name=bucket_name)

    def save(self, content: bytes, filename: str, content_type: str, metadata: Optional[dict] = None) -> str:
        file_id = self.bucket.upload_from_stream(
            filename,
            content,
            metadata={"content_type": content_type, **(metadata or {})},
        )
        return str(file_id)

    def open(self, storage_id: str) -> Tuple[bytes, str, str]:
        """Return (content, filename, content_type) for a stored file."""
        try:
            grid_out = self.bucket.open_download_stream(ObjectId(storage_id))
        except (InvalidId, NoFile):
            raise FileNotFoundInStore(storage_id)
        content_type = (grid_out.metadata or {}).get("content_type", "application/octet-stream")
        return grid_out.read(), grid_out.filename, content_type

    def delete(self, storage_id: str) -> None:
        try:
            self.bucket.delete(ObjectId(storage_id))
        except (InvalidId, NoFile):
            raise FileNotFoundInStore(storage_id)


def get_file_store() -> GridFSFileStore:
    """
    FastAPI dependency returning the shared file store.
    Tests replace it through app.dependency_overrides.
    """
    global _store
    if _store is None:
        _store = GridFSFileStore(get_mongo_db(), settings.files_bucket)
    return _store


def init_mongo_indexes():
    """
    Create indexes for file lookups by owner.
    Call this once during app startup.
    """
    db = get_mongo_db()
    db[f"{settings.files_bucket}.files"].create_index("metadata.student_id")
    logger.info("MongoDB indexes created successfully")
