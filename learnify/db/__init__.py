"""
Database module - relational database and MongoDB (GridFS) connections.
"""
from learnify.db.database import get_db_session, test_db_connection
from learnify.db.mongodb import get_file_store, test_mongo_connection

__all__ = [
    "get_db_session",
    "test_db_connection",
    "get_file_store",
    "test_mongo_connection"
]
