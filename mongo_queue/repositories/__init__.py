"""
Repositories Layer
Data persistence and query operations for the queue collection.
"""
from .connection import db_manager, DatabaseManager
from .records import QueueRecordRepository
from .base import BaseRepository

__all__ = [
    "db_manager",
    "DatabaseManager",
    "QueueRecordRepository",
    "BaseRepository",
]
