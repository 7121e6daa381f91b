"""
Repositories Layer
Data persistence and query operations for MarketLens.
"""
from .connection import db_manager, get_database, DatabaseManager
from .base import BaseRepository, PersistenceFailed
from .projects import ProjectRepository
from .documents import DocumentRepository
from .results import SegmentationResultRepository, FocusGroupRepository

__all__ = [
    "db_manager",
    "get_database",
    "DatabaseManager",
    "BaseRepository",
    "PersistenceFailed",
    "ProjectRepository",
    "DocumentRepository",
    "SegmentationResultRepository",
    "FocusGroupRepository",
]
