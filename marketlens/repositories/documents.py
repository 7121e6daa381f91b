"""
Document Repository
Uploaded research files and their extraction state.
"""
from typing import List
from motor.motor_asyncio import AsyncIOMotorDatabase

from .base import BaseRepository
from ..models.document import SourceDocument, DocumentStatus


class DocumentRepository(BaseRepository[SourceDocument]):
    """Repository for SourceDocument records."""

    def __init__(self, database: AsyncIOMotorDatabase):
        super().__init__(database, "documents", SourceDocument)

    async def list_for_project(self, project_id: str, limit: int = 100) -> List[SourceDocument]:
        """Documents of a project in upload order."""
        return await self.query("project_id", project_id, limit=limit)

    async def pending_for_project(self, project_id: str) -> List[SourceDocument]:
        """Documents not yet processed (uploaded, or interrupted while processing)."""
        return await self.find_many(
            filter_dict={
                "project_id": project_id,
                "status": {"$in": [DocumentStatus.UPLOADED.value, DocumentStatus.PROCESSING.value]},
            },
            sort=[("created_at", 1)]
        )

    async def processed_for_project(self, project_id: str) -> List[SourceDocument]:
        return await self.find_many(
            filter_dict={"project_id": project_id, "status": DocumentStatus.PROCESSED.value},
            sort=[("created_at", 1)]
        )

    async def delete_for_project(self, project_id: str) -> int:
        return await self.delete_many({"project_id": project_id})
