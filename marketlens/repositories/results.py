"""
Result Repositories
Append-only storage for generated segmentations and focus groups.
Records are written once with a single insert and never updated.
"""
from typing import Optional, List
from motor.motor_asyncio import AsyncIOMotorDatabase

from .base import BaseRepository
from ..models.segment import SegmentationResult
from ..models.focus_group import FocusGroupTranscript


class SegmentationResultRepository(BaseRepository[SegmentationResult]):

    def __init__(self, database: AsyncIOMotorDatabase):
        super().__init__(database, "segmentations", SegmentationResult)

    async def latest_for_project(self, project_id: str) -> Optional[SegmentationResult]:
        """Most recent segmentation run for a project."""
        return await self.find_one({"project_id": project_id}, sort=[("created_at", -1)])

    async def list_for_project(self, project_id: str, limit: int = 20) -> List[SegmentationResult]:
        """Runs newest first."""
        return await self.find_many(
            filter_dict={"project_id": project_id},
            limit=limit,
            sort=[("created_at", -1)]
        )

    async def delete_for_project(self, project_id: str) -> int:
        return await self.delete_many({"project_id": project_id})


class FocusGroupRepository(BaseRepository[FocusGroupTranscript]):

    def __init__(self, database: AsyncIOMotorDatabase):
        super().__init__(database, "focus_groups", FocusGroupTranscript)

    async def list_for_project(
        self,
        project_id: str,
        segment_name: Optional[str] = None,
        limit: int = 20
    ) -> List[FocusGroupTranscript]:
        """Transcripts newest first, optionally for one segment."""
        filter_dict = {"project_id": project_id}
        if segment_name:
            filter_dict["segment_name"] = segment_name

        return await self.find_many(
            filter_dict=filter_dict,
            limit=limit,
            sort=[("created_at", -1)]
        )

    async def delete_for_project(self, project_id: str) -> int:
        return await self.delete_many({"project_id": project_id})
