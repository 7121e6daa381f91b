"""
Project Repository
Project persistence and status transitions.
"""
from typing import Optional, List
from motor.motor_asyncio import AsyncIOMotorDatabase

from .base import BaseRepository
from ..models.project import Project, ProjectStatus
from ..utils.observability import logger


class ProjectRepository(BaseRepository[Project]):
    """Repository for Project records."""

    def __init__(self, database: AsyncIOMotorDatabase):
        super().__init__(database, "projects", Project)

    async def set_status(
        self,
        project_id: str,
        status: ProjectStatus,
        error_message: Optional[str] = None,
        latest_segmentation_id: Optional[str] = None,
    ) -> Optional[Project]:
        """
        Move a project to a new pipeline status.

        The error message is cleared unless the new status is ERROR.

        Returns:
            Updated Project, or None if it does not exist
        """
        partial = {
            "status": status.value,
            "error_message": error_message if status == ProjectStatus.ERROR else None,
        }
        if latest_segmentation_id:
            partial["latest_segmentation_id"] = latest_segmentation_id

        project = await self.update_fields(project_id, partial)
        if project:
            logger.bind(project_id=project_id, status=status.value).info(
                f"Project status: {project_id} -> {status.value}"
            )
        return project

    async def list_recent(self, limit: int = 50, skip: int = 0) -> List[Project]:
        """Projects newest first."""
        return await self.find_many({}, limit=limit, skip=skip, sort=[("created_at", -1)])
