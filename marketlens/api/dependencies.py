"""
FastAPI Dependencies

Accessors for the services wired onto app.state by the lifespan.
"""
from fastapi import Depends, Request

from marketlens.core.generation_pipeline import GenerationPipeline, ProjectNotFoundError
from marketlens.models.project import Project
from marketlens.repositories.documents import DocumentRepository
from marketlens.repositories.projects import ProjectRepository
from marketlens.services.document_processor import DocumentProcessor


def get_pipeline(request: Request) -> GenerationPipeline:
    return request.app.state.pipeline


def get_processor(request: Request) -> DocumentProcessor:
    return request.app.state.processor


def get_project_repo(request: Request) -> ProjectRepository:
    return request.app.state.projects


def get_document_repo(request: Request) -> DocumentRepository:
    return request.app.state.documents


async def get_project(
    project_id: str,
    projects: ProjectRepository = Depends(get_project_repo),
) -> Project:
    """
    Load the project named in the path.

    Raises:
        ProjectNotFoundError: mapped to 404 by the application's exception handlers
    """
    project = await projects.find_by_id(project_id)
    if project is None:
        raise ProjectNotFoundError(f"Project not found: {project_id}")
    return project
