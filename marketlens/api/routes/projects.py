"""
Project Endpoints

Project CRUD plus segmentation runs.
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status
from loguru import logger

from marketlens.api.dependencies import get_document_repo, get_pipeline, get_project, get_project_repo
from marketlens.api.models.requests import GenerationOptions, ProjectCreate, ProjectUpdate
from marketlens.core.generation_pipeline import GenerationPipeline
from marketlens.models.project import BusinessContext, Project
from marketlens.repositories.documents import DocumentRepository
from marketlens.repositories.projects import ProjectRepository

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    projects: ProjectRepository = Depends(get_project_repo),
):
    project = await projects.create(Project(
        context=payload.context,
        llm_provider=payload.llm_provider,
        model_name=payload.model_name,
    ))
    logger.bind(project_id=project.id).info(f"Created project for industry {payload.context.industry}")
    return project.model_dump(mode="json")


@router.get("")
async def list_projects(
    limit: int = 50,
    skip: int = 0,
    projects: ProjectRepository = Depends(get_project_repo),
):
    return [project.model_dump(mode="json") for project in await projects.list_recent(limit=limit, skip=skip)]


@router.get("/{project_id}")
async def read_project(project: Project = Depends(get_project)):
    return project.model_dump(mode="json")


@router.patch("/{project_id}")
async def update_project(
    payload: ProjectUpdate,
    project: Project = Depends(get_project),
    projects: ProjectRepository = Depends(get_project_repo),
):
    """Change the business context or vendor preferences. Existing results are kept."""
    partial = payload.preference_changes()

    context_changes = payload.context_changes()
    if context_changes:
        context = BusinessContext.model_validate({**project.context.model_dump(), **context_changes})
        partial["context"] = context.model_dump(mode="json")

    if not partial:
        return project.model_dump(mode="json")

    updated = await projects.update_fields(project.id, partial)
    return (updated or project).model_dump(mode="json")


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project: Project = Depends(get_project),
    projects: ProjectRepository = Depends(get_project_repo),
    documents: DocumentRepository = Depends(get_document_repo),
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    """Delete a project together with its documents and generated results."""
    removed_documents = await documents.delete_for_project(project.id)
    await pipeline.segmentations.delete_for_project(project.id)
    await pipeline.focus_groups.delete_for_project(project.id)
    await projects.delete(project.id)

    logger.bind(project_id=project.id, documents=removed_documents).info("Deleted project")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{project_id}/segmentations", status_code=status.HTTP_201_CREATED)
async def create_segmentation(
    project_id: str,
    options: Optional[GenerationOptions] = Body(None),
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    """
    Run the segmentation pipeline synchronously and return the stored result.

    502 when both vendors fail; the project is then in status "error".
    """
    options = options or GenerationOptions()
    result = await pipeline.generate_segmentation(
        project_id,
        provider=options.provider,
        model_name=options.model_name,
    )
    return result.model_dump(mode="json")


@router.get("/{project_id}/segmentations")
async def list_segmentations(
    project_id: str,
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    return [result.model_dump(mode="json") for result in await pipeline.list_segmentations(project_id)]


@router.get("/{project_id}/segmentations/latest")
async def latest_segmentation(
    project: Project = Depends(get_project),
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    latest = await pipeline.segmentations.latest_for_project(project.id)
    if latest is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Project {project.id} has no segmentation yet"
        )
    return latest.model_dump(mode="json")
