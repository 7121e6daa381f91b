"""
Document Endpoints

Research uploads for a project. Extraction runs after the response is sent.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, UploadFile, status

from marketlens.api.dependencies import get_document_repo, get_processor, get_project
from marketlens.api.models.requests import document_response
from marketlens.models.project import Project
from marketlens.repositories.documents import DocumentRepository
from marketlens.services.document_processor import DocumentProcessor

router = APIRouter(prefix="/projects/{project_id}/documents", tags=["Documents"])


@router.post("", status_code=status.HTTP_202_ACCEPTED)
async def upload_document(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    project: Project = Depends(get_project),
    processor: DocumentProcessor = Depends(get_processor),
):
    """
    Store a PDF, DOCX or TXT upload and schedule its extraction.

    415 for other file types, 413 above the size limit.
    """
    data = await file.read()
    document = await processor.register_upload(
        project_id=project.id,
        file_name=file.filename or "upload",
        mime_type=file.content_type or "",
        data=data,
    )
    background_tasks.add_task(processor.process_document, document.id)
    return document_response(document)


@router.get("")
async def list_documents(
    project: Project = Depends(get_project),
    documents: DocumentRepository = Depends(get_document_repo),
):
    return [document_response(document) for document in await documents.list_for_project(project.id)]


@router.post("/{document_id}/process")
async def process_document(
    document_id: str,
    project: Project = Depends(get_project),
    documents: DocumentRepository = Depends(get_document_repo),
    processor: DocumentProcessor = Depends(get_processor),
):
    """Run (or re-run) extraction now and return the updated document."""
    document = await documents.find_by_id(document_id)
    if document is None or document.project_id != project.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Document not found: {document_id}")

    processed = await processor.process_document(document_id)
    return document_response(processed or document)
