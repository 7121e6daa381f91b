"""
Tests for document upload and extraction endpoints.
"""
import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

from marketlens.api.main import app
from marketlens.models.document import DocumentStatus, SourceDocument
from marketlens.models.project import Project
from marketlens.services.document_processor import UploadTooLarge
from marketlens.services.text_extractor import UnsupportedType

PROJECT_ID = "65f000000000000000000001"
DOCUMENT_ID = "65f0000000000000000000d1"


def make_document(project_id=PROJECT_ID, status=DocumentStatus.UPLOADED):
    return SourceDocument(
        _id=DOCUMENT_ID,
        project_id=project_id,
        file_name="survey.txt",
        mime_type="text/plain",
        size_bytes=11,
        status=status,
        content=b"survey data",
    )


@pytest.fixture
def state(ev_context):
    projects = MagicMock()
    projects.find_by_id = AsyncMock(return_value=Project(_id=PROJECT_ID, context=ev_context))

    documents = MagicMock()
    documents.list_for_project = AsyncMock(return_value=[make_document()])
    documents.find_by_id = AsyncMock(return_value=make_document())

    processor = MagicMock()
    processor.register_upload = AsyncMock(return_value=make_document())
    processor.process_document = AsyncMock(return_value=make_document(status=DocumentStatus.PROCESSED))

    app.state.projects = projects
    app.state.documents = documents
    app.state.processor = processor
    yield app.state
    for name in ("projects", "documents", "processor"):
        delattr(app.state, name)


@pytest.fixture
def client(state):
    return TestClient(app)


class TestUpload:

    def test_upload_accepted_and_extraction_scheduled(self, client, state):
        response = client.post(
            f"/projects/{PROJECT_ID}/documents",
            files={"file": ("survey.txt", b"survey data", "text/plain")},
        )

        assert response.status_code == 202
        data = response.json()
        assert data["id"] == DOCUMENT_ID
        assert data["status"] == "uploaded"
        assert "content" not in data

        kwargs = state.processor.register_upload.await_args.kwargs
        assert kwargs["project_id"] == PROJECT_ID
        assert kwargs["file_name"] == "survey.txt"
        assert kwargs["data"] == b"survey data"
        # Background tasks run before TestClient returns
        state.processor.process_document.assert_awaited_once_with(DOCUMENT_ID)

    def test_unsupported_type_is_415(self, client, state):
        state.processor.register_upload.side_effect = UnsupportedType("image/png")

        response = client.post(
            f"/projects/{PROJECT_ID}/documents",
            files={"file": ("logo.png", b"\x89PNG", "image/png")},
        )

        assert response.status_code == 415
        assert "image/png" in response.json()["detail"]
        state.processor.process_document.assert_not_awaited()

    def test_oversized_upload_is_413(self, client, state):
        state.processor.register_upload.side_effect = UploadTooLarge(20, 10)

        response = client.post(
            f"/projects/{PROJECT_ID}/documents",
            files={"file": ("big.txt", b"x" * 20, "text/plain")},
        )

        assert response.status_code == 413

    def test_upload_to_unknown_project_is_404(self, client, state):
        state.projects.find_by_id.return_value = None

        response = client.post(
            f"/projects/{PROJECT_ID}/documents",
            files={"file": ("survey.txt", b"survey data", "text/plain")},
        )

        assert response.status_code == 404
        state.processor.register_upload.assert_not_awaited()


class TestListAndProcess:

    def test_list_documents(self, client):
        response = client.get(f"/projects/{PROJECT_ID}/documents")

        assert response.status_code == 200
        assert [d["file_name"] for d in response.json()] == ["survey.txt"]

    def test_process_now(self, client, state):
        response = client.post(f"/projects/{PROJECT_ID}/documents/{DOCUMENT_ID}/process")

        assert response.status_code == 200
        assert response.json()["status"] == "processed"

    def test_document_of_other_project_is_404(self, client, state):
        state.documents.find_by_id.return_value = make_document(project_id="65f0000000000000000000ee")

        response = client.post(f"/projects/{PROJECT_ID}/documents/{DOCUMENT_ID}/process")

        assert response.status_code == 404
        state.processor.process_document.assert_not_awaited()
