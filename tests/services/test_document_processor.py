"""
Tests for upload registration, background extraction and corpus assembly.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from marketlens.models.document import DocumentStatus, SourceDocument
from marketlens.services.document_processor import DocumentProcessor, UploadTooLarge
from marketlens.services.text_extractor import TEXT_MIME, UnsupportedType

PROJECT_ID = "65f000000000000000000001"


def make_document(doc_id, name="notes.txt", status=DocumentStatus.UPLOADED, content=b"hello", text="", mime_type=TEXT_MIME):
    return SourceDocument(
        _id=doc_id,
        project_id=PROJECT_ID,
        file_name=name,
        mime_type=mime_type,
        size_bytes=len(content),
        status=status,
        content=content,
        extracted_text=text,
    )


@pytest.fixture
def documents():
    repo = MagicMock()
    repo.create = AsyncMock(side_effect=lambda doc: doc.model_copy(update={"id": "65f0000000000000000000d1"}))
    repo.find_by_id = AsyncMock(return_value=None)
    repo.update_fields = AsyncMock(side_effect=lambda doc_id, partial: partial)
    repo.pending_for_project = AsyncMock(return_value=[])
    repo.processed_for_project = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def processor(documents, settings):
    return DocumentProcessor(documents, settings=settings)


class TestRegisterUpload:

    async def test_stores_upload(self, processor, documents):
        document = await processor.register_upload(PROJECT_ID, "survey.txt", "text/plain; charset=utf-8", b"data")

        assert document.id == "65f0000000000000000000d1"
        assert document.mime_type == TEXT_MIME
        assert document.size_bytes == 4
        assert document.status == DocumentStatus.UPLOADED
        documents.create.assert_awaited_once()

    async def test_rejects_unsupported_type(self, processor, documents):
        with pytest.raises(UnsupportedType):
            await processor.register_upload(PROJECT_ID, "deck.pptx", "application/vnd.ms-powerpoint", b"x")

        documents.create.assert_not_awaited()

    async def test_rejects_oversized_upload(self, documents, settings):
        processor = DocumentProcessor(documents, settings=settings.model_copy(update={"max_upload_bytes": 3}))

        with pytest.raises(UploadTooLarge) as exc_info:
            await processor.register_upload(PROJECT_ID, "big.txt", TEXT_MIME, b"1234")

        assert exc_info.value.limit_bytes == 3
        documents.create.assert_not_awaited()


class TestProcessDocument:

    async def test_success_records_text_and_chunks(self, documents, settings):
        documents.find_by_id.return_value = make_document("d1", content=b"abcdefghij")
        processor = DocumentProcessor(documents, settings=settings.model_copy(update={"chunk_size_chars": 4}))

        await processor.process_document("d1")

        first, last = documents.update_fields.await_args_list
        assert first.args == ("d1", {"status": "processing"})
        partial = last.args[1]
        assert partial["status"] == "processed"
        assert partial["extracted_text"] == "abcdefghij"
        assert [c["text"] for c in partial["chunks"]] == ["abcd", "efgh", "ij"]
        assert partial["error"] is None

    async def test_extraction_error_is_recorded_not_raised(self, processor, documents):
        documents.find_by_id.return_value = make_document("d2", content=b"not a pdf", mime_type="application/pdf")

        partial = await processor.process_document("d2")

        assert partial["status"] == "error"
        assert "PDF" in partial["error"]

    async def test_missing_document(self, processor, documents):
        assert await processor.process_document("nope") is None
        documents.update_fields.assert_not_awaited()

    async def test_processed_document_is_left_alone(self, processor, documents):
        done = make_document("d3", status=DocumentStatus.PROCESSED, text="hello")
        documents.find_by_id.return_value = done

        assert await processor.process_document("d3") is done
        documents.update_fields.assert_not_awaited()

    async def test_concurrent_calls_extract_once(self, documents, settings):
        done = make_document("d4", status=DocumentStatus.PROCESSED, text="hello")
        documents.find_by_id.side_effect = [make_document("d4"), done]
        extractor = MagicMock()
        extractor.extract.return_value = "hello"
        processor = DocumentProcessor(documents, extractor=extractor, settings=settings)

        first, second = await asyncio.gather(processor.process_document("d4"), processor.process_document("d4"))

        extractor.extract.assert_called_once()
        assert first["status"] == "processed"
        assert second is done
        assert documents.update_fields.await_count == 2
        assert processor._locks == {}


class TestCorpus:

    async def test_pending_documents_processed_before_corpus(self, processor, documents):
        documents.pending_for_project.return_value = [make_document("d1"), make_document("d2")]
        processor.process_document = AsyncMock(return_value=None)

        await processor.build_corpus(PROJECT_ID)

        assert sorted(call.args[0] for call in processor.process_document.await_args_list) == ["d1", "d2"]

    async def test_corpus_format_and_truncation(self, documents, settings):
        documents.processed_for_project.return_value = [
            make_document("d1", name="survey.txt", status=DocumentStatus.PROCESSED, text="x" * 50),
            make_document("d2", name="blank.txt", status=DocumentStatus.PROCESSED, text="   "),
            make_document("d3", name="notes.txt", status=DocumentStatus.PROCESSED, text="Commuters want range."),
        ]
        processor = DocumentProcessor(documents, settings=settings.model_copy(update={"document_summary_chars": 10}))

        corpus = await processor.build_corpus(PROJECT_ID)

        assert corpus == "Document: survey.txt\n" + "x" * 10 + "\n\nDocument: notes.txt\nCommuters "

    async def test_no_documents_gives_empty_corpus(self, processor):
        assert await processor.build_corpus(PROJECT_ID) == ""
