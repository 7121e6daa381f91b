"""
Document Processor
Upload registration, background text extraction and corpus assembly.

Extraction is CPU-bound library work, so it runs in a worker thread. Per
project, every pending document is extracted concurrently and joined before
the corpus is built.
"""
import asyncio
import time
from typing import Dict, List, Optional

from loguru import logger

from marketlens.config import Settings, get_settings
from marketlens.models.document import DocumentStatus, SourceDocument
from marketlens.repositories.documents import DocumentRepository
from marketlens.services.text_extractor import (
    ExtractionFailed,
    TextExtractor,
    UnsupportedType,
    chunk_text,
    is_supported,
    normalize_mime_type,
)

DOCUMENT_HEADER = "Document: {name}"


class UploadTooLarge(Exception):
    def __init__(self, size_bytes: int, limit_bytes: int):
        super().__init__(f"File is {size_bytes} bytes; the limit is {limit_bytes} bytes")
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes


class DocumentProcessor:
    """
    Owns the SourceDocument lifecycle: uploaded -> processing -> (processed | error).
    """

    def __init__(
        self,
        documents: DocumentRepository,
        extractor: TextExtractor | None = None,
        settings: Settings | None = None,
    ):
        self.documents = documents
        self.extractor = extractor or TextExtractor()
        self.settings = settings or get_settings()
        # One in-flight extraction per document; entries live while someone waits
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    async def register_upload(
        self,
        project_id: str,
        file_name: str,
        mime_type: str,
        data: bytes,
    ) -> SourceDocument:
        """
        Validate and store an upload. Extraction is not started here.

        Raises:
            UnsupportedType: MIME type is not PDF, DOCX or plain text
            UploadTooLarge: File exceeds max_upload_bytes
        """
        if not is_supported(mime_type):
            raise UnsupportedType(mime_type)
        if len(data) > self.settings.max_upload_bytes:
            raise UploadTooLarge(len(data), self.settings.max_upload_bytes)

        document = SourceDocument(
            project_id=project_id,
            file_name=file_name,
            mime_type=normalize_mime_type(mime_type),
            size_bytes=len(data),
            content=data,
        )
        document = await self.documents.create(document)
        logger.bind(project_id=project_id, document_id=document.id).info(
            f"📄 Registered upload: {file_name} ({len(data)} bytes)"
        )
        return document

    async def process_document(self, document_id: str) -> Optional[SourceDocument]:
        """
        Extract text for one document and record the outcome.

        Extraction errors end in status ERROR with the message on the record;
        they are not raised. Returns None if the document does not exist.

        Calls for the same document are serialised: a second caller waits for
        the running extraction and then sees the PROCESSED record.
        """
        lock = self._locks.setdefault(document_id, asyncio.Lock())
        self._lock_users[document_id] = self._lock_users.get(document_id, 0) + 1
        try:
            async with lock:
                return await self._extract_and_record(document_id)
        finally:
            self._lock_users[document_id] -= 1
            if not self._lock_users[document_id]:
                del self._lock_users[document_id]
                del self._locks[document_id]

    async def _extract_and_record(self, document_id: str) -> Optional[SourceDocument]:
        document = await self.documents.find_by_id(document_id)
        if document is None:
            logger.warning(f"Document not found for processing: {document_id}")
            return None
        if document.status == DocumentStatus.PROCESSED:
            return document

        await self.documents.update_fields(document_id, {"status": DocumentStatus.PROCESSING.value})
        start_time = time.perf_counter()

        try:
            text = await asyncio.to_thread(self.extractor.extract, document.content or b"", document.mime_type)
        except (ExtractionFailed, UnsupportedType) as e:
            logger.bind(document_id=document_id, project_id=document.project_id).error(
                f"❌ Extraction failed for {document.file_name}: {e}"
            )
            return await self.documents.update_fields(
                document_id,
                {"status": DocumentStatus.ERROR.value, "error": str(e)},
            )

        chunks = chunk_text(text, self.settings.chunk_size_chars) if text else []
        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.bind(document_id=document_id, project_id=document.project_id).info(
            f"✅ Extracted {len(text)} chars in {len(chunks)} chunks from {document.file_name} ({duration_ms:.0f}ms)"
        )
        return await self.documents.update_fields(
            document_id,
            {
                "status": DocumentStatus.PROCESSED.value,
                "extracted_text": text,
                "chunks": [chunk.model_dump() for chunk in chunks],
                "error": None,
            },
        )

    async def process_pending(self, project_id: str) -> List[SourceDocument]:
        """
        Extract every not-yet-processed document of a project concurrently.

        Concurrency is bounded by max_concurrent_extractions. Returns once
        all extractions have finished.
        """
        pending = await self.documents.pending_for_project(project_id)
        if not pending:
            return []

        semaphore = asyncio.Semaphore(self.settings.max_concurrent_extractions)

        async def bounded(document: SourceDocument) -> Optional[SourceDocument]:
            async with semaphore:
                return await self.process_document(document.id)

        logger.info(f"Processing {len(pending)} pending documents for project {project_id}")
        results = await asyncio.gather(*(bounded(document) for document in pending))
        return [document for document in results if document is not None]

    async def build_corpus(self, project_id: str) -> str:
        """
        Concatenate the extracted text of a project's processed documents.

        Pending extraction is joined first. Each document contributes at most
        document_summary_chars characters under a "Document: <name>" header.
        Errored documents are skipped; no documents yields "".
        """
        await self.process_pending(project_id)
        documents = await self.documents.processed_for_project(project_id)

        sections = []
        for document in documents:
            text = document.extracted_text.strip()
            if not text:
                continue
            excerpt = text[:self.settings.document_summary_chars]
            sections.append(f"{DOCUMENT_HEADER.format(name=document.file_name)}\n{excerpt}")

        return "\n\n".join(sections)
