"""
Text Extractor
Pulls plain text out of uploaded research documents (PDF, DOCX, TXT).
"""
from io import BytesIO
from typing import List

import docx  # python-docx
import fitz  # PyMuPDF
from loguru import logger

from marketlens.models.document import DocumentChunk

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MIME = "text/plain"

SUPPORTED_MIME_TYPES = (PDF_MIME, DOCX_MIME, TEXT_MIME)

DEFAULT_CHUNK_SIZE = 8000


class ExtractionFailed(Exception):
    """The file matched a supported type but could not be read."""
    pass


class UnsupportedType(Exception):
    """The MIME type is not one the extractor handles."""

    def __init__(self, mime_type: str):
        super().__init__(f"Unsupported file type: {mime_type}. Only PDF, DOCX and TXT files are allowed.")
        self.mime_type = mime_type


def normalize_mime_type(mime_type: str) -> str:
    """Drop parameters such as '; charset=utf-8' and lowercase."""
    return (mime_type or "").split(";", 1)[0].strip().lower()


def is_supported(mime_type: str) -> bool:
    return normalize_mime_type(mime_type) in SUPPORTED_MIME_TYPES


class TextExtractor:
    """Stateless, synchronous extractor. Callers in async code should run it in a thread."""

    def extract(self, data: bytes, mime_type: str) -> str:
        """
        Extract text from a document.

        Args:
            data: Raw file bytes
            mime_type: Declared MIME type of the upload

        Returns:
            The document text (possibly empty for image-only PDFs)

        Raises:
            UnsupportedType: MIME type is not PDF, DOCX or plain text
            ExtractionFailed: File is corrupt or cannot be decoded
        """
        kind = normalize_mime_type(mime_type)
        if kind == PDF_MIME:
            return self._extract_pdf(data)
        if kind == DOCX_MIME:
            return self._extract_docx(data)
        if kind == TEXT_MIME:
            return self._extract_text(data)
        raise UnsupportedType(mime_type)

    def _extract_pdf(self, data: bytes) -> str:
        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                pages = [page.get_text() for page in doc]
        except Exception as e:
            raise ExtractionFailed(f"Could not read PDF: {e}") from e

        logger.debug(f"Extracted {len(pages)} PDF pages")
        return "\n".join(pages).strip()

    def _extract_docx(self, data: bytes) -> str:
        try:
            document = docx.Document(BytesIO(data))
        except Exception as e:
            raise ExtractionFailed(f"Could not read DOCX: {e}") from e

        lines = [paragraph.text for paragraph in document.paragraphs if paragraph.text.strip()]
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    lines.append(" | ".join(cells))
        return "\n".join(lines).strip()

    def _extract_text(self, data: bytes) -> str:
        try:
            return data.decode("utf-8").strip()
        except UnicodeDecodeError:
            logger.debug("UTF-8 decode failed, retrying as CP1252")
        try:
            return data.decode("cp1252").strip()
        except UnicodeDecodeError as e:
            raise ExtractionFailed(f"Could not decode text file as UTF-8 or CP1252: {e}") from e


def chunk_text(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> List[DocumentChunk]:
    """
    Split text into ordered, fixed-size chunks.

    Example:
        >>> [c.text for c in chunk_text("abcdef", 4)]
        ['abcd', 'ef']
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    return [
        DocumentChunk(index=index, text=text[start:start + chunk_size])
        for index, start in enumerate(range(0, len(text), chunk_size))
    ]
