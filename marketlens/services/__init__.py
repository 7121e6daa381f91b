"""
Services Layer
Document ingestion: text extraction and per-project processing.
"""
from .text_extractor import TextExtractor, ExtractionFailed, UnsupportedType, chunk_text
from .document_processor import DocumentProcessor, UploadTooLarge

__all__ = [
    "TextExtractor",
    "ExtractionFailed",
    "UnsupportedType",
    "chunk_text",
    "DocumentProcessor",
    "UploadTooLarge",
]
