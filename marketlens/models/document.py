from enum import StrEnum
from typing import List, Optional
from pydantic import BaseModel, Field
from marketlens.models.base import MongoBaseModel


class DocumentStatus(StrEnum):
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    PROCESSED = "processed"
    ERROR = "error"

class DocumentChunk(BaseModel):
    index: int
    text: str

class SourceDocument(MongoBaseModel):
    """
    An uploaded research file and, once processed, its extracted text.

    Lifecycle: uploaded -> processing -> (processed | error).
    """
    project_id: str
    file_name: str
    mime_type: str
    size_bytes: int = Field(ge=0)
    status: DocumentStatus = DocumentStatus.UPLOADED

    # Raw upload; kept with the record so extraction can be re-run on demand
    content: Optional[bytes] = Field(default=None, repr=False)

    extracted_text: str = ""
    chunks: List[DocumentChunk] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status in (DocumentStatus.UPLOADED, DocumentStatus.PROCESSING)
