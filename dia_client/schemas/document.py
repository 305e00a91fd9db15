from typing import Optional, Any, Dict, List
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime

from dia_client.enums.document import DocumentType


# Document schema ---------------------------------------------------------------

class DocumentInfo(BaseModel):
    """Document as returned by the backend document store."""
    id: str = Field(..., description="Document unique identifier")
    name: str = Field(..., min_length=1, max_length=255, description="Document name")
    type: DocumentType = Field(..., description="Document type")
    size: Optional[int] = Field(None, ge=0, description="Document size in bytes")
    url: Optional[str] = Field(None, description="Document storage URL")
    tags: List[Dict[str, Any]] = Field(default_factory=list, description="Document tags")
    metadata: Optional[Dict[str, Any]] = Field(None, description="Document metadata (page count, etc.)")
    uploaded_at: Optional[datetime] = Field(None, description="Upload timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(
        from_attributes=True,
        extra="ignore",
        coerce_numbers_to_str=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "name": "invoice.pdf",
                "type": "pdf",
                "size": 1024567,
                "url": "/uploads/invoice.pdf",
                "uploaded_at": "2024-01-06T12:00:00Z"
            }
        }
    )
