from typing import List, Optional
import logging

from pydantic import ValidationError as SchemaValidationError

from dia_client.enums.document import DocumentType
from dia_client.exceptions import InvalidResponseError
from dia_client.schemas.document import DocumentInfo
from dia_client.services.api_client import ApiClient

logger = logging.getLogger(__name__)


class DocumentService:
    """Read access to the backend document store."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def get_document(self, document_id: str) -> DocumentInfo:
        """
        Get a document by ID.

        Raises:
            NotFoundError: if the document does not exist
        """
        data = await self.client.get(f"/documents/{document_id}")
        try:
            return DocumentInfo.model_validate(data)
        except SchemaValidationError as e:
            raise InvalidResponseError(
                f"Invalid document payload for {document_id}",
                details={"errors": e.errors(include_url=False)},
            )

    async def list_documents(
        self,
        document_type: Optional[DocumentType] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[DocumentInfo]:
        """List the current user's documents, optionally filtered by type."""
        params = {"skip": skip, "limit": limit}
        if document_type is not None:
            params["doc_type"] = document_type.value

        data = await self.client.get("/documents", params=params)
        try:
            return [DocumentInfo.model_validate(item) for item in data or []]
        except SchemaValidationError as e:
            raise InvalidResponseError(
                "Invalid document list payload",
                details={"errors": e.errors(include_url=False)},
            )
