"""Per-user document metadata store."""

import asyncio

from hybrid_rag.errors import DocumentNotFoundError
from hybrid_rag.logging_config import get_logger
from hybrid_rag.models.document import DocumentRecord

logger = get_logger(__name__)


class DocumentMetadataStore:
    """In-memory store of indexed documents, keyed by user and document name.

    A record is written only after all of a document's vectors are stored,
    so a listed document is always searchable.
    """

    def __init__(self):
        self._records: dict[str, dict[str, DocumentRecord]] = {}
        self._lock = asyncio.Lock()

    async def save(self, record: DocumentRecord) -> DocumentRecord:
        """Insert or replace the record for ``(user_id, document_name)``."""
        async with self._lock:
            self._records.setdefault(record.user_id, {})[record.document_name] = record
        logger.debug(f"Saved metadata for document '{record.document_name}'")
        return record

    async def get(self, user_id: str, document_name: str) -> DocumentRecord:
        """Get one record.

        Raises:
            DocumentNotFoundError: If the user has no such document
        """
        record = self._records.get(user_id, {}).get(document_name)
        if record is None:
            raise DocumentNotFoundError(f"Document '{document_name}' not found")
        return record

    async def list(self, user_id: str) -> list[DocumentRecord]:
        """List a user's documents, newest first."""
        records = self._records.get(user_id, {}).values()
        return sorted(records, key=lambda r: r.uploaded_at, reverse=True)

    async def delete(self, user_id: str, document_name: str) -> None:
        """Remove one record.

        Raises:
            DocumentNotFoundError: If the user has no such document
        """
        async with self._lock:
            documents = self._records.get(user_id, {})
            if document_name not in documents:
                raise DocumentNotFoundError(f"Document '{document_name}' not found")
            del documents[document_name]

    async def delete_all(self, user_id: str) -> int:
        """Remove every record of a user; returns how many were removed."""
        async with self._lock:
            removed = self._records.pop(user_id, {})
        return len(removed)
