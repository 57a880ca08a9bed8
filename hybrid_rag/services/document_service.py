"""Document processing service orchestrating the upload pipeline."""

from enum import Enum

from hybrid_rag.config import get_settings
from hybrid_rag.errors import (
    DocumentMetadataWriteError,
    DocumentProcessingError,
    FileValidationError,
)
from hybrid_rag.logging_config import get_logger
from hybrid_rag.models.chunk import DocumentChunk
from hybrid_rag.models.document import DocumentRecord, DocumentUploadResponse
from hybrid_rag.models.embedding import EmbeddingBatch, VectorRecord
from hybrid_rag.processing.chunker import PDFChunker
from hybrid_rag.processing.embedder import HybridEmbedder
from hybrid_rag.services.components import build_chunker, build_embedder
from hybrid_rag.storage.file_storage import FileStorageService, StoredFile
from hybrid_rag.storage.metadata_store import DocumentMetadataStore
from hybrid_rag.storage.vector_store import VectorStore

logger = get_logger(__name__)


class ProcessingStage(str, Enum):
    """Upload pipeline stage, reported when processing fails."""

    VALIDATING = "validating"
    CHUNKING = "chunking"
    EMBEDDING = "embedding"
    STORING = "storing"
    RECORDING = "recording"


class DocumentService:
    """Service orchestrating the document upload pipeline.

    1. Validate the upload and keep it on disk
    2. Extract page text and chunk it
    3. Embed every chunk (dense + sparse)
    4. Upsert the vectors into the owner's namespace
    5. Write the document record

    The record is written only after the upsert succeeds. The temporary
    file is removed whatever the outcome.
    """

    def __init__(
        self,
        chunker: PDFChunker | None = None,
        embedder: HybridEmbedder | None = None,
        vector_store: VectorStore | None = None,
        metadata_store: DocumentMetadataStore | None = None,
        file_storage: FileStorageService | None = None,
        index_name: str | None = None,
    ):
        """Initialize document service.

        Args:
            chunker: PDF chunker (creates default if None)
            embedder: Hybrid embedder (creates default if None)
            vector_store: Vector store (defaults to the embedder's)
            metadata_store: Document record store (creates default if None)
            file_storage: Upload storage (creates default if None)
            index_name: Vector index (defaults to ``pinecone_index_name``)
        """
        self.settings = get_settings()

        self.chunker = chunker or build_chunker(self.settings)
        self.embedder = embedder or build_embedder(self.settings, vector_store)
        self.vector_store = vector_store or self.embedder.vector_store
        if self.vector_store is None:
            raise ValueError("DocumentService needs a vector store")
        self.metadata_store = metadata_store or DocumentMetadataStore()
        self.file_storage = file_storage or FileStorageService()
        self.index_name = index_name or self.settings.pinecone_index_name

        logger.info(f"DocumentService initialized (index='{self.index_name}')")

    async def process_document(
        self,
        user_id: str,
        file_content: bytes,
        filename: str,
        content_type: str | None = "application/pdf",
    ) -> DocumentUploadResponse:
        """Process an uploaded PDF through the complete pipeline.

        Args:
            user_id: Owner; also the vector namespace
            file_content: Binary content of the PDF
            filename: Original filename, used as the document name
            content_type: MIME type reported by the client

        Returns:
            DocumentUploadResponse with the stored record

        Raises:
            FileValidationError: If the upload is rejected
            DocumentMetadataWriteError: If the record cannot be written after
                the vectors were stored
            DocumentProcessingError: If any other stage fails
        """
        stage = ProcessingStage.VALIDATING
        stored: StoredFile | None = None

        try:
            logger.info(f"Starting document processing for '{filename}'")
            stored = self.file_storage.save_file(file_content, filename, content_type)

            stage = ProcessingStage.CHUNKING
            chunks = self.chunker.process_pdf(stored.upload_path, filename)
            if not chunks:
                raise DocumentProcessingError(
                    f"No text could be extracted from '{filename}'", stage=stage.value
                )
            logger.info(f"Document '{filename}' chunked into {len(chunks)} segments")

            stage = ProcessingStage.EMBEDDING
            batch = await self.embedder.embed_chunks(chunks)
            logger.info(
                f"Generated {len(batch.embeddings)} embeddings for '{filename}' "
                f"(~{batch.total_tokens} tokens)"
            )

            stage = ProcessingStage.STORING
            records = self.build_vector_records(chunks, batch, user_id)
            await self.vector_store.upsert(self.index_name, user_id, records)
            logger.info(f"Stored {len(records)} vectors for '{filename}'")

            stage = ProcessingStage.RECORDING
            record = DocumentRecord(
                document_name=filename,
                page_count=max(chunk.metadata.page_number for chunk in chunks),
                chunk_count=len(chunks),
                file_size=stored.file_size,
                user_id=user_id,
            )
            await self._save_record(record, [r.id for r in records])

        except FileValidationError as e:
            logger.warning(f"File validation failed for '{filename}': {e}")
            raise

        except (DocumentProcessingError, DocumentMetadataWriteError):
            raise

        except Exception as e:
            logger.error(
                f"Document processing failed at stage '{stage.value}': {e}",
                exc_info=True,
                extra={"stage": stage.value, "document_filename": filename},
            )
            raise DocumentProcessingError(
                f"Document processing failed at stage '{stage.value}'", stage=stage.value
            ) from e

        finally:
            if stored is not None:
                self.file_storage.delete_file(stored)

        logger.info(f"Document '{filename}' processing completed successfully")
        return DocumentUploadResponse(
            document=record,
            chunks_processed=len(chunks),
            total_tokens=batch.total_tokens,
        )

    @staticmethod
    def build_vector_records(
        chunks: list[DocumentChunk], batch: EmbeddingBatch, user_id: str
    ) -> list[VectorRecord]:
        """Pair chunks with their embeddings as ``{doc}:{page}:{index}`` records."""
        return [
            VectorRecord(
                id=chunk.vector_id,
                values=embedding.dense.values,
                sparse_values=embedding.sparse,
                metadata={
                    **chunk.metadata.model_dump(),
                    "text": chunk.text,
                    "user_id": user_id,
                },
            )
            for chunk, embedding in zip(chunks, batch.embeddings, strict=True)
        ]

    async def _save_record(self, record: DocumentRecord, vector_ids: list[str]) -> None:
        try:
            await self.metadata_store.save(record)
        except Exception as e:
            # Cleanup of the orphaned vectors is left to reconciliation
            logger.error(
                f"Failed to save metadata for '{record.document_name}'; "
                f"{len(vector_ids)} vectors are orphaned",
                exc_info=True,
            )
            raise DocumentMetadataWriteError(
                "Failed to save document metadata", orphaned_vector_ids=vector_ids
            ) from e

    async def list_documents(self, user_id: str) -> list[DocumentRecord]:
        """List the user's documents, newest first."""
        return await self.metadata_store.list(user_id)

    async def get_document(self, user_id: str, document_name: str) -> DocumentRecord:
        """Get one of the user's documents.

        Raises:
            DocumentNotFoundError: If the user has no such document
        """
        return await self.metadata_store.get(user_id, document_name)

    async def delete_document(self, user_id: str, document_name: str) -> int:
        """Delete a document's vectors and record; returns the vectors removed.

        Raises:
            DocumentNotFoundError: If the user has no such document
            VectorStoreWriteError: If the vectors cannot be deleted
        """
        await self.metadata_store.get(user_id, document_name)

        removed = await self.vector_store.delete_document_vectors(
            self.index_name, user_id, document_name
        )
        await self.metadata_store.delete(user_id, document_name)

        logger.info(f"Document '{document_name}' deleted ({removed} vectors)")
        return removed

    async def delete_all(self, user_id: str) -> int:
        """Delete every vector and record of a user; returns the documents removed."""
        await self.vector_store.delete_namespace(self.index_name, user_id)
        removed = await self.metadata_store.delete_all(user_id)
        logger.warning(f"Deleted all {removed} documents of a user")
        return removed

    async def close(self):
        """Close all resources."""
        await self.embedder.openai_client.close()
