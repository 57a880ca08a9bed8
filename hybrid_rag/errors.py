"""Exception taxonomy for the retrieval pipeline.

Provider failures are wrapped into one of these types at the layer that
talks to the provider and propagate unchanged to the request boundary.
An empty search is not an error; it is reported as an empty result list.
"""


class DocumentExtractionError(Exception):
    """Raised when a source PDF cannot be read or parsed."""

    pass


class EmbeddingProviderError(Exception):
    """Raised when a dense or sparse embedding call fails."""

    pass


class UnexpectedEmbeddingShapeError(EmbeddingProviderError):
    """Raised when a sparse embedding response matches no known shape."""

    pass


class VectorStoreError(Exception):
    """Base class for vector store failures."""

    pass


class VectorStoreWriteError(VectorStoreError):
    """Raised when an upsert or delete against the vector store fails."""

    pass


class VectorStoreQueryError(VectorStoreError):
    """Raised when a vector store query fails."""

    pass


class SearchExecutionError(Exception):
    """Raised when any step of a search fails."""

    pass


class DocumentMetadataWriteError(Exception):
    """Raised when the document record cannot be written after an upsert.

    The vectors already written for the document are orphaned at that point.
    """

    def __init__(self, message: str, orphaned_vector_ids: list[str] | None = None):
        super().__init__(message)
        self.orphaned_vector_ids = orphaned_vector_ids or []


class DocumentNotFoundError(Exception):
    """Raised when a user asks for a document they have not uploaded."""

    pass


class DocumentProcessingError(Exception):
    """Raised when the upload pipeline fails at any stage."""

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        self.stage = stage


class FileValidationError(Exception):
    """Raised when an uploaded file is rejected."""

    pass


class AnswerGenerationError(Exception):
    """Raised when the chat provider fails to produce an answer."""

    pass
