"""Search models used by the adaptive search engine and the vector stores."""

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, Field

DocumentSizeHint = Literal["small", "medium", "large"]


@dataclass
class SearchResult:
    """A chunk returned by the vector store.

    Attributes:
        id: Vector ID (``{documentName}:{pageNumber}:{chunkIndex}``)
        score: Similarity score (higher is more relevant)
        text: Chunk text
        document_name: Source document
        page_number: Page within the source document
        section_heading: Detected section heading, empty if none
        chunk_index: Chunk index within the page
    """

    id: str
    score: float
    text: str = ""
    document_name: str = ""
    page_number: int = 0
    section_heading: str = ""
    chunk_index: int = 0

    @classmethod
    def from_metadata(cls, id: str, score: float | None, metadata: dict[str, Any] | None):
        """Build a result from stored vector metadata, tolerating missing keys."""
        metadata = metadata or {}
        return cls(
            id=id or "",
            score=float(score or 0.0),
            text=str(metadata.get("text") or ""),
            document_name=str(metadata.get("document_name") or ""),
            page_number=_as_int(metadata.get("page_number")),
            section_heading=str(metadata.get("section_heading") or ""),
            chunk_index=_as_int(metadata.get("chunk_index")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "score": self.score,
            "text": self.text,
            "document_name": self.document_name,
            "page_number": self.page_number,
            "section_heading": self.section_heading,
            "chunk_index": self.chunk_index,
        }


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class SearchConfig(BaseModel):
    """Per-query retrieval parameters.

    ``final_chunk_count`` is expected to be at most ``top_k``.
    """

    top_k: int = Field(ge=1, description="Initial candidate pool size")
    final_chunk_count: int = Field(ge=1, description="Number of chunks handed to the LLM")
    similarity_threshold: float = Field(
        ge=0.0, le=1.0, description="Jaccard similarity above which chunks are duplicates"
    )
    document_size_hint: DocumentSizeHint | None = None


@dataclass
class SearchAnalysis:
    """Summary statistics over a result list, for logging and debugging.

    Score statistics are NaN for an empty result list.
    """

    total_results: int
    score_min: float
    score_max: float
    avg_score: float
    document_distribution: dict[str, int] = field(default_factory=dict)
    page_distribution: dict[int, int] = field(default_factory=dict)
