"""Embedding models shared by the embedder and the vector store adapters."""

from typing import Any

from pydantic import BaseModel, Field, model_validator


class DenseEmbedding(BaseModel):
    """Dense vector from the dense embedding provider."""

    values: list[float]
    dimension: int = Field(ge=0)

    @model_validator(mode="after")
    def check_dimension(self) -> "DenseEmbedding":
        if self.dimension != len(self.values):
            raise ValueError(
                f"dimension ({self.dimension}) does not match number of values ({len(self.values)})"
            )
        return self

    @classmethod
    def from_values(cls, values: list[float]) -> "DenseEmbedding":
        """Build an embedding whose dimension is taken from the values."""
        return cls(values=list(values), dimension=len(values))


class SparseEmbedding(BaseModel):
    """Sparse vector as parallel index/weight arrays."""

    indices: list[int]
    values: list[float]

    @model_validator(mode="after")
    def check_parallel_arrays(self) -> "SparseEmbedding":
        if len(self.indices) != len(self.values):
            raise ValueError(
                f"indices ({len(self.indices)}) and values ({len(self.values)}) "
                "must have the same length"
            )
        if any(i < 0 for i in self.indices):
            raise ValueError("sparse indices must be non-negative")
        if any(v < 0 for v in self.values):
            raise ValueError("sparse values must be non-negative")
        return self


class HybridEmbedding(BaseModel):
    """Dense and sparse representations of one text, with its metadata."""

    dense: DenseEmbedding
    sparse: SparseEmbedding
    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class EmbeddingBatch(BaseModel):
    """Result of embedding all chunks of a document."""

    embeddings: list[HybridEmbedding]
    total_tokens: int = Field(ge=0, description="Approximate token count (4 chars per token)")


class VectorRecord(BaseModel):
    """Record written to the vector store."""

    id: str = Field(min_length=1)
    values: list[float]
    sparse_values: SparseEmbedding | None = None
    metadata: dict[str, Any] | None = None
