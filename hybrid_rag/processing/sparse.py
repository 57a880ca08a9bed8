"""Normalization of sparse embedding responses.

Sparse embedding SDKs have returned the same data in several shapes across
versions. ``normalize_sparse_embedding`` tries each known shape in order and
returns the first match as a ``SparseEmbedding``.
"""

from collections.abc import Callable, Mapping
from typing import Any

from hybrid_rag.errors import UnexpectedEmbeddingShapeError
from hybrid_rag.models.embedding import SparseEmbedding

_MISSING = object()


def _field(obj: Any, name: str) -> Any:
    """Read ``name`` from a mapping key or an attribute."""
    if isinstance(obj, Mapping):
        return obj.get(name, _MISSING)
    return getattr(obj, name, _MISSING)


def _present(value: Any) -> bool:
    return value is not _MISSING and value is not None


def _is_sequence(value: Any) -> bool:
    return _present(value) and not isinstance(value, (str, bytes, Mapping)) and hasattr(
        value, "__len__"
    )


def _build(indices: Any, values: Any) -> SparseEmbedding | None:
    if not (_is_sequence(indices) and _is_sequence(values)):
        return None
    return SparseEmbedding(indices=[int(i) for i in indices], values=[float(v) for v in values])


def _from_accessor(embedding: Any) -> SparseEmbedding | None:
    """Shape 1: an ``as_sparse()`` method returning an object with indices/values."""
    for name in ("as_sparse", "asSparse"):
        accessor = _field(embedding, name)
        if callable(accessor):
            sparse = accessor()
            return _build(_field(sparse, "indices"), _field(sparse, "values"))
    return None


def _from_direct_fields(embedding: Any) -> SparseEmbedding | None:
    """Shape 2: top-level ``indices`` and ``values``."""
    return _build(_field(embedding, "indices"), _field(embedding, "values"))


def _from_provider_fields(embedding: Any) -> SparseEmbedding | None:
    """Shape 3: provider-specific ``sparse_indices``/``sparse_values``."""
    for indices_name, values_name in (
        ("sparse_indices", "sparse_values"),
        ("sparseIndices", "sparseValues"),
    ):
        result = _build(_field(embedding, indices_name), _field(embedding, values_name))
        if result is not None:
            return result
    return None


def _from_nested_values(embedding: Any) -> SparseEmbedding | None:
    """Shape 4: ``values.indices`` and ``values.values``."""
    nested = _field(embedding, "values")
    if not _present(nested) or _is_sequence(nested):
        return None
    return _build(_field(nested, "indices"), _field(nested, "values"))


SHAPE_MATCHERS: tuple[Callable[[Any], SparseEmbedding | None], ...] = (
    _from_accessor,
    _from_direct_fields,
    _from_provider_fields,
    _from_nested_values,
)


def normalize_sparse_embedding(embedding: Any) -> SparseEmbedding:
    """Convert one sparse embedding response item into a ``SparseEmbedding``.

    Args:
        embedding: Item from the provider response (object or mapping)

    Returns:
        SparseEmbedding with parallel ``indices``/``values``

    Raises:
        UnexpectedEmbeddingShapeError: If the item is not sparse or matches
            no known shape
    """
    vector_type = _field(embedding, "vector_type")
    if not _present(vector_type):
        vector_type = _field(embedding, "vectorType")
    if _present(vector_type) and str(vector_type).lower() != "sparse":
        raise UnexpectedEmbeddingShapeError(
            f"Expected sparse embedding but received vector type '{vector_type}'"
        )

    for matcher in SHAPE_MATCHERS:
        try:
            result = matcher(embedding)
        except (TypeError, ValueError) as e:
            raise UnexpectedEmbeddingShapeError(
                f"Malformed sparse embedding ({matcher.__name__}): {e}"
            ) from e
        if result is not None:
            return result

    raise UnexpectedEmbeddingShapeError(
        f"Unexpected sparse embedding structure: {type(embedding).__name__} {embedding!r:.200}"
    )
