"""Retrieval over the hybrid vector index."""

from hybrid_rag.retrieval.adaptive_search import AdaptiveSearchEngine

__all__ = ["AdaptiveSearchEngine"]
