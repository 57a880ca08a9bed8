"""Adaptive hybrid search: retrieve, deduplicate, then diversify."""

import math
from collections import Counter

from hybrid_rag.errors import SearchExecutionError
from hybrid_rag.logging_config import get_logger
from hybrid_rag.models.search import SearchAnalysis, SearchConfig, SearchResult
from hybrid_rag.processing.embedder import HybridEmbedder
from hybrid_rag.storage.vector_store import VectorStore

logger = get_logger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.85

NEW_DOCUMENT_BONUS = 0.2
NEW_PAGE_BONUS = 0.1
NEW_SECTION_BONUS = 0.1


class AdaptiveSearchEngine:
    """Hybrid retrieval sized to the document, with greedy dedup and diversity.

    Both post-processing steps are greedy, order-dependent heuristics. Ties
    go to the earlier candidate, so the retrieval order matters.
    """

    def __init__(self, embedder: HybridEmbedder, vector_store: VectorStore):
        self.embedder = embedder
        self.vector_store = vector_store

    def get_adaptive_config(
        self,
        estimated_page_count: int | None = None,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> SearchConfig:
        """Pick candidate pool and context sizes from the document's page count.

        | pages   | top_k | final | hint   |
        |---------|-------|-------|--------|
        | unknown | 15    | 6     | none   |
        | 0       | 15    | 6     | none   |
        | <= 20   | 12    | 6     | small  |
        | 21-40   | 16    | 7     | medium |
        | > 40    | 20    | 8     | large  |
        """
        if not estimated_page_count:
            return SearchConfig(
                top_k=15, final_chunk_count=6, similarity_threshold=similarity_threshold
            )
        if estimated_page_count <= 20:
            return SearchConfig(
                top_k=12,
                final_chunk_count=6,
                similarity_threshold=similarity_threshold,
                document_size_hint="small",
            )
        if estimated_page_count <= 40:
            return SearchConfig(
                top_k=16,
                final_chunk_count=7,
                similarity_threshold=similarity_threshold,
                document_size_hint="medium",
            )
        return SearchConfig(
            top_k=20,
            final_chunk_count=8,
            similarity_threshold=similarity_threshold,
            document_size_hint="large",
        )

    async def search_relevant_chunks(
        self,
        query: str,
        index_name: str,
        namespace: str,
        config: SearchConfig | None = None,
    ) -> list[SearchResult]:
        """Retrieve the final context chunks for a query.

        Args:
            query: User question
            index_name: Vector index to search
            namespace: Owning user's namespace
            config: Search sizes (default: ``get_adaptive_config()``)

        Returns:
            Selected chunks, highest relevance first subject to diversity
            reordering; empty if the namespace has no matches

        Raises:
            SearchExecutionError: If embedding or the vector store fails
        """
        config = config or self.get_adaptive_config()
        logger.info(
            f"Search START top_k={config.top_k} final={config.final_chunk_count} "
            f"hint={config.document_size_hint}"
        )

        try:
            embedding = await self.embedder.embed_query(query)
            results = await self.vector_store.query(
                index_name,
                namespace,
                dense=embedding.dense.values,
                sparse=embedding.sparse,
                top_k=config.top_k,
            )
        except Exception as e:
            logger.error(f"Search failed: {e}", exc_info=True)
            raise SearchExecutionError("Search failed") from e

        if not results:
            logger.info("Search returned no candidates")
            return []

        unique = self.deduplicate_chunks(results, config.similarity_threshold)
        selected = self.select_diverse_chunks(unique, config.final_chunk_count)

        logger.info(
            f"Search COMPLETE: {len(results)} candidates -> {len(unique)} unique "
            f"-> {len(selected)} selected"
        )
        return selected

    def deduplicate_chunks(
        self, results: list[SearchResult], threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    ) -> list[SearchResult]:
        """Drop results too similar to an already accepted, higher-ranked result.

        A candidate is a duplicate only if its similarity is strictly greater
        than ``threshold``.
        """
        accepted: list[SearchResult] = []
        for candidate in results:
            if any(
                self.calculate_text_similarity(candidate.text, kept.text) > threshold
                for kept in accepted
            ):
                continue
            accepted.append(candidate)
        return accepted

    @staticmethod
    def calculate_text_similarity(text1: str, text2: str) -> float:
        """Jaccard similarity of the lower-cased, whitespace-split word sets."""
        words1 = set(text1.lower().split())
        words2 = set(text2.lower().split())
        union = words1 | words2
        if not union:
            # Two empty texts are identical
            return 1.0
        return len(words1 & words2) / len(union)

    def select_diverse_chunks(
        self, chunks: list[SearchResult], target_count: int
    ) -> list[SearchResult]:
        """Greedily pick ``target_count`` chunks favoring unseen documents, pages and sections."""
        if len(chunks) <= target_count:
            return list(chunks)
        if target_count <= 0:
            return []

        pool = list(chunks)
        top = max(pool, key=lambda c: c.score)
        selected = [top]
        pool.remove(top)

        while len(selected) < target_count and pool:
            best = pool[0]
            best_score = best.score + self.calculate_diversity_score(best, selected)
            for candidate in pool[1:]:
                score = candidate.score + self.calculate_diversity_score(candidate, selected)
                if score > best_score:
                    best, best_score = candidate, score
            selected.append(best)
            pool.remove(best)

        return selected

    @staticmethod
    def calculate_diversity_score(
        candidate: SearchResult, selected: list[SearchResult]
    ) -> float:
        """Bonus for what the candidate adds that the selection lacks."""
        bonus = 0.0
        if candidate.document_name not in {c.document_name for c in selected}:
            bonus += NEW_DOCUMENT_BONUS
        if candidate.page_number not in {c.page_number for c in selected}:
            bonus += NEW_PAGE_BONUS
        if candidate.section_heading and candidate.section_heading not in {
            c.section_heading for c in selected
        }:
            bonus += NEW_SECTION_BONUS
        return bonus

    @staticmethod
    def analyze_search_results(results: list[SearchResult]) -> SearchAnalysis:
        """Summarize a result list for logging; score statistics are NaN when empty."""
        scores = [r.score for r in results]
        if scores:
            score_min, score_max = min(scores), max(scores)
            avg_score = sum(scores) / len(scores)
        else:
            score_min = score_max = avg_score = math.nan

        return SearchAnalysis(
            total_results=len(results),
            score_min=score_min,
            score_max=score_max,
            avg_score=avg_score,
            document_distribution=dict(Counter(r.document_name for r in results)),
            page_distribution=dict(Counter(r.page_number for r in results)),
        )
